"""Zone and sub-zone endpoints"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.api import deps
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.schemas.responses import SuccessResponse
from revenue_ledger.schemas.zone import SubZoneCreate, SubZoneResponse, ZoneCreate, ZoneResponse
from revenue_ledger.services.zone_service import ZoneService

router = APIRouter()


@router.get("", response_model=SuccessResponse)
async def list_zones(db: AsyncSession = Depends(deps.get_db)) -> Any:
    zones = await ZoneService.list_zones(db)
    return SuccessResponse(data=[ZoneResponse.model_validate(z) for z in zones])


@router.post("", response_model=SuccessResponse[ZoneResponse], status_code=201)
async def create_zone(
    zone_in: ZoneCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    zone = await ZoneService.create_zone(db, zone_in, actor, origin)
    return SuccessResponse(data=ZoneResponse.model_validate(zone), message="Zone created successfully")


@router.post("/sub-zones", response_model=SuccessResponse[SubZoneResponse], status_code=201)
async def create_sub_zone(
    sub_zone_in: SubZoneCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    sub_zone = await ZoneService.create_sub_zone(db, sub_zone_in, actor, origin)
    return SuccessResponse(data=SubZoneResponse.model_validate(sub_zone), message="Sub-zone created successfully")


@router.delete("/sub-zones/{sub_zone_id}", response_model=SuccessResponse)
async def delete_sub_zone(
    sub_zone_id: int,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await ZoneService.delete_sub_zone(db, sub_zone_id, actor, origin)
    return SuccessResponse(data=None, message="Sub-zone deleted successfully")


@router.get("/{zone_id}", response_model=SuccessResponse[ZoneResponse])
async def get_zone(zone_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    zone = await ZoneService.get_zone(db, zone_id)
    return SuccessResponse(data=ZoneResponse.model_validate(zone))


@router.get("/{zone_id}/sub-zones", response_model=SuccessResponse)
async def list_sub_zones(zone_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    await ZoneService.get_zone(db, zone_id)
    sub_zones = await ZoneService.list_sub_zones(db, zone_id)
    return SuccessResponse(data=[SubZoneResponse.model_validate(s) for s in sub_zones])


@router.delete("/{zone_id}", response_model=SuccessResponse)
async def delete_zone(
    zone_id: int,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Refused with 409 while sub-zones, businesses or properties still use the zone"""
    await ZoneService.delete_zone(db, zone_id, actor, origin)
    return SuccessResponse(data=None, message="Zone deleted successfully")
