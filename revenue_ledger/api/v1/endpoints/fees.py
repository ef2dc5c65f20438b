"""Fee catalog endpoints"""

import enum
from typing import Any
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.api import deps
from revenue_ledger.models.enums import PayerKind
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.schemas.fee import (
    BusinessFeeCreate,
    BusinessFeeResponse,
    FeeActiveUpdate,
    FeeImportResult,
    FeeResolution,
    PropertyFeeCreate,
    PropertyFeeResponse,
)
from revenue_ledger.schemas.responses import SuccessResponse
from revenue_ledger.services.fee_service import FeeService

router = APIRouter()


class FeeKind(str, enum.Enum):
    BUSINESS = "business"
    PROPERTY = "property"

    @property
    def payer_kind(self) -> PayerKind:
        return PayerKind.BUSINESS if self is FeeKind.BUSINESS else PayerKind.PROPERTY


FEE_RESPONSES = {
    FeeKind.BUSINESS: BusinessFeeResponse,
    FeeKind.PROPERTY: PropertyFeeResponse,
}


@router.get("/resolve", response_model=SuccessResponse[FeeResolution])
async def resolve_fee(
    kind: FeeKind,
    fee_type: str,
    category: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Active fee for (business_type, category) or (structure, property_use)"""
    resolution = await FeeService.resolve_fee(db, kind.payer_kind, fee_type, category)
    return SuccessResponse(data=resolution)


@router.post("/business", response_model=SuccessResponse[BusinessFeeResponse], status_code=201)
async def create_business_fee(
    fee_in: BusinessFeeCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    fee = await FeeService.create_business_fee(db, fee_in, actor, origin)
    return SuccessResponse(data=BusinessFeeResponse.model_validate(fee), message="Fee structure created successfully")


@router.post("/property", response_model=SuccessResponse[PropertyFeeResponse], status_code=201)
async def create_property_fee(
    fee_in: PropertyFeeCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    fee = await FeeService.create_property_fee(db, fee_in, actor, origin)
    return SuccessResponse(data=PropertyFeeResponse.model_validate(fee), message="Fee structure created successfully")


@router.get("/{kind}", response_model=SuccessResponse)
async def list_fees(kind: FeeKind, active_only: bool = False, db: AsyncSession = Depends(deps.get_db)) -> Any:
    fees = await FeeService.list_fees(db, kind.payer_kind, active_only=active_only)
    return SuccessResponse(data=[FEE_RESPONSES[kind].model_validate(f) for f in fees])


@router.patch("/{kind}/{fee_id}", response_model=SuccessResponse)
async def set_fee_active(
    kind: FeeKind,
    fee_id: int,
    update_in: FeeActiveUpdate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    fee = await FeeService.set_fee_active(db, kind.payer_kind, fee_id, update_in.is_active, actor, origin)
    state = "activated" if fee.is_active else "deactivated"
    return SuccessResponse(data=FEE_RESPONSES[kind].model_validate(fee), message=f"Fee structure {state}")


@router.post("/{kind}/import", response_model=SuccessResponse[FeeImportResult])
async def import_fees(
    kind: FeeKind,
    file: UploadFile = File(...),
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Bulk import fees from CSV.
    Columns: business_type, category, fee_amount, is_active (optional) for businesses;
    structure, property_use, fee_per_room, is_active (optional) for properties.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are supported.")
    content = await file.read()
    result = await FeeService.import_fees_from_csv(db, kind.payer_kind, content, actor, origin)
    msg = f"Imported: {result.created} created, {result.duplicates} duplicates, {result.failed} failed."
    if result.errors:
        msg += f" Errors: {'; '.join(result.errors[:5])}"
        if len(result.errors) > 5:
            msg += f" (+{len(result.errors) - 5} more)"
    return SuccessResponse(data=result, message=msg)
