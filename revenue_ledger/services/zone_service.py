"""Zones and sub-zones"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import ConflictError, NotFoundError, PayerValidationError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.models.payer import Business, Property
from revenue_ledger.models.zone import SubZone, Zone
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.schemas.zone import SubZoneCreate, SubZoneResponse, ZoneCreate, ZoneResponse
from revenue_ledger.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class ZoneService:
    """Service layer for zones and sub-zones"""

    @staticmethod
    async def get_zone(db: AsyncSession, zone_id: int) -> Zone:
        zone = await db.get(Zone, zone_id)
        if zone is None:
            raise NotFoundError("Zone", zone_id)
        return zone

    @staticmethod
    async def get_sub_zone(db: AsyncSession, sub_zone_id: int) -> SubZone:
        sub_zone = await db.get(SubZone, sub_zone_id)
        if sub_zone is None:
            raise NotFoundError("Sub-zone", sub_zone_id)
        return sub_zone

    @staticmethod
    async def list_zones(db: AsyncSession) -> List[Zone]:
        result = await db.execute(select(Zone).order_by(Zone.zone_name))
        return list(result.scalars().all())

    @staticmethod
    async def list_sub_zones(db: AsyncSession, zone_id: int) -> List[SubZone]:
        result = await db.execute(
            select(SubZone).where(SubZone.zone_id == zone_id).order_by(SubZone.sub_zone_name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _count(db: AsyncSession, column, value: int) -> int:
        return (await db.execute(select(func.count()).where(column == value))).scalar_one()

    @staticmethod
    async def create_zone(
        db: AsyncSession, zone_in: ZoneCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> Zone:
        name = zone_in.zone_name.strip()
        if not name:
            raise PayerValidationError(["Zone name is required."])

        async def _create() -> Zone:
            if await ZoneService._count(db, Zone.zone_name, name) > 0:
                raise ConflictError(f"A zone named '{name}' already exists.")
            zone = Zone(
                zone_name=name,
                zone_code=(zone_in.zone_code or "").strip() or None,
                description=zone_in.description,
                created_by=actor.id,
            )
            db.add(zone)
            await db.flush()
            await AuditService.record(
                db, actor, AuditAction.CREATE, "zones", zone.id,
                new_values=ZoneResponse.model_validate(zone).model_dump(mode="json"),
                origin=origin,
            )
            return zone

        zone = await run_in_transaction(db, _create, description="create zone")
        logger.info(f"Zone created: {zone.zone_name} (ID: {zone.id}) by user {actor.label}")
        return zone

    @staticmethod
    async def create_sub_zone(
        db: AsyncSession, sub_zone_in: SubZoneCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> SubZone:
        name = sub_zone_in.sub_zone_name.strip()
        if not name:
            raise PayerValidationError(["Sub-zone name is required."])

        async def _create() -> SubZone:
            zone = await ZoneService.get_zone(db, sub_zone_in.zone_id)
            duplicate = await db.execute(
                select(SubZone.id).where(SubZone.zone_id == zone.id, SubZone.sub_zone_name == name)
            )
            if duplicate.scalar_one_or_none() is not None:
                raise ConflictError(f"Sub-zone '{name}' already exists in zone '{zone.zone_name}'.")
            sub_zone = SubZone(
                zone_id=zone.id,
                sub_zone_name=name,
                sub_zone_code=(sub_zone_in.sub_zone_code or "").strip() or None,
                description=sub_zone_in.description,
                created_by=actor.id,
            )
            db.add(sub_zone)
            await db.flush()
            await AuditService.record(
                db, actor, AuditAction.CREATE, "sub_zones", sub_zone.id,
                new_values=SubZoneResponse.model_validate(sub_zone).model_dump(mode="json"),
                origin=origin,
            )
            return sub_zone

        sub_zone = await run_in_transaction(db, _create, description="create sub-zone")
        logger.info(f"Sub-zone created: {sub_zone.sub_zone_name} (ID: {sub_zone.id}) by user {actor.label}")
        return sub_zone

    @staticmethod
    async def zone_dependencies(db: AsyncSession, zone_id: int) -> List[str]:
        """Human-readable list of records still pointing at a zone"""
        dependencies = []
        sub_zones = await ZoneService._count(db, SubZone.zone_id, zone_id)
        if sub_zones:
            dependencies.append(f"{sub_zones} sub-zone(s)")
        businesses = await ZoneService._count(db, Business.zone_id, zone_id)
        if businesses:
            dependencies.append(f"{businesses} business(es)")
        properties = await ZoneService._count(db, Property.zone_id, zone_id)
        if properties:
            dependencies.append(f"{properties} property/properties")
        return dependencies

    @staticmethod
    async def sub_zone_dependencies(db: AsyncSession, sub_zone_id: int) -> List[str]:
        dependencies = []
        businesses = await ZoneService._count(db, Business.sub_zone_id, sub_zone_id)
        if businesses:
            dependencies.append(f"{businesses} business(es)")
        properties = await ZoneService._count(db, Property.sub_zone_id, sub_zone_id)
        if properties:
            dependencies.append(f"{properties} property/properties")
        return dependencies

    @staticmethod
    async def delete_zone(
        db: AsyncSession, zone_id: int, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> None:
        """
        Delete a zone nothing refers to.

        Raises:
            NotFoundError: no such zone
            ConflictError: sub-zones or payers are still assigned to it
        """

        async def _delete() -> str:
            zone = await ZoneService.get_zone(db, zone_id)
            dependencies = await ZoneService.zone_dependencies(db, zone_id)
            if dependencies:
                raise ConflictError(
                    f"Cannot delete zone '{zone.zone_name}'. It is currently assigned to: "
                    f"{', '.join(dependencies)}. Please reassign or remove these records first."
                )
            snapshot = ZoneResponse.model_validate(zone).model_dump(mode="json")
            await db.delete(zone)
            await db.flush()
            await AuditService.record(
                db, actor, AuditAction.DELETE_ZONE, "zones", zone_id, old_values=snapshot, origin=origin
            )
            return snapshot["zone_name"]

        name = await run_in_transaction(db, _delete, description=f"delete zone {zone_id}")
        logger.info(f"Zone deleted: {name} (ID: {zone_id}) by user {actor.label}")

    @staticmethod
    async def delete_sub_zone(
        db: AsyncSession, sub_zone_id: int, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> None:
        """
        Delete a sub-zone no payer refers to.

        Raises:
            NotFoundError: no such sub-zone
            ConflictError: payers are still assigned to it
        """

        async def _delete() -> str:
            sub_zone = await ZoneService.get_sub_zone(db, sub_zone_id)
            dependencies = await ZoneService.sub_zone_dependencies(db, sub_zone_id)
            if dependencies:
                raise ConflictError(
                    f"Cannot delete sub-zone '{sub_zone.sub_zone_name}'. It is currently assigned to: "
                    f"{', '.join(dependencies)}. Please reassign or remove these records first."
                )
            snapshot = SubZoneResponse.model_validate(sub_zone).model_dump(mode="json")
            await db.delete(sub_zone)
            await db.flush()
            await AuditService.record(
                db, actor, AuditAction.DELETE_SUB_ZONE, "sub_zones", sub_zone_id, old_values=snapshot, origin=origin
            )
            return snapshot["sub_zone_name"]

        name = await run_in_transaction(db, _delete, description=f"delete sub-zone {sub_zone_id}")
        logger.info(f"Sub-zone deleted: {name} (ID: {sub_zone_id}) by user {actor.label}")
