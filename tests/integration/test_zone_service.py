"""Integration tests: zones and sub-zones"""

import pytest

from revenue_ledger.core.exceptions import ConflictError, NotFoundError, PayerValidationError
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.schemas.zone import SubZoneCreate, ZoneCreate
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.services.zone_service import ZoneService


@pytest.mark.asyncio
async def test_create_zone_and_sub_zone(db, actor):
    zone = await ZoneService.create_zone(db, ZoneCreate(zone_name=" Ablekuma ", zone_code="ABK"), actor)
    assert zone.zone_name == "Ablekuma"

    sub_zone = await ZoneService.create_sub_zone(
        db, SubZoneCreate(zone_id=zone.id, sub_zone_name="Lapaz"), actor
    )
    assert sub_zone.zone_id == zone.id
    assert [s.sub_zone_name for s in await ZoneService.list_sub_zones(db, zone.id)] == ["Lapaz"]


@pytest.mark.asyncio
async def test_zone_name_required_and_unique(db, actor, zone_id):
    with pytest.raises(PayerValidationError):
        await ZoneService.create_zone(db, ZoneCreate(zone_name="  "), actor)
    with pytest.raises(ConflictError):
        await ZoneService.create_zone(db, ZoneCreate(zone_name="Central"), actor)


@pytest.mark.asyncio
async def test_sub_zone_unique_within_zone(db, actor, zone_id, sub_zone_id):
    with pytest.raises(ConflictError):
        await ZoneService.create_sub_zone(db, SubZoneCreate(zone_id=zone_id, sub_zone_name="Market Square"), actor)

    other = await ZoneService.create_zone(db, ZoneCreate(zone_name="North"), actor)
    same_name = await ZoneService.create_sub_zone(
        db, SubZoneCreate(zone_id=other.id, sub_zone_name="Market Square"), actor
    )
    assert same_name.zone_id == other.id


@pytest.mark.asyncio
async def test_sub_zone_needs_existing_zone(db, actor):
    with pytest.raises(NotFoundError):
        await ZoneService.create_sub_zone(db, SubZoneCreate(zone_id=404, sub_zone_name="Nowhere"), actor)


@pytest.mark.asyncio
async def test_zone_in_use_cannot_be_deleted(db, actor, zone_id, sub_zone_id, business_data):
    await PayerService.create_business(db, business_data(sub_zone_id=sub_zone_id), actor)

    with pytest.raises(ConflictError) as exc_info:
        await ZoneService.delete_zone(db, zone_id, actor)
    assert exc_info.value.message == (
        "Cannot delete zone 'Central'. It is currently assigned to: 1 sub-zone(s), 1 business(es). "
        "Please reassign or remove these records first."
    )

    with pytest.raises(ConflictError) as exc_info:
        await ZoneService.delete_sub_zone(db, sub_zone_id, actor)
    assert "1 business(es)" in exc_info.value.message

    assert await ZoneService.get_zone(db, zone_id) is not None


@pytest.mark.asyncio
async def test_delete_unused_zone(db, actor):
    zone = await ZoneService.create_zone(db, ZoneCreate(zone_name="Outskirts"), actor)
    zone_id = zone.id
    sub_zone = await ZoneService.create_sub_zone(db, SubZoneCreate(zone_id=zone_id, sub_zone_name="Farm Road"), actor)

    await ZoneService.delete_sub_zone(db, sub_zone.id, actor)
    await ZoneService.delete_zone(db, zone_id, actor)

    with pytest.raises(NotFoundError):
        await ZoneService.get_zone(db, zone_id)
    entries = await AuditService.list_entries(db, action=AuditAction.DELETE_ZONE.value)
    assert entries[0].old_values["zone_name"] == "Outskirts"


@pytest.mark.asyncio
async def test_delete_missing_zone(db, actor):
    with pytest.raises(NotFoundError):
        await ZoneService.delete_zone(db, 404, actor)
