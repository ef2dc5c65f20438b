"""Integration tests: Cascading Mutation Executor (hard delete)"""

import logging
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from revenue_ledger.core.exceptions import (
    AuditWriteFailure,
    ConflictError,
    NotFoundError,
    StorageFailureError,
)
from revenue_ledger.models import AuditLog, Bill, BillAdjustment, Payment
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.schemas.context import PayerRef, RequestOrigin
from revenue_ledger.schemas.ledger import RelationshipSummary
from revenue_ledger.schemas.payer import BusinessUpdate
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.cascade_service import CascadeService
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.services.relationship_service import RelationshipService


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _hard_delete_entries(db):
    return await AuditService.list_entries(db, action=AuditAction.HARD_DELETE.value)


@pytest.mark.asyncio
async def test_delete_removes_payer_and_dependants(db, seeded_business, actor):
    summary = await CascadeService.delete_payer(
        db, seeded_business, actor, origin=RequestOrigin(ip_address="10.0.0.5", user_agent="pytest")
    )

    assert summary.bills_deleted == 3
    assert summary.payments_deleted == 2
    assert summary.adjustments_deleted == 1
    assert summary.account_number == "BIZ000001"
    assert summary.display_name == "Kofi Enterprises"
    assert summary.audit_recorded is True
    assert summary.message == (
        "Business deleted successfully! Related records also deleted: "
        "3 bill record(s), 2 payment record(s), 1 bill adjustment(s)."
    )

    assert await PayerService.get_payer(db, seeded_business) is None
    assert await _count(db, Bill) == 0
    assert await _count(db, Payment) == 0
    assert await _count(db, BillAdjustment) == 0


@pytest.mark.asyncio
async def test_delete_writes_single_hard_delete_entry(db, seeded_business, actor):
    await CascadeService.delete_payer(
        db, seeded_business, actor, origin=RequestOrigin(ip_address="10.0.0.5", user_agent="pytest")
    )

    entries = await _hard_delete_entries(db)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.table_name == "businesses"
    assert entry.record_id == str(seeded_business.id)
    assert entry.actor_id == actor.id
    assert entry.ip_address == "10.0.0.5"
    assert entry.old_values["business_name"] == "Kofi Enterprises"
    assert entry.old_values["relationships"]["payment_total"] == "75.50"
    assert entry.new_values["deleted"] is True
    assert entry.new_values["deleted_by"] == actor.id
    assert entry.new_values["related_records_deleted"] == (
        "3 bill record(s), 2 payment record(s), 1 bill adjustment(s)"
    )


@pytest.mark.asyncio
async def test_delete_without_dependants(db, business_ref, actor):
    summary = await CascadeService.delete_payer(db, business_ref, actor)

    assert summary.related_records == []
    assert summary.message == "Business deleted successfully!"
    entries = await _hard_delete_entries(db)
    assert entries[0].new_values["related_records_deleted"] == ""


@pytest.mark.asyncio
async def test_failed_step_rolls_back_everything(db, seeded_business, actor):
    failure = OperationalError("DELETE FROM bill_adjustments", {}, Exception("database is locked"))

    with patch.object(CascadeService, "_delete_adjustments", AsyncMock(side_effect=failure)):
        with pytest.raises(StorageFailureError):
            await CascadeService.delete_payer(db, seeded_business, actor)

    # Payments were deleted before the failure; the rollback restores them
    summary = await RelationshipService.inspect(db, seeded_business)
    assert summary.bill_count == 3
    assert summary.payment_count == 2
    assert summary.adjustment_count == 1
    assert await _hard_delete_entries(db) == []


@pytest.mark.asyncio
async def test_drift_since_review_is_a_conflict(db, seeded_business, actor):
    stale = RelationshipSummary(
        bill_count=2, payment_count=2, payment_total=Decimal("75.50"), adjustment_count=1
    )

    with pytest.raises(ConflictError):
        await CascadeService.delete_payer(db, seeded_business, actor, expected=stale)

    assert await PayerService.get_payer(db, seeded_business) is not None
    assert await _count(db, Bill) == 3


@pytest.mark.asyncio
async def test_matching_review_proceeds(db, seeded_business, actor):
    reviewed = await RelationshipService.inspect(db, seeded_business)
    summary = await CascadeService.delete_payer(db, seeded_business, actor, expected=reviewed)
    assert summary.bills_deleted == reviewed.bill_count


@pytest.mark.asyncio
async def test_delete_counts_all_payments_not_just_successful(db, session_factory, business_ref, actor):
    from revenue_ledger.models.enums import PaymentStatus
    from tests.conftest import seed_relationships

    await seed_relationships(session_factory, business_ref, extra_payments=[(Decimal("5.00"), PaymentStatus.FAILED)])

    summary = await CascadeService.delete_payer(db, business_ref, actor)
    assert summary.payments_deleted == 3
    assert await _count(db, Payment) == 0


@pytest.mark.asyncio
async def test_audit_failure_does_not_block_delete(db, seeded_business, actor, caplog):
    before = AuditService.failure_count()

    with patch.object(AuditService, "_build_entry", side_effect=AuditWriteFailure("audit store unavailable")):
        with caplog.at_level(logging.ERROR, logger="revenue_ledger.audit.alerts"):
            summary = await CascadeService.delete_payer(db, seeded_business, actor)

    assert summary.audit_recorded is False
    assert AuditService.failure_count() == before + 1
    assert any(getattr(r, "alert", None) == "audit_write_failure" for r in caplog.records)
    assert await PayerService.get_payer(db, seeded_business) is None
    assert await _count(db, Bill) == 0
    assert await _count(db, AuditLog) == 1  # only the CREATE from the fixture


@pytest.mark.asyncio
async def test_delete_missing_payer(db, actor):
    with pytest.raises(NotFoundError):
        await CascadeService.delete_payer(db, PayerRef.for_business(404), actor)


@pytest.mark.asyncio
async def test_deleted_payer_is_gone_for_every_operation(db, business_ref, actor):
    await CascadeService.delete_payer(db, business_ref, actor)

    with pytest.raises(NotFoundError):
        await CascadeService.delete_payer(db, business_ref, actor)
    with pytest.raises(NotFoundError):
        await RelationshipService.inspect(db, business_ref)
    with pytest.raises(NotFoundError):
        await PayerService.update_payer(db, business_ref, BusinessUpdate(owner_name="Back Again"), actor)


@pytest.mark.asyncio
async def test_other_payers_untouched(db, session_factory, seeded_business, actor, business_data):
    from tests.conftest import create_business_ref, seed_relationships

    other = await create_business_ref(session_factory, actor, business_data(business_name="Neighbour Ltd"))
    await seed_relationships(session_factory, other)

    await CascadeService.delete_payer(db, seeded_business, actor)

    summary = await RelationshipService.inspect(db, other)
    assert summary.bill_count == 3
    assert summary.payment_count == 2
    assert summary.adjustment_count == 1
