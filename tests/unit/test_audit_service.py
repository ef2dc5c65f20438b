"""Unit tests for AuditService failure handling."""

import logging
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import AuditWriteFailure
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.services.audit_service import AuditService


def test_build_entry_serializes_decimals_and_datetimes():
    entry = AuditService._build_entry(
        Actor(id="u1", display_name="Yaw"),
        "UPDATE",
        "businesses",
        12,
        {"amount_payable": Decimal("140.00")},
        {"deleted_at": datetime(2025, 3, 1, 9, 30)},
        RequestOrigin(ip_address="10.0.0.5", user_agent="pytest"),
    )
    assert entry.record_id == "12"
    assert entry.actor_name == "Yaw"
    assert entry.old_values == {"amount_payable": "140.00"}
    assert entry.new_values == {"deleted_at": "2025-03-01T09:30:00"}
    assert entry.ip_address == "10.0.0.5"


def test_build_entry_rejects_unserializable_values():
    with pytest.raises(AuditWriteFailure):
        AuditService._build_entry(Actor(id="u1"), "UPDATE", "businesses", 1, None, {"x": object()}, None)


@pytest.mark.asyncio
async def test_record_swallows_storage_errors_and_alerts(caplog):
    db = AsyncMock(spec=AsyncSession)
    db.begin_nested = MagicMock(side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error")))
    before = AuditService.failure_count()

    with caplog.at_level(logging.ERROR, logger="revenue_ledger.audit.alerts"):
        entry = await AuditService.record(db, Actor(id="u1"), AuditAction.UPDATE, "businesses", 1)

    assert entry is None
    assert AuditService.failure_count() == before + 1
    alerts = [r for r in caplog.records if r.name == "revenue_ledger.audit.alerts"]
    assert len(alerts) == 1
    assert alerts[0].alert == "audit_write_failure"
    assert alerts[0].action == "UPDATE"
