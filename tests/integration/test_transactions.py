"""Integration tests: run_in_transaction commit/rollback and error mapping"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from revenue_ledger.core.exceptions import ConflictError, StorageFailureError, StorageTimeoutError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models import Zone


async def _zone_count(db) -> int:
    return (await db.execute(select(func.count(Zone.id)))).scalar_one()


@pytest.mark.asyncio
async def test_commits_on_success(db):
    async def _op():
        db.add(Zone(zone_name="Harbour"))
        await db.flush()
        return "done"

    assert await run_in_transaction(db, _op) == "done"
    assert await _zone_count(db) == 1


@pytest.mark.asyncio
async def test_ledger_error_rolls_back_and_propagates(db):
    async def _op():
        db.add(Zone(zone_name="Harbour"))
        await db.flush()
        raise ConflictError("changed underneath")

    with pytest.raises(ConflictError):
        await run_in_transaction(db, _op)
    assert await _zone_count(db) == 0


@pytest.mark.asyncio
async def test_database_error_becomes_storage_failure(db):
    async def _op():
        db.add(Zone(zone_name="Harbour"))
        await db.flush()
        raise OperationalError("INSERT INTO zones", {}, Exception("disk I/O error"))

    with pytest.raises(StorageFailureError) as exc_info:
        await run_in_transaction(db, _op, description="create zone")
    assert not isinstance(exc_info.value, StorageTimeoutError)
    assert "disk I/O" not in exc_info.value.message
    assert await _zone_count(db) == 0


@pytest.mark.asyncio
async def test_constraint_violation_becomes_storage_failure(db, zone_id):
    async def _op():
        db.add(Zone(zone_name="Central"))
        await db.flush()

    with pytest.raises(StorageFailureError):
        await run_in_transaction(db, _op)
    assert await _zone_count(db) == 1


@pytest.mark.asyncio
async def test_statement_timeout_becomes_storage_timeout(db):
    async def _op():
        raise OperationalError("UPDATE bills", {}, Exception("canceling statement due to statement timeout"))

    with pytest.raises(StorageTimeoutError):
        await run_in_transaction(db, _op)


@pytest.mark.asyncio
async def test_slow_transaction_times_out(db):
    async def _op():
        db.add(Zone(zone_name="Harbour"))
        await db.flush()
        await asyncio.sleep(5)

    with pytest.raises(StorageTimeoutError):
        await run_in_transaction(db, _op, timeout=0.05)
    assert await _zone_count(db) == 0
