"""Shared pytest fixtures: an in-memory ledger database and seeded payers.

All sessions share one in-memory connection, so a test should finish with
one session before opening another.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from revenue_ledger.config import settings
from revenue_ledger.database import Base, get_db
from revenue_ledger.main import app
from revenue_ledger.models import Bill, BillAdjustment, Payment, SubZone, Zone
from revenue_ledger.models.enums import (
    AdjustableField,
    AdjustmentMethod,
    PaymentMethod,
    PaymentStatus,
)
from revenue_ledger.schemas.context import Actor, PayerRef
from revenue_ledger.schemas.payer import BusinessCreate, PropertyCreate
from revenue_ledger.services.payer_service import PayerService


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test, foreign keys enforced, SAVEPOINT enabled."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so nested transactions work
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def actor() -> Actor:
    return Actor(id="officer-7", display_name="Ama Mensah")


@pytest.fixture
def actor_headers(actor) -> dict:
    return {"X-Actor-Id": actor.id, "X-Actor-Name": actor.display_name}


@pytest_asyncio.fixture
async def zone_id(session_factory) -> int:
    async with session_factory() as session:
        zone = Zone(zone_name="Central", zone_code="CEN")
        session.add(zone)
        await session.commit()
        return zone.id


@pytest_asyncio.fixture
async def sub_zone_id(session_factory, zone_id) -> int:
    async with session_factory() as session:
        sub_zone = SubZone(zone_id=zone_id, sub_zone_name="Market Square")
        session.add(sub_zone)
        await session.commit()
        return sub_zone.id


@pytest.fixture
def business_data(zone_id):
    """Factory for valid business input; keyword overrides win."""
    def _make(**overrides) -> BusinessCreate:
        fields = dict(
            business_name="Kofi Enterprises",
            owner_name="Kofi Boateng",
            business_type="Retail",
            category="Small Shop",
            telephone="+233 24 123-4567",
            latitude=5.6037,
            longitude=-0.187,
            old_bill=Decimal("50.00"),
            arrears=Decimal("20.00"),
            current_bill=Decimal("100.00"),
            previous_payments=Decimal("30.00"),
            zone_id=zone_id,
        )
        fields.update(overrides)
        return BusinessCreate(**fields)
    return _make


@pytest.fixture
def property_data(zone_id):
    def _make(**overrides) -> PropertyCreate:
        fields = dict(
            owner_name="Esi Owusu",
            telephone="024-555-0101",
            structure="Concrete Block",
            property_use="Residential",
            number_of_rooms=4,
            zone_id=zone_id,
        )
        fields.update(overrides)
        return PropertyCreate(**fields)
    return _make


async def create_business_ref(session_factory, actor: Actor, business_in: BusinessCreate) -> PayerRef:
    async with session_factory() as session:
        business = await PayerService.create_business(session, business_in, actor)
        return PayerRef.for_business(business.id)


async def seed_relationships(session_factory, ref: PayerRef, extra_payments=()) -> None:
    """
    3 bills (2023-2025), 2 Successful payments totalling 75.50 and 1 adjustment.

    ``extra_payments`` are (amount, status) pairs added to the 2025 bill.
    """
    async with session_factory() as session:
        bills = [
            Bill(
                bill_number=f"BILL{year}{ref.kind.value[0]}{ref.id:06d}",
                bill_type=ref.kind,
                reference_id=ref.id,
                billing_year=year,
                current_bill=Decimal("100.00"),
                amount_payable=Decimal("100.00"),
            )
            for year in (2023, 2024, 2025)
        ]
        session.add_all(bills)
        await session.flush()

        payments = [
            (bills[0].id, Decimal("50.00"), PaymentStatus.SUCCESSFUL),
            (bills[1].id, Decimal("25.50"), PaymentStatus.SUCCESSFUL),
        ]
        payments.extend((bills[2].id, amount, status) for amount, status in extra_payments)
        for i, (bill_id, amount, status) in enumerate(payments):
            session.add(
                Payment(
                    payment_reference=f"PAYTEST{ref.id:03d}{i:03d}",
                    bill_id=bill_id,
                    amount_paid=amount,
                    payment_method=PaymentMethod.CASH,
                    payment_status=status,
                )
            )

        session.add(
            BillAdjustment(
                target_type=ref.kind,
                target_id=ref.id,
                bill_id=bills[2].id,
                adjustment_method=AdjustmentMethod.FIXED_AMOUNT,
                adjustment_value=Decimal("-10.00"),
                target_field=AdjustableField.CURRENT_BILL,
                old_amount=Decimal("100.00"),
                new_amount=Decimal("90.00"),
                reason="Shop closed for two months",
            )
        )
        await session.commit()


@pytest_asyncio.fixture
async def business_ref(session_factory, actor, business_data) -> PayerRef:
    return await create_business_ref(session_factory, actor, business_data())


@pytest_asyncio.fixture
async def seeded_business(session_factory, business_ref) -> PayerRef:
    await seed_relationships(session_factory, business_ref)
    return business_ref


@pytest_asyncio.fixture
async def async_client(session_factory):
    """API client bound to the test database."""
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=f"http://test{settings.API_V1_PREFIX}",
    ) as client:
        yield client
    app.dependency_overrides.clear()
