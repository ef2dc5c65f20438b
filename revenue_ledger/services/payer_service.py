"""Payer Record Store - create/update lifecycle of businesses and properties"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel as Schema
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.config import settings
from revenue_ledger.core.exceptions import NotFoundError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.enums import AuditAction, PayerKind, PayerStatus
from revenue_ledger.models.payer import AccountSequence, Business, Property
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.schemas.payer import (
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
)
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.validation import PayerValidator

logger = logging.getLogger(__name__)

Payer = Union[Business, Property]

PAYER_MODELS: Dict[PayerKind, Type[Payer]] = {
    PayerKind.BUSINESS: Business,
    PayerKind.PROPERTY: Property,
}

PAYER_RESPONSES: Dict[PayerKind, Type[Schema]] = {
    PayerKind.BUSINESS: BusinessResponse,
    PayerKind.PROPERTY: PropertyResponse,
}

# Fields a caller may write; amount_payable is always derived
PAYER_FIELDS: Dict[PayerKind, List[str]] = {
    PayerKind.BUSINESS: list(BusinessCreate.model_fields),
    PayerKind.PROPERTY: list(PropertyCreate.model_fields),
}


# Columns a partial update may not null out; an explicit null keeps the stored value
REQUIRED_COLUMNS: Dict[PayerKind, frozenset] = {
    kind: frozenset(column.name for column in model.__table__.columns if not column.nullable)
    for kind, model in PAYER_MODELS.items()
}


def _clean(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value.strip() if isinstance(value, str) else value for key, value in values.items()}


def _changes(kind: PayerKind, payer_in: Union[BusinessUpdate, PropertyUpdate]) -> Dict[str, Any]:
    """Fields the caller set, minus nulls sent for required columns"""
    return {
        key: value
        for key, value in _clean(payer_in.model_dump(exclude_unset=True)).items()
        if value is not None or key not in REQUIRED_COLUMNS[kind]
    }


class PayerService:
    """Service layer for payer records"""

    @staticmethod
    def model_for(kind: PayerKind) -> Type[Payer]:
        return PAYER_MODELS[kind]

    @staticmethod
    def ref_for(payer: Payer) -> PayerRef:
        return PayerRef(kind=payer.kind, id=payer.id)

    @staticmethod
    def snapshot(payer: Payer) -> Dict[str, Any]:
        """JSON-ready copy of every persisted payer field"""
        return PAYER_RESPONSES[payer.kind].model_validate(payer).model_dump(mode="json")

    @staticmethod
    async def get_payer(db: AsyncSession, ref: PayerRef, for_update: bool = False) -> Optional[Payer]:
        """Get a payer by reference; ``for_update`` locks the row until commit"""
        model = PAYER_MODELS[ref.kind]
        query = select(model).where(model.id == ref.id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_payer_or_404(db: AsyncSession, ref: PayerRef, for_update: bool = False) -> Payer:
        payer = await PayerService.get_payer(db, ref, for_update=for_update)
        if payer is None:
            raise NotFoundError(ref.kind.value, ref.id)
        return payer

    @staticmethod
    async def get_by_account_number(db: AsyncSession, account_number: str) -> Optional[Payer]:
        """Account numbers are unique across both payer tables"""
        for model in PAYER_MODELS.values():
            result = await db.execute(select(model).where(model.account_number == account_number))
            payer = result.scalar_one_or_none()
            if payer is not None:
                return payer
        return None

    @staticmethod
    async def _lock_sequence(db: AsyncSession, kind: PayerKind) -> Optional[AccountSequence]:
        result = await db.execute(
            select(AccountSequence).where(AccountSequence.payer_kind == kind).with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def next_account_number(db: AsyncSession, kind: PayerKind) -> str:
        """
        Take the next account number for ``kind``.

        The counter row is locked for the rest of the transaction and only
        ever moves forward, so numbers freed by a delete are not reissued.
        A missing counter row is inserted under a savepoint; when another
        transaction inserts it first, the row it committed is locked instead.
        """
        sequence = await PayerService._lock_sequence(db, kind)
        if sequence is None:
            try:
                async with db.begin_nested():
                    sequence = AccountSequence(payer_kind=kind, last_value=0)
                    db.add(sequence)
            except IntegrityError:
                logger.info(f"Account sequence for {kind.value} created concurrently, locking it")
                sequence = await PayerService._lock_sequence(db, kind)
                if sequence is None:
                    raise
        sequence.last_value += 1
        await db.flush()

        prefix = settings.BUSINESS_ACCOUNT_PREFIX if kind == PayerKind.BUSINESS else settings.PROPERTY_ACCOUNT_PREFIX
        return f"{prefix}{sequence.last_value:0{settings.ACCOUNT_NUMBER_WIDTH}d}"

    @staticmethod
    async def create_payer(
        db: AsyncSession,
        kind: PayerKind,
        payer_in: Union[BusinessCreate, PropertyCreate],
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> Payer:
        """
        Validate, derive amount_payable, assign an account number and persist.

        Raises:
            PayerValidationError: every failed check, nothing persisted
            StorageFailureError: the transaction was rolled back
        """
        values = _clean(payer_in.model_dump())

        async def _create() -> Payer:
            normalized = await PayerValidator.validate(db, kind, values)
            payer = PAYER_MODELS[kind](**{**values, **normalized})
            payer.account_number = await PayerService.next_account_number(db, kind)
            payer.created_by = actor.id
            db.add(payer)
            await db.flush()

            await AuditService.record(
                db,
                actor,
                AuditAction.CREATE,
                payer.table_name,
                payer.id,
                new_values=PayerService.snapshot(payer),
                origin=origin,
            )
            return payer

        payer = await run_in_transaction(db, _create, description=f"create {kind.value.lower()}")
        logger.info(
            f"{kind.value} created: {payer.display_name} (ID: {payer.id}) by user {actor.label}",
            extra={"payer_kind": kind.value, "payer_id": payer.id, "actor_id": actor.id},
        )
        return payer

    @staticmethod
    async def create_business(
        db: AsyncSession, business_in: BusinessCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> Business:
        return await PayerService.create_payer(db, PayerKind.BUSINESS, business_in, actor, origin)

    @staticmethod
    async def create_property(
        db: AsyncSession, property_in: PropertyCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> Property:
        return await PayerService.create_payer(db, PayerKind.PROPERTY, property_in, actor, origin)

    @staticmethod
    async def update_payer(
        db: AsyncSession,
        ref: PayerRef,
        payer_in: Union[BusinessUpdate, PropertyUpdate],
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> Payer:
        """
        Apply a partial update and recompute amount_payable.

        Unset fields, and required fields sent as null, keep their stored
        values; the merged record is
        validated as a whole, with the uniqueness check skipping this payer.

        Raises:
            NotFoundError: no payer for ``ref``
            PayerValidationError: every failed check, nothing persisted
            StorageFailureError: the transaction was rolled back
        """
        changes = _changes(ref.kind, payer_in)

        async def _update() -> Payer:
            payer = await PayerService.get_payer_or_404(db, ref, for_update=True)
            before = PayerService.snapshot(payer)

            values = {field: getattr(payer, field) for field in PAYER_FIELDS[ref.kind]}
            values.update(changes)
            normalized = await PayerValidator.validate(db, ref.kind, values, exclude_id=payer.id)

            for field, value in {**values, **normalized}.items():
                setattr(payer, field, value)
            await db.flush()

            await AuditService.record(
                db,
                actor,
                AuditAction.UPDATE,
                payer.table_name,
                payer.id,
                old_values=before,
                new_values=PayerService.snapshot(payer),
                origin=origin,
            )
            return payer

        payer = await run_in_transaction(db, _update, description=f"update {ref}")
        logger.info(
            f"{ref.kind.value} updated: {payer.display_name} (ID: {payer.id}) by user {actor.label}",
            extra={"payer_kind": ref.kind.value, "payer_id": payer.id, "actor_id": actor.id},
        )
        return payer

    @staticmethod
    async def list_payers(
        db: AsyncSession,
        kind: PayerKind,
        zone_id: Optional[int] = None,
        status: Optional[PayerStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Payer], int]:
        """Get paginated payers of one kind with filters"""
        model = PAYER_MODELS[kind]
        query = select(model)
        if zone_id:
            query = query.where(model.zone_id == zone_id)
        if status:
            query = query.where(model.status == status)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
        result = await db.execute(query.order_by(model.id).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    @staticmethod
    async def list_defaulters(
        db: AsyncSession,
        kind: PayerKind,
        zone_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Payer]:
        """Payers that still owe money, largest balance first"""
        model = PAYER_MODELS[kind]
        query = select(model).where(model.amount_payable > 0)
        if zone_id:
            query = query.where(model.zone_id == zone_id)
        result = await db.execute(
            query.order_by(model.amount_payable.desc(), model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
