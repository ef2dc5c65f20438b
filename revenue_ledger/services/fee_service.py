"""Fee Catalog - lookup and administration of the fee tables"""

import csv
import io
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import ConflictError, NotFoundError, PayerValidationError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.enums import AuditAction, PayerKind, PropertyUse
from revenue_ledger.models.fee import BusinessFee, PropertyFee
from revenue_ledger.models.payer import Business, Property
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.schemas.fee import BusinessFeeCreate, FeeImportResult, FeeResolution, PropertyFeeCreate
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.utils.money import to_money

logger = logging.getLogger(__name__)

MAX_FEE = Decimal("999999.99")
MAX_IMPORT_ROWS = 500
TRUE_VALUES = ("1", "true", "yes", "active")

Fee = Union[BusinessFee, PropertyFee]

# kind -> (model, type column, category column, amount column)
FEE_COLUMNS = {
    PayerKind.BUSINESS: (BusinessFee, "business_type", "category", "fee_amount"),
    PayerKind.PROPERTY: (PropertyFee, "structure", "property_use", "fee_per_room"),
}


def _parse_fee(raw: Any) -> Optional[Decimal]:
    """Amount from a form or CSV cell, or None when invalid"""
    if isinstance(raw, str):
        raw = raw.replace(",", "").replace(" ", "").replace("₵", "")
        if not raw:
            return None
    try:
        amount = to_money(raw)
    except ValueError:
        return None
    if amount < 0 or amount > MAX_FEE:
        return None
    return amount


class FeeService:
    """Service layer for the business and property fee catalog"""

    @staticmethod
    async def find_fee(
        db: AsyncSession, kind: PayerKind, fee_type: str, category: str, active_only: bool = True
    ) -> Optional[Fee]:
        model, type_col, category_col, _ = FEE_COLUMNS[kind]
        query = select(model).where(
            getattr(model, type_col) == fee_type,
            getattr(model, category_col) == category,
        )
        if active_only:
            query = query.where(model.is_active.is_(True))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def resolve_fee(db: AsyncSession, kind: PayerKind, fee_type: str, category: str) -> FeeResolution:
        """
        Look up the active fee for a (type, category) pair.

        Properties resolve (structure, property_use) to a fee per room.

        Raises:
            NotFoundError: no active row, as distinct from a fee of zero
        """
        fee = await FeeService.find_fee(db, kind, fee_type, category)
        if fee is None:
            raise NotFoundError(
                "Fee",
                f"{fee_type}/{category}",
                message=f"No active fee is configured for {kind.value.lower()} '{fee_type}' / '{category}'.",
            )
        amount_col = FEE_COLUMNS[kind][3]
        return FeeResolution(kind=kind, fee_type=fee_type, category=category, amount=getattr(fee, amount_col))

    @staticmethod
    async def current_bill_for(db: AsyncSession, payer: Union[Business, Property]) -> Decimal:
        """Annual charge for a payer from the catalog"""
        if payer.kind == PayerKind.BUSINESS:
            resolution = await FeeService.resolve_fee(db, PayerKind.BUSINESS, payer.business_type, payer.category)
            return resolution.amount
        resolution = await FeeService.resolve_fee(db, PayerKind.PROPERTY, payer.structure, payer.property_use)
        return to_money(resolution.amount * payer.number_of_rooms)

    @staticmethod
    def _validate_fee(kind: PayerKind, fee_type: str, category: str, raw_amount: Any) -> Tuple[Optional[Decimal], List[str]]:
        errors: List[str] = []
        if kind == PayerKind.BUSINESS:
            if not fee_type:
                errors.append("Business type is required.")
            if not category:
                errors.append("Category is required.")
        else:
            if not fee_type:
                errors.append("Structure is required.")
            if category not in [use.value for use in PropertyUse]:
                errors.append("Property use must be 'Commercial' or 'Residential'.")
        amount = _parse_fee(raw_amount)
        if amount is None:
            errors.append(f"Fee amount must be between 0 and {MAX_FEE:,}.")
        return amount, errors

    @staticmethod
    async def _create_fee(
        db: AsyncSession,
        kind: PayerKind,
        fee_type: str,
        category: str,
        raw_amount: Any,
        is_active: bool,
        actor: Actor,
        origin: Optional[RequestOrigin],
    ) -> Fee:
        model, type_col, category_col, amount_col = FEE_COLUMNS[kind]
        fee_type, category = fee_type.strip(), category.strip()
        amount, errors = FeeService._validate_fee(kind, fee_type, category, raw_amount)
        if errors:
            raise PayerValidationError(errors)

        async def _create() -> Fee:
            if await FeeService.find_fee(db, kind, fee_type, category, active_only=False) is not None:
                raise ConflictError(f"A fee for '{fee_type}' / '{category}' already exists.")
            fee = model(**{type_col: fee_type, category_col: category, amount_col: amount})
            fee.is_active = is_active
            fee.created_by = actor.id
            db.add(fee)
            await db.flush()
            await AuditService.record(
                db,
                actor,
                AuditAction.CREATE,
                model.__tablename__,
                fee.id,
                new_values={type_col: fee_type, category_col: category, amount_col: amount, "is_active": is_active},
                origin=origin,
            )
            return fee

        fee = await run_in_transaction(db, _create, description=f"create {kind.value.lower()} fee")
        logger.info(
            f"Fee created: {fee_type}/{category} = {amount} by user {actor.label}",
            extra={"fee_id": fee.id, "actor_id": actor.id},
        )
        return fee

    @staticmethod
    async def create_business_fee(
        db: AsyncSession, fee_in: BusinessFeeCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> BusinessFee:
        return await FeeService._create_fee(
            db, PayerKind.BUSINESS, fee_in.business_type, fee_in.category, fee_in.fee_amount,
            fee_in.is_active, actor, origin,
        )

    @staticmethod
    async def create_property_fee(
        db: AsyncSession, fee_in: PropertyFeeCreate, actor: Actor, origin: Optional[RequestOrigin] = None
    ) -> PropertyFee:
        return await FeeService._create_fee(
            db, PayerKind.PROPERTY, fee_in.structure, fee_in.property_use, fee_in.fee_per_room,
            fee_in.is_active, actor, origin,
        )

    @staticmethod
    async def list_fees(db: AsyncSession, kind: PayerKind, active_only: bool = False) -> List[Fee]:
        model, type_col, category_col, _ = FEE_COLUMNS[kind]
        query = select(model)
        if active_only:
            query = query.where(model.is_active.is_(True))
        result = await db.execute(query.order_by(getattr(model, type_col), getattr(model, category_col)))
        return list(result.scalars().all())

    @staticmethod
    async def set_fee_active(
        db: AsyncSession,
        kind: PayerKind,
        fee_id: int,
        active: bool,
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> Fee:
        """Activate or deactivate a catalog row"""
        model = FEE_COLUMNS[kind][0]

        async def _toggle() -> Fee:
            fee = await db.get(model, fee_id)
            if fee is None:
                raise NotFoundError("Fee", fee_id)
            previous = fee.is_active
            fee.is_active = active
            await db.flush()
            await AuditService.record(
                db,
                actor,
                AuditAction.UPDATE,
                model.__tablename__,
                fee.id,
                old_values={"is_active": previous},
                new_values={"is_active": active},
                origin=origin,
            )
            return fee

        return await run_in_transaction(db, _toggle, description=f"toggle fee {fee_id}")

    @staticmethod
    def _parse_rows(kind: PayerKind, content: str) -> Tuple[List[Dict[str, Any]], List[str], int]:
        _, type_col, category_col, amount_col = FEE_COLUMNS[kind]
        reader = csv.DictReader(io.StringIO(content))
        rows: List[Dict[str, Any]] = []
        errors: List[str] = []
        failed = 0
        for i, raw in enumerate(reader):
            if i >= MAX_IMPORT_ROWS:
                errors.append(f"Only the first {MAX_IMPORT_ROWS} rows were processed.")
                break
            row = {key.strip().lower(): (value or "").strip() for key, value in raw.items() if key is not None}
            missing = [col for col in (type_col, category_col, amount_col) if not row.get(col)]
            if missing:
                errors.append(f"Row {i + 2}: missing {', '.join(missing)}")
                failed += 1
                continue
            amount, row_errors = FeeService._validate_fee(kind, row[type_col], row[category_col], row[amount_col])
            if row_errors:
                errors.extend(f"Row {i + 2}: {message}" for message in row_errors)
                failed += 1
                continue
            is_active = row["is_active"].lower() in TRUE_VALUES if row.get("is_active") else True
            rows.append({
                type_col: row[type_col],
                category_col: row[category_col],
                amount_col: amount,
                "is_active": is_active,
            })
        return rows, errors, failed

    @staticmethod
    async def import_fees_from_csv(
        db: AsyncSession,
        kind: PayerKind,
        file_content: bytes,
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> FeeImportResult:
        """
        Bulk import catalog rows.

        CSV columns: business_type, category, fee_amount[, is_active] for
        businesses; structure, property_use, fee_per_room[, is_active] for
        properties. Rows already in the catalog (or repeated in the file)
        are counted as duplicates and skipped.
        """
        try:
            content = file_content.decode("utf-8-sig")
        except UnicodeDecodeError:
            return FeeImportResult(errors=["Invalid file encoding. Use UTF-8."])

        rows, errors, failed = FeeService._parse_rows(kind, content)
        if not rows and not errors:
            return FeeImportResult(errors=["CSV file is empty"])

        model, type_col, category_col, _ = FEE_COLUMNS[kind]

        async def _import() -> FeeImportResult:
            created = 0
            duplicates = 0
            seen = set()
            for row in rows:
                key = (row[type_col], row[category_col])
                if key in seen or await FeeService.find_fee(db, kind, *key, active_only=False) is not None:
                    duplicates += 1
                    continue
                seen.add(key)
                db.add(model(**row, created_by=actor.id))
                created += 1
            await db.flush()
            await AuditService.record(
                db,
                actor,
                AuditAction.IMPORT_FEES,
                model.__tablename__,
                None,
                new_values={"created": created, "duplicates": duplicates, "failed": failed},
                origin=origin,
            )
            return FeeImportResult(created=created, duplicates=duplicates, failed=failed, errors=errors)

        result = await run_in_transaction(db, _import, description=f"import {kind.value.lower()} fees")
        logger.info(
            f"Fee import: {result.created} created, {result.duplicates} duplicates, {result.failed} failed by user {actor.label}",
            extra={"actor_id": actor.id, "payer_kind": kind.value},
        )
        return result
