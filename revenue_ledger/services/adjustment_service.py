"""Bill adjustments: fixed or percentage changes to one ledger field"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import PayerValidationError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.billing import BillAdjustment
from revenue_ledger.models.enums import AdjustableField, AdjustmentMethod, AdjustmentType, AuditAction
from revenue_ledger.schemas.billing import AdjustmentCreate
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.bill_service import BillService
from revenue_ledger.services.ledger_calculator import LedgerCalculator
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def adjusted_value(current: Decimal, method: AdjustmentMethod, value: Decimal) -> Decimal:
    """New field value after an adjustment, never below zero"""
    if method == AdjustmentMethod.FIXED_AMOUNT:
        new_value = current + value
    else:
        new_value = current + current * value / HUNDRED
    return max(ZERO, to_money(new_value))


class AdjustmentService:
    """Service layer for bill adjustments"""

    @staticmethod
    def validate(adjustment_in: AdjustmentCreate) -> Tuple[AdjustmentMethod, AdjustableField]:
        """
        Check every adjustment input and report all problems together.

        Raises:
            PayerValidationError: with every message collected
        """
        errors: List[str] = []
        method = next((m for m in AdjustmentMethod if m.value == adjustment_in.adjustment_method), None)
        if method is None:
            errors.append("Please select a valid adjustment method.")

        value = adjustment_in.adjustment_value
        if not value.is_finite() or value == 0:
            errors.append("Please enter a valid adjustment value.")
        elif method == AdjustmentMethod.PERCENTAGE:
            if value < 0:
                errors.append("Please enter a valid adjustment value.")
            elif value > HUNDRED:
                errors.append("Percentage adjustment cannot exceed 100%.")

        field = next((f for f in AdjustableField if f.value == adjustment_in.target_field), None)
        if field is None:
            errors.append("Please select a valid field to adjust.")

        if not adjustment_in.reason.strip():
            errors.append("Please provide a reason for this adjustment.")

        if errors:
            raise PayerValidationError(errors)
        return method, field

    @staticmethod
    async def list_adjustments(db: AsyncSession, ref: PayerRef) -> List[BillAdjustment]:
        result = await db.execute(
            select(BillAdjustment)
            .where(BillAdjustment.target_type == ref.kind, BillAdjustment.target_id == ref.id)
            .order_by(BillAdjustment.applied_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def apply_adjustment(
        db: AsyncSession,
        bill_id: int,
        adjustment_in: AdjustmentCreate,
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> BillAdjustment:
        """
        Adjust one ledger field of a bill and of the payer it belongs to.

        Raises:
            PayerValidationError: invalid method, value, field or reason
            NotFoundError: no bill, or its payer is gone
        """
        method, field = AdjustmentService.validate(adjustment_in)
        value = to_money(adjustment_in.adjustment_value)

        async def _apply() -> BillAdjustment:
            bill = await BillService.get_bill_or_404(db, bill_id, for_update=True)
            ref = PayerRef(kind=bill.bill_type, id=bill.reference_id)
            payer = await PayerService.get_payer_or_404(db, ref, for_update=True)

            old_amount = getattr(bill, field.value)
            new_amount = adjusted_value(old_amount, method, value)
            old_payable = bill.amount_payable
            LedgerCalculator.apply(bill, **{field.value: new_amount})
            LedgerCalculator.apply(payer, **{field.value: new_amount})

            adjustment = BillAdjustment(
                adjustment_type=AdjustmentType.SINGLE,
                target_type=ref.kind,
                target_id=ref.id,
                bill_id=bill.id,
                adjustment_method=method,
                adjustment_value=value,
                target_field=field,
                old_amount=old_amount,
                new_amount=new_amount,
                reason=adjustment_in.reason.strip(),
                applied_by=actor.id,
            )
            db.add(adjustment)
            await db.flush()

            await AuditService.record(
                db,
                actor,
                AuditAction.BILL_ADJUSTED,
                "bills",
                bill.id,
                old_values={field.value: old_amount, "amount_payable": old_payable},
                new_values={
                    field.value: new_amount,
                    "amount_payable": bill.amount_payable,
                    "adjustment_method": method.value,
                    "adjustment_value": value,
                    "reason": adjustment.reason,
                },
                origin=origin,
            )
            return adjustment

        adjustment = await run_in_transaction(db, _apply, description=f"adjust bill {bill_id}")
        logger.info(
            f"Bill adjusted: bill {bill_id} {field.value} {adjustment.old_amount} -> {adjustment.new_amount} by user {actor.label}",
            extra={"bill_id": bill_id, "adjustment_id": adjustment.id, "actor_id": actor.id},
        )
        return adjustment
