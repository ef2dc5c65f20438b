"""Payment recording against bills"""

import logging
import secrets
import string
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.config import settings
from revenue_ledger.core.exceptions import PayerValidationError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.billing import Payment
from revenue_ledger.models.enums import AuditAction, BillStatus, PaymentStatus
from revenue_ledger.schemas.billing import PaymentCreate
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.bill_service import BillService
from revenue_ledger.services.ledger_calculator import LedgerCalculator
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.utils.money import format_money, to_money
from revenue_ledger.utils.time import get_utc_now

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_payment_reference() -> str:
    """PAY + date + six random characters, e.g. PAY20250114K3Q9ZD"""
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(6))
    return f"PAY{get_utc_now():%Y%m%d}{suffix}"


class PaymentService:
    """Service layer for payments"""

    @staticmethod
    async def list_payments(db: AsyncSession, bill_id: int) -> List[Payment]:
        result = await db.execute(
            select(Payment).where(Payment.bill_id == bill_id).order_by(Payment.payment_date.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        bill_id: int,
        payment_in: PaymentCreate,
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
    ) -> Payment:
        """
        Record money received against a bill.

        A Successful payment moves into previous_payments on both the bill and
        its payer, and both amount_payable values are recomputed. Other
        statuses are stored without touching any balance.

        Raises:
            NotFoundError: no bill, or its payer is gone
            PayerValidationError: amount not positive or above the outstanding balance
        """
        amount = to_money(payment_in.amount_paid)
        if amount <= 0:
            raise PayerValidationError(["Payment amount must be greater than zero"])

        async def _record() -> Payment:
            bill = await BillService.get_bill_or_404(db, bill_id, for_update=True)
            outstanding = bill.amount_payable
            successful = payment_in.payment_status == PaymentStatus.SUCCESSFUL
            if successful and outstanding > 0 and amount > outstanding:
                raise PayerValidationError(
                    [f"Payment amount cannot exceed {format_money(outstanding, settings.CURRENCY_SYMBOL)}"]
                )

            payment = Payment(
                payment_reference=generate_payment_reference(),
                bill_id=bill.id,
                amount_paid=amount,
                payment_method=payment_in.payment_method,
                payment_status=payment_in.payment_status,
                notes=payment_in.notes,
                processed_by=actor.id,
            )
            db.add(payment)

            audit_values = {
                "payment_reference": payment.payment_reference,
                "bill_number": bill.bill_number,
                "amount_paid": amount,
                "payment_status": payment_in.payment_status.value,
                "bill_amount_payable_before": outstanding,
            }
            if successful:
                LedgerCalculator.apply(bill, previous_payments=bill.previous_payments + amount)
                bill.status = BillStatus.PAID if bill.amount_payable <= 0 else BillStatus.PARTIALLY_PAID
                ref = PayerRef(kind=bill.bill_type, id=bill.reference_id)
                payer = await PayerService.get_payer_or_404(db, ref, for_update=True)
                LedgerCalculator.apply(payer, previous_payments=payer.previous_payments + amount)
                audit_values.update(
                    bill_amount_payable_after=bill.amount_payable,
                    bill_status=bill.status.value,
                    payer_amount_payable_after=payer.amount_payable,
                )
            await db.flush()

            await AuditService.record(
                db,
                actor,
                AuditAction.PAYMENT_RECORDED,
                "payments",
                payment.id,
                new_values=audit_values,
                origin=origin,
            )
            return payment

        payment = await run_in_transaction(db, _record, description=f"record payment on bill {bill_id}")
        logger.info(
            f"Payment recorded: {payment.payment_reference} amount {payment.amount_paid} by user {actor.label}",
            extra={"bill_id": bill_id, "payment_id": payment.id, "actor_id": actor.id},
        )
        return payment
