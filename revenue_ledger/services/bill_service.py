"""Yearly bill generation"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import ConflictError, NotFoundError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.billing import Bill
from revenue_ledger.models.enums import AuditAction, BillStatus, PayerKind
from revenue_ledger.schemas.billing import BillResponse
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.fee_service import FeeService
from revenue_ledger.services.ledger_calculator import LedgerCalculator
from revenue_ledger.services.payer_service import PayerService

logger = logging.getLogger(__name__)


def bill_number_for(ref: PayerRef, billing_year: int) -> str:
    """BILL2025B000042 / BILL2025P000007"""
    marker = "B" if ref.kind == PayerKind.BUSINESS else "P"
    return f"BILL{billing_year}{marker}{ref.id:06d}"


class BillService:
    """Service layer for bills"""

    @staticmethod
    async def get_bill(db: AsyncSession, bill_id: int, for_update: bool = False) -> Optional[Bill]:
        query = select(Bill).where(Bill.id == bill_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_bill_or_404(db: AsyncSession, bill_id: int, for_update: bool = False) -> Bill:
        bill = await BillService.get_bill(db, bill_id, for_update=for_update)
        if bill is None:
            raise NotFoundError("Bill", bill_id)
        return bill

    @staticmethod
    async def list_bills(db: AsyncSession, ref: PayerRef) -> List[Bill]:
        """Bills of one payer, newest year first"""
        result = await db.execute(
            select(Bill)
            .where(Bill.bill_type == ref.kind, Bill.reference_id == ref.id)
            .order_by(Bill.billing_year.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def generate_bill(
        db: AsyncSession,
        ref: PayerRef,
        billing_year: int,
        actor: Actor,
        due_date: Optional[date] = None,
        origin: Optional[RequestOrigin] = None,
    ) -> Bill:
        """
        Bill a payer for one year at the current catalog fee.

        The bill copies the payer's ledger fields with the new current bill;
        the payer's own current_bill and amount_payable follow.

        Raises:
            NotFoundError: no payer, or no active fee for its classification
            ConflictError: the payer already has a bill for that year
        """

        async def _generate() -> Bill:
            payer = await PayerService.get_payer_or_404(db, ref, for_update=True)
            existing = await db.execute(
                select(Bill.id).where(
                    Bill.bill_type == ref.kind,
                    Bill.reference_id == ref.id,
                    Bill.billing_year == billing_year,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(f"A {billing_year} bill already exists for {payer.display_name}.")

            current_bill = await FeeService.current_bill_for(db, payer)
            bill = Bill(
                bill_number=bill_number_for(ref, billing_year),
                bill_type=ref.kind,
                reference_id=ref.id,
                billing_year=billing_year,
                status=BillStatus.PENDING,
                due_date=due_date,
                generated_by=actor.id,
            )
            LedgerCalculator.apply(
                bill,
                old_bill=payer.old_bill,
                previous_payments=payer.previous_payments,
                arrears=payer.arrears,
                current_bill=current_bill,
            )
            previous_payable = payer.amount_payable
            LedgerCalculator.apply(payer, current_bill=current_bill)
            db.add(bill)
            await db.flush()

            await AuditService.record(
                db,
                actor,
                AuditAction.BILL_GENERATED,
                "bills",
                bill.id,
                old_values={"payer": str(ref), "amount_payable": previous_payable},
                new_values=BillResponse.model_validate(bill).model_dump(mode="json"),
                origin=origin,
            )
            return bill

        bill = await run_in_transaction(db, _generate, description=f"generate {billing_year} bill for {ref}")
        logger.info(
            f"Bill generated: {bill.bill_number} amount {bill.amount_payable} by user {actor.label}",
            extra={"payer_kind": ref.kind.value, "payer_id": ref.id, "bill_id": bill.id, "actor_id": actor.id},
        )
        return bill
