"""Relationship Inspector - dependent records of a payer"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import NotFoundError
from revenue_ledger.models.billing import Bill, BillAdjustment, Payment
from revenue_ledger.models.enums import PaymentStatus
from revenue_ledger.schemas.context import PayerRef
from revenue_ledger.schemas.ledger import RelationshipSummary
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.utils.money import to_money


class RelationshipService:
    """Read-only; every call queries the store afresh"""

    @staticmethod
    def bills_of(ref: PayerRef):
        return select(Bill.id).where(Bill.bill_type == ref.kind, Bill.reference_id == ref.id)

    @staticmethod
    async def count_records(db: AsyncSession, ref: PayerRef) -> RelationshipSummary:
        """Counts without checking that the payer exists"""
        bill_count = (
            await db.execute(
                select(func.count(Bill.id)).where(Bill.bill_type == ref.kind, Bill.reference_id == ref.id)
            )
        ).scalar_one()

        payment_count, payment_total = (
            await db.execute(
                select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount_paid), 0)).where(
                    Payment.bill_id.in_(RelationshipService.bills_of(ref)),
                    Payment.payment_status == PaymentStatus.SUCCESSFUL,
                )
            )
        ).one()

        adjustment_count = (
            await db.execute(
                select(func.count(BillAdjustment.id)).where(
                    BillAdjustment.target_type == ref.kind,
                    BillAdjustment.target_id == ref.id,
                )
            )
        ).scalar_one()

        return RelationshipSummary(
            bill_count=bill_count,
            payment_count=payment_count,
            payment_total=to_money(payment_total),
            adjustment_count=adjustment_count,
        )

    @staticmethod
    async def inspect(db: AsyncSession, ref: PayerRef) -> RelationshipSummary:
        """
        Summarize the bills, Successful payments and adjustments of a payer.

        Shown to an operator before a delete; never cache the result.

        Raises:
            NotFoundError: no payer for ``ref``
        """
        await PayerService.get_payer_or_404(db, ref)
        return await RelationshipService.count_records(db, ref)
