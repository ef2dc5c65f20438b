"""Cascading Mutation Executor - hard delete of a payer and its dependants"""

import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import ConflictError
from revenue_ledger.database import run_in_transaction
from revenue_ledger.models.billing import Bill, BillAdjustment, Payment
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.schemas.ledger import DeletionSummary, RelationshipSummary, describe_removed
from revenue_ledger.services.audit_service import AuditService
from revenue_ledger.services.payer_service import PayerService
from revenue_ledger.services.relationship_service import RelationshipService
from revenue_ledger.utils.time import get_utc_now

logger = logging.getLogger(__name__)


class CascadeService:
    """
    Deletes a payer with every bill, payment and adjustment that refers to it.

    Order is payments, adjustments, bills, payer, so no step ever leaves a
    row pointing at something already gone.
    """

    @staticmethod
    async def _delete_payments(db: AsyncSession, ref: PayerRef) -> int:
        result = await db.execute(
            delete(Payment)
            .where(Payment.bill_id.in_(RelationshipService.bills_of(ref)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    async def _delete_adjustments(db: AsyncSession, ref: PayerRef) -> int:
        result = await db.execute(
            delete(BillAdjustment)
            .where(BillAdjustment.target_type == ref.kind, BillAdjustment.target_id == ref.id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    async def _delete_bills(db: AsyncSession, ref: PayerRef) -> int:
        result = await db.execute(
            delete(Bill)
            .where(Bill.bill_type == ref.kind, Bill.reference_id == ref.id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    async def delete_payer(
        db: AsyncSession,
        ref: PayerRef,
        actor: Actor,
        origin: Optional[RequestOrigin] = None,
        expected: Optional[RelationshipSummary] = None,
    ) -> DeletionSummary:
        """
        Permanently delete a payer and its dependants in one transaction.

        Args:
            db: Database session
            ref: Payer to delete
            actor: User performing the delete
            origin: Request IP / user agent for the audit entry
            expected: Summary the operator confirmed; when given, the delete
                is refused if the payer's records changed since

        Raises:
            NotFoundError: no payer for ``ref``
            ConflictError: records changed since ``expected`` was computed
            StorageFailureError: any step failed; nothing was deleted
        """

        async def _delete() -> DeletionSummary:
            payer = await PayerService.get_payer_or_404(db, ref, for_update=True)
            current = await RelationshipService.count_records(db, ref)
            if expected is not None and not expected.matches(current):
                raise ConflictError(
                    f"The records linked to this {ref.kind.value.lower()} changed since they were reviewed. "
                    "Please review them again before deleting."
                )
            snapshot = PayerService.snapshot(payer)
            display_name = payer.display_name

            payments = await CascadeService._delete_payments(db, ref)
            adjustments = await CascadeService._delete_adjustments(db, ref)
            bills = await CascadeService._delete_bills(db, ref)
            await db.delete(payer)
            await db.flush()

            deleted_at = get_utc_now()
            related = describe_removed(bills, payments, adjustments)
            entry = await AuditService.record(
                db,
                actor,
                AuditAction.HARD_DELETE,
                payer.table_name,
                ref.id,
                old_values={**snapshot, "relationships": current.model_dump(mode="json")},
                new_values={
                    "deleted": True,
                    "deleted_by": actor.id,
                    "deleted_at": deleted_at,
                    "related_records_deleted": ", ".join(related),
                },
                origin=origin,
            )
            return DeletionSummary(
                payer=ref,
                account_number=snapshot["account_number"],
                display_name=display_name,
                payments_deleted=payments,
                adjustments_deleted=adjustments,
                bills_deleted=bills,
                deleted_at=deleted_at,
                deleted_by=actor.id,
                audit_recorded=entry is not None,
                related_records=related,
            )

        summary = await run_in_transaction(db, _delete, description=f"delete {ref}")
        logger.info(
            f"{ref.kind.value} permanently deleted: {summary.display_name} (ID: {ref.id}) by user {actor.label}",
            extra={
                "payer_kind": ref.kind.value,
                "payer_id": ref.id,
                "actor_id": actor.id,
                "related_records": summary.summary_text,
            },
        )
        return summary
