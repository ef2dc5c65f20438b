"""Relationship and deletion summaries shown to operators"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from revenue_ledger.schemas.context import PayerRef


class RelationshipSummary(BaseModel):
    """
    Dependent records of one payer, computed fresh for a delete confirmation.

    payment_count and payment_total cover Successful payments only.
    """
    bill_count: int = 0
    payment_count: int = 0
    payment_total: Decimal = Decimal("0.00")
    adjustment_count: int = 0

    @computed_field
    @property
    def has_relationships(self) -> bool:
        return bool(self.bill_count or self.payment_count or self.adjustment_count)

    def matches(self, other: "RelationshipSummary") -> bool:
        """Same counts and total; used to detect drift before a delete"""
        return (
            self.bill_count == other.bill_count
            and self.payment_count == other.payment_count
            and self.payment_total == other.payment_total
            and self.adjustment_count == other.adjustment_count
        )


def describe_removed(bills: int, payments: int, adjustments: int) -> List[str]:
    """Human-readable parts, one per non-empty step"""
    parts = []
    if bills:
        parts.append(f"{bills} bill record(s)")
    if payments:
        parts.append(f"{payments} payment record(s)")
    if adjustments:
        parts.append(f"{adjustments} bill adjustment(s)")
    return parts


class DeletionSummary(BaseModel):
    """Outcome of a cascading hard delete"""
    payer: PayerRef
    account_number: str
    display_name: str
    payments_deleted: int = 0
    adjustments_deleted: int = 0
    bills_deleted: int = 0
    deleted_at: datetime
    deleted_by: str
    audit_recorded: bool = True
    related_records: List[str] = Field(default_factory=list)

    @property
    def summary_text(self) -> str:
        return ", ".join(self.related_records)

    @property
    def message(self) -> str:
        label = self.payer.kind.value
        message = f"{label} deleted successfully!"
        if self.related_records:
            message += f" Related records also deleted: {self.summary_text}."
        return message


class DeletePayerRequest(BaseModel):
    """Optional confirmation payload: the summary the operator was shown"""
    expected: Optional[RelationshipSummary] = None
