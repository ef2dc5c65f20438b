"""Billing Models: bills, payments and bill adjustments"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from revenue_ledger.models.base import BaseModel, IdType, LedgerFieldsMixin, Money, PayerKindType, enum_type
from revenue_ledger.models.enums import (
    AdjustableField,
    AdjustmentMethod,
    AdjustmentType,
    BillStatus,
    PaymentMethod,
    PaymentStatus,
)
from revenue_ledger.utils.time import get_utc_now


class Bill(BaseModel, LedgerFieldsMixin):
    """
    Yearly bill for one payer.

    The payer is referenced by (bill_type, reference_id); bill_type is an
    enum column so the pair always decodes to a PayerRef.
    """
    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint("bill_type", "reference_id", "billing_year", name="uq_bills_payer_year"),
    )

    bill_number = Column(String(30), nullable=False, unique=True, index=True)
    bill_type = Column(PayerKindType, nullable=False, index=True)
    reference_id = Column(IdType, nullable=False, index=True)
    billing_year = Column(Integer, nullable=False, index=True)
    status = Column(enum_type(BillStatus, "bill_status"), default=BillStatus.PENDING, nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    generated_by = Column(String(64), nullable=True)
    generated_at = Column(DateTime, default=get_utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<Bill {self.bill_number} {self.amount_payable} - {self.status}>"


class Payment(BaseModel):
    """Money received against exactly one bill"""
    __tablename__ = "payments"

    payment_reference = Column(String(30), nullable=False, unique=True, index=True)
    # No ON DELETE action: payments are removed explicitly before their bill
    bill_id = Column(IdType, ForeignKey("bills.id"), nullable=False, index=True)
    amount_paid = Column(Money, nullable=False)
    payment_method = Column(enum_type(PaymentMethod, "payment_method"), nullable=False)
    payment_status = Column(
        enum_type(PaymentStatus, "payment_status"),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_date = Column(DateTime, default=get_utc_now, nullable=False)
    notes = Column(Text, nullable=True)
    processed_by = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<Payment {self.payment_reference} {self.amount_paid} - {self.payment_status}>"


class BillAdjustment(BaseModel):
    """Recorded change to one ledger field of a payer's bill"""
    __tablename__ = "bill_adjustments"

    adjustment_type = Column(enum_type(AdjustmentType, "adjustment_type"), default=AdjustmentType.SINGLE, nullable=False)
    target_type = Column(PayerKindType, nullable=False, index=True)
    target_id = Column(IdType, nullable=False, index=True)
    bill_id = Column(IdType, nullable=True)
    adjustment_method = Column(enum_type(AdjustmentMethod, "adjustment_method"), nullable=False)
    adjustment_value = Column(Money, nullable=False)
    target_field = Column(enum_type(AdjustableField, "adjustable_field"), nullable=False)
    old_amount = Column(Money, nullable=False)
    new_amount = Column(Money, nullable=False)
    reason = Column(Text, nullable=False)
    applied_by = Column(String(64), nullable=True)
    applied_at = Column(DateTime, default=get_utc_now, nullable=False)

    @property
    def delta(self):
        return self.new_amount - self.old_amount

    def __repr__(self) -> str:
        return f"<BillAdjustment {self.target_type}:{self.target_id} {self.target_field} {self.old_amount}->{self.new_amount}>"
