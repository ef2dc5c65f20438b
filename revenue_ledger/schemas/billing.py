from typing import Optional
from decimal import Decimal
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from revenue_ledger.models.enums import (
    AdjustableField,
    AdjustmentMethod,
    AdjustmentType,
    BillStatus,
    PayerKind,
    PaymentMethod,
    PaymentStatus,
)


class BillGenerate(BaseModel):
    billing_year: int = Field(..., ge=2000, le=2100)
    due_date: Optional[date] = None


class BillResponse(BaseModel):
    id: int
    bill_number: str
    bill_type: PayerKind
    reference_id: int
    billing_year: int
    old_bill: Decimal
    previous_payments: Decimal
    arrears: Decimal
    current_bill: Decimal
    amount_payable: Decimal
    status: BillStatus
    due_date: Optional[date] = None
    generated_by: Optional[str] = None
    generated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    amount_paid: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.SUCCESSFUL
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    payment_reference: str
    bill_id: int
    amount_paid: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_date: datetime
    notes: Optional[str] = None
    processed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AdjustmentCreate(BaseModel):
    """Raw form values; checked together by AdjustmentService"""
    adjustment_method: str = ""
    adjustment_value: Decimal = Decimal("0")
    target_field: str = ""
    reason: str = ""


class AdjustmentResponse(BaseModel):
    id: int
    adjustment_type: AdjustmentType
    target_type: PayerKind
    target_id: int
    bill_id: Optional[int] = None
    adjustment_method: AdjustmentMethod
    adjustment_value: Decimal
    target_field: AdjustableField
    old_amount: Decimal
    new_amount: Decimal
    reason: str
    applied_by: Optional[str] = None
    applied_at: datetime

    model_config = ConfigDict(from_attributes=True)
