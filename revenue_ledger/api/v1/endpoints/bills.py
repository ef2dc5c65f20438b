"""Bill endpoints: payments and adjustments against one bill"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.api import deps
from revenue_ledger.schemas.billing import (
    AdjustmentCreate,
    AdjustmentResponse,
    BillResponse,
    PaymentCreate,
    PaymentResponse,
)
from revenue_ledger.schemas.context import Actor, RequestOrigin
from revenue_ledger.schemas.responses import SuccessResponse
from revenue_ledger.services.adjustment_service import AdjustmentService
from revenue_ledger.services.bill_service import BillService
from revenue_ledger.services.payment_service import PaymentService

router = APIRouter()


@router.get("/{bill_id}", response_model=SuccessResponse[BillResponse])
async def get_bill(bill_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    bill = await BillService.get_bill_or_404(db, bill_id)
    return SuccessResponse(data=BillResponse.model_validate(bill))


@router.get("/{bill_id}/payments", response_model=SuccessResponse)
async def list_payments(bill_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    await BillService.get_bill_or_404(db, bill_id)
    payments = await PaymentService.list_payments(db, bill_id)
    return SuccessResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.post("/{bill_id}/payments", response_model=SuccessResponse[PaymentResponse], status_code=201)
async def record_payment(
    bill_id: int,
    payment_in: PaymentCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payment = await PaymentService.record_payment(db, bill_id, payment_in, actor, origin)
    return SuccessResponse(
        data=PaymentResponse.model_validate(payment),
        message=f"Payment recorded successfully! Reference: {payment.payment_reference}",
    )


@router.post("/{bill_id}/adjustments", response_model=SuccessResponse[AdjustmentResponse], status_code=201)
async def apply_adjustment(
    bill_id: int,
    adjustment_in: AdjustmentCreate,
    actor: Actor = Depends(deps.get_actor),
    origin: RequestOrigin = Depends(deps.get_origin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Fixed Amount or Percentage change to old_bill, arrears or current_bill"""
    adjustment = await AdjustmentService.apply_adjustment(db, bill_id, adjustment_in, actor, origin)
    return SuccessResponse(
        data=AdjustmentResponse.model_validate(adjustment),
        message="Bill adjustment applied successfully",
    )
