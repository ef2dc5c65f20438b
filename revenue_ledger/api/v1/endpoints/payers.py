"""Payer endpoints, built once per payer kind"""

import math
from typing import Any, Optional, Type

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.api import deps
from revenue_ledger.models.enums import PayerKind, PayerStatus
from revenue_ledger.schemas.billing import BillGenerate, BillResponse
from revenue_ledger.schemas.context import Actor, PayerRef, RequestOrigin
from revenue_ledger.schemas.ledger import DeletePayerRequest, RelationshipSummary
from revenue_ledger.schemas.payer import (
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
)
from revenue_ledger.schemas.responses import PaginatedResponse, SuccessResponse
from revenue_ledger.services.bill_service import BillService
from revenue_ledger.services.cascade_service import CascadeService
from revenue_ledger.services.payer_service import PAYER_RESPONSES, PayerService
from revenue_ledger.services.relationship_service import RelationshipService


def build_payer_router(
    kind: PayerKind,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
) -> APIRouter:
    """CRUD, relationship summary, cascading delete and billing for one payer kind"""
    router = APIRouter()
    label = kind.value

    @router.get("", response_model=PaginatedResponse[response_schema])
    async def list_payers(
        page: int = Query(1, ge=1, description="Page number"),
        page_size: int = Query(20, ge=1, le=100, description="Items per page"),
        zone_id: Optional[int] = None,
        status: Optional[PayerStatus] = None,
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        payers, total = await PayerService.list_payers(
            db, kind, zone_id=zone_id, status=status, skip=(page - 1) * page_size, limit=page_size
        )
        return PaginatedResponse(
            data=[response_schema.model_validate(p) for p in payers],
            meta={
                "page": page,
                "page_size": page_size,
                "total": total,
                "total_pages": math.ceil(total / page_size),
            },
        )

    @router.get("/defaulters", response_model=SuccessResponse)
    async def list_defaulters(
        zone_id: Optional[int] = None,
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        """Payers with amount_payable above zero"""
        payers = await PayerService.list_defaulters(db, kind, zone_id=zone_id)
        return SuccessResponse(data=[response_schema.model_validate(p) for p in payers])

    @router.post("", response_model=SuccessResponse, status_code=201)
    async def create_payer(
        payer_in: create_schema,
        actor: Actor = Depends(deps.get_actor),
        origin: RequestOrigin = Depends(deps.get_origin),
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        payer = await PayerService.create_payer(db, kind, payer_in, actor, origin)
        return SuccessResponse(
            data=response_schema.model_validate(payer),
            message=f"{label} registered successfully! Account Number: {payer.account_number}",
        )

    @router.get("/{payer_id}", response_model=SuccessResponse)
    async def get_payer(payer_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
        payer = await PayerService.get_payer_or_404(db, PayerRef(kind=kind, id=payer_id))
        return SuccessResponse(data=response_schema.model_validate(payer))

    @router.put("/{payer_id}", response_model=SuccessResponse)
    async def update_payer(
        payer_id: int,
        payer_in: update_schema,
        actor: Actor = Depends(deps.get_actor),
        origin: RequestOrigin = Depends(deps.get_origin),
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        """Partial update; omitted fields are left unchanged"""
        payer = await PayerService.update_payer(db, PayerRef(kind=kind, id=payer_id), payer_in, actor, origin)
        return SuccessResponse(
            data=response_schema.model_validate(payer),
            message=f"{label} updated successfully!",
        )

    @router.get("/{payer_id}/relationships", response_model=SuccessResponse[RelationshipSummary])
    async def inspect_relationships(payer_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
        """Records that a delete would remove; fetch right before confirming"""
        summary = await RelationshipService.inspect(db, PayerRef(kind=kind, id=payer_id))
        return SuccessResponse(data=summary)

    @router.delete("/{payer_id}", response_model=SuccessResponse)
    async def delete_payer(
        payer_id: int,
        request_in: Optional[DeletePayerRequest] = Body(None),
        actor: Actor = Depends(deps.get_actor),
        origin: RequestOrigin = Depends(deps.get_origin),
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        """
        Permanently delete the payer with its bills, payments and adjustments.

        Send back the relationship summary that was confirmed as ``expected``
        to have the delete refused (409) if those records changed meanwhile.
        """
        summary = await CascadeService.delete_payer(
            db,
            PayerRef(kind=kind, id=payer_id),
            actor,
            origin,
            expected=request_in.expected if request_in else None,
        )
        return SuccessResponse(data=summary, message=summary.message)

    @router.get("/{payer_id}/bills", response_model=SuccessResponse)
    async def list_bills(payer_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
        ref = PayerRef(kind=kind, id=payer_id)
        await PayerService.get_payer_or_404(db, ref)
        bills = await BillService.list_bills(db, ref)
        return SuccessResponse(data=[BillResponse.model_validate(b) for b in bills])

    @router.post("/{payer_id}/bills", response_model=SuccessResponse, status_code=201)
    async def generate_bill(
        payer_id: int,
        bill_in: BillGenerate,
        actor: Actor = Depends(deps.get_actor),
        origin: RequestOrigin = Depends(deps.get_origin),
        db: AsyncSession = Depends(deps.get_db),
    ) -> Any:
        bill = await BillService.generate_bill(
            db, PayerRef(kind=kind, id=payer_id), bill_in.billing_year, actor,
            due_date=bill_in.due_date, origin=origin,
        )
        return SuccessResponse(data=BillResponse.model_validate(bill), message="Bill generated successfully")

    return router


business_router = build_payer_router(PayerKind.BUSINESS, BusinessCreate, BusinessUpdate, BusinessResponse)
property_router = build_payer_router(PayerKind.PROPERTY, PropertyCreate, PropertyUpdate, PropertyResponse)

accounts_router = APIRouter()


@accounts_router.get("/{account_number}", response_model=SuccessResponse)
async def get_by_account_number(account_number: str, db: AsyncSession = Depends(deps.get_db)) -> Any:
    """Find a business or property by its account number"""
    payer = await PayerService.get_by_account_number(db, account_number)
    if payer is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return SuccessResponse(data=PAYER_RESPONSES[payer.kind].model_validate(payer))
