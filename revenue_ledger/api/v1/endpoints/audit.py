"""Audit trail endpoints (read-only)"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.api import deps
from revenue_ledger.schemas.audit import AuditLogResponse
from revenue_ledger.schemas.responses import SuccessResponse
from revenue_ledger.services.audit_service import AuditService

router = APIRouter()


@router.get("", response_model=SuccessResponse)
async def list_audit_logs(
    table_name: Optional[str] = None,
    record_id: Optional[str] = None,
    action: Optional[str] = None,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Newest entries first"""
    entries = await AuditService.list_entries(
        db,
        table_name=table_name,
        record_id=record_id,
        action=action,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    return SuccessResponse(data=[AuditLogResponse.model_validate(e) for e in entries])
