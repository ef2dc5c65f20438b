"""Audit Recorder - append-only, best-effort audit trail"""

import logging
from typing import Any, List, Optional, Union

from pydantic_core import PydanticSerializationError, to_jsonable_python
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import AuditWriteFailure
from revenue_ledger.core.logging import AUDIT_ALERT_LOGGER
from revenue_ledger.models.audit import AuditLog
from revenue_ledger.models.enums import AuditAction
from revenue_ledger.schemas.context import Actor, RequestOrigin

alert_logger = logging.getLogger(AUDIT_ALERT_LOGGER)


class AuditService:
    """Service layer for the audit trail"""

    _failures = 0

    @staticmethod
    def _build_entry(
        actor: Actor,
        action: str,
        table_name: str,
        record_id: Any,
        old_values: Any,
        new_values: Any,
        origin: Optional[RequestOrigin],
    ) -> AuditLog:
        try:
            old_json = to_jsonable_python(old_values) if old_values is not None else None
            new_json = to_jsonable_python(new_values) if new_values is not None else None
        except PydanticSerializationError as exc:
            raise AuditWriteFailure(f"Audit values are not serializable: {exc}") from exc
        origin = origin or RequestOrigin()
        return AuditLog(
            actor_id=actor.id,
            actor_name=actor.display_name or None,
            action=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_values=old_json,
            new_values=new_json,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )

    @staticmethod
    async def record(
        db: AsyncSession,
        actor: Actor,
        action: Union[AuditAction, str],
        table_name: str,
        record_id: Any,
        old_values: Any = None,
        new_values: Any = None,
        origin: Optional[RequestOrigin] = None,
    ) -> Optional[AuditLog]:
        """
        Append one audit entry inside the caller's transaction.

        The insert runs in a SAVEPOINT so a failed write cannot abort the
        business transaction around it. Failures are never raised: they are
        logged on the ``revenue_ledger.audit.alerts`` logger and counted.

        Returns:
            The entry, or None when it could not be written
        """
        action_name = action.value if isinstance(action, AuditAction) else action
        try:
            async with db.begin_nested():
                entry = AuditService._build_entry(
                    actor, action_name, table_name, record_id, old_values, new_values, origin
                )
                db.add(entry)
            return entry
        except (AuditWriteFailure, SQLAlchemyError, TypeError, ValueError):
            AuditService._failures += 1
            alert_logger.error(
                "Audit log write failed",
                extra={
                    "alert": "audit_write_failure",
                    "action": action_name,
                    "table_name": table_name,
                    "record_id": str(record_id),
                    "actor_id": actor.id,
                },
                exc_info=True,
            )
            return None

    @staticmethod
    def failure_count() -> int:
        """Audit writes lost since process start"""
        return AuditService._failures

    @staticmethod
    async def list_entries(
        db: AsyncSession,
        table_name: Optional[str] = None,
        record_id: Any = None,
        action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AuditLog]:
        """Newest first, optionally filtered by table, record and action"""
        query = select(AuditLog)
        if table_name:
            query = query.where(AuditLog.table_name == table_name)
        if record_id is not None:
            query = query.where(AuditLog.record_id == str(record_id))
        if action:
            query = query.where(AuditLog.action == action)
        result = await db.execute(
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
