"""Append-only audit trail"""

from sqlalchemy import JSON, Column, DateTime, String, Text

from revenue_ledger.database import Base
from revenue_ledger.models.base import IdType
from revenue_ledger.utils.time import get_utc_now


class AuditLog(Base):
    """
    Immutable record of one mutating operation.

    Rows are only ever inserted; nothing in the application updates or
    deletes them.
    """
    __tablename__ = "audit_logs"

    id = Column(IdType, primary_key=True, autoincrement=True)
    actor_id = Column(String(64), nullable=True, index=True)
    actor_name = Column(String(150), nullable=True)
    action = Column(String(50), nullable=False, index=True)
    table_name = Column(String(64), nullable=False, index=True)
    record_id = Column(String(64), nullable=True, index=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime, default=get_utc_now, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.table_name}:{self.record_id}>"
