"""Caller context: payer references, acting user, request origin"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from revenue_ledger.models.enums import PayerKind


class PayerRef(BaseModel):
    """
    Tagged reference to one payer.

    Stands in for the (bill_type, reference_id) / (target_type, target_id)
    column pairs, validated once at the boundary.
    """
    model_config = ConfigDict(frozen=True)

    kind: PayerKind
    id: int = Field(..., gt=0)

    @classmethod
    def for_business(cls, payer_id: int) -> "PayerRef":
        return cls(kind=PayerKind.BUSINESS, id=payer_id)

    @classmethod
    def for_property(cls, payer_id: int) -> "PayerRef":
        return cls(kind=PayerKind.PROPERTY, id=payer_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


class Actor(BaseModel):
    """Already-authenticated user supplied by the auth collaborator"""
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.id


class RequestOrigin(BaseModel):
    """Where a mutating call came from, for the audit trail"""
    model_config = ConfigDict(frozen=True)

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


SYSTEM_ACTOR = Actor(id="system", display_name="System")
