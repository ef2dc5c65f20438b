"""Base Models and Mixins shared by payer, billing and catalog tables"""

import enum
from typing import Type

from sqlalchemy import BigInteger, Column, DateTime, Enum, ForeignKey, Integer, Numeric, Boolean
from sqlalchemy.orm import declared_attr

from revenue_ledger.database import Base
from revenue_ledger.models.enums import PayerKind
from revenue_ledger.utils.money import ZERO
from revenue_ledger.utils.time import get_utc_now

# BIGINT on PostgreSQL; sqlite only autoincrements INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer(), "sqlite")

Money = Numeric(12, 2, asdecimal=True)


def enum_type(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """Enum column storing member values ("Partially Paid"), not member names"""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class BaseModel(Base):
    """
    Base model class with common fields for all mutable tables.
    
    Provides:
    - integer surrogate primary key
    - created_at timestamp
    - updated_at timestamp
    """
    __abstract__ = True
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=get_utc_now, nullable=False)
    updated_at = Column(DateTime, default=get_utc_now, onupdate=get_utc_now, nullable=False)


class LedgerFieldsMixin:
    """
    The four stored ledger inputs plus the derived amount_payable.

    amount_payable is persisted, but only ever written from
    LedgerCalculator.compute_amount_payable on a write path.
    """
    old_bill = Column(Money, default=ZERO, nullable=False)
    previous_payments = Column(Money, default=ZERO, nullable=False)
    arrears = Column(Money, default=ZERO, nullable=False)
    current_bill = Column(Money, default=ZERO, nullable=False)
    amount_payable = Column(Money, default=ZERO, nullable=False, index=True)

    @property
    def is_defaulter(self) -> bool:
        """Payer still owes money"""
        return self.amount_payable is not None and self.amount_payable > 0

    @property
    def has_credit(self) -> bool:
        """Payments exceed everything billed"""
        return self.amount_payable is not None and self.amount_payable < 0


class ZoneScopedMixin:
    """
    Mixin for records located in a zone and optionally a sub-zone.
    
    Zones cannot be deleted while referenced, so no ON DELETE action is set.
    """
    
    @declared_attr
    def zone_id(cls):
        return Column(IdType, ForeignKey("zones.id"), nullable=False, index=True)

    @declared_attr
    def sub_zone_id(cls):
        return Column(IdType, ForeignKey("sub_zones.id"), nullable=True, index=True)


class StatusMixin:
    """
    Mixin for catalog rows with active/inactive status.
    
    Provides:
    - is_active boolean flag
    """
    is_active = Column(Boolean, default=True, nullable=False, index=True)


# One shared type object so PostgreSQL gets a single payer_kind ENUM
PayerKindType = enum_type(PayerKind, "payer_kind")
