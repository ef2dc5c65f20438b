"""Payer models: businesses and properties sharing the ledger fields"""

from sqlalchemy import Column, Float, Integer, String, Text

from revenue_ledger.models.base import (
    BaseModel,
    IdType,
    LedgerFieldsMixin,
    PayerKindType,
    ZoneScopedMixin,
    enum_type,
)
from revenue_ledger.database import Base
from revenue_ledger.models.enums import PayerKind, PayerStatus


class AccountSequence(Base):
    """
    Per-kind counter behind account numbers.

    Only ever incremented, so an account number freed by a hard delete is
    never handed out again.
    """
    __tablename__ = "account_sequences"

    payer_kind = Column(PayerKindType, primary_key=True)
    last_value = Column(IdType, nullable=False, default=0)


class PayerMixin(LedgerFieldsMixin, ZoneScopedMixin):
    """Columns and helpers common to every payer table"""

    account_number = Column(String(20), nullable=False, unique=True, index=True)
    owner_name = Column(String(150), nullable=False)
    telephone = Column(String(30), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    batch = Column(String(50), nullable=True)
    status = Column(
        enum_type(PayerStatus, "payer_status"),
        default=PayerStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    created_by = Column(String(64), nullable=True)

    @property
    def display_name(self) -> str:
        """Name used in log lines and operator messages; each payer table overrides it"""
        raise NotImplementedError(f"{type(self).__name__} must define display_name")


class Business(BaseModel, PayerMixin):
    """A registered business paying an annual operating fee"""
    __tablename__ = "businesses"

    kind = PayerKind.BUSINESS
    table_name = "businesses"

    business_name = Column(String(200), nullable=False, index=True)
    business_type = Column(String(100), nullable=False)
    category = Column(String(100), nullable=False)
    exact_location = Column(Text, nullable=True)

    @property
    def display_name(self) -> str:
        return self.business_name

    def __repr__(self) -> str:
        return f"<Business {self.account_number} {self.business_name}>"


class Property(BaseModel, PayerMixin):
    """A rated property; its fee is charged per room"""
    __tablename__ = "properties"

    kind = PayerKind.PROPERTY
    table_name = "properties"

    gender = Column(String(10), nullable=True)
    location = Column(Text, nullable=True)
    structure = Column(String(100), nullable=False)
    ownership_type = Column(String(50), nullable=False, default="Self")
    property_type = Column(String(50), nullable=False, default="Modern")
    number_of_rooms = Column(Integer, nullable=False, default=1)
    property_use = Column(String(50), nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.owner_name} property"

    def __repr__(self) -> str:
        return f"<Property {self.account_number} {self.owner_name}>"
