"""Fee catalog: (type, category) -> fee lookup tables"""

from sqlalchemy import Column, String, UniqueConstraint

from revenue_ledger.models.base import BaseModel, Money, StatusMixin


class BusinessFee(BaseModel, StatusMixin):
    """Annual fee for a (business_type, category) pair"""
    __tablename__ = "business_fee_structure"
    __table_args__ = (
        UniqueConstraint("business_type", "category", name="uq_business_fee_type_category"),
    )

    business_type = Column(String(100), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    fee_amount = Column(Money, nullable=False)
    created_by = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<BusinessFee {self.business_type}/{self.category} {self.fee_amount}>"


class PropertyFee(BaseModel, StatusMixin):
    """Per-room fee for a (structure, property_use) pair"""
    __tablename__ = "property_fee_structure"
    __table_args__ = (
        UniqueConstraint("structure", "property_use", name="uq_property_fee_structure_use"),
    )

    structure = Column(String(100), nullable=False, index=True)
    property_use = Column(String(50), nullable=False)
    fee_per_room = Column(Money, nullable=False)
    created_by = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<PropertyFee {self.structure}/{self.property_use} {self.fee_per_room}>"
