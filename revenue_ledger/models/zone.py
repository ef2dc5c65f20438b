"""Zones and sub-zones used to organize payers geographically"""

from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint

from revenue_ledger.models.base import BaseModel, IdType


class Zone(BaseModel):
    """Top-level collection area"""
    __tablename__ = "zones"

    zone_name = Column(String(100), nullable=False, unique=True)
    zone_code = Column(String(20), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<Zone {self.zone_name}>"


class SubZone(BaseModel):
    """Subdivision of a zone; a payer's sub-zone must belong to its zone"""
    __tablename__ = "sub_zones"
    __table_args__ = (
        UniqueConstraint("zone_id", "sub_zone_name", name="uq_sub_zones_zone_name"),
    )

    zone_id = Column(IdType, ForeignKey("zones.id"), nullable=False, index=True)
    sub_zone_name = Column(String(100), nullable=False)
    sub_zone_code = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<SubZone {self.sub_zone_name} zone={self.zone_id}>"
