from typing import List
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from revenue_ledger.models.enums import PayerKind


class BusinessFeeCreate(BaseModel):
    business_type: str = ""
    category: str = ""
    fee_amount: Decimal = Decimal("0")
    is_active: bool = True


class PropertyFeeCreate(BaseModel):
    structure: str = ""
    property_use: str = ""
    fee_per_room: Decimal = Decimal("0")
    is_active: bool = True


class BusinessFeeResponse(BaseModel):
    id: int
    business_type: str
    category: str
    fee_amount: Decimal
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyFeeResponse(BaseModel):
    id: int
    structure: str
    property_use: str
    fee_per_room: Decimal
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeeResolution(BaseModel):
    """Fee found for a (type, category) pair; per room for properties"""
    kind: PayerKind
    fee_type: str
    category: str
    amount: Decimal


class FeeActiveUpdate(BaseModel):
    is_active: bool


class FeeImportResult(BaseModel):
    created: int = 0
    duplicates: int = 0
    failed: int = 0
    errors: List[str] = []
