from typing import Optional, Union
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from revenue_ledger.models.enums import PayerKind, PayerStatus

# Coordinates arrive from GPS widgets as numbers or raw form strings;
# range and numeric checks happen in PayerValidator so every error is reported together.
Coordinate = Optional[Union[float, str]]


class LedgerFieldsIn(BaseModel):
    """Caller-supplied ledger inputs; amount_payable is never accepted"""
    old_bill: Decimal = Decimal("0.00")
    previous_payments: Decimal = Decimal("0.00")
    arrears: Decimal = Decimal("0.00")
    current_bill: Decimal = Decimal("0.00")


class BusinessCreate(LedgerFieldsIn):
    business_name: str = ""
    owner_name: str = ""
    business_type: str = ""
    category: str = ""
    telephone: Optional[str] = None
    exact_location: Optional[str] = None
    latitude: Coordinate = None
    longitude: Coordinate = None
    batch: Optional[str] = None
    status: PayerStatus = PayerStatus.ACTIVE
    zone_id: Optional[int] = None
    sub_zone_id: Optional[int] = None


class BusinessUpdate(BaseModel):
    """Partial update; unset fields keep their stored value"""
    business_name: Optional[str] = None
    owner_name: Optional[str] = None
    business_type: Optional[str] = None
    category: Optional[str] = None
    telephone: Optional[str] = None
    exact_location: Optional[str] = None
    latitude: Coordinate = None
    longitude: Coordinate = None
    old_bill: Optional[Decimal] = None
    previous_payments: Optional[Decimal] = None
    arrears: Optional[Decimal] = None
    current_bill: Optional[Decimal] = None
    batch: Optional[str] = None
    status: Optional[PayerStatus] = None
    zone_id: Optional[int] = None
    sub_zone_id: Optional[int] = None


class PropertyCreate(LedgerFieldsIn):
    owner_name: str = ""
    telephone: Optional[str] = None
    gender: Optional[str] = None
    location: Optional[str] = None
    latitude: Coordinate = None
    longitude: Coordinate = None
    structure: str = ""
    ownership_type: str = "Self"
    property_type: str = "Modern"
    number_of_rooms: int = 1
    property_use: str = ""
    batch: Optional[str] = None
    status: PayerStatus = PayerStatus.ACTIVE
    zone_id: Optional[int] = None
    sub_zone_id: Optional[int] = None


class PropertyUpdate(BaseModel):
    """Partial update; unset fields keep their stored value"""
    owner_name: Optional[str] = None
    telephone: Optional[str] = None
    gender: Optional[str] = None
    location: Optional[str] = None
    latitude: Coordinate = None
    longitude: Coordinate = None
    structure: Optional[str] = None
    ownership_type: Optional[str] = None
    property_type: Optional[str] = None
    number_of_rooms: Optional[int] = None
    property_use: Optional[str] = None
    old_bill: Optional[Decimal] = None
    previous_payments: Optional[Decimal] = None
    arrears: Optional[Decimal] = None
    current_bill: Optional[Decimal] = None
    batch: Optional[str] = None
    status: Optional[PayerStatus] = None
    zone_id: Optional[int] = None
    sub_zone_id: Optional[int] = None


class PayerResponseBase(BaseModel):
    id: int
    account_number: str
    owner_name: str
    telephone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    old_bill: Decimal
    previous_payments: Decimal
    arrears: Decimal
    current_bill: Decimal
    amount_payable: Decimal
    batch: Optional[str] = None
    status: PayerStatus
    zone_id: int
    sub_zone_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BusinessResponse(PayerResponseBase):
    kind: PayerKind = PayerKind.BUSINESS
    business_name: str
    business_type: str
    category: str
    exact_location: Optional[str] = None


class PropertyResponse(PayerResponseBase):
    kind: PayerKind = PayerKind.PROPERTY
    gender: Optional[str] = None
    location: Optional[str] = None
    structure: str
    ownership_type: str
    property_type: str
    number_of_rooms: int
    property_use: str


PayerResponse = Union[BusinessResponse, PropertyResponse]
