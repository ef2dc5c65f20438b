from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ZoneCreate(BaseModel):
    zone_name: str = ""
    zone_code: Optional[str] = None
    description: Optional[str] = None


class SubZoneCreate(BaseModel):
    zone_id: int
    sub_zone_name: str = ""
    sub_zone_code: Optional[str] = None
    description: Optional[str] = None


class ZoneResponse(BaseModel):
    id: int
    zone_name: str
    zone_code: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubZoneResponse(BaseModel):
    id: int
    zone_id: int
    sub_zone_name: str
    sub_zone_code: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
