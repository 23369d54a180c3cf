# smartpark/schemas/location.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from smartpark.constants import LocationType, VehicleClass


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    zone: str = Field(..., min_length=1, max_length=100)     # e.g. North, South, Central
    description: Optional[str] = Field(None, max_length=500)
    location_type: LocationType = LocationType.OUTDOOR
    is_active: bool = True


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    zone: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    location_type: Optional[LocationType] = None
    is_active: Optional[bool] = None
    capacity: Optional[dict[VehicleClass, int]] = None   # admin override per class


class LocationOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    zone: str
    location_type: str
    is_active: bool
    capacity: dict[str, int]
    occupancy: dict[str, int]
    availability: dict[str, int]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
