# smartpark/schemas/booking.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from smartpark.constants import VehicleClass


class BookingCreate(BaseModel):
    slot_id: int
    start_time: datetime
    end_time: datetime
    vehicle_number: str = Field(..., min_length=1, max_length=50)
    vehicle_class: VehicleClass


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingOut(BaseModel):
    id: int
    user_id: str
    slot_id: Optional[int]
    slot_number: Optional[str]
    location_id: Optional[int]
    vehicle_class: str
    vehicle_number: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    created_at: datetime
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    cancel_reason: Optional[str]
    closed_by: Optional[str]

    class Config:
        from_attributes = True
