# smartpark/schemas/slot.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional

from smartpark.constants import VehicleClass

AdminSlotStatus = Literal["available", "maintenance"]


class SlotCreate(BaseModel):
    location_id: int
    slot_number: str = Field(..., min_length=1, max_length=50)
    vehicle_class: VehicleClass
    position_x: float = 0
    position_y: float = 0
    status: AdminSlotStatus = "available"


class SlotUpdate(BaseModel):
    slot_number: Optional[str] = Field(None, min_length=1, max_length=50)
    vehicle_class: Optional[VehicleClass] = None
    status: Optional[AdminSlotStatus] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    is_active: Optional[bool] = None
    # Advisory sensor data, stored but never used for booking decisions
    sensor_is_occupied: Optional[bool] = None
    sensor_confidence: Optional[float] = Field(None, ge=0, le=1)
    sensor_detected_class: Optional[Literal["two_wheeler", "four_wheeler", "bus", "unknown"]] = None


class SlotOut(BaseModel):
    id: int
    slot_number: str
    location_id: int
    vehicle_class: str
    status: str
    position_x: float
    position_y: float
    sensor_is_occupied: bool
    sensor_confidence: float
    sensor_detected_class: Optional[str]
    sensor_updated_at: Optional[datetime]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
