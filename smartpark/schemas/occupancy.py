# smartpark/schemas/occupancy.py
from pydantic import BaseModel
from typing import Optional


class LocationOccupancyOut(BaseModel):
    location_id: int
    name: str
    capacity: dict[str, int]
    occupancy: dict[str, int]
    availability: dict[str, int]
    occupancy_percent: dict[str, Optional[float]]
    is_full: dict[str, bool]


class DriftEntry(BaseModel):
    stored: int
    actual: int


class DriftOut(BaseModel):
    location_id: int
    has_drift: bool
    drift: dict[str, DriftEntry]


class ReconcileOut(BaseModel):
    location_id: int
    occupancy: dict[str, int]
    status: str = "reconciled"


class StatsSummaryOut(BaseModel):
    date: str
    total_slots: int
    slots_by_status: dict[str, int]
    bookings_today: int
    live_bookings: int
    locations: list[LocationOccupancyOut]
