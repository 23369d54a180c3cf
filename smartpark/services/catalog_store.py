# smartpark/services/catalog_store.py
"""
Catalog Store: persistence helpers for Location and Slot records.
No business rules here beyond "raise NotFound when absent". Capacity upkeep
lives in catalog_service and occupancy upkeep in booking_service.
"""

from typing import Optional

from sqlalchemy.orm import Session

from smartpark.errors import LocationNotFound, SlotNotFound
from smartpark.models.location import Location
from smartpark.models.slot import Slot


def get_location(db: Session, location_id: int, for_update: bool = False) -> Location:
    q = db.query(Location).filter(Location.id == location_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    location = q.first()
    if not location:
        raise LocationNotFound(f"Parking location not found with id of {location_id}")
    return location


def get_slot(db: Session, slot_id: int, for_update: bool = False) -> Slot:
    q = db.query(Slot).filter(Slot.id == slot_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    slot = q.first()
    if not slot:
        raise SlotNotFound(f"Parking slot not found with id of {slot_id}")
    return slot


def find_location_by_name(db: Session, name: str) -> Optional[Location]:
    return db.query(Location).filter(Location.name == name).first()


def find_slot_by_number(db: Session, slot_number: str) -> Optional[Slot]:
    return db.query(Slot).filter(Slot.slot_number == slot_number).first()


def list_locations(db: Session, active: Optional[bool] = None) -> list[Location]:
    q = db.query(Location)
    if active is not None:
        q = q.filter(Location.is_active == active)
    return q.order_by(Location.id).all()


def list_slots(db: Session, location_id: Optional[int] = None, vehicle_class: Optional[str] = None,
               status: Optional[str] = None) -> list[Slot]:
    q = db.query(Slot)
    if location_id is not None:
        q = q.filter(Slot.location_id == location_id)
    if vehicle_class:
        q = q.filter(Slot.vehicle_class == vehicle_class)
    if status:
        q = q.filter(Slot.status == status)
    return q.order_by(Slot.slot_number).all()


def count_slots(db: Session, location_id: int, vehicle_class: Optional[str] = None) -> int:
    q = db.query(Slot).filter(Slot.location_id == location_id)
    if vehicle_class:
        q = q.filter(Slot.vehicle_class == vehicle_class)
    return q.count()


def save_location(db: Session, location: Location) -> Location:
    """Stage a location in the current transaction and flush so it gets an id."""
    db.add(location)
    db.flush()
    return location


def save_slot(db: Session, slot: Slot) -> Slot:
    db.add(slot)
    db.flush()
    return slot
