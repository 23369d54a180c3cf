# smartpark/services/catalog_service.py
"""
Admin catalog operations: create/update/delete locations and slots.

Capacity counters follow the slots: adding a slot adds one unit of capacity
for its vehicle class, removing it takes one away. Capacity may never drop
below current occupancy or the slot count (CapacityViolation). Unknown fields
and enum values raise InvalidField. Slots that hold a booking
cannot be deleted, re-classed or put into maintenance (ResourceInUse).

Admin authorization is enforced by the caller before these are reached.
"""

from typing import Optional

from sqlalchemy.orm import Session

from smartpark.config import settings
from smartpark.constants import HELD_SLOT_STATUSES, LocationType, SlotStatus, VehicleClass
from smartpark.database import atomic
from smartpark.errors import AlreadyExists, CapacityViolation, InvalidField, InvalidStateTransition, ResourceInUse
from smartpark.models.location import Location
from smartpark.models.slot import Slot
from smartpark.services import booking_repository, catalog_store
from smartpark.utils.logger import get_logger
from smartpark.utils.timeutils import utcnow

logger = get_logger(__name__)

LOCATION_FIELDS = {"name", "description", "zone", "location_type", "is_active"}
SLOT_FIELDS = {"slot_number", "status", "vehicle_class", "position_x", "position_y", "is_active"}
SENSOR_FIELDS = {"sensor_is_occupied", "sensor_confidence", "sensor_detected_class"}

# Statuses an admin may set directly; reserved/occupied belong to the booking lifecycle
ADMIN_SLOT_STATUSES = {SlotStatus.AVAILABLE.value, SlotStatus.MAINTENANCE.value}


def _enum_value(enum_cls, value, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise InvalidField(f"Invalid {field} '{value}' (expected one of: {allowed})")


def _reject_unknown(fields: dict, allowed: set, kind: str):
    unknown = set(fields) - allowed
    if unknown:
        raise InvalidField(f"Unknown {kind} fields: {sorted(unknown)}")


def _set_capacity(location: Location, vehicle_class: str, value: int):
    occupied = location.occupancy_for(vehicle_class)
    if value < 0 or value < occupied:
        raise CapacityViolation(
            f"Cannot set {vehicle_class} capacity of {location.name} to {value}: {occupied} currently occupied"
        )
    location.set_capacity(vehicle_class, value)


# ── Locations ─────────────────────────────────────────────────────────────────

def create_location(db: Session, name: str, zone: str, description: Optional[str] = None,
                    location_type: str = LocationType.OUTDOOR.value, is_active: bool = True) -> Location:
    def operation() -> Location:
        if catalog_store.find_location_by_name(db, name):
            raise AlreadyExists(f"Parking location '{name}' already exists")
        now = utcnow()
        return catalog_store.save_location(db, Location(
            name=name, zone=zone, description=description,
            location_type=_enum_value(LocationType, location_type, "location type"), is_active=is_active,
            capacity_two_wheeler=0, capacity_four_wheeler=0, capacity_bus=0,
            occupancy_two_wheeler=0, occupancy_four_wheeler=0, occupancy_bus=0,
            created_at=now, updated_at=now,
        ))

    location = atomic(db, operation)
    logger.info(f"[CATALOG] Location {location.id} '{location.name}' created")
    return location


def update_location(db: Session, location_id: int, capacity: Optional[dict] = None, **fields) -> Location:
    """
    Update descriptive fields and, optionally, per-class capacity overrides
    ({class: value}). Capacity below current occupancy or below the number of
    slots of that class raises CapacityViolation.
    """
    _reject_unknown(fields, LOCATION_FIELDS, "location")
    if fields.get("location_type") is not None:
        fields["location_type"] = _enum_value(LocationType, fields["location_type"], "location type")
    capacity = {_enum_value(VehicleClass, cls, "vehicle class"): value for cls, value in (capacity or {}).items()}

    def operation() -> Location:
        location = catalog_store.get_location(db, location_id, for_update=True)
        new_name = fields.get("name")
        if new_name and new_name != location.name and catalog_store.find_location_by_name(db, new_name):
            raise AlreadyExists(f"Parking location '{new_name}' already exists")
        for key, value in fields.items():
            setattr(location, key, value)
        for vehicle_class, value in capacity.items():
            slots = catalog_store.count_slots(db, location.id, vehicle_class)
            if value < slots:
                raise CapacityViolation(
                    f"Cannot set {vehicle_class} capacity of {location.name} to {value}: {slots} slot(s) of that class exist"
                )
            _set_capacity(location, vehicle_class, value)
        location.updated_at = utcnow()
        return location

    location = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[CATALOG] Location {location.id} updated: {sorted(fields)}"
                + (f" capacity={capacity}" if capacity else ""))
    return location


def delete_location(db: Session, location_id: int):
    def operation():
        location = catalog_store.get_location(db, location_id, for_update=True)
        slots = catalog_store.count_slots(db, location_id)
        if slots:
            raise ResourceInUse(f"Cannot delete location {location.name}: {slots} parking slot(s) still assigned")
        db.delete(location)

    atomic(db, operation)
    logger.info(f"[CATALOG] Location {location_id} deleted")


# ── Slots ─────────────────────────────────────────────────────────────────────

def create_slot(db: Session, location_id: int, slot_number: str, vehicle_class: str,
                position_x: float = 0, position_y: float = 0,
                status: str = SlotStatus.AVAILABLE.value) -> Slot:
    if status not in ADMIN_SLOT_STATUSES:
        raise InvalidStateTransition(f"New slots must be available or in maintenance, not {status}")
    vehicle_class = _enum_value(VehicleClass, vehicle_class, "vehicle class")

    def operation() -> Slot:
        location = catalog_store.get_location(db, location_id, for_update=True)
        if catalog_store.find_slot_by_number(db, slot_number):
            raise AlreadyExists(f"Parking slot '{slot_number}' already exists")
        now = utcnow()
        slot = catalog_store.save_slot(db, Slot(
            slot_number=slot_number, location_id=location.id, vehicle_class=vehicle_class,
            status=status, position_x=position_x, position_y=position_y,
            sensor_is_occupied=False, sensor_confidence=0, is_active=True,
            created_at=now, updated_at=now,
        ))
        location.set_capacity(vehicle_class, location.capacity_for(vehicle_class) + 1)
        location.updated_at = now
        return slot

    slot = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[CATALOG] Slot {slot.id} '{slot.slot_number}' ({slot.vehicle_class}) added to location {location_id}")
    return slot


def update_slot(db: Session, slot_id: int, **fields) -> Slot:
    """
    Admin slot edits. Status may only move between available and maintenance;
    class changes move one unit of capacity between classes. Sensor fields are
    stored as-is and never affect availability.
    """
    _reject_unknown(fields, SLOT_FIELDS | SENSOR_FIELDS, "slot")
    if fields.get("vehicle_class") is not None:
        fields["vehicle_class"] = _enum_value(VehicleClass, fields["vehicle_class"], "vehicle class")
    if fields.get("status") is not None:
        fields["status"] = _enum_value(SlotStatus, fields["status"], "slot status")

    def operation() -> Slot:
        slot = catalog_store.get_slot(db, slot_id, for_update=True)
        now = utcnow()
        in_use = slot.status in HELD_SLOT_STATUSES or booking_repository.count_live_for_slot(db, slot.id) > 0

        new_status = fields.get("status")
        if new_status is not None and new_status != slot.status:
            if new_status not in ADMIN_SLOT_STATUSES:
                raise InvalidStateTransition(f"Slot status '{new_status}' is set by bookings, not by admins")
            if slot.status in HELD_SLOT_STATUSES:
                raise InvalidStateTransition(f"Slot {slot.slot_number} is {slot.status}")
            if new_status == SlotStatus.MAINTENANCE.value and in_use:
                raise ResourceInUse(f"Slot {slot.slot_number} has live bookings")
            slot.status = new_status

        new_class = fields.get("vehicle_class")
        if new_class is not None and new_class != slot.vehicle_class:
            if in_use:
                raise ResourceInUse(f"Cannot change class of slot {slot.slot_number} while it has live bookings")
            location = catalog_store.get_location(db, slot.location_id, for_update=True)
            _set_capacity(location, slot.vehicle_class, location.capacity_for(slot.vehicle_class) - 1)
            location.set_capacity(new_class, location.capacity_for(new_class) + 1)
            location.updated_at = now
            slot.vehicle_class = new_class

        if fields.get("is_active") is False and slot.is_active and in_use:
            raise ResourceInUse(f"Cannot deactivate slot {slot.slot_number} while it has live bookings")

        new_number = fields.get("slot_number")
        if new_number and new_number != slot.slot_number and catalog_store.find_slot_by_number(db, new_number):
            raise AlreadyExists(f"Parking slot '{new_number}' already exists")

        for key in ("slot_number", "position_x", "position_y", "is_active"):
            if fields.get(key) is not None:
                setattr(slot, key, fields[key])

        sensor = {k: v for k, v in fields.items() if k in SENSOR_FIELDS and v is not None}
        if sensor:
            for key, value in sensor.items():
                setattr(slot, key, value)
            slot.sensor_updated_at = now

        slot.updated_at = now
        return slot

    slot = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[CATALOG] Slot {slot.id} updated: {sorted(fields)}")
    return slot


def delete_slot(db: Session, slot_id: int):
    def operation():
        slot = catalog_store.get_slot(db, slot_id, for_update=True)
        if slot.status in HELD_SLOT_STATUSES:
            raise ResourceInUse("Cannot delete an occupied or reserved parking slot")
        if booking_repository.count_live_for_slot(db, slot.id):
            raise ResourceInUse(f"Cannot delete slot {slot.slot_number}: it has upcoming bookings")
        location = catalog_store.get_location(db, slot.location_id, for_update=True)
        _set_capacity(location, slot.vehicle_class, location.capacity_for(slot.vehicle_class) - 1)
        location.updated_at = utcnow()
        db.delete(slot)

    atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[CATALOG] Slot {slot_id} deleted")
