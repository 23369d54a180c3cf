# smartpark/constants.py
"""Enumerations shared by models, schemas and services."""

from enum import Enum


class VehicleClass(str, Enum):
    TWO_WHEELER = "two_wheeler"
    FOUR_WHEELER = "four_wheeler"
    BUS = "bus"


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LocationType(str, Enum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"


class ActorRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"


VEHICLE_CLASSES = tuple(c.value for c in VehicleClass)

# Bookings that hold a slot and count towards location occupancy
LIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.ACTIVE.value)
TERMINAL_BOOKING_STATUSES = (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value)

# Slot states set by the booking lifecycle; admins may not delete or re-status these
HELD_SLOT_STATUSES = (SlotStatus.RESERVED.value, SlotStatus.OCCUPIED.value)
