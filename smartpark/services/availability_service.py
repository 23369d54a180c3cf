# smartpark/services/availability_service.py
"""
Availability Checker.
A slot is bookable for [start, end) when it exists, is active, belongs to an
active location, is not under maintenance, and has no overlapping
pending/active booking.

When used on the booking path, call ensure_available() inside the create
transaction after the slot row has been locked; otherwise two racing
requests can both observe "available".
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from smartpark.constants import SlotStatus
from smartpark.errors import NotFound, SlotUnavailable
from smartpark.models.slot import Slot
from smartpark.services import booking_repository, catalog_store
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


def unavailability_reason(db: Session, slot: Slot, start: datetime, end: datetime,
                          exclude_booking_id: Optional[int] = None) -> Optional[str]:
    """Return why `slot` cannot be booked for [start, end), or None when it can."""
    if not slot.is_active:
        return f"Parking slot {slot.slot_number} is inactive"
    if slot.location is not None and not slot.location.is_active:
        return f"Parking location of slot {slot.slot_number} is inactive"
    if slot.status == SlotStatus.MAINTENANCE.value:
        return f"Parking slot {slot.slot_number} is under maintenance"

    overlapping = booking_repository.list_by_slot_overlapping(
        db, slot.id, start, end, exclude_booking_id=exclude_booking_id
    )
    if overlapping:
        first = overlapping[0]
        return (f"Parking slot {slot.slot_number} is already booked "
                f"from {first.start_time.isoformat()} to {first.end_time.isoformat()}")
    return None


def ensure_available(db: Session, slot: Slot, start: datetime, end: datetime):
    reason = unavailability_reason(db, slot, start, end)
    if reason:
        logger.info(f"[AVAILABILITY] slot={slot.id} rejected: {reason}")
        raise SlotUnavailable(reason)


def is_available(db: Session, slot_id: int, start: datetime, end: datetime) -> bool:
    """True when slot `slot_id` can be booked for [start, end). Missing slots are unavailable."""
    try:
        slot = catalog_store.get_slot(db, slot_id)
    except NotFound:
        return False
    return unavailability_reason(db, slot, start, end) is None
