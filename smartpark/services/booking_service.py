# smartpark/services/booking_service.py
"""
Booking Lifecycle Manager.

States: pending → active → completed, and pending|active → cancelled.
completed and cancelled are terminal.

This module is the only writer of Booking.status, and the only code that
moves Slot.status and Location occupancy in response to a booking. Each
transition runs through database.atomic(), so the booking row, the slot
status and the occupancy counter are committed together or not at all.

Occupancy counts held slots: a slot adds one unit when it gets its first
live booking and gives it back when its last live booking ends.

Lock order inside a transaction is always booking → slot → location.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartpark.actor import Actor, SYSTEM_ACTOR
from smartpark.config import settings
from smartpark.constants import BookingStatus, LIVE_BOOKING_STATUSES, SlotStatus, VehicleClass
from smartpark.database import atomic
from smartpark.errors import (
    BookingLimitExceeded, ClassMismatch, Forbidden, InvalidStateTransition, InvalidTimeRange,
    ParkingError,
)
from smartpark.models.booking import Booking
from smartpark.services import availability_service, booking_repository, catalog_store
from smartpark.services.alert_service import create_alert
from smartpark.utils.logger import get_logger
from smartpark.utils.timeutils import to_naive_utc, utcnow

logger = get_logger(__name__)


def _validate_window(start: Optional[datetime], end: Optional[datetime], now: datetime):
    if start is None or end is None:
        raise InvalidTimeRange("Start time and end time are both required")
    if end <= start:
        raise InvalidTimeRange("End time must be after start time")
    if settings.REQUIRE_FUTURE_START and start < now:
        raise InvalidTimeRange("Start time must be in the future")
    if settings.MAX_BOOKING_HOURS and end - start > timedelta(hours=settings.MAX_BOOKING_HOURS):
        raise InvalidTimeRange(f"Bookings may not exceed {settings.MAX_BOOKING_HOURS} hours")
    if settings.ADVANCE_BOOKING_DAYS is not None and start > now + timedelta(days=settings.ADVANCE_BOOKING_DAYS):
        raise InvalidTimeRange(f"Bookings may start at most {settings.ADVANCE_BOOKING_DAYS} days ahead")


def _vehicle_class_value(vehicle_class) -> str:
    try:
        return VehicleClass(vehicle_class).value
    except ValueError:
        raise ClassMismatch(f"Unknown vehicle class '{vehicle_class}'")


def _release_slot(db: Session, booking: Booking, now: datetime):
    """
    Called after `booking` left the live set. When it was the slot's last live
    booking the slot is freed and one unit of occupancy is given back, never
    going below zero. Otherwise the slot stays held for its remaining bookings.
    """
    slot = catalog_store.get_slot(db, booking.slot_id, for_update=True)
    slot.updated_at = now
    if booking_repository.count_live_for_slot(db, slot.id):
        slot.status = SlotStatus.RESERVED.value
        return
    slot.status = SlotStatus.AVAILABLE.value

    location = catalog_store.get_location(db, booking.location_id, for_update=True)
    current = location.occupancy_for(booking.vehicle_class)
    if current <= 0:
        logger.warning(f"[BOOKING] Location {location.id} {booking.vehicle_class} occupancy already 0 "
                       f"while releasing booking {booking.id} (counter drift, run reconcile)")
    location.set_occupancy(booking.vehicle_class, max(0, current - 1))
    location.updated_at = now


def _check_occupancy_threshold(db: Session, location_id: int, vehicle_class: str):
    """Raise an occupancy_full alert once a class crosses the configured threshold."""
    try:
        location = catalog_store.get_location(db, location_id)
        capacity = location.capacity_for(vehicle_class)
        occupied = location.occupancy_for(vehicle_class)
        if capacity and (occupied / capacity) >= settings.OCCUPANCY_ALERT_THRESHOLD:
            create_alert(db, "occupancy_full", location_id,
                         f"Location {location.name} {vehicle_class} at {int(occupied / capacity * 100)}% capacity")
    except SQLAlchemyError as exc:
        # The booking is already committed; a failed alert must not undo it.
        db.rollback()
        logger.error(f"Could not record occupancy alert for location {location_id}: {exc}", exc_info=True)


def create_booking(db: Session, actor: Actor, slot_id: int, start: datetime, end: datetime,
                   vehicle_number: str, vehicle_class) -> Booking:
    """
    Reserve `slot_id` for [start, end).

    Raises InvalidTimeRange, SlotNotFound, ClassMismatch, SlotUnavailable,
    BookingLimitExceeded, or the retryable Conflict / StoreUnavailable.
    """
    start, end = to_naive_utc(start), to_naive_utc(end)
    now = utcnow()
    _validate_window(start, end, now)
    vehicle_class = _vehicle_class_value(vehicle_class)
    vehicle_number = (vehicle_number or "").strip().upper()
    initial_status = (BookingStatus.PENDING.value if settings.BOOKING_REQUIRES_CONFIRMATION
                      else BookingStatus.ACTIVE.value)

    def operation() -> Booking:
        slot = catalog_store.get_slot(db, slot_id, for_update=True)
        if slot.vehicle_class != vehicle_class:
            raise ClassMismatch(f"This slot is for {slot.vehicle_class} vehicles only")

        location = catalog_store.get_location(db, slot.location_id, for_update=True)

        if not settings.ALLOW_MULTIPLE_BOOKINGS and booking_repository.count_live_for_user(db, actor.user_id):
            raise BookingLimitExceeded("You already have a live booking")

        availability_service.ensure_available(db, slot, start, end)
        newly_held = booking_repository.count_live_for_slot(db, slot.id) == 0

        booking = booking_repository.insert(db, Booking(
            user_id=actor.user_id,
            slot_id=slot.id,
            slot_number=slot.slot_number,
            location_id=slot.location_id,
            vehicle_class=vehicle_class,
            vehicle_number=vehicle_number,
            start_time=start,
            end_time=end,
            status=initial_status,
            created_at=now,
        ))

        # updated_at always changes, so the versioned UPDATE is emitted even when
        # the slot was already reserved for another window
        slot.status = SlotStatus.RESERVED.value
        slot.updated_at = now
        if newly_held:
            location.set_occupancy(vehicle_class, location.occupancy_for(vehicle_class) + 1)
            location.updated_at = now
        return booking

    booking = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[BOOKING] Created {booking.id} slot={booking.slot_id} user={booking.user_id} "
                f"{booking.start_time.isoformat()}→{booking.end_time.isoformat()} status={booking.status}")
    _check_occupancy_threshold(db, booking.location_id, booking.vehicle_class)
    return booking


def _transition(db: Session, actor: Actor, booking_id: int, verb: str, allowed_from: tuple,
                new_status: str, reason: Optional[str] = None) -> Booking:
    def operation() -> Booking:
        booking = booking_repository.get(db, booking_id, for_update=True)
        if not actor.can_manage(booking.user_id):
            raise Forbidden(f"Not authorized to {verb} this booking")
        if booking.status not in allowed_from:
            raise InvalidStateTransition(f"Cannot {verb} a booking that is {booking.status}")

        now = utcnow()
        end_time = None
        if new_status == BookingStatus.COMPLETED.value:
            booking.completed_at = now
            if booking.start_time < now < booking.end_time:
                end_time = now   # left early
        elif new_status == BookingStatus.CANCELLED.value:
            booking.cancelled_at = now
            booking.cancel_reason = reason
        if new_status in (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value):
            booking.closed_by = actor.user_id

        booking_repository.update_status(db, booking.id, new_status, end_time)

        if new_status not in LIVE_BOOKING_STATUSES:
            _release_slot(db, booking, now)
        return booking

    booking = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)
    logger.info(f"[BOOKING] {booking.id} → {booking.status} by {actor.user_id} (slot={booking.slot_id})")
    return booking


def activate_booking(db: Session, actor: Actor, booking_id: int) -> Booking:
    """Confirm a pending booking. Occupancy was already counted at creation."""
    return _transition(db, actor, booking_id, "activate",
                       (BookingStatus.PENDING.value,), BookingStatus.ACTIVE.value)


def complete_booking(db: Session, actor: Actor, booking_id: int) -> Booking:
    return _transition(db, actor, booking_id, "complete",
                       (BookingStatus.ACTIVE.value,), BookingStatus.COMPLETED.value)


def cancel_booking(db: Session, actor: Actor, booking_id: int, reason: Optional[str] = None) -> Booking:
    return _transition(db, actor, booking_id, "cancel",
                       LIVE_BOOKING_STATUSES, BookingStatus.CANCELLED.value, reason)


def get_booking(db: Session, actor: Actor, booking_id: int) -> Booking:
    booking = booking_repository.get(db, booking_id)
    if not actor.can_manage(booking.user_id):
        raise Forbidden("Not authorized to view this booking")
    return booking


def list_bookings(db: Session, actor: Actor, status: Optional[str] = None, location_id: Optional[int] = None,
                  slot_id: Optional[int] = None, start: Optional[datetime] = None,
                  end: Optional[datetime] = None, limit: Optional[int] = None) -> list[Booking]:
    """Admins see every booking; everyone else only their own."""
    return booking_repository.list_bookings(
        db,
        user_id=None if actor.is_admin else actor.user_id,
        slot_id=slot_id,
        location_id=location_id,
        status=status,
        start=to_naive_utc(start),
        end=to_naive_utc(end),
        limit=limit,
    )


def complete_overdue_bookings(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Close bookings whose window has ended: active ones are completed,
    pending (never confirmed) ones are cancelled as expired.
    Each booking is closed in its own transaction.
    """
    now = to_naive_utc(now) or utcnow()
    result = {"completed": 0, "cancelled": 0, "failed": 0}
    for booking in booking_repository.list_overdue(db, now):
        booking_id, status = booking.id, booking.status
        try:
            if status == BookingStatus.ACTIVE.value:
                complete_booking(db, SYSTEM_ACTOR, booking_id)
                result["completed"] += 1
            else:
                cancel_booking(db, SYSTEM_ACTOR, booking_id, reason="expired")
                result["cancelled"] += 1
        except ParkingError as exc:
            result["failed"] += 1
            logger.warning(f"[BOOKING] Could not close overdue booking {booking_id}: {exc.message}")
    if any(result.values()):
        logger.info(f"[BOOKING] Overdue sweep: {result}")
    return result
