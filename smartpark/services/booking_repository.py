# smartpark/services/booking_repository.py
"""
Booking Repository: reads and writes of Booking rows.

Overlap rule (half-open windows): a live booking [s, e) overlaps [start, end)
when s < end and e > start. Bookings that only touch at a boundary do not
conflict.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartpark.constants import LIVE_BOOKING_STATUSES, TERMINAL_BOOKING_STATUSES, VEHICLE_CLASSES
from smartpark.errors import BookingNotFound
from smartpark.models.booking import Booking


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and end_a > start_b


def insert(db: Session, booking: Booking) -> Booking:
    db.add(booking)
    db.flush()
    return booking


def get(db: Session, booking_id: int, for_update: bool = False) -> Booking:
    q = db.query(Booking).filter(Booking.id == booking_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    booking = q.first()
    if not booking:
        raise BookingNotFound(f"Booking not found with id of {booking_id}")
    return booking


def list_by_user(db: Session, user_id: str) -> list[Booking]:
    return db.query(Booking).filter(Booking.user_id == user_id).order_by(Booking.created_at.desc()).all()


def list_by_slot_overlapping(db: Session, slot_id: int, start: datetime, end: datetime,
                             exclude_statuses: Iterable[str] = TERMINAL_BOOKING_STATUSES,
                             exclude_booking_id: Optional[int] = None) -> list[Booking]:
    """Bookings on `slot_id` whose window overlaps [start, end), ignoring the excluded statuses."""
    excluded = set(exclude_statuses)
    statuses = [s for s in LIVE_BOOKING_STATUSES if s not in excluded]
    if not statuses:
        return []
    q = db.query(Booking).filter(
        Booking.slot_id == slot_id,
        Booking.status.in_(statuses),
        Booking.start_time < end,
        Booking.end_time > start,
    )
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q.order_by(Booking.start_time).all()


def list_bookings(db: Session, user_id: Optional[str] = None, slot_id: Optional[int] = None,
                  location_id: Optional[int] = None, status: Optional[str] = None,
                  start: Optional[datetime] = None, end: Optional[datetime] = None,
                  limit: Optional[int] = None) -> list[Booking]:
    """Filtered listing, newest first. start/end select bookings overlapping that range."""
    q = db.query(Booking)
    if user_id is not None:
        q = q.filter(Booking.user_id == user_id)
    if slot_id is not None:
        q = q.filter(Booking.slot_id == slot_id)
    if location_id is not None:
        q = q.filter(Booking.location_id == location_id)
    if status:
        q = q.filter(Booking.status == status)
    if end is not None:
        q = q.filter(Booking.start_time < end)
    if start is not None:
        q = q.filter(Booking.end_time > start)
    q = q.order_by(Booking.created_at.desc(), Booking.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def list_overdue(db: Session, now: datetime) -> list[Booking]:
    """Live bookings whose window has already ended."""
    return (
        db.query(Booking)
        .filter(Booking.status.in_(LIVE_BOOKING_STATUSES), Booking.end_time <= now)
        .order_by(Booking.end_time)
        .all()
    )


def count_live_for_user(db: Session, user_id: str) -> int:
    return db.query(Booking).filter(
        Booking.user_id == user_id, Booking.status.in_(LIVE_BOOKING_STATUSES)
    ).count()


def count_live_for_slot(db: Session, slot_id: int) -> int:
    return db.query(Booking).filter(
        Booking.slot_id == slot_id, Booking.status.in_(LIVE_BOOKING_STATUSES)
    ).count()


def count_held_slots_by_class(db: Session, location_id: int) -> dict:
    """Number of slots holding at least one pending/active booking, per vehicle class (zero-filled)."""
    rows = (
        db.query(Booking.vehicle_class, func.count(func.distinct(Booking.slot_id)))
        .filter(
            Booking.location_id == location_id,
            Booking.slot_id.isnot(None),
            Booking.status.in_(LIVE_BOOKING_STATUSES),
        )
        .group_by(Booking.vehicle_class)
        .all()
    )
    counts = {cls: 0 for cls in VEHICLE_CLASSES}
    for vehicle_class, count in rows:
        counts[vehicle_class] = count
    return counts


def update_status(db: Session, booking_id: int, new_status: str,
                  end_time: Optional[datetime] = None) -> Booking:
    """Set status (and optionally end_time) on a booking inside the current transaction."""
    booking = get(db, booking_id)
    booking.status = new_status
    if end_time is not None:
        booking.end_time = end_time
    db.flush()
    return booking
