# smartpark/routers/stats.py
"""Admin dashboard: slot, booking and occupancy summary."""

from datetime import datetime, time, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from smartpark.actor import Actor
from smartpark.constants import BookingStatus, LIVE_BOOKING_STATUSES, SlotStatus
from smartpark.database import get_db
from smartpark.dependencies import require_admin
from smartpark.models.booking import Booking
from smartpark.models.slot import Slot
from smartpark.routers.occupancy import occupancy_view
from smartpark.schemas.occupancy import StatsSummaryOut
from smartpark.services import catalog_store
from smartpark.utils.timeutils import utcnow

router = APIRouter()


@router.get("/stats/summary", response_model=StatsSummaryOut, summary="Dashboard totals for today (UTC)")
def get_summary(admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Slots per status, bookings created today (excluding cancelled), live bookings and per-location occupancy."""
    today = utcnow().date()
    day_start = datetime.combine(today, time.min)
    day_end = day_start + timedelta(days=1)

    by_status = {s.value: 0 for s in SlotStatus}
    for slot_status, count in db.query(Slot.status, func.count(Slot.id)).group_by(Slot.status).all():
        by_status[slot_status] = count

    bookings_today = db.query(func.count(Booking.id)).filter(
        Booking.created_at >= day_start,
        Booking.created_at < day_end,
        Booking.status != BookingStatus.CANCELLED.value,
    ).scalar()
    live = db.query(func.count(Booking.id)).filter(Booking.status.in_(LIVE_BOOKING_STATUSES)).scalar()

    return StatsSummaryOut(
        date=str(today),
        total_slots=sum(by_status.values()),
        slots_by_status=by_status,
        bookings_today=bookings_today or 0,
        live_bookings=live or 0,
        locations=[occupancy_view(loc) for loc in catalog_store.list_locations(db)],
    )
