# smartpark/routers/bookings.py
"""Booking endpoints — create, list, view, activate, complete, cancel."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartpark.actor import Actor
from smartpark.constants import BookingStatus
from smartpark.database import get_db
from smartpark.dependencies import get_actor
from smartpark.schemas.booking import BookingCancel, BookingCreate, BookingOut
from smartpark.services import booking_service

router = APIRouter()


@router.post("/bookings", response_model=BookingOut, status_code=201,
             summary="Reserve a slot for a time window")
def create_booking(body: BookingCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return booking_service.create_booking(
        db, actor,
        slot_id=body.slot_id,
        start=body.start_time,
        end=body.end_time,
        vehicle_number=body.vehicle_number,
        vehicle_class=body.vehicle_class,
    )


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings (own, or all for admins)")
def list_bookings(
    status: Optional[BookingStatus] = None,
    location_id: Optional[int] = None,
    slot_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return booking_service.list_bookings(
        db, actor,
        status=status.value if status else None,
        location_id=location_id,
        slot_id=slot_id,
        start=start,
        end=end,
        limit=limit,
    )


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return booking_service.get_booking(db, actor, booking_id)


@router.put("/bookings/{booking_id}/activate", response_model=BookingOut, summary="Confirm a pending booking")
def activate_booking(booking_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return booking_service.activate_booking(db, actor, booking_id)


@router.put("/bookings/{booking_id}/complete", response_model=BookingOut, summary="Complete an active booking")
def complete_booking(booking_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return booking_service.complete_booking(db, actor, booking_id)


@router.put("/bookings/{booking_id}/cancel", response_model=BookingOut, summary="Cancel a pending or active booking")
def cancel_booking(booking_id: int, body: Optional[BookingCancel] = None,
                   actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return booking_service.cancel_booking(db, actor, booking_id, reason=body.reason if body else None)
