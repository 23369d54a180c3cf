# smartpark/routers/occupancy.py
"""Location occupancy — read views, drift check and explicit reconcile."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartpark.actor import Actor
from smartpark.constants import VEHICLE_CLASSES
from smartpark.database import get_db
from smartpark.dependencies import get_actor, require_admin
from smartpark.models.location import Location
from smartpark.schemas.occupancy import DriftOut, LocationOccupancyOut, ReconcileOut
from smartpark.services import catalog_store, occupancy_service

router = APIRouter()


def occupancy_view(location: Location) -> LocationOccupancyOut:
    percent, full = {}, {}
    for cls in VEHICLE_CLASSES:
        capacity, occupied = location.capacity_for(cls), location.occupancy_for(cls)
        percent[cls] = round((occupied / capacity) * 100, 1) if capacity else None
        full[cls] = capacity > 0 and occupied >= capacity
    return LocationOccupancyOut(
        location_id=location.id,
        name=location.name,
        capacity=location.capacity,
        occupancy=location.occupancy,
        availability=location.availability,
        occupancy_percent=percent,
        is_full=full,
    )


@router.get("/occupancy", response_model=list[LocationOccupancyOut])
def get_all_occupancy(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Current per-class occupancy for all active locations."""
    return [occupancy_view(loc) for loc in catalog_store.list_locations(db, active=True)]


@router.get("/occupancy/{location_id}", response_model=LocationOccupancyOut)
def get_location_occupancy(location_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return occupancy_view(catalog_store.get_location(db, location_id))


@router.get("/occupancy/{location_id}/drift", response_model=DriftOut, summary="Compare counters with live bookings")
def get_drift(location_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Reports drift (and records an alert) without changing any counter."""
    drift = occupancy_service.detect_drift(db, location_id)
    return DriftOut(
        location_id=location_id,
        has_drift=bool(drift),
        drift={cls: {"stored": stored, "actual": actual} for cls, (stored, actual) in drift.items()},
    )


@router.post("/occupancy/{location_id}/reconcile", response_model=ReconcileOut,
             summary="Recompute occupancy from live bookings")
def reconcile_location(location_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Overwrites stored counters with the live-booking count. Use after partial failures or miscounts."""
    corrected = occupancy_service.reconcile(db, location_id)
    return ReconcileOut(location_id=location_id, occupancy=corrected)
