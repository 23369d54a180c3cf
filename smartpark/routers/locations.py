# smartpark/routers/locations.py
"""Parking locations — public reads, admin writes."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartpark.actor import Actor
from smartpark.database import get_db
from smartpark.dependencies import get_actor, require_admin
from smartpark.schemas.location import LocationCreate, LocationOut, LocationUpdate
from smartpark.services import catalog_service, catalog_store

router = APIRouter()


@router.get("/locations", response_model=list[LocationOut], summary="List parking locations")
def list_locations(active: Optional[bool] = None, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return catalog_store.list_locations(db, active=active)


@router.get("/locations/{location_id}", response_model=LocationOut)
def get_location(location_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return catalog_store.get_location(db, location_id)


@router.post("/locations", response_model=LocationOut, status_code=201, summary="Create a parking location")
def create_location(body: LocationCreate, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return catalog_service.create_location(
        db,
        name=body.name,
        zone=body.zone,
        description=body.description,
        location_type=body.location_type.value,
        is_active=body.is_active,
    )


@router.put("/locations/{location_id}", response_model=LocationOut, summary="Update a parking location")
def update_location(location_id: int, body: LocationUpdate, admin: Actor = Depends(require_admin),
                    db: Session = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    capacity = fields.pop("capacity", None)
    return catalog_service.update_location(db, location_id, capacity=capacity, **fields)


@router.delete("/locations/{location_id}", summary="Delete a location with no slots")
def delete_location(location_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    catalog_service.delete_location(db, location_id)
    return {"status": "deleted", "location_id": location_id}
