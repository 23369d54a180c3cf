# smartpark/routers/slots.py
"""Parking slots — public reads, admin writes. Capacity counters follow slot add/remove."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartpark.actor import Actor
from smartpark.constants import SlotStatus, VehicleClass
from smartpark.database import get_db
from smartpark.dependencies import get_actor, require_admin
from smartpark.schemas.slot import SlotCreate, SlotOut, SlotUpdate
from smartpark.services import catalog_service, catalog_store

router = APIRouter()


@router.get("/slots", response_model=list[SlotOut], summary="List slots — filter by location, class, status")
def list_slots(
    location_id: Optional[int] = None,
    vehicle_class: Optional[VehicleClass] = None,
    status: Optional[SlotStatus] = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return catalog_store.list_slots(
        db,
        location_id=location_id,
        vehicle_class=vehicle_class.value if vehicle_class else None,
        status=status.value if status else None,
    )


@router.get("/slots/{slot_id}", response_model=SlotOut)
def get_slot(slot_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return catalog_store.get_slot(db, slot_id)


@router.post("/slots", response_model=SlotOut, status_code=201, summary="Add a slot to a location")
def create_slot(body: SlotCreate, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return catalog_service.create_slot(
        db,
        location_id=body.location_id,
        slot_number=body.slot_number,
        vehicle_class=body.vehicle_class.value,
        position_x=body.position_x,
        position_y=body.position_y,
        status=body.status,
    )


@router.put("/slots/{slot_id}", response_model=SlotOut, summary="Update slot, maintenance status or sensor data")
def update_slot(slot_id: int, body: SlotUpdate, admin: Actor = Depends(require_admin),
                db: Session = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    if fields.get("vehicle_class") is not None:
        fields["vehicle_class"] = VehicleClass(fields["vehicle_class"]).value
    return catalog_service.update_slot(db, slot_id, **fields)


@router.delete("/slots/{slot_id}", summary="Remove a slot that is not reserved or occupied")
def delete_slot(slot_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    catalog_service.delete_slot(db, slot_id)
    return {"status": "deleted", "slot_id": slot_id}
