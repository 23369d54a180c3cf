# smartpark/routers/alerts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from smartpark.actor import Actor
from smartpark.database import get_db
from smartpark.dependencies import require_admin
from smartpark.models.alert import Alert
from smartpark.schemas.alert import AlertOut
from smartpark.services.alert_service import resolve_alert
from typing import Optional

router = APIRouter()


@router.get("/alerts", response_model=list[AlertOut], summary="All alerts — filterable by type")
def get_all_alerts(
    alert_type: Optional[str] = None,
    location_id: Optional[int] = None,
    is_resolved: Optional[int] = None,
    limit: int = 50,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Combined alerts endpoint. Filter by alert_type, location_id or is_resolved."""
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if location_id is not None:
        q = q.filter(Alert.location_id == location_id)
    if is_resolved is not None:
        q = q.filter(Alert.is_resolved == is_resolved)
    return q.order_by(Alert.triggered_at.desc(), Alert.id.desc()).limit(limit).all()


@router.put("/alerts/{alert_id}/resolve", response_model=AlertOut, summary="Mark an alert resolved")
def mark_resolved(alert_id: int, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    alert = resolve_alert(db, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert
