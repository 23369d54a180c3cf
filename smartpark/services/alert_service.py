# smartpark/services/alert_service.py
"""
Shared alert creation service.
Used by booking_service (occupancy_full) and occupancy_service (occupancy_drift,
capacity_overflow).
"""

from typing import Optional

from sqlalchemy.orm import Session

from smartpark.models.alert import Alert
from smartpark.utils.logger import get_logger
from smartpark.utils.timeutils import utcnow

logger = get_logger(__name__)


def create_alert(db: Session, alert_type: str, location_id: Optional[int], description: str,
                 commit: bool = True) -> Alert:
    """Create and persist an alert record. Pass commit=False to stage it in the caller's transaction."""
    alert = Alert(alert_type=alert_type, location_id=location_id, description=description,
                  is_resolved=0, triggered_at=utcnow())
    db.add(alert)
    if commit:
        db.commit()
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    return alert


def resolve_alert(db: Session, alert_id: int) -> Optional[Alert]:
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        return None
    if not alert.is_resolved:
        alert.is_resolved = 1
        alert.resolved_at = utcnow()
        db.commit()
    return alert
