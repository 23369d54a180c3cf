# smartpark/services/occupancy_service.py
"""
Occupancy Reconciler.
Recomputes each location's per-class occupancy as the number of slots holding
a pending/active booking and compares it with the stored counters.

  detect_drift(): report only; records an occupancy_drift alert, changes nothing
  reconcile():    overwrite diverging counters (explicit corrective call)

Never called on the booking hot path.
"""

from sqlalchemy.orm import Session

from smartpark.config import settings
from smartpark.constants import VEHICLE_CLASSES
from smartpark.database import atomic
from smartpark.services import booking_repository, catalog_store
from smartpark.services.alert_service import create_alert
from smartpark.utils.logger import get_logger
from smartpark.utils.timeutils import utcnow

logger = get_logger(__name__)


def _diff(location, actual: dict) -> dict:
    return {
        cls: (location.occupancy_for(cls), actual[cls])
        for cls in VEHICLE_CLASSES
        if location.occupancy_for(cls) != actual[cls]
    }


def detect_drift(db: Session, location_id: int) -> dict:
    """
    Return {class: (stored, actual)} for every class whose counter disagrees
    with the held-slot count. An alert is recorded when drift is found.
    """
    location = catalog_store.get_location(db, location_id)
    actual = booking_repository.count_held_slots_by_class(db, location_id)
    drift = _diff(location, actual)
    if drift:
        summary = ", ".join(f"{cls} stored={s} actual={a}" for cls, (s, a) in drift.items())
        logger.warning(f"[RECONCILE] Drift at location {location_id}: {summary}")
        create_alert(db, "occupancy_drift", location_id,
                     f"Occupancy drift at {location.name}: {summary}")
    return drift


def reconcile(db: Session, location_id: int) -> dict:
    """
    Overwrite stored occupancy with the held-slot count and return
    {class: corrected_count}. Idempotent. A count above capacity is clamped
    to capacity and reported as capacity_overflow.
    """
    overflow = {}

    def operation() -> dict:
        overflow.clear()
        location = catalog_store.get_location(db, location_id, for_update=True)
        actual = booking_repository.count_held_slots_by_class(db, location_id)
        corrected = {}
        for cls in VEHICLE_CLASSES:
            count = actual[cls]
            capacity = location.capacity_for(cls)
            if count > capacity:
                overflow[cls] = (count, capacity)
                count = capacity
            corrected[cls] = count
            stored = location.occupancy_for(cls)
            if stored != count:
                logger.warning(f"[RECONCILE] Location {location_id} {cls}: {stored} → {count}")
                location.set_occupancy(cls, count)
                location.updated_at = utcnow()
        return corrected

    corrected = atomic(db, operation, retries=settings.BOOKING_CONFLICT_RETRIES)

    for cls, (count, capacity) in overflow.items():
        create_alert(db, "capacity_overflow", location_id,
                     f"Location {location_id} has {count} held {cls} slots but capacity {capacity}")
    logger.info(f"[RECONCILE] Location {location_id} occupancy: {corrected}")
    return corrected
