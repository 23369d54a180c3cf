# smartpark/services/maintenance_worker.py
"""
Background maintenance loop.

Every MAINTENANCE_INTERVAL_SECONDS:
  1. closes bookings whose window has ended (if AUTO_COMPLETE_OVERDUE)
  2. checks every active location for occupancy drift and records an alert

Drift is only reported here; fixing it needs an explicit reconcile call.
Blocking DB work runs in a worker thread so the event loop stays free.
"""

import asyncio
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from smartpark.config import settings
from smartpark.errors import ParkingError
from smartpark.services import booking_service, catalog_store, occupancy_service
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


def run_maintenance_cycle(session_factory: sessionmaker) -> dict:
    """One pass of overdue completion + drift detection. Returns a summary."""
    summary = {"overdue": None, "drift": {}}
    db = session_factory()
    try:
        if settings.AUTO_COMPLETE_OVERDUE:
            summary["overdue"] = booking_service.complete_overdue_bookings(db)

        for location in catalog_store.list_locations(db, active=True):
            location_id = location.id
            try:
                drift = occupancy_service.detect_drift(db, location_id)
            except (ParkingError, SQLAlchemyError) as exc:
                db.rollback()
                logger.error(f"🧮 Drift check failed for location {location_id}: {exc}", exc_info=True)
                continue
            if drift:
                summary["drift"][location_id] = drift
    finally:
        db.close()
    return summary


async def _maintenance_loop(session_factory: sessionmaker, interval: int):
    logger.info(f"🧹 Maintenance worker started (every {interval}s)")
    while True:
        try:
            summary = await asyncio.to_thread(run_maintenance_cycle, session_factory)
            logger.debug(f"🧹 Maintenance cycle done: {summary}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"🧹 Maintenance cycle failed: {e}", exc_info=True)
        await asyncio.sleep(interval)


def start_maintenance_worker(session_factory: sessionmaker,
                             interval: Optional[int] = None) -> Optional[asyncio.Task]:
    """Schedule the loop on the running event loop. Returns None when disabled."""
    interval = settings.MAINTENANCE_INTERVAL_SECONDS if interval is None else interval
    if interval <= 0:
        logger.info("🧹 Maintenance worker disabled (MAINTENANCE_INTERVAL_SECONDS=0)")
        return None
    return asyncio.create_task(_maintenance_loop(session_factory, interval))


async def stop_maintenance_worker(task: Optional[asyncio.Task]):
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("🧹 Maintenance worker stopped")
