# smartpark/models/alert.py
"""
Alerts table — stores operational alerts (occupancy_full, occupancy_drift, capacity_overflow).
Written by booking_service and occupancy_service through alert_service.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from smartpark.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)
    location_id = Column(Integer, index=True)
    description = Column(Text)
    is_resolved = Column(Integer, default=0, nullable=False)
    triggered_at = Column(DateTime, nullable=False, index=True)
    resolved_at = Column(DateTime)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} resolved={self.is_resolved}>"
