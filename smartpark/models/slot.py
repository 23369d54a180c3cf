# smartpark/models/slot.py
"""
Parking slots table.
One row per physical bay. Status is driven by the booking lifecycle
(available ↔ reserved/occupied) and by admins (maintenance).
Sensor columns are advisory passthrough data and never gate a booking.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from smartpark.database import Base


class Slot(Base):
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(String(50), unique=True, nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    vehicle_class = Column(String(20), nullable=False, index=True)   # two_wheeler | four_wheeler | bus
    status = Column(String(20), nullable=False, default="available", index=True)
    position_x = Column(Float, nullable=False, default=0)
    position_y = Column(Float, nullable=False, default=0)

    # Passive AI/sensor detection data
    sensor_is_occupied = Column(Boolean, nullable=False, default=False)
    sensor_confidence = Column(Float, nullable=False, default=0)
    sensor_detected_class = Column(String(20))
    sensor_updated_at = Column(DateTime)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    location = relationship("Location", back_populates="slots")

    __table_args__ = (
        CheckConstraint("sensor_confidence >= 0 AND sensor_confidence <= 1", name="ck_slots_sensor_confidence"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Slot {self.id} number={self.slot_number} class={self.vehicle_class} status={self.status}>"
