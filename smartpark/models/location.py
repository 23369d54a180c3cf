# smartpark/models/location.py
"""
Parking locations table.
Holds per-vehicle-class capacity (number of slots) and occupancy (live bookings).
Occupancy is written only by booking_service and occupancy_service.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from smartpark.constants import VEHICLE_CLASSES
from smartpark.database import Base


def _counter_constraints():
    checks = []
    for cls in VEHICLE_CLASSES:
        checks.append(CheckConstraint(f"capacity_{cls} >= 0", name=f"ck_locations_capacity_{cls}_non_negative"))
        checks.append(CheckConstraint(f"occupancy_{cls} >= 0", name=f"ck_locations_occupancy_{cls}_non_negative"))
        checks.append(CheckConstraint(f"occupancy_{cls} <= capacity_{cls}",
                                      name=f"ck_locations_occupancy_{cls}_within_capacity"))
    return tuple(checks)


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(500))
    zone = Column(String(100), nullable=False)
    location_type = Column(String(20), nullable=False, default="outdoor")   # indoor | outdoor

    capacity_two_wheeler = Column(Integer, nullable=False, default=0)
    capacity_four_wheeler = Column(Integer, nullable=False, default=0)
    capacity_bus = Column(Integer, nullable=False, default=0)
    occupancy_two_wheeler = Column(Integer, nullable=False, default=0)
    occupancy_four_wheeler = Column(Integer, nullable=False, default=0)
    occupancy_bus = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    slots = relationship("Slot", back_populates="location")

    __table_args__ = _counter_constraints()
    __mapper_args__ = {"version_id_col": version}

    def capacity_for(self, vehicle_class: str) -> int:
        return getattr(self, f"capacity_{vehicle_class}") or 0

    def occupancy_for(self, vehicle_class: str) -> int:
        return getattr(self, f"occupancy_{vehicle_class}") or 0

    def set_capacity(self, vehicle_class: str, value: int):
        setattr(self, f"capacity_{vehicle_class}", value)

    def set_occupancy(self, vehicle_class: str, value: int):
        setattr(self, f"occupancy_{vehicle_class}", value)

    @property
    def capacity(self) -> dict:
        return {cls: self.capacity_for(cls) for cls in VEHICLE_CLASSES}

    @property
    def occupancy(self) -> dict:
        return {cls: self.occupancy_for(cls) for cls in VEHICLE_CLASSES}

    @property
    def availability(self) -> dict:
        return {cls: self.capacity_for(cls) - self.occupancy_for(cls) for cls in VEHICLE_CLASSES}

    def __repr__(self):
        return f"<Location {self.id} name={self.name} occupancy={self.occupancy}/{self.capacity}>"
