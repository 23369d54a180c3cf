# smartpark/models/booking.py
"""
Bookings table.
A user's hold on one slot for the half-open window [start_time, end_time).
location_id is copied from the slot for query convenience.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from smartpark.database import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    # Nulled by the store if the slot/location is later removed; slot_number keeps history readable
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="SET NULL"))
    slot_number = Column(String(50))
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), index=True)
    vehicle_class = Column(String(20), nullable=False)
    vehicle_number = Column(String(50), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    created_at = Column(DateTime, nullable=False, index=True)

    # Audit metadata: the only fields written after a booking is terminal
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancel_reason = Column(Text)
    closed_by = Column(String(100))

    version = Column(Integer, nullable=False)

    slot = relationship("Slot")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_window"),
        Index("ix_bookings_slot_window", "slot_id", "start_time", "end_time"),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def __repr__(self):
        return f"<Booking {self.id} slot={self.slot_id} user={self.user_id} status={self.status}>"
