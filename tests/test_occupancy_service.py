# tests/test_occupancy_service.py
"""Occupancy reconciler: drift detection and corrective reconcile."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from smartpark.models.alert import Alert
from smartpark.services import booking_service, occupancy_service


def corrupt(db, location, **counters):
    """Simulate external counter drift."""
    db.refresh(location)
    for cls, value in counters.items():
        location.set_occupancy(cls, value)
    db.commit()


class TestReconcile:
    def test_reconcile_restores_counters(self, db, user, make_location, at):
        location, slots = make_location(two_wheeler=3, bus=1)
        for slot in slots["two_wheeler"][:2]:
            booking_service.create_booking(db, user, slot.id, at(10), at(11), "KA-01", "two_wheeler")
        corrupt(db, location, two_wheeler=0, bus=1)

        corrected = occupancy_service.reconcile(db, location.id)

        assert corrected == {"two_wheeler": 2, "four_wheeler": 0, "bus": 0}
        db.refresh(location)
        assert location.occupancy == corrected

    def test_reconcile_is_idempotent(self, db, user, make_location, at):
        location, slots = make_location(four_wheeler=2)
        booking_service.create_booking(db, user, slots["four_wheeler"][0].id, at(9), at(10), "X1", "four_wheeler")
        corrupt(db, location, four_wheeler=2)

        first = occupancy_service.reconcile(db, location.id)
        db.refresh(location)
        version = location.version
        second = occupancy_service.reconcile(db, location.id)
        db.refresh(location)

        assert first == second == {"two_wheeler": 0, "four_wheeler": 1, "bus": 0}
        assert location.version == version   # nothing rewritten the second time

    def test_slot_with_several_bookings_counted_once(self, db, user, make_location, at):
        location, slots = make_location(four_wheeler=2)
        slot = slots["four_wheeler"][0]
        booking_service.create_booking(db, user, slot.id, at(8), at(9), "M1", "four_wheeler")
        booking_service.create_booking(db, user, slot.id, at(14), at(15), "E1", "four_wheeler")
        corrupt(db, location, four_wheeler=2)

        assert occupancy_service.detect_drift(db, location.id) == {"four_wheeler": (2, 1)}
        assert occupancy_service.reconcile(db, location.id)["four_wheeler"] == 1

    def test_terminal_bookings_not_counted(self, db, user, make_location, at):
        location, slots = make_location(two_wheeler=2)
        done = booking_service.create_booking(db, user, slots["two_wheeler"][0].id, at(9), at(10), "A", "two_wheeler")
        gone = booking_service.create_booking(db, user, slots["two_wheeler"][1].id, at(9), at(10), "B", "two_wheeler")
        booking_service.complete_booking(db, user, done.id)
        booking_service.cancel_booking(db, user, gone.id)
        corrupt(db, location, two_wheeler=2)

        assert occupancy_service.reconcile(db, location.id)["two_wheeler"] == 0

    def test_overflow_clamped_to_capacity_and_alerted(self, db, user, make_location, at):
        location, slots = make_location(two_wheeler=2)
        for slot in slots["two_wheeler"]:
            booking_service.create_booking(db, user, slot.id, at(10), at(11), "Z", "two_wheeler")
        # Capacity lowered out of band below the two held slots
        db.refresh(location)
        location.occupancy_two_wheeler = 1
        location.capacity_two_wheeler = 1
        db.commit()

        corrected = occupancy_service.reconcile(db, location.id)

        assert corrected["two_wheeler"] == 1
        alert = db.query(Alert).filter(Alert.alert_type == "capacity_overflow").one()
        assert alert.location_id == location.id
        assert "2 held two_wheeler slots but capacity 1" in alert.description


class TestDetectDrift:
    def test_no_drift_no_alert(self, db, user, make_location, at):
        location, slots = make_location(bus=2)
        booking_service.create_booking(db, user, slots["bus"][0].id, at(10), at(11), "BUS-1", "bus")

        assert occupancy_service.detect_drift(db, location.id) == {}
        assert db.query(Alert).filter(Alert.alert_type == "occupancy_drift").count() == 0

    def test_drift_reported_not_fixed(self, db, make_location):
        location, _ = make_location(two_wheeler=2)
        corrupt(db, location, two_wheeler=2)

        drift = occupancy_service.detect_drift(db, location.id)

        assert drift == {"two_wheeler": (2, 0)}
        db.refresh(location)
        assert location.occupancy_two_wheeler == 2
        alert = db.query(Alert).filter(Alert.alert_type == "occupancy_drift").one()
        assert "two_wheeler stored=2 actual=0" in alert.description
