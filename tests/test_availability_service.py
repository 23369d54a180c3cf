# tests/test_availability_service.py
"""Availability checker and the half-open overlap rule."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
from hypothesis import assume, given, settings as hypothesis_settings, strategies as st

from smartpark.actor import Actor
from smartpark.database import build_engine, create_tables, make_session_factory
from smartpark.errors import InvalidTimeRange, SlotUnavailable
from smartpark.models.booking import Booking
from smartpark.services import availability_service, booking_service, catalog_service
from smartpark.services.booking_repository import windows_overlap

BASE = datetime(2030, 1, 1, 8, 0)


def make_slot(is_active=True, status="available", location_active=True):
    slot = MagicMock()
    slot.id = 1
    slot.slot_number = "A-01"
    slot.is_active = is_active
    slot.status = status
    slot.location.is_active = location_active
    return slot


class TestUnavailabilityReason:
    def test_free_slot(self):
        with patch("smartpark.services.availability_service.booking_repository.list_by_slot_overlapping",
                   return_value=[]):
            assert availability_service.unavailability_reason(MagicMock(), make_slot(), BASE,
                                                              BASE + timedelta(hours=1)) is None

    def test_inactive_slot_short_circuits(self):
        with patch("smartpark.services.availability_service.booking_repository.list_by_slot_overlapping") as q:
            reason = availability_service.unavailability_reason(MagicMock(), make_slot(is_active=False),
                                                                BASE, BASE + timedelta(hours=1))
        assert "inactive" in reason
        q.assert_not_called()

    def test_inactive_location(self):
        reason = availability_service.unavailability_reason(MagicMock(), make_slot(location_active=False),
                                                            BASE, BASE + timedelta(hours=1))
        assert "location" in reason

    def test_maintenance(self):
        reason = availability_service.unavailability_reason(MagicMock(), make_slot(status="maintenance"),
                                                            BASE, BASE + timedelta(hours=1))
        assert "maintenance" in reason

    def test_reserved_status_alone_does_not_block(self):
        with patch("smartpark.services.availability_service.booking_repository.list_by_slot_overlapping",
                   return_value=[]):
            assert availability_service.unavailability_reason(MagicMock(), make_slot(status="reserved"),
                                                              BASE, BASE + timedelta(hours=1)) is None

    def test_overlap_reports_existing_window(self):
        existing = MagicMock(start_time=BASE, end_time=BASE + timedelta(hours=2))
        with patch("smartpark.services.availability_service.booking_repository.list_by_slot_overlapping",
                   return_value=[existing]):
            with pytest.raises(SlotUnavailable, match="already booked"):
                availability_service.ensure_available(MagicMock(), make_slot(), BASE, BASE + timedelta(hours=1))


class TestIsAvailable:
    def test_missing_slot_is_unavailable(self, db):
        assert availability_service.is_available(db, 404, BASE, BASE + timedelta(hours=1)) is False

    def test_boundaries(self, db, user, make_location):
        _, slots = make_location(two_wheeler=2)
        slot = slots["two_wheeler"][0]
        booking_service.create_booking(db, user, slot.id, BASE + timedelta(hours=2), BASE + timedelta(hours=3),
                                       "KA-1", "two_wheeler")

        assert availability_service.is_available(db, slot.id, BASE + timedelta(hours=1), BASE + timedelta(hours=2))
        assert availability_service.is_available(db, slot.id, BASE + timedelta(hours=3), BASE + timedelta(hours=4))
        assert not availability_service.is_available(db, slot.id, BASE + timedelta(hours=2, minutes=59),
                                                      BASE + timedelta(hours=5))
        # other slot is unaffected
        assert availability_service.is_available(db, slots["two_wheeler"][1].id,
                                                 BASE + timedelta(hours=2), BASE + timedelta(hours=3))

    def test_cancelled_booking_frees_window(self, db, user, make_location):
        _, slots = make_location(two_wheeler=1)
        slot = slots["two_wheeler"][0]
        booking = booking_service.create_booking(db, user, slot.id, BASE, BASE + timedelta(hours=1),
                                                 "KA-1", "two_wheeler")
        assert not availability_service.is_available(db, slot.id, BASE, BASE + timedelta(hours=1))

        booking_service.cancel_booking(db, user, booking.id)
        assert availability_service.is_available(db, slot.id, BASE, BASE + timedelta(hours=1))


# ── Properties ────────────────────────────────────────────────────────────────

minutes = st.integers(min_value=0, max_value=24 * 60)


def window(a, b):
    return BASE + timedelta(minutes=a), BASE + timedelta(minutes=b)


@given(minutes, minutes, minutes, minutes)
def test_overlap_is_symmetric_and_matches_interval_intersection(a, b, c, d):
    assume(a < b and c < d)
    s1, e1 = window(a, b)
    s2, e2 = window(c, d)
    expected = max(a, c) < min(b, d)
    assert windows_overlap(s1, e1, s2, e2) == expected
    assert windows_overlap(s1, e1, s2, e2) == windows_overlap(s2, e2, s1, e1)


@given(minutes.filter(lambda m: m > 0), st.integers(min_value=1, max_value=600))
def test_touching_windows_never_overlap(split, length):
    assert not windows_overlap(*window(split - 1, split), *window(split, split + length))


request_windows = st.lists(
    st.tuples(st.integers(min_value=0, max_value=20), st.integers(min_value=1, max_value=6)),
    min_size=1,
    max_size=12,
)


@hypothesis_settings(max_examples=40, deadline=None)
@given(request_windows)
def test_accepted_bookings_on_one_slot_never_overlap(requests):
    engine = build_engine("sqlite://")
    create_tables(engine)
    db = make_session_factory(engine)()
    try:
        actor = Actor(user_id="prop-user")
        location = catalog_service.create_location(db, name="Prop Lot", zone="Z")
        slot_id = catalog_service.create_slot(db, location.id, "TARGET", "four_wheeler").id

        accepted = []
        for hour, length in requests:
            start = BASE + timedelta(hours=hour)
            end = start + timedelta(hours=length)
            try:
                booking_service.create_booking(db, actor, slot_id, start, end, "PROP-1", "four_wheeler")
            except SlotUnavailable:
                assert any(windows_overlap(s, e, start, end) for s, e in accepted)
                continue
            except InvalidTimeRange:
                continue
            assert not any(windows_overlap(s, e, start, end) for s, e in accepted)
            accepted.append((start, end))

        live = db.query(Booking).filter(Booking.slot_id == slot_id).all()
        assert len(live) == len(accepted)
        for i, first in enumerate(live):
            for second in live[i + 1:]:
                assert not windows_overlap(first.start_time, first.end_time, second.start_time, second.end_time)
        db.refresh(location)
        assert location.occupancy_four_wheeler == (1 if accepted else 0)
    finally:
        db.close()
        engine.dispose()
