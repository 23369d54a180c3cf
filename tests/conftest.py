# tests/conftest.py
"""Shared fixtures: a fresh in-memory SQLite store per test, catalog builders and actors."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, time, timedelta
from fastapi.testclient import TestClient

from smartpark.actor import Actor
from smartpark.database import build_engine, create_tables, make_session_factory
from smartpark.main import create_app
from smartpark.services import catalog_service
from smartpark.utils.timeutils import utcnow


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def user():
    return Actor(user_id="user-1")


@pytest.fixture
def other_user():
    return Actor(user_id="user-2")


@pytest.fixture
def admin():
    return Actor(user_id="admin-1", role="admin")


@pytest.fixture
def at():
    """at(10, 30) → tomorrow 10:30 UTC (naive)."""
    day = datetime.combine(utcnow().date() + timedelta(days=1), time.min)

    def _at(hour, minute=0):
        return day + timedelta(hours=hour, minutes=minute)
    return _at


@pytest.fixture
def make_location(db):
    """make_location(two_wheeler=2, bus=1) → (location, {class: [slots]})."""
    counter = {"n": 0}

    def _make(name=None, **slot_counts):
        counter["n"] += 1
        location = catalog_service.create_location(db, name=name or f"Lot {counter['n']}", zone="Central")
        slots = {}
        for vehicle_class, count in slot_counts.items():
            slots[vehicle_class] = [
                catalog_service.create_slot(db, location.id, f"L{location.id}-{vehicle_class}-{i}", vehicle_class)
                for i in range(count)
            ]
        db.refresh(location)
        return location, slots
    return _make


@pytest.fixture
def client(engine):
    return TestClient(create_app(engine=engine))
