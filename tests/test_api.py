# tests/test_api.py
"""HTTP surface: identity headers, error payloads and the booking flow end to end."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from unittest.mock import patch

from smartpark.errors import Conflict

USER = {"X-User-Id": "user-1"}
OTHER = {"X-User-Id": "user-2", "X-User-Role": "user"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def setup_location(client, **slot_counts):
    location = client.post("/api/v1/locations", json={"name": "API Lot", "zone": "Central"}, headers=ADMIN).json()
    slot_ids = []
    for vehicle_class, count in slot_counts.items():
        for i in range(count):
            resp = client.post("/api/v1/slots", headers=ADMIN, json={
                "location_id": location["id"], "slot_number": f"API-{vehicle_class}-{i}",
                "vehicle_class": vehicle_class,
            })
            assert resp.status_code == 201, resp.text
            slot_ids.append(resp.json()["id"])
    return location, slot_ids


def booking_body(slot_id, at, start=10, end=11, vehicle_class="two_wheeler"):
    return {
        "slot_id": slot_id,
        "start_time": at(start).isoformat() + "Z",
        "end_time": at(end).isoformat() + "Z",
        "vehicle_number": "ka-01-ab-1234",
        "vehicle_class": vehicle_class,
    }


class TestIdentity:
    def test_missing_user_header_is_401(self, client):
        assert client.get("/api/v1/bookings").status_code == 401

    def test_unknown_role_is_401(self, client):
        resp = client.get("/api/v1/bookings", headers={"X-User-Id": "u", "X-User-Role": "root"})
        assert resp.status_code == 401

    def test_admin_routes_reject_users(self, client):
        resp = client.post("/api/v1/locations", json={"name": "X", "zone": "Y"}, headers=USER)
        assert resp.status_code == 403
        assert client.get("/api/v1/alerts", headers=USER).status_code == 403

    def test_health_needs_no_identity(self, client):
        body = client.get("/api/v1/health").json()
        assert body["database"] == "ok"


class TestBookingFlow:
    def test_create_complete_and_occupancy(self, client, at):
        location, (slot_id,) = setup_location(client, two_wheeler=1)

        resp = client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER)
        assert resp.status_code == 201, resp.text
        booking = resp.json()
        assert booking["status"] == "active"
        assert booking["vehicle_number"] == "KA-01-AB-1234"
        assert booking["duration_minutes"] == 60

        assert client.get(f"/api/v1/slots/{slot_id}", headers=USER).json()["status"] == "reserved"
        occupancy = client.get(f"/api/v1/occupancy/{location['id']}", headers=USER).json()
        assert occupancy["occupancy"]["two_wheeler"] == 1
        assert occupancy["is_full"]["two_wheeler"] is True

        resp = client.put(f"/api/v1/bookings/{booking['id']}/complete", headers=USER)
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

        resp = client.put(f"/api/v1/bookings/{booking['id']}/complete", headers=USER)
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_state_transition"

        occupancy = client.get(f"/api/v1/occupancy/{location['id']}", headers=USER).json()
        assert occupancy["occupancy"]["two_wheeler"] == 0

    def test_overlap_is_409_slot_unavailable(self, client, at):
        _, (slot_id, _) = setup_location(client, two_wheeler=2)
        client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER)

        resp = client.post("/api/v1/bookings", json=booking_body(slot_id, at, 10, 12), headers=OTHER)
        assert resp.status_code == 409
        body = resp.json()
        assert body["code"] == "slot_unavailable"
        assert body["retryable"] is False

    def test_error_codes(self, client, at):
        _, (slot_id,) = setup_location(client, bus=1)

        resp = client.post("/api/v1/bookings", json=booking_body(slot_id, at, 11, 10, "bus"), headers=USER)
        assert (resp.status_code, resp.json()["code"]) == (400, "invalid_time_range")

        resp = client.post("/api/v1/bookings", json=booking_body(slot_id, at, vehicle_class="four_wheeler"),
                           headers=USER)
        assert (resp.status_code, resp.json()["code"]) == (400, "class_mismatch")

        resp = client.post("/api/v1/bookings", json=booking_body(9999, at, vehicle_class="bus"), headers=USER)
        assert (resp.status_code, resp.json()["code"]) == (404, "not_found")

    def test_other_users_booking_is_forbidden(self, client, at):
        _, (slot_id,) = setup_location(client, two_wheeler=1)
        booking = client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER).json()

        resp = client.put(f"/api/v1/bookings/{booking['id']}/cancel", headers=OTHER)
        assert (resp.status_code, resp.json()["code"]) == (403, "forbidden")
        assert client.get(f"/api/v1/bookings/{booking['id']}", headers=OTHER).status_code == 403
        assert client.get("/api/v1/bookings", headers=OTHER).json() == []

        resp = client.put(f"/api/v1/bookings/{booking['id']}/cancel", json={"reason": "tow-away zone"},
                          headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["cancel_reason"] == "tow-away zone"
        assert resp.json()["closed_by"] == "admin-1"

    def test_retryable_conflict_has_retry_after(self, client, at):
        _, (slot_id,) = setup_location(client, two_wheeler=1)
        with patch("smartpark.routers.bookings.booking_service.create_booking",
                   side_effect=Conflict("Concurrent update on the same record, please retry")):
            resp = client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER)
        assert resp.status_code == 409
        assert resp.json()["retryable"] is True
        assert resp.headers["Retry-After"] == "1"


class TestCatalogAndAdmin:
    def test_slot_delete_rules_over_http(self, client, at):
        location, (slot_id,) = setup_location(client, four_wheeler=1)
        client.post("/api/v1/bookings", json=booking_body(slot_id, at, vehicle_class="four_wheeler"), headers=USER)

        resp = client.delete(f"/api/v1/slots/{slot_id}", headers=ADMIN)
        assert (resp.status_code, resp.json()["code"]) == (409, "resource_in_use")
        resp = client.delete(f"/api/v1/locations/{location['id']}", headers=ADMIN)
        assert (resp.status_code, resp.json()["code"]) == (409, "resource_in_use")

    def test_capacity_violation(self, client, at):
        location, (slot_id,) = setup_location(client, two_wheeler=1)
        client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER)

        resp = client.put(f"/api/v1/locations/{location['id']}", json={"capacity": {"two_wheeler": 0}},
                          headers=ADMIN)
        assert (resp.status_code, resp.json()["code"]) == (409, "capacity_violation")

    def test_drift_and_reconcile_endpoints(self, client, at):
        location, (slot_id,) = setup_location(client, two_wheeler=1)
        client.post("/api/v1/bookings", json=booking_body(slot_id, at), headers=USER)

        drift = client.get(f"/api/v1/occupancy/{location['id']}/drift", headers=ADMIN).json()
        assert drift["has_drift"] is False
        reconciled = client.post(f"/api/v1/occupancy/{location['id']}/reconcile", headers=ADMIN).json()
        assert reconciled["occupancy"]["two_wheeler"] == 1

    def test_alerts_and_stats(self, client, at):
        location, (slot_id,) = setup_location(client, bus=1)
        client.post("/api/v1/bookings", json=booking_body(slot_id, at, vehicle_class="bus"), headers=USER)

        alerts = client.get("/api/v1/alerts", params={"alert_type": "occupancy_full"}, headers=ADMIN).json()
        assert len(alerts) == 1
        resolved = client.put(f"/api/v1/alerts/{alerts[0]['id']}/resolve", headers=ADMIN).json()
        assert resolved["is_resolved"] in (1, True)

        summary = client.get("/api/v1/stats/summary", headers=ADMIN).json()
        assert summary["live_bookings"] == 1
        assert summary["bookings_today"] == 1
        assert summary["slots_by_status"]["reserved"] == 1
