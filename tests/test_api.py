# tests/test_api.py
"""HTTP-level tests: role checks, rejection → status mapping, and the reset flow."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from fastapi.testclient import TestClient
from app.database import get_db
from app.main import app
from app.services.credential_store import EphemeralCredentialStore
from app.services.reservation_service import ReservationCoordinator

ADMIN = {"X-User-Role": "Admin"}
MANAGER = {"X-User-Role": "Manager"}
OPERATOR = {"X-User-Role": "Operator"}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.coordinator = ReservationCoordinator()
    app.state.credentials = EphemeralCredentialStore()
    yield TestClient(app)
    app.dependency_overrides.clear()


def _vehicle(client, number="BUS-100", capacity=2):
    r = client.post("/api/v1/vehicles", headers=ADMIN,
                    json={"vehicle_number": number, "vehicle_type": "Bus", "capacity": capacity})
    assert r.status_code == 200
    return r.json()["id"]


def _trip(client, vehicle_id, departure="2030-05-10T09:00:00", arrival="2030-05-10T11:00:00"):
    return client.post("/api/v1/trips", headers=MANAGER, json={
        "origin": "Riyadh", "destination": "Jeddah", "vehicle_id": vehicle_id,
        "departure_time": departure, "arrival_time": arrival,
    })


class TestRoleChecks:
    def test_missing_role_is_unauthorized(self, client):
        assert client.get("/api/v1/trips").status_code == 401

    def test_operator_can_view(self, client):
        assert client.get("/api/v1/trips", headers=OPERATOR).status_code == 200

    def test_operator_cannot_schedule(self, client):
        vehicle_id = _vehicle(client)
        r = client.post("/api/v1/trips", headers=OPERATOR, json={
            "origin": "A", "destination": "B", "vehicle_id": vehicle_id,
            "departure_time": "2030-05-10T09:00:00", "arrival_time": "2030-05-10T10:00:00",
        })
        assert r.status_code == 403

    def test_operator_cannot_register_vehicle(self, client):
        r = client.post("/api/v1/vehicles", headers=OPERATOR,
                        json={"vehicle_number": "X", "vehicle_type": "Van", "capacity": 4})
        assert r.status_code == 403

    def test_unknown_role_is_forbidden(self, client):
        assert client.get("/api/v1/bookings", headers={"X-User-Role": "Driver"}).status_code == 403


class TestTripsAndBookings:
    def test_schedule_conflict_is_409(self, client):
        vehicle_id = _vehicle(client)
        assert _trip(client, vehicle_id).status_code == 200
        r = _trip(client, vehicle_id, "2030-05-10T10:30:00", "2030-05-10T12:00:00")
        assert r.status_code == 409
        assert r.json()["detail"]["reason"] == "VehicleUnavailable"
        assert _trip(client, vehicle_id, "2030-05-10T11:00:00", "2030-05-10T12:00:00").status_code == 200

    def test_same_city_is_400(self, client):
        vehicle_id = _vehicle(client)
        r = client.post("/api/v1/trips", headers=ADMIN, json={
            "origin": "Riyadh", "destination": "Riyadh", "vehicle_id": vehicle_id,
            "departure_time": "2030-05-10T09:00:00", "arrival_time": "2030-05-10T10:00:00",
        })
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "OriginEqualsDestination"

    def test_full_trip_is_409_and_capacity_reported(self, client):
        trip_id = _trip(client, _vehicle(client, capacity=1)).json()["id"]
        first = client.post("/api/v1/bookings", headers=ADMIN,
                            json={"trip_id": trip_id, "passenger": "P1"})
        assert first.status_code == 200

        second = client.post("/api/v1/bookings", headers=ADMIN,
                             json={"trip_id": trip_id, "passenger": "P2"})
        assert second.status_code == 409
        assert second.json()["detail"]["reason"] == "NoSeatsAvailable"

        summary = client.get(f"/api/v1/trips/{trip_id}/capacity", headers=OPERATOR).json()
        assert summary == {"trip_id": trip_id, "capacity": 1, "booked": 1,
                           "available": 0, "is_available": False}

        r = client.put(f"/api/v1/bookings/{first.json()['id']}/status", headers=ADMIN,
                       json={"status": "Cancelled"})
        assert r.status_code == 200
        assert client.post("/api/v1/bookings", headers=ADMIN,
                           json={"trip_id": trip_id, "passenger": "P2"}).status_code == 200

    def test_delete_trip_with_bookings_is_400(self, client):
        trip_id = _trip(client, _vehicle(client)).json()["id"]
        client.post("/api/v1/bookings", headers=ADMIN, json={"trip_id": trip_id, "passenger": "P1"})
        r = client.delete(f"/api/v1/trips/{trip_id}", headers=ADMIN)
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "HasActiveBookings"

    def test_unknown_trip_is_404(self, client):
        assert client.get("/api/v1/trips/999/capacity", headers=OPERATOR).status_code == 404
        r = client.post("/api/v1/bookings", headers=ADMIN, json={"trip_id": 999, "passenger": "P1"})
        assert r.status_code == 404

    def test_available_vehicles(self, client):
        busy = _vehicle(client, "BUS-1")
        free = _vehicle(client, "BUS-2")
        _trip(client, busy)
        r = client.get("/api/v1/vehicles/available", headers=OPERATOR,
                       params={"departure": "2030-05-10T10:00:00", "arrival": "2030-05-10T12:00:00"})
        assert r.status_code == 200
        assert [v["id"] for v in r.json()] == [free]

    def test_duplicate_vehicle_is_400(self, client):
        _vehicle(client, "BUS-7")
        r = client.post("/api/v1/vehicles", headers=ADMIN,
                        json={"vehicle_number": "BUS-7", "vehicle_type": "Bus", "capacity": 9})
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "DuplicateVehicle"


class TestInputNormalisation:
    def test_utc_suffix_and_offsets(self, client):
        vehicle_id = _vehicle(client)
        assert _trip(client, vehicle_id, "2030-05-10T09:00:00Z", "2030-05-10T11:00:00Z").status_code == 200
        # 12:00+03:00 is 09:00 UTC
        r = _trip(client, vehicle_id, "2030-05-10T12:00:00+03:00", "2030-05-10T13:00:00+03:00")
        assert r.status_code == 409
        assert r.json()["detail"]["reason"] == "VehicleUnavailable"

    def test_available_vehicles_with_offsets(self, client):
        vehicle_id = _vehicle(client)
        _trip(client, vehicle_id)
        r = client.get("/api/v1/vehicles/available", headers=OPERATOR,
                       params={"departure": "2030-05-10T14:00:00+03:00", "arrival": "2030-05-10T12:00:00Z"})
        assert r.status_code == 200
        assert [v["id"] for v in r.json()] == [vehicle_id]

    def test_compact_status_spelling(self, client):
        r = client.post("/api/v1/vehicles", headers=ADMIN, json={
            "vehicle_number": "BUS-9", "vehicle_type": "Bus", "capacity": 9, "status": "UnderRepair"})
        assert r.status_code == 200
        vehicles = client.get("/api/v1/vehicles", headers=OPERATOR).json()
        assert vehicles[0]["status"] == "Under repair"
        assert _trip(client, r.json()["id"]).status_code == 409

    def test_unknown_status_is_422(self, client):
        r = client.post("/api/v1/vehicles", headers=ADMIN, json={
            "vehicle_number": "BUS-9", "vehicle_type": "Bus", "capacity": 9, "status": "Broken"})
        assert r.status_code == 422
        trip_id = _trip(client, _vehicle(client)).json()["id"]
        r = client.post("/api/v1/bookings", headers=ADMIN,
                        json={"trip_id": trip_id, "passenger": "P1", "status": "Maybe"})
        assert r.status_code == 422

    def test_null_capacity_is_400(self, client):
        vehicle_id = _vehicle(client)
        r = client.put(f"/api/v1/vehicles/{vehicle_id}", headers=ADMIN, json={"capacity": None})
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "InvalidInput"

    def test_accepted_body(self, client):
        r = client.post("/api/v1/vehicles", headers=ADMIN,
                        json={"vehicle_number": "BUS-3", "vehicle_type": "Van", "capacity": 4})
        assert set(r.json()) == {"accepted", "id", "message"}


class TestPasswordReset:
    def test_issue_validate_consume(self, client):
        issued = client.post("/api/v1/password-reset/issue", headers=ADMIN, json={"subject_id": 42}).json()
        assert issued["expires_in_seconds"] == 15 * 60
        token = issued["credential"]

        check = client.post("/api/v1/password-reset/validate", headers=ADMIN, json={"credential": token}).json()
        assert check == {"valid": True, "subject_id": 42}

        assert client.post("/api/v1/password-reset/consume", headers=ADMIN, json={"credential": token}).json()["valid"]
        again = client.post("/api/v1/password-reset/consume", headers=ADMIN, json={"credential": token}).json()
        assert again == {"valid": False, "subject_id": None}

    def test_issue_code(self, client):
        code = client.post("/api/v1/password-reset/issue",
                           headers=ADMIN, json={"subject_id": 3, "kind": "code"}).json()["credential"]
        assert code.isdigit()

    def test_bad_kind(self, client):
        r = client.post("/api/v1/password-reset/issue", headers=ADMIN, json={"subject_id": 3, "kind": "sms"})
        assert r.status_code == 400

    def test_invalidate(self, client):
        token = client.post("/api/v1/password-reset/issue", headers=ADMIN, json={"subject_id": 5}).json()["credential"]
        client.post("/api/v1/password-reset/invalidate", headers=ADMIN, json={"credential": token})
        assert client.post("/api/v1/password-reset/validate",
                           headers=ADMIN, json={"credential": token}).json()["valid"] is False

    def test_reset_endpoints_require_admin(self, client):
        assert client.post("/api/v1/password-reset/issue", json={"subject_id": 42}).status_code == 401
        for role in (MANAGER, OPERATOR):
            assert client.post("/api/v1/password-reset/issue", headers=role,
                               json={"subject_id": 42}).status_code == 403
        token = client.post("/api/v1/password-reset/issue", headers=ADMIN,
                            json={"subject_id": 42}).json()["credential"]
        for path in ("validate", "consume", "invalidate"):
            r = client.post(f"/api/v1/password-reset/{path}", headers=OPERATOR, json={"credential": token})
            assert r.status_code == 403
        assert client.post("/api/v1/password-reset/validate", headers=ADMIN,
                           json={"credential": token}).json()["valid"] is True


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_outstanding_credentials(self, client):
        app.state.credentials.issue(1)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            r = await ac.get("/api/v1/health")
        assert r.status_code == 200
        body = r.json()
        assert body["database"] == "ok"
        assert body["credentials_outstanding"] == 1
