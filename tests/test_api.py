"""
HTTP tests for the JSON API.

These tests verify:
- Authentication and role checks on every router
- Domain errors come back with their status code and machine-readable code
- A partial admission reports the orphaned tenant id
"""

import time

from itsdangerous import TimestampSigner, URLSafeTimedSerializer

from dormstay.config import settings
from dormstay.errors import StoreError
from dormstay.main import app
from dormstay.models import Occupancy
from dormstay.security import SESSION_MAX_AGE, serializer
from dormstay.store import SqlRecordStore, get_store


def _room(client, number="101", room_type="Standard Single", **extra):
    resp = client.post("/api/v1/rooms", json={"room_number": number, "room_type": room_type, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _admit(client, room_id, first="Somchai", last="Jaidee"):
    return client.post(f"/api/v1/rooms/{room_id}/tenants", json={"first_name": first, "last_name": last})


class TestAuth:
    def test_healthz_is_open(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_requires_login(self, client):
        assert client.get("/api/v1/rooms").status_code == 401

    def test_bad_password(self, client, login):
        login("staff")
        client.post("/api/v1/auth/logout")
        resp = client.post("/api/v1/auth/login", json={"email": "staff@dormstay.test", "password": "wrong"})
        assert resp.status_code == 400

    def test_me(self, login):
        client = login("admin")
        assert client.get("/api/v1/auth/me").json()["role"] == "admin"

    def test_viewer_cannot_write(self, login):
        client = login("viewer")
        assert client.get("/api/v1/rooms").status_code == 200
        resp = client.post("/api/v1/rooms", json={"room_number": "101", "room_type": "Standard Single"})
        assert resp.status_code == 403

    def test_logout(self, login):
        client = login("staff")
        client.post("/api/v1/auth/logout")
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_forged_cookie(self, login):
        client = login("staff")
        user_id = client.get("/api/v1/auth/me").json()["id"]
        forged = URLSafeTimedSerializer("not-the-secret", salt="dormstay-session").dumps({"uid": user_id})
        client.cookies.clear()
        client.cookies.set(settings.SESSION_COOKIE_NAME, forged)
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_expired_session(self, login, monkeypatch):
        """A signed token older than the session lifetime no longer logs anyone in."""
        client = login("staff")
        user_id = client.get("/api/v1/auth/me").json()["id"]

        issued = int(time.time()) - SESSION_MAX_AGE - 60
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued)
        stale = serializer.dumps({"uid": user_id})
        monkeypatch.undo()

        client.cookies.clear()
        client.cookies.set(settings.SESSION_COOKIE_NAME, stale)
        assert client.get("/api/v1/auth/me").status_code == 401


class TestRoomsApi:
    def test_create_and_list(self, login):
        client = login()
        room = _room(client, "A101", "Standard Double", floor=9)
        assert room["room_number"] == "101"
        assert room["capacity"] == 2
        assert room["floor"] == 4
        assert room["status"] == "vacant"

        (row,) = client.get("/api/v1/rooms").json()
        assert row["current_occupants"] == 0
        assert row["is_full"] is False
        assert row["allowed_statuses"] == ["occupied", "maintenance"]

    def test_duplicate_number(self, login):
        client = login()
        _room(client, "101")
        resp = client.post("/api/v1/rooms", json={"room_number": "101", "room_type": "Standard Single"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "duplicate_room_number"

    def test_status_transitions(self, login):
        client = login()
        room = _room(client)

        resp = client.post(f"/api/v1/rooms/{room['id']}/status", json={"status": "occupied"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "occupied"

        resp = client.post(f"/api/v1/rooms/{room['id']}/status", json={"status": "vacant"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_transition"

    def test_missing_room(self, login):
        client = login()
        resp = client.get("/api/v1/rooms/9999")
        assert resp.status_code == 404
        assert resp.json()["code"] == "room_lookup_failed"


class TestAdmissionApi:
    def test_admit_then_full(self, login):
        client = login()
        room = _room(client)

        resp = _admit(client, room["id"])
        assert resp.status_code == 201
        body = resp.json()
        assert body["tenant"]["room_number"] == "101"
        assert body["occupancy"]["is_current"] is True

        resp = _admit(client, room["id"], "Second", "Tenant")
        assert resp.status_code == 409
        assert resp.json()["code"] == "room_full"

        occupancy = client.get(f"/api/v1/rooms/{room['id']}/occupancy").json()
        assert occupancy == {"room_id": room["id"], "current_occupants": 1, "capacity": 1}

        detail = client.get(f"/api/v1/rooms/{room['id']}").json()
        assert [o["first_name"] for o in detail["occupants"]] == ["Somchai"]

    def test_maintenance_room(self, login):
        client = login()
        room = _room(client)
        client.post(f"/api/v1/rooms/{room['id']}/status", json={"status": "maintenance"})
        resp = _admit(client, room["id"])
        assert resp.status_code == 409
        assert resp.json()["code"] == "room_unavailable"

    def test_blank_name_is_rejected(self, login):
        client = login()
        room = _room(client)
        resp = client.post(f"/api/v1/rooms/{room['id']}/tenants", json={"first_name": "", "last_name": "X"})
        assert resp.status_code == 422

    def test_partial_admission_reports_tenant(self, login, session_factory):
        client = login()
        room = _room(client)

        class NoOccupancyStore(SqlRecordStore):
            def insert(self, model, values):
                if model is Occupancy:
                    raise StoreError("occupancy insert failed")
                return super().insert(model, values)

        def _store():
            session = session_factory()
            try:
                yield NoOccupancyStore(session)
            finally:
                session.close()

        app.dependency_overrides[get_store] = _store
        try:
            resp = _admit(client, room["id"])
        finally:
            del app.dependency_overrides[get_store]

        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "occupancy_create_failed"
        assert isinstance(body["tenant_id"], int)

        tenant = client.get(f"/api/v1/tenants/{body['tenant_id']}").json()
        assert tenant["current_room"] is None


class TestTenantsApi:
    def test_household_lifecycle(self, login):
        client = login()
        room = _room(client, "201", "Standard Double")
        primary = _admit(client, room["id"]).json()["tenant"]

        resp = client.post(f"/api/v1/tenants/{primary['id']}/dependents", json={"first_name": "Malee", "last_name": "Jaidee"})
        assert resp.status_code == 201

        detail = client.get(f"/api/v1/tenants/{primary['id']}").json()
        assert detail["current_room"]["room_number"] == "201"
        assert [d["first_name"] for d in detail["dependents"]] == ["Malee"]

        listing = client.get("/api/v1/tenants", params={"search": "201"}).json()
        assert [t["id"] for t in listing] == [primary["id"]]
        assert listing[0]["room_full"] is True

        assert client.delete(f"/api/v1/tenants/{primary['id']}/dependents").json() == {"removed": 1}

        resp = client.post(f"/api/v1/tenants/{primary['id']}/move-out")
        assert resp.status_code == 200
        assert resp.json()["is_current"] is False

    def test_contract(self, login):
        client = login()
        room = _room(client)
        tenant = _admit(client, room["id"]).json()["tenant"]

        resp = client.put(f"/api/v1/tenants/{tenant['id']}/contract", json={"contract_ref": "contracts/101.pdf"})
        assert resp.json() == {"tenant_id": tenant["id"], "contract_ref": "contracts/101.pdf"}
        assert client.get(f"/api/v1/tenants/{tenant['id']}").json()["has_contract"] is True

    def test_hard_delete_needs_admin(self, login):
        client = login("staff")
        room = _room(client)
        tenant = _admit(client, room["id"]).json()["tenant"]

        assert client.delete(f"/api/v1/tenants/{tenant['id']}", params={"hard": "true"}).status_code == 403
        assert client.delete(f"/api/v1/tenants/{tenant['id']}").status_code == 204
        assert client.get("/api/v1/tenants").json() == []
