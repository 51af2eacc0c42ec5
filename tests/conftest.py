import os
import tempfile

# Settings are read at import time; keep the app's own engine off the real
# database and turn the login rate limit off for the test run.
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'dormstay-test.db')}")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from dormstay.db import get_db, init_db, make_engine
from dormstay.main import app
from dormstay.models import RoomType, User, UserRole
from dormstay.security import hash_password
from dormstay.services import rooms
from dormstay.services.allocator import RoomLocks, TenantDraft
from dormstay.store import SqlRecordStore

PASSWORD = "secret-pass-1"


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'dormstay.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return SqlRecordStore(db)


@pytest.fixture
def locks():
    return RoomLocks()


@pytest.fixture
def make_room(store):
    def _make(number="101", room_type=RoomType.STANDARD_DOUBLE, **kwargs):
        return rooms.create_room(store, number, room_type, **kwargs)

    return _make


@pytest.fixture
def draft():
    def _draft(first="Somchai", last="Jaidee", **kwargs):
        return TenantDraft(first_name=first, last_name=last, **kwargs)

    return _draft


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client, db):
    """Create a user with ``role`` and log the shared client in as them."""

    def _login(role=UserRole.STAFF.value, email=None):
        email = email or f"{role}@dormstay.test"
        db.add(User(email=email, hashed_password=hash_password(PASSWORD), role=role))
        db.commit()
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        return client

    return _login
