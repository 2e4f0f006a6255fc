import os

# Test-Umgebung setzen
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app import app
from database import SessionLocal
from dependencies import get_clock
from factories import STATION_ID, FakeClock
from models import Base
from repository import Repository
from tenant import TenantScope


# ---------------------------------------------------------
# DB Setup Fixture
# ---------------------------------------------------------
@pytest.fixture(autouse=True)
def setup_db():
    db = SessionLocal()
    Base.metadata.drop_all(bind=db.bind)
    Base.metadata.create_all(bind=db.bind)
    yield
    db.close()


@pytest.fixture(autouse=True)
def mock_side_effects(monkeypatch):
    # Broadcast Event Mock
    async def _noop(*args, **kwargs):
        return None
    monkeypatch.setattr("routes.websocket.broadcast_table_event", _noop)
    yield


@pytest.fixture
def clock():
    clock = FakeClock()
    app.dependency_overrides[get_clock] = lambda: clock
    yield clock
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def client(clock):
    return TestClient(app, headers={"X-Station-Id": str(STATION_ID)})


@pytest.fixture
def db():
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def repo(db):
    return Repository(db, TenantScope(STATION_ID))
