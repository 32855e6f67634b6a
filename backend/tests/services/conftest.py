"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (the partial unique index is created with sqlite_where)
    - Concurrency tests build their own file-backed database: in-memory SQLite
      shares one connection, which would serialize the race away
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from chargewatch.config import get_settings
from chargewatch.db.base import Base
from chargewatch.infrastructure.database import get_db, DatabaseSessionManager
import chargewatch.infrastructure.database as db_module
import chargewatch.models  # noqa: F401
from chargewatch.main import app
from chargewatch.services import clock

OWNER = {"X-User-Id": "owner"}


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the service clock; returns a setter to move it."""
    state = {"now": datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)}
    monkeypatch.setattr(clock, "utcnow", lambda: state["now"])

    def move_to(value: datetime) -> datetime:
        state["now"] = value
        return value

    move_to.current = lambda: state["now"]
    return move_to


@pytest.fixture
def make_station(client):
    """Create a station through the API (owned by OWNER) and return its JSON."""
    async def _make(**overrides) -> dict:
        payload = {
            "name": "Downtown Hub",
            "city": "Lisbon",
            "lat": 38.72,
            "lng": -9.14,
            "charger_type": "DC",
            "power_kw": 50,
            "charger_count": 2,
        }
        payload.update(overrides)
        res = await client.post("/api/v1/stations", json=payload, headers=OWNER)
        assert res.status_code == 201, res.text
        return res.json()

    return _make
