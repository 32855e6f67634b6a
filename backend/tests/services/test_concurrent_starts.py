"""Concurrent session starts — the partial unique index decides the race.

Invariants:
    - N concurrent starts for one user: exactly one ACTIVE session, exactly one
      charger taken, every loser gets SessionConflict
    - Concurrent starts from different users never push availability below 0

Design Decisions:
    - File-backed SQLite with one connection per task: each start really runs
      in its own transaction (in-memory SQLite would share one connection)
"""

import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from chargewatch.core.errors import NoChargerAvailable, SessionConflict
from chargewatch.db.base import Base
from chargewatch.db.session import create_session_factory
from chargewatch.models.charging_session import ChargingSession
from chargewatch.models.station import Station
from chargewatch.services.charging_sessions import ChargingSessionService


@pytest.fixture
async def file_session_factory(tmp_path):
    factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    engine = factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield factory
    await engine.dispose()


async def seed_station(factory, charger_count: int) -> uuid.UUID:
    async with factory() as db:
        station = Station(
            name="Race Track", city="Lisbon", lat=38.7, lng=-9.1,
            charger_type="DC", charger_count=charger_count,
            available_chargers=charger_count,
        )
        db.add(station)
        await db.commit()
        return station.id


async def attempt_start(factory, settings, user_id, station_id):
    async with factory() as db:
        service = ChargingSessionService(db, settings)
        try:
            await service.start_session(user_id, station_id)
            return "started"
        except SessionConflict:
            return "conflict"
        except NoChargerAvailable:
            return "no_charger"


async def read_state(factory, station_id):
    async with factory() as db:
        station = await db.get(Station, station_id)
        active = await db.scalar(
            select(func.count()).select_from(ChargingSession).where(
                ChargingSession.station_id == station_id,
                ChargingSession.state == "ACTIVE",
            )
        )
        return station.available_chargers, active


async def test_same_user_concurrent_starts_yield_one_session(
    file_session_factory, settings,
):
    station_id = await seed_station(file_session_factory, charger_count=5)

    results = await asyncio.gather(*[
        attempt_start(file_session_factory, settings, "racer", station_id)
        for _ in range(5)
    ])

    assert results.count("started") == 1
    assert results.count("conflict") == 4
    available, active = await read_state(file_session_factory, station_id)
    assert active == 1
    assert available == 4


async def test_many_users_never_overbook(file_session_factory, settings):
    station_id = await seed_station(file_session_factory, charger_count=2)

    results = await asyncio.gather(*[
        attempt_start(file_session_factory, settings, f"user-{i}", station_id)
        for i in range(5)
    ])

    assert results.count("started") == 2
    assert results.count("no_charger") == 3
    available, active = await read_state(file_session_factory, station_id)
    assert available == 0
    assert active == 2
