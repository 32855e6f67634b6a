"""Verification routes — votes, summaries, consensus status moves, trust score.

Invariants:
    - A vote's own response reflects that vote
    - One voter counts once in the summary, however often they vote
    - Three agreeing votes move the manual status; a TRUSTED voter moves it alone
    - The trust-score endpoint is hidden unless trust_score_enabled
"""

from datetime import timedelta

from sqlalchemy import select

from chargewatch.config import Settings, get_settings
from chargewatch.main import app
from chargewatch.models.user import User


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


async def vote(client, station_id, user_id, category):
    return await client.post(
        f"/api/v1/stations/{station_id}/verify",
        json={"vote": category}, headers=as_user(user_id),
    )


async def test_vote_returns_refreshed_summary(client, make_station):
    station = await make_station()
    res = await vote(client, station["id"], "A", "WORKING")
    assert res.status_code == 201
    body = res.json()
    assert body["verification"]["vote"] == "WORKING"
    assert body["verification"]["voter_id"] == "A"
    assert body["summary"]["total_votes"] == 1
    assert body["summary"]["leading_vote"] == "WORKING"
    assert body["summary"]["is_verified"] is False


async def test_vote_summary_matches_summary_endpoint(client, make_station):
    station = await make_station()
    posted = (await vote(client, station["id"], "A", "WORKING")).json()["summary"]
    assert posted["score"] is not None
    assert posted["label"]

    fetched = (await client.get(
        f"/api/v1/stations/{station['id']}/verification-summary",
    )).json()
    assert posted["score"] == fetched["score"]
    assert posted["label"] == fetched["label"]


async def test_two_voters_verify_and_badge_appears(client, make_station):
    station = await make_station()
    await vote(client, station["id"], "A", "WORKING")
    await vote(client, station["id"], "B", "WORKING")

    res = await client.get(f"/api/v1/stations/{station['id']}/verification-summary")
    assert res.status_code == 200
    summary = res.json()
    assert summary["is_verified"] is True
    assert summary["working"] == 2
    assert summary["last_verified_at"] is not None
    assert 0 <= summary["score"] <= 100
    assert summary["label"]

    view = (await client.get(f"/api/v1/stations/{station['id']}")).json()
    assert view["badge"] == "WORKING"


async def test_repeat_votes_count_once(client, make_station):
    station = await make_station()
    for _ in range(5):
        await vote(client, station["id"], "A", "WORKING")
    res = await vote(client, station["id"], "A", "BUSY")
    summary = res.json()["summary"]
    assert summary["total_votes"] == 1
    assert summary["leading_vote"] == "BUSY"
    assert summary["is_strong_verified"] is False


async def test_old_votes_drop_out_of_the_window(client, make_station, frozen_now):
    station = await make_station()
    t0 = frozen_now.current()
    await vote(client, station["id"], "A", "WORKING")
    await vote(client, station["id"], "B", "WORKING")

    frozen_now(t0 + timedelta(hours=25))
    summary = (await client.get(
        f"/api/v1/stations/{station['id']}/verification-summary",
    )).json()
    assert summary["total_votes"] == 0
    assert summary["is_verified"] is False
    assert summary["last_verified_at"] is not None


async def test_three_not_working_votes_take_station_offline(client, make_station):
    station = await make_station()
    for user in ("A", "B", "C"):
        await vote(client, station["id"], user, "NOT_WORKING")

    view = (await client.get(f"/api/v1/stations/{station['id']}")).json()
    assert view["status"] == "OFFLINE"
    assert view["display_status"] == "NOT_WORKING"


async def test_trusted_voter_moves_status_alone(client, make_station, test_db):
    test_db.add(User(id="veteran", trust_score=12, trust_level="TRUSTED"))
    await test_db.commit()
    station = await make_station()

    await vote(client, station["id"], "veteran", "NOT_WORKING")
    view = (await client.get(f"/api/v1/stations/{station['id']}")).json()
    assert view["status"] == "OFFLINE"


async def test_matching_consensus_rewards_voter(client, make_station, test_db):
    station = await make_station()
    for user in ("A", "B", "C"):
        await vote(client, station["id"], user, "WORKING")

    result = await test_db.execute(select(User).where(User.id == "C"))
    user = result.scalar_one()
    assert user.trust_score == 1

    res = await client.get("/api/v1/users/C/trust-level")
    assert res.json() == {"user_id": "C", "trust_level": "NEW"}


async def test_unknown_user_trust_level_is_new(client):
    res = await client.get("/api/v1/users/nobody/trust-level")
    assert res.status_code == 200
    assert res.json()["trust_level"] == "NEW"


async def test_invalid_vote_rejected(client, make_station):
    station = await make_station()
    res = await vote(client, station["id"], "A", "MAYBE")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_vote_requires_identity(client, make_station):
    station = await make_station()
    res = await client.post(
        f"/api/v1/stations/{station['id']}/verify", json={"vote": "WORKING"},
    )
    assert res.status_code == 401


async def test_history_newest_first(client, make_station, frozen_now):
    station = await make_station()
    t0 = frozen_now.current()
    await vote(client, station["id"], "A", "WORKING")
    frozen_now(t0 + timedelta(minutes=5))
    await vote(client, station["id"], "B", "BUSY")

    res = await client.get(
        f"/api/v1/stations/{station['id']}/verification-history",
        params={"limit": 1},
    )
    assert res.status_code == 200
    assert [v["voter_id"] for v in res.json()] == ["B"]


async def test_trust_score_hidden_by_default(client, make_station):
    station = await make_station()
    res = await client.get(f"/api/v1/stations/{station['id']}/trust-score")
    assert res.status_code == 404


async def test_trust_score_when_enabled(client, make_station):
    app.dependency_overrides[get_settings] = lambda: Settings(
        trust_score_enabled=True,
    )
    station = await make_station()
    await vote(client, station["id"], "A", "WORKING")

    res = await client.get(f"/api/v1/stations/{station['id']}/trust-score")
    assert res.status_code == 200
    body = res.json()
    assert body["components"]["verification_score"] == 10
    assert body["components"]["report_score"] == 30
    assert body["score"] == sum(body["components"].values())


async def test_cached_summary_invalidated_by_vote(client, make_station):
    app.dependency_overrides[get_settings] = lambda: Settings(
        summary_cache_ttl_seconds=60,
    )
    station = await make_station()
    url = f"/api/v1/stations/{station['id']}/verification-summary"

    assert (await client.get(url)).json()["total_votes"] == 0
    await vote(client, station["id"], "A", "WORKING")
    assert (await client.get(url)).json()["total_votes"] == 1
