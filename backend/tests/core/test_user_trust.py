"""User reputation — levels, deltas, cooldowns and consensus checks."""

from datetime import datetime, timedelta, timezone

from chargewatch.core.domain_types import UserTrustLevel, VoteCategory
from chargewatch.core.user_trust import (
    CONSENSUS_WINDOW, apply_delta, consensus_vote, cooldown_elapsed,
    count_contradictions, should_penalize, trust_level_for_score,
    vote_matches_consensus,
)
from chargewatch.core.verification import VoteRecord

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def v(voter, category, minutes_ago=1):
    return VoteRecord(voter, category, NOW - timedelta(minutes=minutes_ago))


def test_level_thresholds():
    assert trust_level_for_score(0) == UserTrustLevel.NEW
    assert trust_level_for_score(4) == UserTrustLevel.NEW
    assert trust_level_for_score(5) == UserTrustLevel.NORMAL
    assert trust_level_for_score(10) == UserTrustLevel.TRUSTED


def test_score_never_negative():
    assert apply_delta(0, -1) == (0, UserTrustLevel.NEW)
    assert apply_delta(9, 2) == (11, UserTrustLevel.TRUSTED)


def test_cooldown():
    assert cooldown_elapsed(None, NOW, CONSENSUS_WINDOW) is True
    assert cooldown_elapsed(NOW - timedelta(minutes=10), NOW, CONSENSUS_WINDOW) is False
    assert cooldown_elapsed(NOW - timedelta(minutes=30), NOW, CONSENSUS_WINDOW) is True


def test_consensus_needs_three_votes():
    assert consensus_vote([v("a", "WORKING"), v("b", "WORKING")]) is None
    votes = [v("a", "WORKING"), v("b", "WORKING"), v("c", "WORKING")]
    assert consensus_vote(votes) == VoteCategory.WORKING


def test_vote_matches_recent_consensus_only():
    votes = [v("a", "BUSY"), v("b", "BUSY"), v("c", "BUSY", minutes_ago=45)]
    assert vote_matches_consensus(votes, "BUSY", NOW) is False
    votes.append(v("d", "BUSY"))
    assert vote_matches_consensus(votes, "BUSY", NOW) is True
    assert vote_matches_consensus(votes, "WORKING", NOW) is False


def test_contradictions_counted_and_penalized_at_three():
    following = [v("x", "WORKING"), v("y", "WORKING"), v("z", "WORKING")]
    own = v("me", "NOT_WORKING")
    pairs = [(own, following + [own])] * 3
    count = count_contradictions(pairs)
    assert count == 3
    assert should_penalize(count) is True
    assert should_penalize(2) is False


def test_no_consensus_no_contradiction():
    own = v("me", "NOT_WORKING")
    assert count_contradictions([(own, [own, v("x", "WORKING")])]) == 0
