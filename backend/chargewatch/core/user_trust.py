"""User Trust — reputation deltas for voters and reporters.

Invariants:
    - All functions PURE; the shell persists deltas and trust events
    - User trust score never drops below 0
    - A consensus needs `consensus_min_votes` votes for the same category

Design Decisions:
    - Reward/penalty cooldowns are decided here from the last event timestamp;
      the shell only looks the timestamp up
"""

from datetime import datetime, timedelta
from typing import Iterable

from chargewatch.core.domain_types import TrustPolicy, UserTrustLevel
from chargewatch.core.verification import (
    VoteRecord, as_utc, leading_category, tally, parse_vote,
)


NORMAL_THRESHOLD = 5
TRUSTED_THRESHOLD = 10

CONSENSUS_WINDOW = timedelta(minutes=30)
CONTRADICTION_LOOKBACK = timedelta(hours=24)
REPORT_CONSENSUS_WINDOW = timedelta(hours=24)
MIN_CONTRADICTIONS_FOR_PENALTY = 3

VERIFICATION_REWARD = 1
CONTRADICTION_PENALTY = -1
REPORT_REWARD = 2


def trust_level_for_score(score: int) -> UserTrustLevel:
    if score >= TRUSTED_THRESHOLD:
        return UserTrustLevel.TRUSTED
    if score >= NORMAL_THRESHOLD:
        return UserTrustLevel.NORMAL
    return UserTrustLevel.NEW


def apply_delta(score: int, delta: int) -> tuple[int, UserTrustLevel]:
    new_score = max(0, score + delta)
    return new_score, trust_level_for_score(new_score)


def cooldown_elapsed(
    last_event_at: datetime | None, now: datetime, cooldown: timedelta,
) -> bool:
    if last_event_at is None:
        return True
    return as_utc(now) - as_utc(last_event_at) >= cooldown


def consensus_vote(
    votes: Iterable[VoteRecord], policy: TrustPolicy = TrustPolicy(),
):
    """Leading category among raw votes, if it reaches the consensus minimum."""
    categories = [
        c for c in (parse_vote(v.vote) for v in votes) if c is not None
    ]
    counts = tally(categories)
    leading = leading_category(counts)
    if leading is None or counts[leading] < policy.consensus_min_votes:
        return None
    return leading


def vote_matches_consensus(
    station_votes: Iterable[VoteRecord],
    user_vote: str,
    now: datetime,
    policy: TrustPolicy = TrustPolicy(),
) -> bool:
    """True when the station's last-30-minute consensus agrees with user_vote."""
    cutoff = as_utc(now) - CONSENSUS_WINDOW
    recent = [
        v for v in station_votes
        if v.created_at is not None and as_utc(v.created_at) >= cutoff
    ]
    leading = consensus_vote(recent, policy)
    return leading is not None and leading.value == user_vote


def count_contradictions(
    user_votes: Iterable[tuple[VoteRecord, list[VoteRecord]]],
    policy: TrustPolicy = TrustPolicy(),
) -> int:
    """Count user votes overruled by the consensus that followed them.

    Each item pairs one of the user's votes with the station's votes cast in
    the 30 minutes after it (including the user's own vote).
    """
    contradictions = 0
    for user_vote, following in user_votes:
        leading = consensus_vote(following, policy)
        if leading is not None and leading.value != user_vote.vote:
            contradictions += 1
    return contradictions


def should_penalize(contradictions: int) -> bool:
    return contradictions >= MIN_CONTRADICTIONS_FOR_PENALTY
