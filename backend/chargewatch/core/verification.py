"""Verification Engine — aggregates community votes into a leading status and tiers.

Invariants:
    - summarize_votes is PURE: same votes + same `now` -> same summary
    - One voter counts once: only their latest vote is considered
    - Votes older than the recency window never count toward total_votes
    - Tie-break order is WORKING > BUSY > NOT_WORKING
    - Malformed votes are skipped; the engine never raises on vote data

Design Decisions:
    - `now` injected by the shell: deterministic tests, no clock inside core
    - last_verified_at ignores the window: "confirmed Xh ago" messaging still
      needs a timestamp when the live tally has gone stale. It still follows
      each voter's latest vote, so a retracted WORKING no longer counts
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

from chargewatch.core.domain_types import (
    StationStatus, TrustPolicy, UserTrustLevel, VoteCategory,
)


TIE_BREAK_ORDER: tuple[VoteCategory, ...] = (
    VoteCategory.WORKING, VoteCategory.BUSY, VoteCategory.NOT_WORKING,
)
WORKING_LEANING: frozenset[VoteCategory] = frozenset(
    {VoteCategory.WORKING, VoteCategory.BUSY},
)


@dataclass(frozen=True)
class VoteRecord:
    """A single verification vote as seen by the engine."""
    voter_id: str
    vote: str
    created_at: datetime | None


@dataclass(frozen=True)
class VerificationSummary:
    total_votes: int = 0
    leading_vote: VoteCategory | None = None
    is_verified: bool = False
    is_strong_verified: bool = False
    last_verified_at: datetime | None = None
    counts: dict[VoteCategory, int] = field(default_factory=dict)

    @property
    def working(self) -> int:
        return self.counts.get(VoteCategory.WORKING, 0)

    @property
    def not_working(self) -> int:
        return self.counts.get(VoteCategory.NOT_WORKING, 0)

    @property
    def busy(self) -> int:
        return self.counts.get(VoteCategory.BUSY, 0)


UNVERIFIED = VerificationSummary()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_vote(raw: str) -> VoteCategory | None:
    try:
        return VoteCategory(raw)
    except ValueError:
        return None


def latest_vote_per_voter(
    votes: Iterable[VoteRecord],
) -> dict[str, tuple[VoteCategory, datetime]]:
    """Dedupe votes by voter, keeping the most recent well-formed one."""
    latest: dict[str, tuple[VoteCategory, datetime]] = {}
    for record in votes:
        category = parse_vote(record.vote)
        if category is None or record.created_at is None or not record.voter_id:
            continue
        created_at = as_utc(record.created_at)
        current = latest.get(record.voter_id)
        if current is None or created_at > current[1]:
            latest[record.voter_id] = (category, created_at)
    return latest


def tally(categories: Iterable[VoteCategory]) -> dict[VoteCategory, int]:
    counts = {category: 0 for category in TIE_BREAK_ORDER}
    for category in categories:
        counts[category] += 1
    return counts


def leading_category(counts: dict[VoteCategory, int]) -> VoteCategory | None:
    """Highest count wins; ties resolved by TIE_BREAK_ORDER. None when empty."""
    best: VoteCategory | None = None
    for category in TIE_BREAK_ORDER:
        count = counts.get(category, 0)
        if count == 0:
            continue
        if best is None or count > counts[best]:
            best = category
    return best


def _last_working_leaning(
    latest: dict[str, tuple[VoteCategory, datetime]],
) -> datetime | None:
    return max(
        (created_at for category, created_at in latest.values()
         if category in WORKING_LEANING),
        default=None,
    )


def summarize_votes(
    votes: Iterable[VoteRecord],
    now: datetime,
    policy: TrustPolicy = TrustPolicy(),
) -> VerificationSummary:
    """Summarize a station's vote history into its live verification state."""
    votes = list(votes)
    if not votes:
        return UNVERIFIED

    latest = latest_vote_per_voter(votes)
    cutoff = as_utc(now) - timedelta(hours=policy.recency_window_hours)
    in_window = [
        category for category, created_at in latest.values()
        if created_at >= cutoff
    ]
    last_verified_at = _last_working_leaning(latest)
    if not in_window:
        return VerificationSummary(last_verified_at=last_verified_at)

    counts = tally(in_window)
    total = len(in_window)
    leading = leading_category(counts)
    return VerificationSummary(
        total_votes=total,
        leading_vote=leading,
        is_verified=leading is not None and total >= policy.verified_min_votes,
        is_strong_verified=(
            total >= policy.strong_verified_min_votes
            and leading == VoteCategory.WORKING
        ),
        last_verified_at=last_verified_at,
        counts=counts,
    )


def consensus_status_update(
    summary: VerificationSummary,
    vote: VoteCategory,
    voter_level: UserTrustLevel,
    current_status: StationStatus,
    policy: TrustPolicy = TrustPolicy(),
) -> StationStatus | None:
    """Decide whether a fresh vote moves the station's manual status.

    A TRUSTED voter's WORKING/NOT_WORKING takes effect immediately. Otherwise a
    category needs `consensus_min_votes` in-window votes AND a strict lead over
    every other category; ties leave the status alone. BUSY never changes it.
    Returns the new status, or None when nothing should change.
    """
    target: StationStatus | None = None
    if voter_level == UserTrustLevel.TRUSTED:
        if vote == VoteCategory.NOT_WORKING:
            target = StationStatus.OFFLINE
        elif vote == VoteCategory.WORKING:
            target = StationStatus.OPERATIONAL
    else:
        working, not_working, busy = (
            summary.working, summary.not_working, summary.busy,
        )
        if (
            not_working >= policy.consensus_min_votes
            and not_working > working and not_working > busy
        ):
            target = StationStatus.OFFLINE
        elif (
            working >= policy.consensus_min_votes
            and working > not_working and working > busy
        ):
            target = StationStatus.OPERATIONAL

    if target is None or target == current_status:
        return None
    return target
