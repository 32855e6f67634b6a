"""Station Trust — long-horizon trust level and the 0–100 trust score.

Invariants:
    - Both functions are PURE: inputs are timestamps/counts, `now` injected
    - Trust score is bounded 0–100; components are bounded individually
    - trust level LOW requires both enough NOT_WORKING reports AND more reports
      than WORKING corroborations within the horizon

Design Decisions:
    - Corroborations = WORKING votes + completed charging sessions: a finished
      session is the strongest evidence a station works
    - Score label thresholds are 20-point bands (80/60/40/20)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from chargewatch.core.domain_types import StationTrustLevel, TrustPolicy
from chargewatch.core.verification import as_utc


VERIFICATION_POINTS_PER_VOTE = 5
VERIFICATION_COMPONENT_CAP = 20
RECENT_VERIFICATION_DAYS = 7
REPORT_COMPONENT_MAX = 30
REPORT_PENALTY_PER_OPEN = 10
OPEN_REPORT_HORIZON_DAYS = 30
MAX_SCORE = 100

# (max days since last activity, points); first match wins
RECENCY_BANDS: tuple[tuple[float, int], ...] = (
    (1, 30), (3, 25), (7, 20), (14, 15), (30, 10),
)
RECENCY_FLOOR = 5

SCORE_LABELS: tuple[tuple[int, str], ...] = (
    (80, "Highly Trusted"),
    (60, "Trusted"),
    (40, "Moderate"),
    (20, "Low Trust"),
)
UNVERIFIED_LABEL = "Unverified"


@dataclass(frozen=True)
class TrustScore:
    score: int
    verification_score: int
    report_score: int
    recency_score: int
    days_since_last_activity: float | None


def _within(stamps: Iterable[datetime], cutoff: datetime) -> int:
    return sum(1 for s in stamps if as_utc(s) >= cutoff)


def compute_station_trust_level(
    not_working_reports: Iterable[datetime],
    working_corroborations: Iterable[datetime],
    now: datetime,
    policy: TrustPolicy = TrustPolicy(),
) -> StationTrustLevel:
    """Classify a station from report/corroboration timestamps in the horizon."""
    cutoff = as_utc(now) - timedelta(days=policy.trust_horizon_days)
    reports = _within(not_working_reports, cutoff)
    corroborations = _within(working_corroborations, cutoff)

    if reports >= policy.low_trust_report_threshold and reports > corroborations:
        return StationTrustLevel.LOW
    if reports == 0 and corroborations >= policy.trusted_corroboration_threshold:
        return StationTrustLevel.TRUSTED
    return StationTrustLevel.NORMAL


def _recency_points(days: float | None) -> int:
    if days is None:
        return RECENCY_FLOOR
    for max_days, points in RECENCY_BANDS:
        if days <= max_days:
            return points
    return RECENCY_FLOOR


def compute_trust_score(
    vote_times: Iterable[datetime],
    open_report_times: Iterable[datetime],
    activity_times: Iterable[datetime | None],
    now: datetime,
) -> TrustScore:
    """Deterministic 0–100 score from verifications, open reports and recency.

    activity_times holds every "something happened here" timestamp: station
    update, last vote, last report. None entries are ignored.
    """
    now = as_utc(now)
    vote_times = [as_utc(t) for t in vote_times]
    total_votes = len(vote_times)
    recent_votes = _within(vote_times, now - timedelta(days=RECENT_VERIFICATION_DAYS))
    verification_score = (
        min(total_votes * VERIFICATION_POINTS_PER_VOTE, VERIFICATION_COMPONENT_CAP)
        + min(recent_votes * VERIFICATION_POINTS_PER_VOTE, VERIFICATION_COMPONENT_CAP)
    )

    open_reports = _within(
        open_report_times, now - timedelta(days=OPEN_REPORT_HORIZON_DAYS),
    )
    report_score = max(
        REPORT_COMPONENT_MAX - open_reports * REPORT_PENALTY_PER_OPEN, 0,
    )

    stamps = [as_utc(t) for t in activity_times if t is not None]
    days: float | None = None
    if stamps:
        days = (now - max(stamps)).total_seconds() / 86_400
    recency_score = _recency_points(days)

    return TrustScore(
        score=min(verification_score + report_score + recency_score, MAX_SCORE),
        verification_score=verification_score,
        report_score=report_score,
        recency_score=recency_score,
        days_since_last_activity=round(days, 1) if days is not None else None,
    )


def trust_score_label(score: int) -> str:
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return UNVERIFIED_LABEL
