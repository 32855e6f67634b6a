"""Station trust level and the 0–100 trust score."""

from datetime import datetime, timedelta, timezone

from chargewatch.core.domain_types import StationTrustLevel
from chargewatch.core.trust_score import (
    compute_station_trust_level, compute_trust_score, trust_score_label,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(n):
    return NOW - timedelta(days=n)


def test_new_station_is_normal():
    assert compute_station_trust_level([], [], NOW) == StationTrustLevel.NORMAL


def test_three_reports_without_corroboration_is_low():
    reports = [days_ago(1), days_ago(2), days_ago(3)]
    assert compute_station_trust_level(reports, [], NOW) == StationTrustLevel.LOW


def test_reports_outnumbered_by_corroborations_stay_normal():
    reports = [days_ago(1), days_ago(2), days_ago(3)]
    corroborations = [days_ago(1)] * 4
    level = compute_station_trust_level(reports, corroborations, NOW)
    assert level == StationTrustLevel.NORMAL


def test_reports_outside_horizon_ignored():
    reports = [days_ago(40), days_ago(41), days_ago(42)]
    assert compute_station_trust_level(reports, [], NOW) == StationTrustLevel.NORMAL


def test_five_corroborations_and_no_reports_is_trusted():
    corroborations = [days_ago(i) for i in range(5)]
    level = compute_station_trust_level([], corroborations, NOW)
    assert level == StationTrustLevel.TRUSTED


def test_single_report_blocks_trusted():
    corroborations = [days_ago(i) for i in range(10)]
    level = compute_station_trust_level([days_ago(1)], corroborations, NOW)
    assert level == StationTrustLevel.NORMAL


def test_empty_station_scores_report_and_floor_only():
    score = compute_trust_score([], [], [], NOW)
    assert score.verification_score == 0
    assert score.report_score == 30
    assert score.recency_score == 5
    assert score.score == 35
    assert score.days_since_last_activity is None


def test_verification_component_is_capped():
    votes = [days_ago(0)] * 10
    score = compute_trust_score(votes, [], [days_ago(0)], NOW)
    assert score.verification_score == 40
    assert score.recency_score == 30
    assert score.score == 100


def test_old_votes_earn_only_the_total_component():
    votes = [days_ago(10), days_ago(11)]
    score = compute_trust_score(votes, [], [days_ago(10)], NOW)
    assert score.verification_score == 10
    assert score.recency_score == 15


def test_open_reports_reduce_report_component():
    score = compute_trust_score([], [days_ago(1), days_ago(2)], [], NOW)
    assert score.report_score == 10
    many = compute_trust_score([], [days_ago(1)] * 5, [], NOW)
    assert many.report_score == 0


def test_labels():
    assert trust_score_label(100) == "Highly Trusted"
    assert trust_score_label(80) == "Highly Trusted"
    assert trust_score_label(65) == "Trusted"
    assert trust_score_label(40) == "Moderate"
    assert trust_score_label(20) == "Low Trust"
    assert trust_score_label(19) == "Unverified"
