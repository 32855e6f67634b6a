"""Station status aggregation — manual status vs. vote badge vs. availability."""

from chargewatch.core.domain_types import (
    DisplayStatus, StationStatus, StationTrustLevel, VoteCategory,
)
from chargewatch.core.station_status import compose_station_status
from chargewatch.core.verification import UNVERIFIED, VerificationSummary


def verified(leading, total=2):
    return VerificationSummary(
        total_votes=total, leading_vote=leading, is_verified=True,
        counts={leading: total},
    )


def test_manual_offline_wins_over_working_votes():
    view = compose_station_status(
        "OFFLINE", 2, 2, "NORMAL", verified(VoteCategory.WORKING),
    )
    assert view.display_status == DisplayStatus.NOT_WORKING
    assert view.status == StationStatus.OFFLINE
    # The badge is still shown next to the status
    assert view.badge == VoteCategory.WORKING


def test_maintenance_displayed_as_maintenance():
    view = compose_station_status("MAINTENANCE", 2, 2, "NORMAL", UNVERIFIED)
    assert view.display_status == DisplayStatus.MAINTENANCE


def test_no_free_chargers_displays_busy():
    view = compose_station_status("OPERATIONAL", 0, 2, "NORMAL", UNVERIFIED)
    assert view.display_status == DisplayStatus.BUSY


def test_busy_leading_vote_displays_busy():
    view = compose_station_status(
        "OPERATIONAL", 1, 2, "NORMAL", verified(VoteCategory.BUSY),
    )
    assert view.display_status == DisplayStatus.BUSY


def test_unverified_summary_has_no_badge():
    summary = VerificationSummary(
        total_votes=1, leading_vote=VoteCategory.WORKING,
        counts={VoteCategory.WORKING: 1},
    )
    view = compose_station_status("OPERATIONAL", 1, 1, "NORMAL", summary)
    assert view.badge is None
    assert view.display_status == DisplayStatus.WORKING


def test_low_trust_is_suppressed():
    view = compose_station_status("OPERATIONAL", 1, 1, "LOW", UNVERIFIED)
    assert view.suppressed is True
    assert view.trust_level == StationTrustLevel.LOW


def test_unknown_stored_values_fall_back():
    view = compose_station_status("ONLINE", 5, 2, "???", UNVERIFIED)
    assert view.status == StationStatus.OPERATIONAL
    assert view.trust_level == StationTrustLevel.NORMAL
    assert view.available_chargers == 2
