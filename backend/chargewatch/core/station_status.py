"""Station Status Aggregator — composes manual status, availability and votes.

Invariants:
    - Manual OFFLINE always wins over a WORKING leading vote
    - The vote badge is shown alongside the operational status, never instead of it
    - Badge only appears for a verified summary
    - LOW trust marks the station suppressed; filtering is the caller's decision
"""

from dataclasses import dataclass

from chargewatch.core.domain_types import (
    DisplayStatus, StationStatus, StationTrustLevel, VoteCategory,
)
from chargewatch.core.verification import VerificationSummary


@dataclass(frozen=True)
class StationStatusView:
    status: StationStatus
    display_status: DisplayStatus
    badge: VoteCategory | None
    available_chargers: int
    charger_count: int
    trust_level: StationTrustLevel
    suppressed: bool


def _display_status(
    status: StationStatus,
    available: int,
    charger_count: int,
    summary: VerificationSummary,
) -> DisplayStatus:
    if status == StationStatus.OFFLINE:
        return DisplayStatus.NOT_WORKING
    if status == StationStatus.MAINTENANCE:
        return DisplayStatus.MAINTENANCE
    if charger_count > 0 and available == 0:
        return DisplayStatus.BUSY
    if summary.total_votes > 0 and summary.leading_vote == VoteCategory.BUSY:
        return DisplayStatus.BUSY
    return DisplayStatus.WORKING


def compose_station_status(
    status: str,
    available_chargers: int,
    charger_count: int,
    trust_level: str,
    summary: VerificationSummary,
) -> StationStatusView:
    """Merge the station's own fields with the trust engine's summary."""
    try:
        manual = StationStatus(status)
    except ValueError:
        manual = StationStatus.OPERATIONAL
    try:
        trust = StationTrustLevel(trust_level)
    except ValueError:
        trust = StationTrustLevel.NORMAL

    available = max(0, min(available_chargers, charger_count))
    return StationStatusView(
        status=manual,
        display_status=_display_status(manual, available, charger_count, summary),
        badge=summary.leading_vote if summary.is_verified else None,
        available_chargers=available,
        charger_count=charger_count,
        trust_level=trust,
        suppressed=trust == StationTrustLevel.LOW,
    )
