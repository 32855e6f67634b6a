"""Session Rules — pure arithmetic and validation for the charging session lifecycle.

Invariants:
    - A manual availability override stays within 0..charger_count
    - duration_minutes = floor((end - start) / 60s), never negative
    - Telemetry only on auto-tracked sessions; evidence photos only on manual ones

Design Decisions:
    - The atomic "decrement if > 0" / "increment if < count" lives in SQL
      (services/charging_sessions.py); this module only validates what the
      caller sends before those statements run
"""

from dataclasses import dataclass
from datetime import datetime

from chargewatch.core.errors import (
    AvailabilityExceeded, ErrorContext, InputValidationError,
)
from chargewatch.core.verification import as_utc


PERCENT_MIN = 0
PERCENT_MAX = 100


@dataclass(frozen=True)
class SessionTelemetry:
    """Raw numeric telemetry recorded by the automated detector."""
    grid_voltage: float | None = None
    grid_frequency: float | None = None
    max_current_a: float | None = None
    max_power_kw: float | None = None
    max_temp_c: float | None = None

    def is_empty(self) -> bool:
        return all(
            value is None for value in (
                self.grid_voltage, self.grid_frequency, self.max_current_a,
                self.max_power_kw, self.max_temp_c,
            )
        )


def duration_minutes(start: datetime, end: datetime) -> int:
    elapsed = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0, int(elapsed // 60))


def validate_percent(value: int | None, field: str) -> None:
    if value is not None and not PERCENT_MIN <= value <= PERCENT_MAX:
        raise InputValidationError(
            f"{field} must be between {PERCENT_MIN} and {PERCENT_MAX}", field,
        )


def validate_availability(
    requested: int, charger_count: int, context: ErrorContext | None = None,
) -> None:
    """Manual availability override must stay within 0..charger_count."""
    if requested < 0:
        raise InputValidationError(
            "availableChargers cannot be negative", "available_chargers", context,
        )
    if requested > charger_count:
        raise AvailabilityExceeded(requested, charger_count, context)


def validate_end_payload(
    is_auto_tracked: bool,
    screenshot_path: str | None,
    telemetry: SessionTelemetry | None,
    context: ErrorContext | None = None,
) -> None:
    if is_auto_tracked and screenshot_path:
        raise InputValidationError(
            "Evidence photos are only accepted on manual sessions",
            "screenshot_path", context,
        )
    if not is_auto_tracked and telemetry is not None and not telemetry.is_empty():
        raise InputValidationError(
            "Telemetry is only accepted on auto-tracked sessions",
            "telemetry", context,
        )
