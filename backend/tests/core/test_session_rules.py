"""Session rules — duration arithmetic and payload validation."""

from datetime import datetime, timedelta, timezone

import pytest

from chargewatch.core.errors import AvailabilityExceeded, InputValidationError
from chargewatch.core.session_rules import (
    SessionTelemetry, duration_minutes, validate_availability,
    validate_end_payload, validate_percent,
)

START = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_duration_floors_to_minutes():
    assert duration_minutes(START, START + timedelta(minutes=42, seconds=59)) == 42
    assert duration_minutes(START, START) == 0


def test_duration_never_negative():
    assert duration_minutes(START, START - timedelta(minutes=5)) == 0


def test_percent_bounds():
    validate_percent(None, "battery_start_percent")
    validate_percent(0, "battery_start_percent")
    validate_percent(100, "battery_start_percent")
    with pytest.raises(InputValidationError):
        validate_percent(101, "battery_start_percent")


def test_availability_bounds():
    validate_availability(0, 2)
    validate_availability(2, 2)
    with pytest.raises(AvailabilityExceeded) as exc:
        validate_availability(3, 2)
    assert exc.value.http_status == 400
    assert exc.value.code == "AVAILABILITY_EXCEEDED"
    with pytest.raises(InputValidationError):
        validate_availability(-1, 2)


def test_telemetry_rejected_on_manual_session():
    with pytest.raises(InputValidationError) as exc:
        validate_end_payload(False, None, SessionTelemetry(max_power_kw=11))
    assert exc.value.field == "telemetry"


def test_screenshot_rejected_on_auto_tracked_session():
    with pytest.raises(InputValidationError):
        validate_end_payload(True, "evidence/a.jpg", None)


def test_empty_telemetry_allowed_anywhere():
    validate_end_payload(False, "evidence/a.jpg", SessionTelemetry())
    validate_end_payload(True, None, SessionTelemetry(max_temp_c=40))
