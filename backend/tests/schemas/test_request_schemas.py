"""Request schemas — boundary validation before anything reaches a service."""

import pytest
from pydantic import ValidationError

from chargewatch.core.domain_types import ChargingSpeedTier, SafetyTier
from chargewatch.schemas.charging_session import SessionResponse, SessionStart
from chargewatch.schemas.station import AvailabilityUpdate, StationCreate
from chargewatch.schemas.verification import VoteCreate


def station_payload(**overrides):
    data = {
        "name": "Downtown Hub", "city": "Lisbon", "lat": 38.7, "lng": -9.1,
        "charger_type": "DC", "charger_count": 2,
    }
    data.update(overrides)
    return data


def test_station_create_defaults():
    body = StationCreate(**station_payload())
    assert body.available_chargers is None
    fields = body.to_model_fields()
    assert fields["status"] == "OPERATIONAL"
    assert fields["charger_type"] == "DC"


def test_station_create_rejects_availability_above_count():
    with pytest.raises(ValidationError):
        StationCreate(**station_payload(available_chargers=3))


def test_station_create_rejects_blank_name():
    with pytest.raises(ValidationError):
        StationCreate(**station_payload(name="   "))


def test_availability_cannot_be_negative():
    with pytest.raises(ValidationError):
        AvailabilityUpdate(available_chargers=-1)


def test_unknown_vote_rejected():
    with pytest.raises(ValidationError):
        VoteCreate(vote="MAYBE")


def test_battery_percent_bounded():
    with pytest.raises(ValidationError):
        SessionStart(
            station_id="8a6e0804-2bd0-4672-b79d-d97027f9071a",
            battery_start_percent=120,
        )


def test_session_response_derives_tiers():
    response = SessionResponse(
        id="8a6e0804-2bd0-4672-b79d-d97027f9071a",
        user_id="u1",
        station_id="2c1b1d5e-94f1-4d3b-9e7c-0ad3c8f1f7a1",
        state="ENDED",
        start_time="2026-05-01T12:00:00Z",
        end_time="2026-05-01T12:40:00Z",
        battery_start_percent=20,
        battery_end_percent=80,
        energy_kwh=30.0,
        duration_minutes=40,
        user_vehicle_id=None,
        custom_vehicle_name=None,
        is_auto_tracked=True,
        grid_voltage=400.0,
        grid_frequency=50.0,
        max_current_a=120.0,
        max_power_kw=48.0,
        max_temp_c=47.0,
        screenshot_path=None,
    )
    dumped = response.model_dump()
    assert dumped["speed_tier"] == ChargingSpeedTier.FAST
    assert dumped["safety_tier"] == SafetyTier.WARM
