"""Charging Session Schemas — start/end payloads and the session envelope.

Invariants:
    - Battery percentages bounded 0–100; energy non-negative
    - speed_tier / safety_tier are derived on serialization, never stored
    - Telemetry fields only meaningful for auto-tracked sessions (checked in core)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from chargewatch.core.domain_types import (
    ChargingSpeedTier, SafetyTier, SessionState,
)
from chargewatch.core.session_rules import SessionTelemetry
from chargewatch.core.telemetry import classify_charging_speed, classify_safety
from chargewatch.schemas.station import StationResponse


class SessionStart(BaseModel):
    station_id: UUID
    user_vehicle_id: UUID | None = None
    custom_vehicle_name: str | None = Field(None, max_length=100)
    battery_start_percent: int | None = Field(None, ge=0, le=100)
    is_auto_tracked: bool = False


class TelemetryPayload(BaseModel):
    grid_voltage: float | None = Field(None, ge=0)
    grid_frequency: float | None = Field(None, ge=0)
    max_current_a: float | None = Field(None, ge=0)
    max_power_kw: float | None = Field(None, ge=0)
    max_temp_c: float | None = None

    def to_domain(self) -> SessionTelemetry:
        return SessionTelemetry(**self.model_dump())


class SessionEnd(BaseModel):
    battery_end_percent: int | None = Field(None, ge=0, le=100)
    energy_kwh: float | None = Field(None, ge=0, le=1000)
    screenshot_path: str | None = Field(None, max_length=500)
    telemetry: TelemetryPayload | None = None


class SessionResponse(BaseModel):
    id: UUID
    user_id: str
    station_id: UUID
    state: SessionState
    start_time: datetime
    end_time: datetime | None
    battery_start_percent: int | None
    battery_end_percent: int | None
    energy_kwh: float | None
    duration_minutes: int | None
    user_vehicle_id: UUID | None
    custom_vehicle_name: str | None
    is_auto_tracked: bool
    grid_voltage: float | None
    grid_frequency: float | None
    max_current_a: float | None
    max_power_kw: float | None
    max_temp_c: float | None
    screenshot_path: str | None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def speed_tier(self) -> ChargingSpeedTier | None:
        return classify_charging_speed(self.max_power_kw)

    @computed_field
    @property
    def safety_tier(self) -> SafetyTier | None:
        return classify_safety(self.max_temp_c)


class ActiveSessionResponse(BaseModel):
    session: SessionResponse
    station: StationResponse | None
