"""Station Schemas — station creation, manual updates, and the composed view.

Invariants:
    - StationCreate: available_chargers (when given) <= charger_count
    - AvailabilityUpdate.available_chargers >= 0; upper bound checked against the
      station's charger_count in the service (400 AVAILABILITY_EXCEEDED)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from chargewatch.core.domain_types import (
    ApprovalStatus, ChargerType, DisplayStatus, StationStatus, StationTrustLevel,
    VoteCategory,
)
from chargewatch.services.stations import StationDetails


class StationCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    operator: str | None = Field(None, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    address: str | None = Field(None, max_length=500)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    charger_type: ChargerType
    power_kw: float | None = Field(None, gt=0, le=1000)
    charger_count: int = Field(1, ge=1, le=100)
    available_chargers: int | None = Field(None, ge=0)
    status: StationStatus = StationStatus.OPERATIONAL

    @field_validator("name", "city")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def validate_availability(self):
        if (
            self.available_chargers is not None
            and self.available_chargers > self.charger_count
        ):
            raise ValueError("available_chargers cannot exceed charger_count")
        return self

    def to_model_fields(self) -> dict:
        data = self.model_dump()
        data["charger_type"] = self.charger_type.value
        data["status"] = self.status.value
        return data


class AvailabilityUpdate(BaseModel):
    available_chargers: int = Field(ge=0)


class StatusUpdate(BaseModel):
    status: StationStatus


class VisibilityUpdate(BaseModel):
    is_hidden: bool


class AdminStatusUpdate(BaseModel):
    status: StationStatus

    @field_validator("status")
    @classmethod
    def operational_or_offline(cls, v: StationStatus) -> StationStatus:
        if v == StationStatus.MAINTENANCE:
            raise ValueError("admins set OPERATIONAL or OFFLINE only")
        return v


class ApprovalUpdate(BaseModel):
    approval_status: ApprovalStatus

    @field_validator("approval_status")
    @classmethod
    def decided(cls, v: ApprovalStatus) -> ApprovalStatus:
        if v == ApprovalStatus.PENDING:
            raise ValueError("approval_status must be APPROVED or REJECTED")
        return v


class StationResponse(BaseModel):
    id: UUID
    name: str
    operator: str | None
    city: str
    address: str | None
    lat: float
    lng: float
    charger_type: str
    power_kw: float | None
    charger_count: int
    available_chargers: int
    status: StationStatus
    display_status: DisplayStatus
    badge: VoteCategory | None
    trust_level: StationTrustLevel
    suppressed: bool
    total_votes: int
    last_verified_at: datetime | None
    created_at: datetime

    @classmethod
    def from_details(cls, details: StationDetails) -> "StationResponse":
        station, view, summary = details.station, details.view, details.summary
        return cls(
            id=station.id,
            name=station.name,
            operator=station.operator,
            city=station.city,
            address=station.address,
            lat=station.lat,
            lng=station.lng,
            charger_type=station.charger_type,
            power_kw=station.power_kw,
            charger_count=view.charger_count,
            available_chargers=view.available_chargers,
            status=view.status,
            display_status=view.display_status,
            badge=view.badge,
            trust_level=view.trust_level,
            suppressed=view.suppressed,
            total_votes=summary.total_votes,
            last_verified_at=summary.last_verified_at,
            created_at=station.created_at,
        )


class AdminStationResponse(StationResponse):
    """Station view with the moderation fields only admins see."""
    is_hidden: bool
    approval_status: ApprovalStatus
    added_by_user_id: str | None

    @classmethod
    def from_details(cls, details: StationDetails) -> "AdminStationResponse":
        station = details.station
        return cls(
            **StationResponse.from_details(details).model_dump(),
            is_hidden=station.is_hidden,
            approval_status=station.approval_status,
            added_by_user_id=station.added_by_user_id,
        )
