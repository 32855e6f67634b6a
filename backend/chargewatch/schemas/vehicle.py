"""Vehicle Schemas — catalog entries and garage vehicles.

Invariants:
    - A new garage vehicle names a catalog entry, a nickname, or both
    - is_default is only set on create or through the set-default route
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from chargewatch.core.domain_types import ChargerType


class VehicleCreate(BaseModel):
    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    battery_capacity_kwh: float | None = Field(None, gt=0, le=500)
    charger_type: ChargerType
    max_charging_power_kw: float | None = Field(None, gt=0, le=1000)
    image_url: str | None = Field(None, max_length=500)

    def to_model_fields(self) -> dict:
        data = self.model_dump()
        data["charger_type"] = self.charger_type.value
        return data


class VehicleResponse(BaseModel):
    id: UUID
    brand: str
    model: str
    battery_capacity_kwh: float | None
    charger_type: ChargerType
    max_charging_power_kw: float | None
    image_url: str | None

    model_config = {"from_attributes": True}


class UserVehicleCreate(BaseModel):
    vehicle_id: UUID | None = None
    nickname: str | None = Field(None, max_length=100)
    license_plate: str | None = Field(None, max_length=20)
    color: str | None = Field(None, max_length=30)
    year: int | None = Field(None, ge=1990, le=2100)
    is_default: bool = False

    @model_validator(mode="after")
    def needs_identity(self):
        if self.vehicle_id is None and not (self.nickname or "").strip():
            raise ValueError("vehicle_id or nickname is required")
        return self


class UserVehicleUpdate(BaseModel):
    vehicle_id: UUID | None = None
    nickname: str | None = Field(None, max_length=100)
    license_plate: str | None = Field(None, max_length=20)
    color: str | None = Field(None, max_length=30)
    year: int | None = Field(None, ge=1990, le=2100)


class UserVehicleResponse(BaseModel):
    id: UUID
    user_id: str
    vehicle_id: UUID | None
    nickname: str | None
    license_plate: str | None
    color: str | None
    year: int | None
    is_default: bool
    created_at: datetime

    model_config = {"from_attributes": True}
