"""Request Dependencies — caller identity, admin gate, and service wiring.

Invariants:
    - Identity is asserted by the upstream auth proxy via X-User-Id; this API
      never verifies credentials itself
    - Missing identity -> 401; non-admin on an admin route -> 403

Design Decisions:
    - Services built per request around the request's AsyncSession: no shared
      mutable state between requests besides the summary cache
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings, get_settings
from chargewatch.core.errors import (
    AuthenticationRequiredError, ErrorContext, ForbiddenError,
)
from chargewatch.infrastructure.database import get_db
from chargewatch.services.charging_sessions import ChargingSessionService
from chargewatch.services.reports import ReportService
from chargewatch.services.stations import StationService
from chargewatch.services.trust import TrustService
from chargewatch.services.vehicles import VehicleService
from chargewatch.services.verification import VerificationService

ADMIN_ROLE = "admin"


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationRequiredError()
    return user_id


async def require_admin(
    user_id: str = Depends(get_current_user_id),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
) -> str:
    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise ForbiddenError(
            "Admin role required", code="ADMIN_REQUIRED",
            context=ErrorContext(user_id=user_id, precondition="role == admin"),
        )
    return user_id


def get_station_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> StationService:
    return StationService(db, settings)


def get_session_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ChargingSessionService:
    return ChargingSessionService(db, settings)


def get_verification_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    return VerificationService(db, settings)


def get_report_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ReportService:
    return ReportService(db, settings)


def get_trust_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TrustService:
    return TrustService(db, settings)


def get_vehicle_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> VehicleService:
    return VehicleService(db, settings)
