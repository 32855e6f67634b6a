"""Charging Session Routes — start, end and read the caller's sessions.

Invariants:
    - Every route acts on behalf of X-User-Id; sessions of other users are
      never listed and cannot be ended (403)
    - /my-active is declared before /{session_id}/... so it is never parsed
      as a session id
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from chargewatch.api.deps import get_current_user_id, get_session_service
from chargewatch.schemas.charging_session import (
    ActiveSessionResponse, SessionEnd, SessionResponse, SessionStart,
)
from chargewatch.schemas.station import StationResponse
from chargewatch.services.charging_sessions import ChargingSessionService
from chargewatch.services.stations import StationService, is_public

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/charging-sessions", tags=["charging-sessions"])


@router.post(
    "/start", response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(
    body: SessionStart,
    user_id: str = Depends(get_current_user_id),
    service: ChargingSessionService = Depends(get_session_service),
):
    """Start charging: takes one charger at the station."""
    return await service.start_session(
        user_id,
        body.station_id,
        battery_start_percent=body.battery_start_percent,
        user_vehicle_id=body.user_vehicle_id,
        custom_vehicle_name=body.custom_vehicle_name,
        is_auto_tracked=body.is_auto_tracked,
    )


@router.get(
    "/my-active",
    response_model=ActiveSessionResponse,
    responses={204: {"description": "No active session"}},
)
async def get_my_active_session(
    user_id: str = Depends(get_current_user_id),
    service: ChargingSessionService = Depends(get_session_service),
):
    active = await service.get_active_session(user_id)
    if active is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    station = None
    if active.station is not None and is_public(active.station):
        stations = StationService(service.db, service.settings)
        station = StationResponse.from_details(
            await stations.get_details(active.station.id),
        )
    return ActiveSessionResponse(
        session=SessionResponse.model_validate(active.session),
        station=station,
    )


@router.post("/{session_id}/end", response_model=SessionResponse)
async def end_session(
    session_id: UUID,
    body: SessionEnd | None = None,
    user_id: str = Depends(get_current_user_id),
    service: ChargingSessionService = Depends(get_session_service),
):
    """End charging: frees the charger. Ending twice returns 409."""
    body = body or SessionEnd()
    return await service.end_session(
        session_id,
        user_id,
        battery_end_percent=body.battery_end_percent,
        energy_kwh=body.energy_kwh,
        screenshot_path=body.screenshot_path,
        telemetry=body.telemetry.to_domain() if body.telemetry else None,
    )


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    station_id: UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    service: ChargingSessionService = Depends(get_session_service),
):
    """The caller's sessions, newest first."""
    return await service.list_sessions(user_id, station_id=station_id, limit=limit)
