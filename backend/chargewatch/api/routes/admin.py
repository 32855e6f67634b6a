"""Admin Routes — moderation of reports, stations, evidence and the catalog.

Invariants:
    - Every route requires X-User-Role: admin (403 otherwise)
    - Hidden and unapproved stations stay reachable here so they can be restored
    - Admin status changes skip the owner check; MAINTENANCE stays owner-only
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from chargewatch.api.deps import (
    get_report_service, get_session_service, get_station_service,
    get_vehicle_service, require_admin,
)
from chargewatch.schemas.charging_session import SessionResponse
from chargewatch.schemas.report import (
    AdminReportResponse, ReportResponse, ReportReview,
)
from chargewatch.schemas.station import (
    AdminStationResponse, AdminStatusUpdate, ApprovalUpdate, VisibilityUpdate,
)
from chargewatch.schemas.vehicle import VehicleCreate, VehicleResponse
from chargewatch.services.charging_sessions import ChargingSessionService
from chargewatch.services.reports import ReportService
from chargewatch.services.stations import StationService
from chargewatch.services.vehicles import VehicleService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


# ─── Reports ────────────────────────────────────────────────────

@router.get("/reports", response_model=list[AdminReportResponse])
async def list_reports(
    admin_id: str = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    rows = await service.list_all()
    logger.info(
        f"Admin listed {len(rows)} reports",
        extra={"user_id": admin_id, "operation": "admin_list_reports"},
    )
    return [AdminReportResponse.from_row(report, name) for report, name in rows]


@router.patch("/reports/{report_id}/review", response_model=ReportResponse)
async def review_report(
    report_id: UUID,
    body: ReportReview,
    admin_id: str = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return await service.review_report(report_id, body.review_status, admin_id)


# ─── Stations ───────────────────────────────────────────────────

@router.get("/stations", response_model=list[AdminStationResponse])
async def list_stations(
    admin_id: str = Depends(require_admin),
    service: StationService = Depends(get_station_service),
):
    """Every station, hidden and unapproved included."""
    details = await service.list_all_for_admin()
    return [AdminStationResponse.from_details(d) for d in details]


@router.patch("/stations/{station_id}/visibility")
async def set_station_visibility(
    station_id: UUID,
    body: VisibilityUpdate,
    admin_id: str = Depends(require_admin),
    service: StationService = Depends(get_station_service),
):
    station = await service.set_visibility(station_id, body.is_hidden)
    return {"id": str(station.id), "is_hidden": station.is_hidden}


@router.patch(
    "/stations/{station_id}/status", response_model=AdminStationResponse,
)
async def set_station_status(
    station_id: UUID,
    body: AdminStatusUpdate,
    admin_id: str = Depends(require_admin),
    service: StationService = Depends(get_station_service),
):
    details = await service.admin_update_status(station_id, admin_id, body.status)
    return AdminStationResponse.from_details(details)


@router.patch(
    "/stations/{station_id}/approval", response_model=AdminStationResponse,
)
async def set_station_approval(
    station_id: UUID,
    body: ApprovalUpdate,
    admin_id: str = Depends(require_admin),
    service: StationService = Depends(get_station_service),
):
    details = await service.set_approval(
        station_id, admin_id, body.approval_status,
    )
    return AdminStationResponse.from_details(details)


@router.get("/stations/{station_id}/report-count")
async def get_station_report_count(
    station_id: UUID,
    admin_id: str = Depends(require_admin),
    service: ReportService = Depends(get_report_service),
):
    return {"count": await service.count_for_station(station_id)}


# ─── Evidence ───────────────────────────────────────────────────

@router.get("/charging-sessions", response_model=list[SessionResponse])
async def list_sessions_with_screenshots(
    limit: int = Query(100, ge=1, le=500),
    admin_id: str = Depends(require_admin),
    service: ChargingSessionService = Depends(get_session_service),
):
    """Manual sessions that carry an evidence photo, newest first."""
    return await service.list_with_screenshots(limit=limit)


# ─── Catalog ────────────────────────────────────────────────────

@router.post(
    "/vehicles", response_model=VehicleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_catalog_vehicle(
    body: VehicleCreate,
    admin_id: str = Depends(require_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.add_catalog_vehicle(body.to_model_fields(), admin_id)
