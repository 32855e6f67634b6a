"""Station Routes — directory reads, owner updates, votes and reports.

Invariants:
    - Reads are anonymous; every write requires X-User-Id
    - Hidden or unapproved stations 404 on every route here
    - LOW trust stations are left out of listings unless include_low_trust=true

Design Decisions:
    - Vote and report creation return 201 with the refreshed summary so clients
      never need a second round-trip to redraw the badge
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from chargewatch.api.deps import (
    get_current_user_id, get_report_service, get_session_service,
    get_station_service, get_verification_service,
)
from chargewatch.config import Settings, get_settings
from chargewatch.core.domain_types import ChargerType
from chargewatch.core.errors import ErrorContext, ResourceNotFoundError
from chargewatch.schemas.charging_session import SessionResponse
from chargewatch.schemas.report import ReportCreate, ReportResponse
from chargewatch.schemas.station import (
    AvailabilityUpdate, StationCreate, StationResponse, StatusUpdate,
)
from chargewatch.schemas.verification import (
    TrustScoreResponse, VerificationSummaryResponse, VoteCreate, VoteResponse,
    VoteSubmitResponse,
)
from chargewatch.services.charging_sessions import ChargingSessionService
from chargewatch.services.reports import ReportService
from chargewatch.services.stations import StationService
from chargewatch.services.verification import (
    DEFAULT_HISTORY_LIMIT, VerificationService,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stations", tags=["stations"])


# ─── Directory ──────────────────────────────────────────────────

@router.get("", response_model=list[StationResponse])
async def list_stations(
    search: str | None = Query(None, max_length=100),
    city: str | None = Query(None, max_length=100),
    charger_type: ChargerType | None = Query(None),
    include_low_trust: bool = Query(False),
    service: StationService = Depends(get_station_service),
):
    """List visible stations with their composed status."""
    details = await service.list_stations(
        search=search,
        city=city,
        charger_type=charger_type.value if charger_type else None,
        include_low_trust=include_low_trust,
    )
    return [StationResponse.from_details(d) for d in details]


@router.post(
    "", response_model=StationResponse, status_code=status.HTTP_201_CREATED,
)
async def create_station(
    body: StationCreate,
    user_id: str = Depends(get_current_user_id),
    service: StationService = Depends(get_station_service),
):
    """Add a station to the directory. The caller becomes its owner."""
    details = await service.create_station(body.to_model_fields(), user_id)
    return StationResponse.from_details(details)


@router.get("/{station_id}", response_model=StationResponse)
async def get_station(
    station_id: UUID, service: StationService = Depends(get_station_service),
):
    return StationResponse.from_details(await service.get_details(station_id))


@router.patch("/{station_id}/availability", response_model=StationResponse)
async def update_availability(
    station_id: UUID,
    body: AvailabilityUpdate,
    user_id: str = Depends(get_current_user_id),
    service: StationService = Depends(get_station_service),
):
    """Set available chargers by hand (owner, or a user charging there)."""
    details = await service.update_availability(
        station_id, user_id, body.available_chargers,
    )
    return StationResponse.from_details(details)


@router.patch("/{station_id}/status", response_model=StationResponse)
async def update_status(
    station_id: UUID,
    body: StatusUpdate,
    user_id: str = Depends(get_current_user_id),
    service: StationService = Depends(get_station_service),
):
    details = await service.update_status(station_id, user_id, body.status)
    return StationResponse.from_details(details)


# ─── Verification ───────────────────────────────────────────────

@router.get(
    "/{station_id}/verification-summary",
    response_model=VerificationSummaryResponse,
)
async def get_verification_summary(
    station_id: UUID,
    service: VerificationService = Depends(get_verification_service),
):
    summary, score = await service.get_summary(station_id)
    return VerificationSummaryResponse.build(summary, score)


@router.post(
    "/{station_id}/verify",
    response_model=VoteSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_vote(
    station_id: UUID,
    body: VoteCreate,
    user_id: str = Depends(get_current_user_id),
    service: VerificationService = Depends(get_verification_service),
):
    """Cast a WORKING / NOT_WORKING / BUSY vote for a station."""
    outcome = await service.submit_vote(station_id, user_id, body.vote)
    return VoteSubmitResponse(
        verification=VoteResponse.model_validate(outcome.vote),
        summary=VerificationSummaryResponse.build(outcome.summary, outcome.score),
    )


@router.get(
    "/{station_id}/verification-history", response_model=list[VoteResponse],
)
async def get_verification_history(
    station_id: UUID,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=100),
    service: VerificationService = Depends(get_verification_service),
):
    return await service.get_history(station_id, limit=limit)


@router.get("/{station_id}/trust-score", response_model=TrustScoreResponse)
async def get_trust_score(
    station_id: UUID,
    settings: Settings = Depends(get_settings),
    service: VerificationService = Depends(get_verification_service),
):
    """Detailed trust score breakdown, behind the trust_score_enabled flag."""
    if not settings.trust_score_enabled:
        raise ResourceNotFoundError(
            "Endpoint", "trust-score",
            ErrorContext(station_id=str(station_id), operation="trust_score"),
        )
    return TrustScoreResponse.build(await service.get_trust_score(station_id))


# ─── Sessions ───────────────────────────────────────────────────

@router.get(
    "/{station_id}/active-sessions", response_model=list[SessionResponse],
)
async def list_active_sessions(
    station_id: UUID,
    service: ChargingSessionService = Depends(get_session_service),
):
    """Sessions charging at this station right now, newest first."""
    return await service.list_active_at_station(station_id)


# ─── Reports ────────────────────────────────────────────────────

@router.post(
    "/{station_id}/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_report(
    station_id: UUID,
    body: ReportCreate,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service),
):
    return await service.create_report(
        station_id, user_id, body.status, reason=body.reason, note=body.note,
    )


@router.get("/{station_id}/reports", response_model=list[ReportResponse])
async def list_reports(
    station_id: UUID, service: ReportService = Depends(get_report_service),
):
    return await service.list_reports(station_id)
