"""Station Service — station CRUD, manual status/availability, and composed views.

Invariants:
    - Hidden or unapproved stations behave as not found on public reads
    - Manual availability stays within 0..charger_count (validated, then CHECK-constrained)
    - Only the station owner, or a user charging there right now, may set availability
    - Only the station owner may set the manual status; admins bypass this
    - Views are composed on read from the trust engine; nothing is cached in the row

Design Decisions:
    - LOW trust suppression is applied here (listing filter), the aggregator
      only flags it
"""

import logging
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import (
    ApprovalStatus, SessionState, StationId, StationStatus, StationTrustLevel,
    UserId,
)
from chargewatch.core.errors import (
    ErrorContext, ForbiddenError, ResourceNotFoundError,
)
from chargewatch.core.session_rules import validate_availability
from chargewatch.core.station_status import (
    StationStatusView, compose_station_status,
)
from chargewatch.core.verification import VerificationSummary
from chargewatch.infrastructure.database import run_with_storage_retry
from chargewatch.models.charging_session import ChargingSession
from chargewatch.models.station import Station
from chargewatch.services import clock
from chargewatch.services.trust import TrustService

logger = logging.getLogger(__name__)


@dataclass
class StationDetails:
    station: Station
    summary: VerificationSummary
    view: StationStatusView


def is_public(station: Station) -> bool:
    return not station.is_hidden and (
        station.approval_status in (None, ApprovalStatus.APPROVED.value)
    )


class StationService:
    """Station reads and owner-level writes."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.trust = TrustService(db, settings)

    async def _retry(self, operation, context: ErrorContext):
        return await run_with_storage_retry(
            self.db, operation,
            max_retries=self.settings.storage_max_retries,
            base_delay_ms=self.settings.storage_base_delay_ms,
            max_delay_ms=self.settings.storage_max_delay_ms,
            context=context,
        )

    async def get_station_or_404(
        self, station_id: StationId, include_hidden: bool = False,
    ) -> Station:
        """Load a station. include_hidden also admits unapproved stations."""
        station = await self.db.get(Station, station_id)
        if station is None or (not include_hidden and not is_public(station)):
            raise ResourceNotFoundError(
                "Station", str(station_id),
                ErrorContext(station_id=str(station_id)),
            )
        return station

    def _compose(
        self, station: Station, summary: VerificationSummary,
    ) -> StationDetails:
        view = compose_station_status(
            station.status, station.available_chargers,
            station.charger_count, station.trust_level, summary,
        )
        return StationDetails(station=station, summary=summary, view=view)

    async def get_details(self, station_id: StationId) -> StationDetails:
        station = await self.get_station_or_404(station_id)
        summary = await self.trust.summarize(station.id, clock.utcnow())
        return self._compose(station, summary)

    async def list_stations(
        self,
        search: str | None = None,
        city: str | None = None,
        charger_type: str | None = None,
        include_low_trust: bool = False,
    ) -> list[StationDetails]:
        query = select(Station).where(
            Station.is_hidden.is_(False),
            Station.approval_status == ApprovalStatus.APPROVED.value,
        )
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                Station.name.ilike(pattern),
                Station.city.ilike(pattern),
                Station.operator.ilike(pattern),
            ))
        if city:
            query = query.where(Station.city.ilike(city))
        if charger_type:
            query = query.where(Station.charger_type == charger_type)
        if not include_low_trust:
            query = query.where(
                Station.trust_level != StationTrustLevel.LOW.value,
            )
        query = query.order_by(Station.name)

        stations = (await self.db.execute(query)).scalars().all()
        summaries = await self.trust.summarize_many(
            [s.id for s in stations], clock.utcnow(),
        )
        return [self._compose(s, summaries[s.id]) for s in stations]

    async def create_station(self, data: dict, user_id: UserId) -> StationDetails:
        charger_count = data.get("charger_count", 1)
        available = data.get("available_chargers")
        if available is None:
            available = charger_count
        validate_availability(available, charger_count)

        station = Station(
            **{k: v for k, v in data.items() if k != "available_chargers"},
            available_chargers=available,
            added_by_user_id=user_id,
            approval_status=(
                ApprovalStatus.PENDING.value
                if self.settings.station_approval_required
                else ApprovalStatus.APPROVED.value
            ),
        )
        self.db.add(station)
        await self.db.commit()
        await self.db.refresh(station)
        logger.info(
            f"Station created: {station.name}",
            extra={"station_id": station.id, "user_id": user_id},
        )
        return self._compose(station, VerificationSummary())

    async def _has_active_session_at(
        self, station_id: StationId, user_id: UserId,
    ) -> bool:
        result = await self.db.execute(
            select(ChargingSession.id).where(
                ChargingSession.station_id == station_id,
                ChargingSession.user_id == user_id,
                ChargingSession.state == SessionState.ACTIVE.value,
            )
        )
        return result.first() is not None

    async def update_availability(
        self, station_id: StationId, user_id: UserId, available_chargers: int,
    ) -> StationDetails:
        ctx = ErrorContext(
            station_id=str(station_id), user_id=user_id,
            operation="update_availability",
        )

        async def _update() -> Station:
            station = await self.get_station_or_404(station_id)
            is_owner = station.added_by_user_id == user_id
            if not is_owner and not await self._has_active_session_at(
                station_id, user_id,
            ):
                ctx.precondition = "owner_or_active_session"
                logger.warning(
                    "Availability update rejected", extra=ctx.log_extra(),
                )
                raise ForbiddenError(
                    "You are not allowed to change this charger status, "
                    "but you can report it.",
                    context=ctx,
                )
            validate_availability(available_chargers, station.charger_count, ctx)
            station.available_chargers = available_chargers
            station.updated_at = clock.utcnow()
            await self.db.commit()
            return station

        station = await self._retry(_update, ctx)
        return await self.get_details(station.id)

    async def update_status(
        self, station_id: StationId, user_id: UserId, status: StationStatus,
    ) -> StationDetails:
        ctx = ErrorContext(
            station_id=str(station_id), user_id=user_id,
            operation="update_status",
        )

        async def _update() -> Station:
            station = await self.get_station_or_404(station_id)
            if station.added_by_user_id != user_id:
                ctx.precondition = "owner"
                raise ForbiddenError(
                    "You are not allowed to change this charger status, "
                    "but you can report it.",
                    context=ctx,
                )
            station.status = status.value
            station.updated_at = clock.utcnow()
            await self.db.commit()
            return station

        station = await self._retry(_update, ctx)
        return await self.get_details(station.id)

    async def set_visibility(self, station_id: StationId, is_hidden: bool) -> Station:
        station = await self.get_station_or_404(station_id, include_hidden=True)
        station.is_hidden = is_hidden
        station.updated_at = clock.utcnow()
        await self.db.commit()
        logger.info(
            f"Station visibility set: hidden={is_hidden}",
            extra={"station_id": station_id, "operation": "set_visibility"},
        )
        return station

    # ─── Admin ──────────────────────────────────────────────────

    async def list_all_for_admin(self) -> list[StationDetails]:
        """Every station, hidden and unapproved included, newest first."""
        stations = (await self.db.execute(
            select(Station).order_by(Station.created_at.desc())
        )).scalars().all()
        summaries = await self.trust.summarize_many(
            [s.id for s in stations], clock.utcnow(),
        )
        return [self._compose(s, summaries[s.id]) for s in stations]

    async def admin_update_status(
        self, station_id: StationId, admin_id: UserId, status: StationStatus,
    ) -> StationDetails:
        """Set the manual status without the owner check."""
        station = await self.get_station_or_404(station_id, include_hidden=True)
        station.status = status.value
        station.updated_at = clock.utcnow()
        await self.db.commit()
        logger.info(
            f"Admin set station status {status.value}",
            extra={
                "station_id": station_id, "user_id": admin_id,
                "operation": "admin_update_status",
            },
        )
        summary = await self.trust.summarize(station.id, clock.utcnow())
        return self._compose(station, summary)

    async def set_approval(
        self, station_id: StationId, admin_id: UserId, approval: ApprovalStatus,
    ) -> StationDetails:
        station = await self.get_station_or_404(station_id, include_hidden=True)
        station.approval_status = approval.value
        station.updated_at = clock.utcnow()
        await self.db.commit()
        logger.info(
            f"Station {approval.value} by admin",
            extra={
                "station_id": station_id, "user_id": admin_id,
                "operation": "set_approval",
            },
        )
        summary = await self.trust.summarize(station.id, clock.utcnow())
        return self._compose(station, summary)
