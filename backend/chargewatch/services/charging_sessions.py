"""Charging Session Lifecycle — start/end sessions and keep availability consistent.

Invariants:
    - At most one ACTIVE session per user. The partial unique index
      uq_charging_sessions_user_active decides races; the pre-check only gives
      the common case a cheap, friendly error
    - start: availability decrement (conditional UPDATE ... WHERE available > 0)
      and session INSERT commit together or not at all
    - end: the ACTIVE -> ENDED conditional UPDATE is the linearization point;
      the availability increment (bounded at charger_count) commits with it
    - Ending an ENDED session raises SessionNotActive and never touches availability
    - No Python-side read-modify-write of available_chargers
    - user_vehicle_id must name one of the caller's own vehicles; a start with
      neither a vehicle nor a custom name records the caller's default vehicle

Design Decisions:
    - One transaction per operation over compensating writes: a timeout or
      cancellation mid-operation leaves nothing committed
    - Whole operation re-run on transient StorageError; IntegrityError is a
      business outcome (SessionConflict), never retried
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import (
    SessionId, SessionState, StationId, UserId, UserVehicleId,
)
from chargewatch.core.errors import (
    ErrorContext, NoChargerAvailable, ResourceNotFoundError, SessionConflict,
    SessionForbidden, SessionNotActive,
)
from chargewatch.core.session_rules import (
    SessionTelemetry, duration_minutes, validate_end_payload, validate_percent,
)
from chargewatch.infrastructure.database import run_with_storage_retry
from chargewatch.models.charging_session import ChargingSession
from chargewatch.models.station import Station
from chargewatch.services import clock
from chargewatch.services.stations import StationService, is_public
from chargewatch.services.trust import TrustService
from chargewatch.services.vehicles import VehicleService

logger = logging.getLogger(__name__)


@dataclass
class ActiveSession:
    session: ChargingSession
    station: Station | None


class ChargingSessionService:
    """Owns the per-user session state machine: NO_ACTIVE_SESSION <-> ACTIVE."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.trust = TrustService(db, settings)
        self.vehicles = VehicleService(db, settings)

    async def _retry(self, operation, context: ErrorContext):
        return await run_with_storage_retry(
            self.db, operation,
            max_retries=self.settings.storage_max_retries,
            base_delay_ms=self.settings.storage_base_delay_ms,
            max_delay_ms=self.settings.storage_max_delay_ms,
            context=context,
        )

    async def _find_active(self, user_id: UserId) -> ChargingSession | None:
        result = await self.db.execute(
            select(ChargingSession).where(
                ChargingSession.user_id == user_id,
                ChargingSession.state == SessionState.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()

    async def _reject(self, error_cls, ctx: ErrorContext, precondition: str):
        await self.db.rollback()
        ctx.precondition = precondition
        logger.warning(
            f"{ctx.operation} rejected: {precondition}", extra=ctx.log_extra(),
        )
        raise error_cls(context=ctx)

    # ─── start ──────────────────────────────────────────────────

    async def start_session(
        self,
        user_id: UserId,
        station_id: StationId,
        battery_start_percent: int | None = None,
        user_vehicle_id: UserVehicleId | None = None,
        custom_vehicle_name: str | None = None,
        is_auto_tracked: bool = False,
    ) -> ChargingSession:
        ctx = ErrorContext(
            station_id=str(station_id), user_id=user_id,
            operation="start_session",
        )
        validate_percent(battery_start_percent, "battery_start_percent")
        if user_vehicle_id is not None:
            await self.vehicles.get_user_vehicle(user_vehicle_id, user_id)
        elif not custom_vehicle_name:
            default = await self.vehicles.get_default_vehicle(user_id)
            if default is not None:
                user_vehicle_id = default.id

        async def _start() -> ChargingSession:
            station = await self.db.get(Station, station_id)
            if station is None or not is_public(station):
                raise ResourceNotFoundError("Station", str(station_id), ctx)
            if await self._find_active(user_id) is not None:
                await self._reject(SessionConflict, ctx, "no_active_session")

            now = clock.utcnow()
            decrement = await self.db.execute(
                update(Station)
                .where(Station.id == station_id, Station.available_chargers > 0)
                .values(
                    available_chargers=Station.available_chargers - 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if decrement.rowcount == 0:
                await self._reject(NoChargerAvailable, ctx, "available_chargers > 0")

            session = ChargingSession(
                user_id=user_id,
                station_id=station_id,
                state=SessionState.ACTIVE.value,
                start_time=now,
                battery_start_percent=battery_start_percent,
                user_vehicle_id=user_vehicle_id,
                custom_vehicle_name=custom_vehicle_name,
                is_auto_tracked=is_auto_tracked,
            )
            self.db.add(session)
            try:
                await self.db.flush()
            except IntegrityError:
                # Lost the race: another start for this user committed first.
                await self._reject(SessionConflict, ctx, "unique_active_session")
            await self.db.commit()
            return session

        session = await self._retry(_start, ctx)
        logger.info(
            "Charging session started",
            extra={**ctx.log_extra(), "session_id": session.id},
        )
        return session

    # ─── end ────────────────────────────────────────────────────

    async def end_session(
        self,
        session_id: SessionId,
        user_id: UserId,
        battery_end_percent: int | None = None,
        energy_kwh: float | None = None,
        screenshot_path: str | None = None,
        telemetry: SessionTelemetry | None = None,
    ) -> ChargingSession:
        ctx = ErrorContext(
            session_id=str(session_id), user_id=user_id,
            operation="end_session",
        )
        validate_percent(battery_end_percent, "battery_end_percent")

        async def _end() -> ChargingSession:
            session = await self.db.get(ChargingSession, session_id)
            if session is None:
                raise ResourceNotFoundError("ChargingSession", str(session_id), ctx)
            ctx.station_id = str(session.station_id)
            if session.user_id != user_id:
                await self._reject(SessionForbidden, ctx, "session_owner")
            if session.state != SessionState.ACTIVE.value:
                await self._reject(SessionNotActive, ctx, "state == ACTIVE")
            validate_end_payload(
                session.is_auto_tracked, screenshot_path, telemetry, ctx,
            )

            now = clock.utcnow()
            values = {
                "state": SessionState.ENDED.value,
                "end_time": now,
                "duration_minutes": duration_minutes(session.start_time, now),
                "battery_end_percent": battery_end_percent,
                "energy_kwh": energy_kwh,
                "screenshot_path": screenshot_path,
            }
            if telemetry is not None:
                values.update(
                    grid_voltage=telemetry.grid_voltage,
                    grid_frequency=telemetry.grid_frequency,
                    max_current_a=telemetry.max_current_a,
                    max_power_kw=telemetry.max_power_kw,
                    max_temp_c=telemetry.max_temp_c,
                )
            transition = await self.db.execute(
                update(ChargingSession)
                .where(
                    ChargingSession.id == session_id,
                    ChargingSession.state == SessionState.ACTIVE.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if transition.rowcount == 0:
                await self._reject(SessionNotActive, ctx, "state == ACTIVE")

            await self.db.execute(
                update(Station)
                .where(
                    Station.id == session.station_id,
                    Station.available_chargers < Station.charger_count,
                )
                .values(
                    available_chargers=Station.available_chargers + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )

            station = await self.db.get(Station, session.station_id)
            if station is not None:
                await self.db.refresh(station)
                await self.trust.recompute_station_trust_level(station, now)
            await self.db.commit()
            await self.db.refresh(session)
            return session

        session = await self._retry(_end, ctx)
        logger.info(
            f"Charging session ended after {session.duration_minutes} min",
            extra=ctx.log_extra(),
        )
        return session

    # ─── reads ──────────────────────────────────────────────────

    async def get_active_session(self, user_id: UserId) -> ActiveSession | None:
        session = await self._find_active(user_id)
        if session is None:
            return None
        station = await self.db.get(Station, session.station_id)
        return ActiveSession(session=session, station=station)

    async def list_sessions(
        self, user_id: UserId, station_id: StationId | None = None, limit: int = 50,
    ) -> list[ChargingSession]:
        query = select(ChargingSession).where(ChargingSession.user_id == user_id)
        if station_id is not None:
            query = query.where(ChargingSession.station_id == station_id)
        query = query.order_by(ChargingSession.start_time.desc()).limit(limit)
        return list((await self.db.execute(query)).scalars().all())

    async def list_active_at_station(
        self, station_id: StationId,
    ) -> list[ChargingSession]:
        await StationService(self.db, self.settings).get_station_or_404(station_id)
        result = await self.db.execute(
            select(ChargingSession)
            .where(
                ChargingSession.station_id == station_id,
                ChargingSession.state == SessionState.ACTIVE.value,
            )
            .order_by(ChargingSession.start_time.desc())
        )
        return list(result.scalars().all())

    async def list_with_screenshots(self, limit: int = 100) -> list[ChargingSession]:
        """Manual sessions that carry an evidence photo, for admin review."""
        result = await self.db.execute(
            select(ChargingSession)
            .where(ChargingSession.screenshot_path.is_not(None))
            .order_by(ChargingSession.end_time.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
