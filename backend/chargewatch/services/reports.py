"""Report Service — community fault reports and their admin review.

Invariants:
    - A NOT_WORKING report sets the station OFFLINE; a WORKING report sets it
      OPERATIONAL unless the owner put it in MAINTENANCE
    - Station trust level recomputed in the same transaction as every report
    - Review outcomes confirmed_working/resolved -> OPERATIONAL;
      confirmed_broken, or confirmed on a NOT_WORKING report -> OFFLINE
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import (
    ReportReason, ReportStatus, ReviewStatus, StationId, StationStatus, UserId,
)
from chargewatch.core.errors import ErrorContext, ResourceNotFoundError
from chargewatch.infrastructure.database import run_with_storage_retry
from chargewatch.models.report import Report
from chargewatch.models.station import Station
from chargewatch.services import clock
from chargewatch.services.stations import StationService

logger = logging.getLogger(__name__)


def status_after_report(
    current: StationStatus, report_status: ReportStatus,
) -> StationStatus:
    if report_status == ReportStatus.NOT_WORKING:
        return StationStatus.OFFLINE
    if current == StationStatus.MAINTENANCE:
        return current
    return StationStatus.OPERATIONAL


def status_after_review(
    review: ReviewStatus, report_status: str,
) -> StationStatus | None:
    if review in (ReviewStatus.CONFIRMED_WORKING, ReviewStatus.RESOLVED):
        return StationStatus.OPERATIONAL
    if review == ReviewStatus.CONFIRMED_BROKEN or (
        review == ReviewStatus.CONFIRMED
        and report_status == ReportStatus.NOT_WORKING.value
    ):
        return StationStatus.OFFLINE
    return None


class ReportService:
    """Report ingestion, listing and review."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.stations = StationService(db, settings)
        self.trust = self.stations.trust

    async def create_report(
        self,
        station_id: StationId,
        reporter_id: UserId,
        status: ReportStatus,
        reason: ReportReason | None = None,
        note: str | None = None,
    ) -> Report:
        ctx = ErrorContext(
            station_id=str(station_id), user_id=reporter_id,
            operation="create_report",
        )

        async def _create() -> Report:
            station = await self.stations.get_station_or_404(station_id)
            now = clock.utcnow()
            report = Report(
                station_id=station_id, reporter_id=reporter_id,
                status=status.value,
                reason=reason.value if reason else None,
                note=note, review_status=ReviewStatus.OPEN.value,
                created_at=now,
            )
            self.db.add(report)

            new_status = status_after_report(StationStatus(station.status), status)
            if new_status.value != station.status:
                logger.info(
                    f"Report moved station {station.status} -> {new_status.value}",
                    extra=ctx.log_extra(),
                )
                station.status = new_status.value
                station.updated_at = now
            await self.db.flush()

            await self.trust.recompute_station_trust_level(station, now)
            if reason is not None:
                await self.trust.reward_report_consensus(
                    station_id, reason.value, now,
                )
            await self.db.commit()
            return report

        return await run_with_storage_retry(
            self.db, _create,
            max_retries=self.settings.storage_max_retries,
            base_delay_ms=self.settings.storage_base_delay_ms,
            max_delay_ms=self.settings.storage_max_delay_ms,
            context=ctx,
        )

    async def list_reports(self, station_id: StationId) -> list[Report]:
        await self.stations.get_station_or_404(station_id)
        result = await self.db.execute(
            select(Report)
            .where(Report.station_id == station_id)
            .order_by(Report.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[tuple[Report, str]]:
        """Every report with its station name, newest first."""
        result = await self.db.execute(
            select(Report, Station.name)
            .join(Station, Station.id == Report.station_id)
            .order_by(Report.created_at.desc())
        )
        return [(report, name) for report, name in result.all()]

    async def count_for_station(self, station_id: StationId) -> int:
        await self.stations.get_station_or_404(station_id, include_hidden=True)
        count = await self.db.scalar(
            select(func.count()).select_from(Report)
            .where(Report.station_id == station_id)
        )
        return count or 0

    async def review_report(
        self, report_id: UUID, review: ReviewStatus, admin_id: UserId,
    ) -> Report:
        report = await self.db.get(Report, report_id)
        if report is None:
            raise ResourceNotFoundError(
                "Report", str(report_id),
                ErrorContext(user_id=admin_id, operation="review_report"),
            )
        report.review_status = review.value
        report.reviewed_by = admin_id

        target = status_after_review(review, report.status)
        station = await self.db.get(Station, report.station_id)
        if target is not None and station is not None:
            station.status = target.value
            station.updated_at = clock.utcnow()
        await self.db.commit()
        logger.info(
            f"Report reviewed: {review.value}",
            extra={"station_id": report.station_id, "user_id": admin_id},
        )
        return report
