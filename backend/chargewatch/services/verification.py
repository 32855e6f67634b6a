"""Verification Service — vote ingestion and verification reads.

Invariants:
    - Votes are appended, never updated; dedup happens in the engine
    - A vote, its reputation side effects, any consensus status change and the
      station trust level commit in one transaction
    - The cached summary for a station is invalidated after every vote commit

Design Decisions:
    - Reputation side effects run inline rather than fire-and-forget: a failed
      side effect rolls back the vote instead of being silently dropped
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import (
    StationId, StationStatus, UserId, VoteCategory,
)
from chargewatch.core.errors import ErrorContext
from chargewatch.core.trust_score import TrustScore
from chargewatch.core.verification import (
    VerificationSummary, consensus_status_update,
)
from chargewatch.infrastructure.database import run_with_storage_retry
from chargewatch.models.verification_vote import VerificationVote
from chargewatch.services import clock
from chargewatch.services.stations import StationService

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


@dataclass
class VoteOutcome:
    vote: VerificationVote
    summary: VerificationSummary
    score: TrustScore
    status_changed_to: StationStatus | None


class VerificationService:
    """Community verification votes for stations."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.stations = StationService(db, settings)
        self.trust = self.stations.trust

    async def submit_vote(
        self, station_id: StationId, voter_id: UserId, vote: VoteCategory,
    ) -> VoteOutcome:
        ctx = ErrorContext(
            station_id=str(station_id), user_id=voter_id, operation="submit_vote",
        )

        async def _submit() -> VoteOutcome:
            station = await self.stations.get_station_or_404(station_id)
            now = clock.utcnow()
            record = VerificationVote(
                station_id=station_id, voter_id=voter_id,
                vote=vote.value, created_at=now,
            )
            self.db.add(record)
            await self.db.flush()

            summary = await self.trust.summarize(station_id, now, use_cache=False)
            await self.trust.reward_verification_consensus(
                station_id, voter_id, vote, now,
            )
            await self.trust.penalize_contradictions(voter_id, now)

            voter_level = await self.trust.user_trust_level(voter_id)
            new_status = consensus_status_update(
                summary, vote, voter_level,
                StationStatus(station.status), self.trust.policy,
            )
            if new_status is not None:
                logger.info(
                    f"Vote consensus moved station {station.status} -> {new_status.value}",
                    extra=ctx.log_extra(),
                )
                station.status = new_status.value
                station.updated_at = now

            await self.trust.recompute_station_trust_level(station, now)
            score = await self.trust.trust_score(station, now)
            await self.db.commit()
            return VoteOutcome(record, summary, score, new_status)

        outcome = await run_with_storage_retry(
            self.db, _submit,
            max_retries=self.settings.storage_max_retries,
            base_delay_ms=self.settings.storage_base_delay_ms,
            max_delay_ms=self.settings.storage_max_delay_ms,
            context=ctx,
        )
        self.trust.cache.invalidate(station_id)
        return outcome

    async def get_summary(
        self, station_id: StationId,
    ) -> tuple[VerificationSummary, TrustScore]:
        station = await self.stations.get_station_or_404(station_id)
        now = clock.utcnow()
        summary = await self.trust.summarize(station_id, now)
        score = await self.trust.trust_score(station, now)
        return summary, score

    async def get_trust_score(self, station_id: StationId) -> TrustScore:
        station = await self.stations.get_station_or_404(station_id)
        return await self.trust.trust_score(station, clock.utcnow())

    async def get_history(
        self, station_id: StationId, limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[VerificationVote]:
        await self.stations.get_station_or_404(station_id)
        result = await self.db.execute(
            select(VerificationVote)
            .where(VerificationVote.station_id == station_id)
            .order_by(VerificationVote.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
