"""Trust Service — loads vote/report/session history and feeds it to the pure engine.

Invariants:
    - summarize() is read-only and reentrant: safe for many concurrent readers
    - Trust recomputation writes only Station.trust_level / User rows / TrustEvents,
      inside the caller's transaction (caller commits)
    - Cooldowns read from the trust_events ledger, never from process memory

Design Decisions:
    - Summaries recomputed on every read; the optional cache is bypassed by
      writers so a vote's own response always reflects that vote
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import (
    ReportStatus, ReviewStatus, SessionState, StationId, StationTrustLevel,
    TrustEventKind, TrustPolicy, UserId, UserTrustLevel, VoteCategory,
)
from chargewatch.core.trust_score import (
    TrustScore, compute_station_trust_level, compute_trust_score,
)
from chargewatch.core.user_trust import (
    CONSENSUS_WINDOW, CONTRADICTION_LOOKBACK, CONTRADICTION_PENALTY,
    REPORT_CONSENSUS_WINDOW, REPORT_REWARD, VERIFICATION_REWARD,
    apply_delta, cooldown_elapsed, count_contradictions,
    should_penalize, vote_matches_consensus,
)
from chargewatch.core.verification import (
    VerificationSummary, VoteRecord, summarize_votes,
)
from chargewatch.infrastructure.summary_cache import get_summary_cache
from chargewatch.models.charging_session import ChargingSession
from chargewatch.models.report import Report
from chargewatch.models.station import Station
from chargewatch.models.trust_event import TrustEvent
from chargewatch.models.user import User
from chargewatch.models.verification_vote import VerificationVote

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"


def to_record(vote: VerificationVote) -> VoteRecord:
    return VoteRecord(
        voter_id=vote.voter_id, vote=vote.vote, created_at=vote.created_at,
    )


class TrustService:
    """Station verification summaries, station trust levels, user reputation."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.policy: TrustPolicy = settings.trust_policy()
        self.cache = get_summary_cache(settings.effective_cache_ttl())

    # ─── Verification summary ───────────────────────────────────

    async def load_votes(self, station_id: StationId) -> list[VoteRecord]:
        result = await self.db.execute(
            select(VerificationVote)
            .where(VerificationVote.station_id == station_id)
        )
        return [to_record(v) for v in result.scalars().all()]

    async def summarize(
        self, station_id: StationId, now: datetime, use_cache: bool = True,
    ) -> VerificationSummary:
        if use_cache:
            cached = self.cache.get(station_id)
            if cached is not None:
                return cached
        summary = summarize_votes(
            await self.load_votes(station_id), now, self.policy,
        )
        if use_cache:
            self.cache.put(station_id, summary)
        return summary

    async def summarize_many(
        self, station_ids: list[StationId], now: datetime,
    ) -> dict[StationId, VerificationSummary]:
        """Batch summaries for listings: one query for all stations."""
        if not station_ids:
            return {}
        result = await self.db.execute(
            select(VerificationVote)
            .where(VerificationVote.station_id.in_(station_ids))
        )
        grouped: dict[StationId, list[VoteRecord]] = {sid: [] for sid in station_ids}
        for vote in result.scalars().all():
            grouped[vote.station_id].append(to_record(vote))
        return {
            sid: summarize_votes(votes, now, self.policy)
            for sid, votes in grouped.items()
        }

    # ─── Station trust level ────────────────────────────────────

    async def recompute_station_trust_level(
        self, station: Station, now: datetime,
    ) -> StationTrustLevel:
        """Recompute and stage station.trust_level. Caller commits."""
        cutoff = now - timedelta(days=self.policy.trust_horizon_days)

        reports = await self.db.execute(
            select(Report.created_at).where(
                Report.station_id == station.id,
                Report.status == ReportStatus.NOT_WORKING.value,
                Report.created_at >= cutoff,
            )
        )
        votes = await self.db.execute(
            select(VerificationVote.created_at).where(
                VerificationVote.station_id == station.id,
                VerificationVote.vote == VoteCategory.WORKING.value,
                VerificationVote.created_at >= cutoff,
            )
        )
        sessions = await self.db.execute(
            select(ChargingSession.end_time).where(
                ChargingSession.station_id == station.id,
                ChargingSession.state == SessionState.ENDED.value,
                ChargingSession.end_time >= cutoff,
            )
        )
        corroborations = list(votes.scalars().all()) + [
            t for t in sessions.scalars().all() if t is not None
        ]
        level = compute_station_trust_level(
            reports.scalars().all(), corroborations, now, self.policy,
        )
        if station.trust_level != level.value:
            logger.info(
                f"Station trust level {station.trust_level} -> {level.value}",
                extra={"station_id": station.id, "operation": "trust_level"},
            )
            station.trust_level = level.value
        return level

    async def trust_score(self, station: Station, now: datetime) -> TrustScore:
        vote_times = await self.db.execute(
            select(VerificationVote.created_at)
            .where(VerificationVote.station_id == station.id)
        )
        report_rows = await self.db.execute(
            select(Report.created_at, Report.review_status)
            .where(Report.station_id == station.id)
        )
        vote_stamps = list(vote_times.scalars().all())
        reports = report_rows.all()
        open_reports = [
            created for created, review in reports
            if review == ReviewStatus.OPEN.value
        ]
        activity = [
            station.updated_at or station.created_at,
            max(vote_stamps) if vote_stamps else None,
            max((created for created, _ in reports), default=None),
        ]
        return compute_trust_score(vote_stamps, open_reports, activity, now)

    # ─── User reputation ────────────────────────────────────────

    async def user_trust_level(self, user_id: UserId) -> UserTrustLevel:
        user = await self.db.get(User, user_id)
        if user is None:
            return UserTrustLevel.NEW
        return UserTrustLevel(user.trust_level)

    async def _last_event_at(
        self, user_id: UserId, kind: TrustEventKind, scope_key: str,
    ) -> datetime | None:
        result = await self.db.execute(
            select(TrustEvent.created_at)
            .where(
                TrustEvent.user_id == user_id,
                TrustEvent.kind == kind.value,
                TrustEvent.scope_key == scope_key,
            )
            .order_by(TrustEvent.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _apply_delta(
        self, user_id: UserId, delta: int, kind: TrustEventKind,
        scope_key: str, now: datetime,
    ) -> None:
        user = await self.db.get(User, user_id)
        if user is None:
            user = User(id=user_id, trust_score=0, trust_level="NEW", updated_at=now)
            self.db.add(user)
        user.trust_score, level = apply_delta(user.trust_score or 0, delta)
        user.trust_level = level.value
        user.updated_at = now
        self.db.add(TrustEvent(
            user_id=user_id, kind=kind.value, scope_key=scope_key,
            delta=delta, created_at=now,
        ))
        logger.info(
            f"User trust {kind.value} {delta:+d} -> {user.trust_score}",
            extra={"user_id": user_id, "operation": "user_trust"},
        )

    async def reward_verification_consensus(
        self, station_id: StationId, user_id: UserId, vote: VoteCategory,
        now: datetime,
    ) -> bool:
        scope = str(station_id)
        last = await self._last_event_at(
            user_id, TrustEventKind.VERIFICATION_REWARD, scope,
        )
        if not cooldown_elapsed(last, now, CONSENSUS_WINDOW):
            return False
        result = await self.db.execute(
            select(VerificationVote).where(
                VerificationVote.station_id == station_id,
                VerificationVote.created_at >= now - CONSENSUS_WINDOW,
            )
        )
        recent = [to_record(v) for v in result.scalars().all()]
        if not vote_matches_consensus(recent, vote.value, now, self.policy):
            return False
        await self._apply_delta(
            user_id, VERIFICATION_REWARD,
            TrustEventKind.VERIFICATION_REWARD, scope, now,
        )
        return True

    async def penalize_contradictions(self, user_id: UserId, now: datetime) -> bool:
        last = await self._last_event_at(
            user_id, TrustEventKind.CONTRADICTION_PENALTY, GLOBAL_SCOPE,
        )
        if not cooldown_elapsed(last, now, CONTRADICTION_LOOKBACK):
            return False
        result = await self.db.execute(
            select(VerificationVote).where(
                VerificationVote.voter_id == user_id,
                VerificationVote.created_at >= now - CONTRADICTION_LOOKBACK,
            )
        )
        pairs: list[tuple[VoteRecord, list[VoteRecord]]] = []
        for own in result.scalars().all():
            following = await self.db.execute(
                select(VerificationVote).where(
                    VerificationVote.station_id == own.station_id,
                    and_(
                        VerificationVote.created_at >= own.created_at,
                        VerificationVote.created_at
                        <= own.created_at + CONSENSUS_WINDOW,
                    ),
                )
            )
            pairs.append(
                (to_record(own), [to_record(v) for v in following.scalars().all()]),
            )
        if not should_penalize(count_contradictions(pairs, self.policy)):
            return False
        await self._apply_delta(
            user_id, CONTRADICTION_PENALTY,
            TrustEventKind.CONTRADICTION_PENALTY, GLOBAL_SCOPE, now,
        )
        return True

    async def reward_report_consensus(
        self, station_id: StationId, reason: str, now: datetime,
    ) -> int:
        """+2 to every reporter of a reason that reached consensus. Returns count."""
        result = await self.db.execute(
            select(Report).where(
                Report.station_id == station_id,
                Report.reason == reason,
                Report.created_at >= now - REPORT_CONSENSUS_WINDOW,
            )
        )
        reports = result.scalars().all()
        if len(reports) < self.policy.consensus_min_votes:
            return 0

        scope = f"{station_id}:{reason}"
        rewarded = 0
        for reporter_id in {r.reporter_id for r in reports if r.reporter_id}:
            last = await self._last_event_at(
                reporter_id, TrustEventKind.REPORT_REWARD, scope,
            )
            if not cooldown_elapsed(last, now, REPORT_CONSENSUS_WINDOW):
                continue
            await self._apply_delta(
                reporter_id, REPORT_REWARD, TrustEventKind.REPORT_REWARD, scope, now,
            )
            rewarded += 1
        return rewarded

