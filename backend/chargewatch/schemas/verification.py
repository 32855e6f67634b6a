"""Verification Schemas — vote submission and the verification summary envelope."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from chargewatch.core.domain_types import VoteCategory
from chargewatch.core.trust_score import TrustScore, trust_score_label
from chargewatch.core.verification import VerificationSummary


class VoteCreate(BaseModel):
    vote: VoteCategory


class VoteResponse(BaseModel):
    id: UUID
    station_id: UUID
    voter_id: str
    vote: VoteCategory
    created_at: datetime

    model_config = {"from_attributes": True}


class VerificationSummaryResponse(BaseModel):
    score: int | None = None
    label: str | None = None
    total_votes: int
    leading_vote: VoteCategory | None
    is_verified: bool
    is_strong_verified: bool
    last_verified_at: datetime | None
    working: int
    not_working: int
    busy: int

    @classmethod
    def build(
        cls, summary: VerificationSummary, score: TrustScore | None = None,
    ) -> "VerificationSummaryResponse":
        return cls(
            score=score.score if score else None,
            label=trust_score_label(score.score) if score else None,
            total_votes=summary.total_votes,
            leading_vote=summary.leading_vote,
            is_verified=summary.is_verified,
            is_strong_verified=summary.is_strong_verified,
            last_verified_at=summary.last_verified_at,
            working=summary.working,
            not_working=summary.not_working,
            busy=summary.busy,
        )


class VoteSubmitResponse(BaseModel):
    verification: VoteResponse
    summary: VerificationSummaryResponse


class TrustScoreResponse(BaseModel):
    score: int
    label: str
    components: dict[str, int]

    @classmethod
    def build(cls, score: TrustScore) -> "TrustScoreResponse":
        return cls(
            score=score.score,
            label=trust_score_label(score.score),
            components={
                "verification_score": score.verification_score,
                "report_score": score.report_score,
                "recency_score": score.recency_score,
            },
        )
