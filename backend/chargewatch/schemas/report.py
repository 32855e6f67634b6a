"""Report Schemas — report submission and admin review."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from chargewatch.core.domain_types import ReportReason, ReportStatus, ReviewStatus


class ReportCreate(BaseModel):
    status: ReportStatus
    reason: ReportReason | None = None
    note: str | None = Field(None, max_length=2000)


class ReportReview(BaseModel):
    review_status: ReviewStatus


class ReportResponse(BaseModel):
    id: UUID
    station_id: UUID
    reporter_id: str
    status: ReportStatus
    reason: ReportReason | None
    note: str | None
    review_status: ReviewStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class AdminReportResponse(ReportResponse):
    station_name: str
    reviewed_by: str | None

    @classmethod
    def from_row(cls, report, station_name: str) -> "AdminReportResponse":
        return cls(
            **ReportResponse.model_validate(report).model_dump(),
            station_name=station_name,
            reviewed_by=report.reviewed_by,
        )
