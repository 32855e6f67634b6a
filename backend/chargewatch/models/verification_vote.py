"""VerificationVote ORM — append-only log of community votes.

Invariants:
    - Immutable once created; a new vote never overwrites an older one
    - vote in {WORKING, NOT_WORKING, BUSY}
    - Indexed on (station_id, created_at) for history reads

Design Decisions:
    - Dedup by voter happens at read time in core/verification.py, not via a
      unique constraint: history stays intact for contradiction checks
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from chargewatch.db.base import Base


class VerificationVote(Base):
    """A single WORKING/NOT_WORKING/BUSY vote cast by a user."""
    __tablename__ = "verification_votes"
    __table_args__ = (
        Index("ix_verification_votes_station_created", "station_id", "created_at"),
        Index("ix_verification_votes_voter_created", "voter_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    station_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("stations.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_id: Mapped[str] = mapped_column(String(128), nullable=False)
    vote: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    station: Mapped["Station"] = relationship(
        "Station", back_populates="votes",
    )
