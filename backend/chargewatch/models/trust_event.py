"""TrustEvent ORM — append-only ledger of user trust adjustments.

Invariants:
    - One row per applied delta; cooldowns are read back from this table
    - scope_key identifies what was rewarded (station, station+reason) for cooldowns

Design Decisions:
    - Persisted instead of process memory: cooldowns survive restarts and
      are shared by every worker
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from chargewatch.db.base import Base


class TrustEvent(Base):
    """A single applied reputation delta."""
    __tablename__ = "trust_events"
    __table_args__ = (
        Index("ix_trust_events_lookup", "user_id", "kind", "scope_key", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    scope_key: Mapped[str] = mapped_column(String(200), nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
