"""User ORM — reputation record for a voter/reporter.

Invariants:
    - id is the auth collaborator's opaque user id (no credentials stored here)
    - trust_score >= 0; trust_level always matches trust_level_for_score(trust_score)
    - Rows created lazily on the first trust adjustment
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chargewatch.db.base import Base


class User(Base):
    """User reputation — drives the trusted-voter fast path."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    trust_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    trust_level: Mapped[str] = mapped_column(
        String(20), nullable=False, default="NEW",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
