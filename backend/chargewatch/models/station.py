"""Station ORM — a charging location and its live availability counter.

Invariants:
    - 0 <= available_chargers <= charger_count (CHECK constraint, not just app code)
    - status is the manually-set operational status (OPERATIONAL/MAINTENANCE/OFFLINE)
    - trust_level is derived and written only by the trust recomputation
    - Only APPROVED, non-hidden stations are public; the rest are admin-only

Design Decisions:
    - available_chargers mutated via conditional UPDATE statements only
      (services/charging_sessions.py) — never read-modify-write in Python
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Float, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from chargewatch.db.base import Base


class Station(Base):
    """Charging station — aggregate root for votes, reports and sessions."""
    __tablename__ = "stations"
    __table_args__ = (
        CheckConstraint("charger_count >= 1", name="ck_stations_charger_count"),
        CheckConstraint(
            "available_chargers >= 0 AND available_chargers <= charger_count",
            name="ck_stations_available_bounds",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    operator: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    charger_type: Mapped[str] = mapped_column(String(10), nullable=False)
    power_kw: Mapped[float | None] = mapped_column(Float, nullable=True)
    charger_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    available_chargers: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="OPERATIONAL",
    )
    trust_level: Mapped[str] = mapped_column(
        String(20), nullable=False, default="NORMAL",
    )
    is_hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    approval_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="APPROVED",
    )
    added_by_user_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Relationships: never loaded eagerly, vote history can be large
    votes: Mapped[list["VerificationVote"]] = relationship(
        "VerificationVote", back_populates="station",
        cascade="all, delete-orphan", lazy="noload",
    )
    reports: Mapped[list["Report"]] = relationship(
        "Report", back_populates="station",
        cascade="all, delete-orphan", lazy="noload",
    )
