"""ChargingSession ORM — one user's use of one charger.

Invariants:
    - state transitions ACTIVE -> ENDED exactly once, never re-opened
    - At most one ACTIVE session per user: partial unique index
      uq_charging_sessions_user_active is the arbiter, not application code
    - Telemetry columns hold raw numbers; tiers are derived at presentation time

Design Decisions:
    - Partial unique index over a per-user lock table: a concurrent second
      INSERT fails with IntegrityError inside its own transaction, which rolls
      back the availability decrement in the same transaction
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from chargewatch.db.base import Base


class ChargingSession(Base):
    """Charging session — owned by its user, referenced by its station."""
    __tablename__ = "charging_sessions"
    __table_args__ = (
        Index(
            "uq_charging_sessions_user_active", "user_id",
            unique=True,
            postgresql_where=text("state = 'ACTIVE'"),
            sqlite_where=text("state = 'ACTIVE'"),
        ),
        Index("ix_charging_sessions_station_state", "station_id", "state"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    station_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("stations.id", ondelete="CASCADE"),
        nullable=False,
    )
    state: Mapped[str] = mapped_column(
        String(10), nullable=False, default="ACTIVE",
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    battery_start_percent: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    battery_end_percent: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    energy_kwh: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    user_vehicle_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_vehicles.id", ondelete="SET NULL"),
        nullable=True,
    )
    custom_vehicle_name: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    is_auto_tracked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    grid_voltage: Mapped[float | None] = mapped_column(Float, nullable=True)
    grid_frequency: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_current_a: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_power_kw: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_temp_c: Mapped[float | None] = mapped_column(Float, nullable=True)
    screenshot_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    station: Mapped["Station"] = relationship("Station", lazy="noload")
