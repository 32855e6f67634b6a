"""Vehicle ORM — the shared catalog of EV models users pick from.

Invariants:
    - Read-only to the API; rows come from migrations or operators
    - charger_type uses the station vocabulary (AC/DC/BOTH)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from chargewatch.db.base import Base


class Vehicle(Base):
    """Catalog entry — one make and model of electric vehicle."""
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    battery_capacity_kwh: Mapped[float | None] = mapped_column(
        Float, nullable=True,
    )
    charger_type: Mapped[str] = mapped_column(String(10), nullable=False)
    max_charging_power_kw: Mapped[float | None] = mapped_column(
        Float, nullable=True,
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
