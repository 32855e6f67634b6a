"""Initial schema — stations, votes, reports, vehicles, charging sessions, user trust.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "stations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("operator", sa.String(200), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        sa.Column("charger_type", sa.String(10), nullable=False),
        sa.Column("power_kw", sa.Float, nullable=True),
        sa.Column("charger_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("available_chargers", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPERATIONAL"),
        sa.Column("trust_level", sa.String(20), nullable=False, server_default="NORMAL"),
        sa.Column("is_hidden", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("approval_status", sa.String(10), nullable=False, server_default="APPROVED"),
        sa.Column("added_by_user_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("charger_count >= 1", name="ck_stations_charger_count"),
        sa.CheckConstraint(
            "available_chargers >= 0 AND available_chargers <= charger_count",
            name="ck_stations_available_bounds",
        ),
    )

    op.create_table(
        "verification_votes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "station_id", UUID(as_uuid=True),
            sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("voter_id", sa.String(128), nullable=False),
        sa.Column("vote", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_verification_votes_station_created", "verification_votes",
        ["station_id", "created_at"],
    )
    op.create_index(
        "ix_verification_votes_voter_created", "verification_votes",
        ["voter_id", "created_at"],
    )

    op.create_table(
        "reports",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "station_id", UUID(as_uuid=True),
            sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("reporter_id", sa.String(128), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("reason", sa.String(30), nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("review_status", sa.String(30), nullable=False, server_default="open"),
        sa.Column("reviewed_by", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_reports_station_created", "reports", ["station_id", "created_at"],
    )

    op.create_table(
        "vehicles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("battery_capacity_kwh", sa.Float, nullable=True),
        sa.Column("charger_type", sa.String(10), nullable=False),
        sa.Column("max_charging_power_kw", sa.Float, nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "user_vehicles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column(
            "vehicle_id", UUID(as_uuid=True),
            sa.ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("nickname", sa.String(100), nullable=True),
        sa.Column("license_plate", sa.String(20), nullable=True),
        sa.Column("color", sa.String(30), nullable=True),
        sa.Column("year", sa.Integer, nullable=True),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_user_vehicles_user_id", "user_vehicles", ["user_id"])
    # At most one default vehicle per user
    op.create_index(
        "uq_user_vehicles_default", "user_vehicles", ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    op.create_table(
        "charging_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column(
            "station_id", UUID(as_uuid=True),
            sa.ForeignKey("stations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("state", sa.String(10), nullable=False, server_default="ACTIVE"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("battery_start_percent", sa.Integer, nullable=True),
        sa.Column("battery_end_percent", sa.Integer, nullable=True),
        sa.Column("energy_kwh", sa.Float, nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column(
            "user_vehicle_id", UUID(as_uuid=True),
            sa.ForeignKey("user_vehicles.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("custom_vehicle_name", sa.String(100), nullable=True),
        sa.Column("is_auto_tracked", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("grid_voltage", sa.Float, nullable=True),
        sa.Column("grid_frequency", sa.Float, nullable=True),
        sa.Column("max_current_a", sa.Float, nullable=True),
        sa.Column("max_power_kw", sa.Float, nullable=True),
        sa.Column("max_temp_c", sa.Float, nullable=True),
        sa.Column("screenshot_path", sa.Text, nullable=True),
    )
    # At most one ACTIVE session per user; concurrent starts race on this index
    op.create_index(
        "uq_charging_sessions_user_active", "charging_sessions", ["user_id"],
        unique=True,
        postgresql_where=sa.text("state = 'ACTIVE'"),
    )
    op.create_index(
        "ix_charging_sessions_station_state", "charging_sessions",
        ["station_id", "state"],
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("trust_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("trust_level", sa.String(20), nullable=False, server_default="NEW"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "trust_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("scope_key", sa.String(200), nullable=False),
        sa.Column("delta", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_trust_events_lookup", "trust_events",
        ["user_id", "kind", "scope_key", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("trust_events")
    op.drop_table("users")
    op.drop_index("ix_charging_sessions_station_state", table_name="charging_sessions")
    op.drop_index("uq_charging_sessions_user_active", table_name="charging_sessions")
    op.drop_table("charging_sessions")
    op.drop_index("uq_user_vehicles_default", table_name="user_vehicles")
    op.drop_index("ix_user_vehicles_user_id", table_name="user_vehicles")
    op.drop_table("user_vehicles")
    op.drop_table("vehicles")
    op.drop_index("ix_reports_station_created", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_verification_votes_voter_created", table_name="verification_votes")
    op.drop_index("ix_verification_votes_station_created", table_name="verification_votes")
    op.drop_table("verification_votes")
    op.drop_table("stations")
