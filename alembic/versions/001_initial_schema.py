"""Initial schema — vehicles, parking_sessions.

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
        "vehicles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seq", sa.Integer, nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("license_plate", sa.String(20), nullable=False),
        sa.Column("brand", sa.String(50), nullable=True),
        sa.Column("color", sa.String(30), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_vehicles_seq", "vehicles", ["seq"])
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"])
    op.create_index("ix_vehicles_license_plate", "vehicles", ["license_plate"])
    op.create_index(
        "uq_vehicle_owner_plate", "vehicles", ["owner_id", "license_plate"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "parking_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seq", sa.Integer, nullable=False),
        sa.Column("vehicle_id", UUID(as_uuid=True), nullable=True),
        sa.Column("owner_id", sa.String(64), nullable=True),
        sa.Column("license_plate", sa.String(20), nullable=False),
        sa.Column("location", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("rate_per_hour", sa.Numeric(10, 2), nullable=False),
        sa.Column("entry_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("exit_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("amount_charged", sa.Numeric(10, 2), nullable=True),
    )
    op.create_index("ix_parking_sessions_vehicle_id", "parking_sessions", ["vehicle_id"])
    op.create_index("ix_parking_sessions_owner_id", "parking_sessions", ["owner_id"])
    op.create_index(
        "ix_parking_sessions_entry_order", "parking_sessions", ["entry_time", "seq"],
    )
    op.create_index(
        "uq_active_session_per_location", "parking_sessions", ["location"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_table("parking_sessions")
    op.drop_table("vehicles")
