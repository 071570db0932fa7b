"""ParkingSession ORM — one continuous occupancy of a slot, append-only.

Invariants:
    - entry_time immutable; exit_time set exactly once and >= entry_time
    - rate_per_hour is a snapshot taken at entry (later rate changes never apply)
    - status in {active, exited, completed}; completed is terminal
    - At most one active row per location (partial unique index)
    - Rows are never deleted

Design Decisions:
    - license_plate and owner_id denormalized at entry: owner filtering needs no
      JOIN and history stays readable after the vehicle is deleted
    - vehicle_id without a FK constraint: deleting a vehicle must not touch sessions
    - duration and cost are not columns: derived by core.billing on read;
      amount_charged records what was settled
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from parkledger.db.base import Base


class ParkingSession(Base):
    """Parking session — entry, exit and settlement of one stay."""
    __tablename__ = "parking_sessions"
    __table_args__ = (
        Index(
            "uq_active_session_per_location", "location",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_parking_sessions_entry_order", "entry_time", "seq"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True,
    )
    owner_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True,
    )
    license_plate: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active",
    )
    rate_per_hour: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False,
    )
    entry_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    exit_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    amount_charged: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True,
    )
