"""Vehicle ORM — a vehicle registered to one owner account.

Invariants:
    - id is UUID primary key
    - license_plate stored normalized; unique per owner among live vehicles,
      not globally
    - seq is strictly increasing in registration order (list ordering)
    - deleted_at set once on deletion; the row stays as a tombstone so a
      second delete is distinguishable from an unknown id

Design Decisions:
    - No relationship to ParkingSession: sessions keep a plain reference so a
      deleted vehicle leaves its history untouched
    - Plate uniqueness is a partial index on live rows: a deleted plate can be
      registered again by the same owner
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from parkledger.db.base import Base


class Vehicle(Base):
    """Vehicle registered by its owner."""
    __tablename__ = "vehicles"
    __table_args__ = (
        Index(
            "uq_vehicle_owner_plate", "owner_id", "license_plate",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    license_plate: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    brand: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
