"""Parking Session Schemas — operator entry/exit input and session output.

Invariants:
    - EntryRequest/ExitRequest: plate and location non-empty after strip
    - SessionResponse carries duration and cost derived at response time
    - Timestamps are always serialized as aware UTC, whether the row was just
      written or re-read from a store that drops the offset

Design Decisions:
    - Money serialized as Decimal (JSON string with 2 decimals) so clients never
      see float rounding
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from parkledger.core.billing import (
    as_utc, format_duration, session_cost, session_duration_minutes,
)


def _utc_or_none(moment: datetime | None) -> datetime | None:
    return as_utc(moment) if moment is not None else None


class _SlotRequest(BaseModel):
    license_plate: str = Field(min_length=1, max_length=20)
    location: str = Field(min_length=1, max_length=50)

    @field_validator("license_plate", "location")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty or whitespace")
        return v


class EntryRequest(_SlotRequest):
    """Operator entry — owner_id optional (anonymous entries accepted)."""
    owner_id: str | None = Field(None, max_length=64)


class ExitRequest(_SlotRequest):
    """Operator exit of the active session for a plate at a slot."""


class SessionResponse(BaseModel):
    id: UUID
    vehicle_id: UUID | None = None
    owner_id: str | None = None
    license_plate: str
    location: str
    status: str
    entry_time: datetime
    exit_time: datetime | None = None
    rate_per_hour: Decimal
    duration_minutes: int
    duration: str
    cost: Decimal
    amount_charged: Decimal | None = None
    settled_at: datetime | None = None

    @classmethod
    def from_model(cls, session, now: datetime) -> "SessionResponse":
        minutes = session_duration_minutes(session, now)
        return cls(
            id=session.id,
            vehicle_id=session.vehicle_id,
            owner_id=session.owner_id,
            license_plate=session.license_plate,
            location=session.location,
            status=session.status,
            entry_time=as_utc(session.entry_time),
            exit_time=_utc_or_none(session.exit_time),
            rate_per_hour=session.rate_per_hour,
            duration_minutes=minutes,
            duration=format_duration(minutes),
            cost=session_cost(session, now),
            amount_charged=session.amount_charged,
            settled_at=_utc_or_none(session.settled_at),
        )


class SettlementFailureResponse(BaseModel):
    session_id: str
    code: str
    message: str


class SettlementReportResponse(BaseModel):
    settled: list[SessionResponse]
    failed: list[SettlementFailureResponse]
    total_settled: Decimal
