"""Boundary Protocols — contracts between core and the collaborators it consumes.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Clock, rate policy and identity resolution reach the core only through these types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain objects
    - Collaborators here are synchronous: none of them does IO in this system
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from parkledger.core.domain_types import OwnerId, Role


@dataclass(frozen=True)
class Identity:
    """Resolved caller identity."""
    owner_id: OwnerId
    role: Role


class Clock(Protocol):
    """Source of the current time. Must return timezone-aware UTC datetimes."""
    def now(self) -> datetime: ...


class RatePolicy(Protocol):
    """Per-hour rate for a location, queried once at entry."""
    def rate_for(self, location: str) -> Decimal: ...


class IdentityResolver(Protocol):
    """Maps a credential token to an Identity or raises AuthError."""
    def resolve(self, token: str) -> Identity: ...


class SessionLike(Protocol):
    """Structural contract for ParkingSession rows consumed by billing and views.

    Avoids coupling the pure core to the ORM model.
    """
    id: UUID
    location: str
    status: str
    entry_time: datetime
    exit_time: datetime | None
    rate_per_hour: Decimal
    owner_id: str | None
