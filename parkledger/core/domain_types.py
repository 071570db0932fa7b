"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - VehicleId, SessionId wrap UUIDs; OwnerId wraps the identity resolver's string id
    - Rates and money are Decimal, never float
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to DB String columns without custom encoders
"""

from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

VehicleId = NewType("VehicleId", UUID)
SessionId = NewType("SessionId", UUID)
OwnerId = NewType("OwnerId", str)


# ─── Value Types ─────────────────────────────────────────────────

Money = NewType("Money", Decimal)            # 2 decimal places, ROUND_HALF_UP
RatePerHour = NewType("RatePerHour", Decimal)


# ─── Enums ───────────────────────────────────────────────────────

class SessionStatus(str, Enum):
    """ParkingSession lifecycle states — maps to DB `status` column.

    EXITED is only reachable under SettlementMode.SEPARATE.
    """
    ACTIVE = "active"
    EXITED = "exited"
    COMPLETED = "completed"


class SettlementMode(str, Enum):
    """Whether an operator exit also settles payment."""
    EXIT_SETTLES = "exit_settles"
    SEPARATE = "separate"


class Role(str, Enum):
    """Actor roles resolved from a credential token."""
    OWNER = "owner"
    OPERATOR = "operator"


# Tuple, not set: membership must use == so plain DB strings match the enum
UNPAID_STATUSES: tuple[SessionStatus, ...] = (
    SessionStatus.ACTIVE, SessionStatus.EXITED,
)
