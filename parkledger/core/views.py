"""Occupancy & Account Views — lot-wide and per-owner aggregates. Pure, no IO.

Invariants:
    - Recomputed from scratch on every call (no cache, nothing to invalidate)
    - available_spots never negative
    - Money sums are Decimal and use the same per-session cost as billing

Design Decisions:
    - Pure functions over session snapshots, not methods on the ledger: the
      ledger owns state, views are presentation
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from parkledger.core.billing import session_cost
from parkledger.core.domain_types import SessionStatus, UNPAID_STATUSES
from parkledger.core.repository_protocols import SessionLike


@dataclass(frozen=True)
class OccupancyView:
    parked_count: int
    available_spots: int
    total_capacity: int
    pending_revenue: Decimal
    occupied_locations: list[str]


@dataclass(frozen=True)
class AccountView:
    total_balance: Decimal
    unpaid_balance: Decimal
    session_count: int
    active_count: int


def compute_occupancy(
    sessions: Iterable[SessionLike], total_capacity: int, now: datetime,
) -> OccupancyView:
    """Aggregate the active sessions of the whole lot."""
    active = [s for s in sessions if s.status == SessionStatus.ACTIVE]
    pending = sum((session_cost(s, now) for s in active), Decimal("0.00"))
    return OccupancyView(
        parked_count=len(active),
        available_spots=max(0, total_capacity - len(active)),
        total_capacity=total_capacity,
        pending_revenue=pending,
        occupied_locations=sorted(s.location for s in active),
    )


def compute_account(
    sessions: Iterable[SessionLike], owner_id: str, now: datetime,
) -> AccountView:
    """Aggregate one owner's sessions. Sessions of other owners are ignored."""
    owned = [s for s in sessions if s.owner_id == owner_id]
    total = Decimal("0.00")
    unpaid = Decimal("0.00")
    for s in owned:
        cost = session_cost(s, now)
        total += cost
        if s.status in UNPAID_STATUSES:
            unpaid += cost
    return AccountView(
        total_balance=total,
        unpaid_balance=unpaid,
        session_count=len(owned),
        active_count=sum(1 for s in owned if s.status == SessionStatus.ACTIVE),
    )
