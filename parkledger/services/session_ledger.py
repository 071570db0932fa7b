"""Session Ledger — authoritative, append-only record of parking sessions.

Invariants:
    - One asyncio.Lock per ledger (borrowed from its VehicleRegistry) serializes
      record_entry, record_exit, mark_exited and settle_payment
    - Each mutation is one transaction: fully applied or fully rolled back;
      store failures propagate to the caller untouched
    - rate_per_hour snapshotted from the RatePolicy at entry, never re-read
    - exit_time set exactly once, never earlier than entry_time
    - completed is terminal; settling it again raises ConflictError
    - Reads return detached rows; views are computed outside the lock

Design Decisions:
    - Pure rules (core.ledger_rules) decide, this shell loads and persists
    - settle_all_unpaid settles each session independently and reports
      failures instead of aborting the batch
    - seq assigned under the lock: stable ordering when entry times tie
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkledger.core.billing import as_utc, session_cost
from parkledger.core.domain_types import (
    SessionStatus, SettlementMode, UNPAID_STATUSES,
)
from parkledger.core.errors import ErrorContext, NotFoundError, ParkingError
from parkledger.core.ledger_rules import (
    check_can_exit,
    check_can_settle,
    check_slot_free,
    coerce_id,
    normalize_location,
    normalize_plate,
    status_after_exit,
)
from parkledger.core.repository_protocols import RatePolicy
from parkledger.core.views import (
    AccountView, OccupancyView, compute_account, compute_occupancy,
)
from parkledger.models.parking_session import ParkingSession
from parkledger.services.vehicle_registry import SessionScope, VehicleRegistry

logger = logging.getLogger(__name__)


@dataclass
class SettlementFailure:
    session_id: str
    code: str
    message: str


@dataclass
class SettlementReport:
    """Outcome of settle_all_unpaid."""
    settled: list[ParkingSession] = field(default_factory=list)
    failed: list[SettlementFailure] = field(default_factory=list)

    @property
    def total_settled(self) -> Decimal:
        return sum(
            (s.amount_charged or Decimal("0.00") for s in self.settled),
            Decimal("0.00"),
        )


class SessionLedger:
    """Parking session lifecycle: entry, exit, settlement, listing, views."""

    def __init__(
        self,
        session_scope: SessionScope,
        registry: VehicleRegistry,
        rate_policy: RatePolicy,
        settlement_mode: SettlementMode = SettlementMode.EXIT_SETTLES,
        total_capacity: int = 100,
    ):
        self._scope = session_scope
        self.registry = registry
        self.rate_policy = rate_policy
        self.clock = registry.clock
        self.settlement_mode = SettlementMode(settlement_mode)
        self.total_capacity = total_capacity
        self._lock = registry.lock

    # ─── Mutations ──────────────────────────────────────────────

    async def record_entry(
        self, license_plate: str, location: str, owner_id: str | None = None,
    ) -> ParkingSession:
        """Open a session at a free slot.

        The plate is resolved through the registry; an unregistered plate
        without owner_id is accepted as an anonymous entry.
        """
        plate = normalize_plate(license_plate)
        slot = normalize_location(location)

        async with self._lock:
            async with self._scope() as db:
                check_slot_free(await self._active_at(db, slot), slot)
                vehicle = await self.registry.resolve_plate(plate, owner_id, db=db)
                session = ParkingSession(
                    seq=await self._next_seq(db),
                    vehicle_id=vehicle.id if vehicle else None,
                    owner_id=vehicle.owner_id if vehicle else None,
                    license_plate=plate,
                    location=slot,
                    status=SessionStatus.ACTIVE.value,
                    rate_per_hour=self.rate_policy.rate_for(slot),
                    entry_time=self.clock.now(),
                )
                db.add(session)
                await db.commit()

        logger.info(
            f"Entry recorded for {plate} at {slot}",
            extra={
                "session_id": session.id, "location": slot,
                "owner_id": session.owner_id,
            },
        )
        return session

    async def record_exit(self, license_plate: str, location: str) -> ParkingSession:
        """Close the active session of a plate at a slot. NotFoundError if none."""
        plate = normalize_plate(license_plate)
        slot = normalize_location(location)

        async with self._lock:
            async with self._scope() as db:
                result = await db.execute(
                    select(ParkingSession)
                    .where(ParkingSession.license_plate == plate)
                    .where(ParkingSession.location == slot)
                    .where(ParkingSession.status == SessionStatus.ACTIVE.value)
                )
                session = result.scalar_one_or_none()
                if session is None:
                    raise NotFoundError(
                        "Active session", f"{plate}@{slot}",
                        ErrorContext(location=slot),
                    )
                self._apply_exit(session)
                await db.commit()

        self._log_exit(session)
        return session

    async def mark_exited(self, session_id) -> ParkingSession:
        """Operator exit addressed by session id; frees the slot."""
        async with self._lock:
            async with self._scope() as db:
                session = await self._get_or_404(db, session_id)
                check_can_exit(session)
                self._apply_exit(session)
                await db.commit()

        self._log_exit(session)
        return session

    async def settle_payment(
        self, session_id, owner_id: str | None = None,
    ) -> ParkingSession:
        """Pay a session. ConflictError if it is already completed.

        An active session is ended at the same time (exit_time = now).
        With owner_id, a session of another owner is reported as not found.
        """
        async with self._lock:
            async with self._scope() as db:
                session = await self._get_or_404(db, session_id)
                if owner_id is not None and session.owner_id != owner_id:
                    raise NotFoundError("Session", str(session_id))
                check_can_settle(session)
                now = self.clock.now()
                if session.exit_time is None:
                    session.exit_time = self._exit_time(session, now)
                self._complete(session, now)
                await db.commit()

        logger.info(
            f"Session settled: {session.amount_charged}",
            extra={
                "session_id": session.id, "owner_id": session.owner_id,
                "location": session.location,
            },
        )
        return session

    async def settle_all_unpaid(self, owner_id: str) -> SettlementReport:
        """Settle every unpaid session of an owner, one transaction each."""
        report = SettlementReport()
        pending = await self.list_sessions(owner_id=owner_id, unpaid_only=True)
        for session in pending:
            try:
                report.settled.append(
                    await self.settle_payment(session.id, owner_id=owner_id),
                )
            except ParkingError as e:
                logger.warning(
                    f"Settlement failed: {e.message}",
                    extra={"session_id": session.id, "error_code": e.code},
                )
                report.failed.append(
                    SettlementFailure(str(session.id), e.code, e.message),
                )
        logger.info(
            f"Settled {len(report.settled)} of {len(pending)} unpaid sessions",
            extra={"owner_id": owner_id},
        )
        return report

    # ─── Reads ──────────────────────────────────────────────────

    async def get_session(self, session_id) -> ParkingSession:
        async with self._scope() as db:
            return await self._get_or_404(db, session_id)

    async def list_sessions(
        self,
        owner_id: str | None = None,
        active_only: bool = False,
        unpaid_only: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ParkingSession]:
        """Sessions by entry_time ascending (insertion order on ties)."""
        query = select(ParkingSession)
        if owner_id is not None:
            query = query.where(ParkingSession.owner_id == owner_id)
        if active_only:
            query = query.where(
                ParkingSession.status == SessionStatus.ACTIVE.value,
            )
        if unpaid_only:
            query = query.where(
                ParkingSession.status.in_([s.value for s in UNPAID_STATUSES]),
            )
        query = query.order_by(ParkingSession.entry_time, ParkingSession.seq)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async with self._scope() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def occupancy_view(self) -> OccupancyView:
        active = await self.list_sessions(active_only=True)
        return compute_occupancy(active, self.total_capacity, self.clock.now())

    async def account_view(self, owner_id: str) -> AccountView:
        owned = await self.list_sessions(owner_id=owner_id)
        return compute_account(owned, owner_id, self.clock.now())

    def cost_of(self, session: ParkingSession) -> Decimal:
        """Current cost of a session (frozen once it has an exit_time)."""
        return session_cost(session, self.clock.now())

    # ─── Helpers ────────────────────────────────────────────────

    async def _active_at(self, db: AsyncSession, slot: str) -> ParkingSession | None:
        result = await db.execute(
            select(ParkingSession)
            .where(ParkingSession.location == slot)
            .where(ParkingSession.status == SessionStatus.ACTIVE.value)
        )
        return result.scalars().first()

    async def _next_seq(self, db: AsyncSession) -> int:
        current = await db.scalar(
            select(func.coalesce(func.max(ParkingSession.seq), 0)),
        )
        return current + 1

    async def _get_or_404(self, db: AsyncSession, session_id) -> ParkingSession:
        session = await db.get(ParkingSession, coerce_id(session_id, "Session"))
        if session is None:
            raise NotFoundError(
                "Session", str(session_id), ErrorContext(session_id=str(session_id)),
            )
        return session

    @staticmethod
    def _exit_time(session: ParkingSession, now: datetime) -> datetime:
        # Clock skew: exit never precedes entry
        return max(as_utc(now), as_utc(session.entry_time))

    def _apply_exit(self, session: ParkingSession) -> None:
        now = self.clock.now()
        session.exit_time = self._exit_time(session, now)
        if status_after_exit(self.settlement_mode) == SessionStatus.COMPLETED:
            self._complete(session, now)
        else:
            session.status = SessionStatus.EXITED.value

    @staticmethod
    def _complete(session: ParkingSession, now: datetime) -> None:
        session.status = SessionStatus.COMPLETED.value
        session.settled_at = now
        session.amount_charged = session_cost(session, now)

    def _log_exit(self, session: ParkingSession) -> None:
        logger.info(
            f"Exit recorded for {session.license_plate} at {session.location}",
            extra={
                "session_id": session.id, "location": session.location,
                "status": session.status,
            },
        )
