"""Vehicle Registry — owner-scoped vehicle registration, deletion and plate lookup.

Invariants:
    - A plate is unique per owner (normalized before comparison), not globally
    - A vehicle with an active session cannot be deleted
    - Deletion is a tombstone (deleted_at): deleting twice is a ConflictError,
      deleted vehicles are invisible to listing, lookup and duplicate checks
    - Deleting a vehicle never touches historical sessions
    - Every mutation runs under the lock shared with the SessionLedger, in its
      own transaction (commit on success, rollback on failure)

Design Decisions:
    - The lock lives here and the ledger borrows it: delete_vehicle and
      record_entry must see the same active-session set
    - resolve_plate accepts the caller's AsyncSession so the ledger can resolve
      inside its own transaction
"""

import asyncio
import logging
from typing import AsyncContextManager, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkledger.core.domain_types import SessionStatus
from parkledger.core.errors import (
    ConflictError, ErrorContext, NotFoundError, ValidationError,
)
from parkledger.core.ledger_rules import (
    check_vehicle_deletable, check_vehicle_live, coerce_id, normalize_plate,
)
from parkledger.core.repository_protocols import Clock
from parkledger.models.parking_session import ParkingSession
from parkledger.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]

MAX_BRAND_LENGTH: int = 50
MAX_COLOR_LENGTH: int = 30


def _optional_text(value: str | None, field: str, max_length: int) -> str | None:
    text = (value or "").strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds {max_length} characters", field=field)
    return text or None


def _require_owner(owner_id: str | None) -> str:
    owner = (owner_id or "").strip()
    if not owner:
        raise ValidationError("owner_id cannot be empty", field="owner_id")
    return owner


class VehicleRegistry:
    """Vehicles known to each owner account."""

    def __init__(
        self,
        session_scope: SessionScope,
        clock: Clock,
        lock: asyncio.Lock | None = None,
    ):
        self._scope = session_scope
        self.clock = clock
        self.lock = lock or asyncio.Lock()

    async def register_vehicle(
        self,
        owner_id: str,
        license_plate: str,
        brand: str | None = None,
        color: str | None = None,
    ) -> Vehicle:
        """Register a plate to an owner. ValidationError if empty or a duplicate."""
        owner = _require_owner(owner_id)
        plate = normalize_plate(license_plate)
        brand = _optional_text(brand, "brand", MAX_BRAND_LENGTH)
        color = _optional_text(color, "color", MAX_COLOR_LENGTH)

        async with self.lock:
            async with self._scope() as db:
                existing = await db.execute(
                    select(Vehicle.id)
                    .where(Vehicle.owner_id == owner)
                    .where(Vehicle.license_plate == plate)
                    .where(Vehicle.deleted_at.is_(None))
                )
                if existing.first() is not None:
                    raise ValidationError(
                        f"License plate {plate} is already registered to this account",
                        field="license_plate",
                    )
                next_seq = await db.scalar(
                    select(func.coalesce(func.max(Vehicle.seq), 0)),
                )
                vehicle = Vehicle(
                    seq=next_seq + 1,
                    owner_id=owner,
                    license_plate=plate,
                    brand=brand,
                    color=color,
                    registered_at=self.clock.now(),
                )
                db.add(vehicle)
                await db.commit()

        logger.info(
            f"Vehicle {plate} registered",
            extra={"vehicle_id": vehicle.id, "owner_id": owner},
        )
        return vehicle

    async def delete_vehicle(self, vehicle_id, owner_id: str | None = None) -> None:
        """Remove a vehicle. ConflictError while it is parked or if already deleted.

        With owner_id, a vehicle of another owner is reported as not found.
        """
        async with self.lock:
            async with self._scope() as db:
                vehicle = await db.get(Vehicle, coerce_id(vehicle_id, "Vehicle"))
                if vehicle is None or (
                    owner_id is not None and vehicle.owner_id != owner_id
                ):
                    raise NotFoundError(
                        "Vehicle", str(vehicle_id),
                        ErrorContext(vehicle_id=str(vehicle_id)),
                    )
                check_vehicle_live(str(vehicle.id), vehicle.deleted_at)
                active = await db.scalar(
                    select(func.count(ParkingSession.id))
                    .where(ParkingSession.vehicle_id == vehicle.id)
                    .where(ParkingSession.status == SessionStatus.ACTIVE.value)
                )
                check_vehicle_deletable(str(vehicle.id), active or 0)
                vehicle.deleted_at = self.clock.now()
                await db.commit()

        logger.info(
            f"Vehicle {vehicle.license_plate} deleted",
            extra={"vehicle_id": vehicle_id, "owner_id": vehicle.owner_id},
        )

    async def list_vehicles(self, owner_id: str) -> list[Vehicle]:
        """An owner's vehicles in registration order."""
        async with self._scope() as db:
            result = await db.execute(
                select(Vehicle)
                .where(Vehicle.owner_id == owner_id)
                .where(Vehicle.deleted_at.is_(None))
                .order_by(Vehicle.seq)
            )
            return list(result.scalars().all())

    async def resolve_plate(
        self,
        license_plate: str,
        owner_id: str | None = None,
        db: AsyncSession | None = None,
    ) -> Vehicle | None:
        """Find the vehicle behind a plate.

        With owner_id: that owner's vehicle, NotFoundError if unregistered.
        Without: the single vehicle carrying the plate, None when nobody
        registered it (anonymous entry), ValidationError when several owners did.
        """
        if db is None:
            async with self._scope() as own_db:
                return await self.resolve_plate(license_plate, owner_id, own_db)

        plate = normalize_plate(license_plate)
        query = (
            select(Vehicle)
            .where(Vehicle.license_plate == plate)
            .where(Vehicle.deleted_at.is_(None))
        )
        if owner_id is not None:
            query = query.where(Vehicle.owner_id == owner_id)
        result = await db.execute(query.order_by(Vehicle.seq))
        matches = list(result.scalars().all())

        if owner_id is not None and not matches:
            raise NotFoundError("Vehicle", plate)
        if len(matches) > 1:
            raise ValidationError(
                f"License plate {plate} is registered to several accounts; owner_id required",
                field="owner_id",
            )
        return matches[0] if matches else None
