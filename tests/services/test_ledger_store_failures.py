"""Store failures — a failed commit propagates as DatabaseError and leaves no trace.

Invariants:
    - SQLAlchemy failures surface as DatabaseError through DatabaseSessionManager
    - A failed mutation is fully rolled back: status, exit_time, amount and slot
      occupancy are exactly what they were before the call
    - The ledger lock is released after a failure

Design Decisions:
    - Real DatabaseSessionManager on a SQLite file, so rollback and error
      mapping are the production code paths
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from parkledger.core.domain_types import SessionStatus
from parkledger.core.errors import ConflictError, DatabaseError
from parkledger.infrastructure.database import DatabaseSessionManager
from parkledger.services.session_ledger import SessionLedger
from parkledger.services.vehicle_registry import VehicleRegistry


async def _failing_commit(self):
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


@pytest.fixture
async def managed_db(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def managed_ledger(managed_db, clock, rate_policy):
    registry = VehicleRegistry(managed_db.session, clock)
    return SessionLedger(managed_db.session, registry, rate_policy)


async def test_failed_exit_keeps_session_active(managed_ledger, clock, monkeypatch):
    session = await managed_ledger.record_entry("ABC123", "A-23")
    clock.advance(hours=1)

    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    with pytest.raises(DatabaseError) as exc:
        await managed_ledger.record_exit("ABC123", "A-23")
    monkeypatch.undo()

    assert exc.value.operation == "execute"
    stored = await managed_ledger.get_session(session.id)
    assert stored.status == SessionStatus.ACTIVE
    assert stored.exit_time is None
    assert stored.amount_charged is None
    assert (await managed_ledger.occupancy_view()).occupied_locations == ["A-23"]
    with pytest.raises(ConflictError):
        await managed_ledger.record_entry("XYZ789", "A-23")


async def test_failed_entry_leaves_slot_free(managed_ledger, monkeypatch):
    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    with pytest.raises(DatabaseError):
        await managed_ledger.record_entry("ABC123", "A-23")
    monkeypatch.undo()

    assert await managed_ledger.list_sessions() == []
    session = await managed_ledger.record_entry("ABC123", "A-23")
    assert session.status == SessionStatus.ACTIVE


async def test_failed_settlement_stays_unpaid(managed_ledger, clock, monkeypatch):
    await managed_ledger.registry.register_vehicle("ana", "ABC123")
    session = await managed_ledger.record_entry("ABC123", "A-23")
    clock.advance(minutes=40)

    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    with pytest.raises(DatabaseError):
        await managed_ledger.settle_payment(session.id, owner_id="ana")
    monkeypatch.undo()

    stored = await managed_ledger.get_session(session.id)
    assert stored.status == SessionStatus.ACTIVE
    assert stored.settled_at is None
    assert (await managed_ledger.account_view("ana")).unpaid_balance > 0

    paid = await managed_ledger.settle_payment(session.id, owner_id="ana")
    assert paid.status == SessionStatus.COMPLETED


async def test_failed_delete_keeps_vehicle(managed_ledger, monkeypatch):
    registry = managed_ledger.registry
    vehicle = await registry.register_vehicle("ana", "ABC123")

    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    with pytest.raises(DatabaseError):
        await registry.delete_vehicle(vehicle.id)
    monkeypatch.undo()

    assert [v.id for v in await registry.list_vehicles("ana")] == [vehicle.id]
