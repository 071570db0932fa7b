"""Database Session Manager — error mapping, rollback and health check."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from parkledger.core.errors import DatabaseError
from parkledger.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def manager(tmp_path):
    mgr = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    yield mgr
    await mgr.dispose()


async def test_integrity_error_maps_to_database_error(manager):
    with pytest.raises(DatabaseError) as exc:
        async with manager.session():
            raise IntegrityError("INSERT", {}, Exception("duplicate"))
    assert exc.value.operation == "commit"
    assert exc.value.http_status == 503


async def test_operational_error_maps_to_database_error(manager):
    with pytest.raises(DatabaseError) as exc:
        async with manager.session():
            raise OperationalError("SELECT", {}, Exception("database is locked"))
    assert exc.value.operation == "execute"


async def test_other_errors_propagate_unchanged(manager):
    with pytest.raises(ValueError):
        async with manager.session():
            raise ValueError("not a store failure")


async def test_rollback_discards_uncommitted_work(manager):
    async with manager.session() as db:
        await db.execute(text("CREATE TABLE marks (n INTEGER)"))
        await db.commit()
    with pytest.raises(RuntimeError):
        async with manager.session() as db:
            await db.execute(text("INSERT INTO marks VALUES (1)"))
            raise RuntimeError("abort")
    async with manager.session() as db:
        assert (await db.execute(text("SELECT COUNT(*) FROM marks"))).scalar() == 0


async def test_health_check(manager):
    assert await manager.health_check() is True
