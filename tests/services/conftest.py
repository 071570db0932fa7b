"""Service test fixtures — frozen clock, async DB, ledger, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - The clock only moves when a test advances it
    - Service singletons overridden through FastAPI dependency overrides

Design Decisions:
    - SQLite in-memory with StaticPool: one shared connection, so every session
      of the test sees the same database
    - db_manager and the ledger singleton patched: the readiness probe reads
      them directly
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from parkledger.api.dependencies import get_identity_resolver, get_ledger
from parkledger.core.domain_types import SettlementMode
from parkledger.db.base import Base
from parkledger.infrastructure.database import DatabaseSessionManager
from parkledger.infrastructure.identity import StaticTokenResolver
from parkledger.infrastructure.rate_policy import SettingsRatePolicy
from parkledger.services.session_ledger import SessionLedger
from parkledger.services.vehicle_registry import VehicleRegistry
import parkledger.api.dependencies as services_module
import parkledger.infrastructure.database as db_module
import parkledger.models  # noqa: F401
from parkledger.main import app

OWNER_TOKEN = "tok-ana"
OTHER_OWNER_TOKEN = "tok-bo"
OPERATOR_TOKEN = "tok-gate"
OWNER_ID = "ana@example.com"
OTHER_OWNER_ID = "bo@example.com"


class FrozenClock:
    """Clock that returns a fixed instant until advanced."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current += timedelta(**delta)
        return self.current


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc))


@pytest.fixture
def rate_policy():
    return SettingsRatePolicy(Decimal("6.00"), {"B": Decimal("4.50")})


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def registry(test_session_factory, clock):
    return VehicleRegistry(test_session_factory, clock)


@pytest.fixture
def ledger(test_session_factory, registry, rate_policy):
    return SessionLedger(
        test_session_factory, registry, rate_policy, total_capacity=100,
    )


@pytest.fixture
def separate_ledger(test_session_factory, clock, rate_policy):
    """Ledger where exit and payment are separate steps."""
    return SessionLedger(
        test_session_factory,
        VehicleRegistry(test_session_factory, clock),
        rate_policy,
        settlement_mode=SettlementMode.SEPARATE,
        total_capacity=100,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, ledger):
    """FastAPI test client with service dependencies overridden."""
    resolver = StaticTokenResolver(
        owner_tokens={OWNER_TOKEN: OWNER_ID, OTHER_OWNER_TOKEN: OTHER_OWNER_ID},
        operator_tokens=[OPERATOR_TOKEN],
    )
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_identity_resolver] = lambda: resolver

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    original_ledger = services_module.ledger
    services_module.ledger = ledger

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    services_module.ledger = original_ledger


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers():
    return auth(OWNER_TOKEN)


@pytest.fixture
def other_owner_headers():
    return auth(OTHER_OWNER_TOKEN)


@pytest.fixture
def operator_headers():
    return auth(OPERATOR_TOKEN)
