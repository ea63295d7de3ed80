"""Service test fixtures — async DB, FastAPI test client, and marketplace seed data.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe hits the test engine
    - Clock is frozen and advanced explicitly (upgrade-policy expiry)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for ledger tests
      (ADR: PostgreSQL-specific features not exercised here)
    - Race tests use a file-backed database (file_session_factory) so two
      AsyncSessions hold independent connections
    - Accounts seeded directly through the ORM: provisioning has its own tests
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_identity_provider
from app.core.economy_rules import EconomyRules
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models.account import Account
from app.services.account_ledger import AccountLedger
from app.services.session_ledger import SessionLedgerService
import app.infrastructure.database as db_module
from app.main import app

from tests.services.seed import seed_account


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
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
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def file_session_factory(tmp_path):
    """Two sessions from this factory never share a connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def rules():
    return EconomyRules()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_account(test_session_factory, rules, clock):
    """Factory: await make_account("ana", role="contributor", coins=10, teaches=("Python",)).

    Seeded through its own session: the returned account is detached, so a
    rollback in the session under test never expires it.
    """
    async def _make(
        name: str = "user",
        role: str = "beginner",
        coins: int = 0,
        teaches: tuple[str, ...] = (),
        **overrides,
    ) -> Account:
        account = seed_account(rules, clock(), name, role, coins, teaches, **overrides)
        async with test_session_factory() as db:
            db.add(account)
            await db.commit()
            await db.refresh(account)
        return account
    return _make


@pytest.fixture
def service(test_db, rules, clock):
    return SessionLedgerService(test_db, rules, clock=clock)


@pytest.fixture
def reload_account(test_db):
    ledger = AccountLedger(test_db)

    async def _reload(account_id) -> Account:
        return await ledger.get(account_id)
    return _reload


@pytest.fixture
def auth_headers():
    """Bearer header for an account id, signed with the configured secret."""
    identity = get_identity_provider()

    def _headers(account_id) -> dict:
        return {"Authorization": f"Bearer {identity.issue_token(account_id)}"}
    return _headers
