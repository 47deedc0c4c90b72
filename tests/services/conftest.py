"""Service test fixtures - async DB, lifecycle engine and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - db_manager patched so the readiness probe sees the test engine
    - Notifications go to a RecordingNotifier, never to the network

Design Decisions:
    - StaticPool: all sessions share the one in-memory connection
    - FakeClock: day-boundary behaviour is driven by advancing the clock
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from lostfound.api.routes import objects as objects_routes
from lostfound.core.domain_types import Role, UserId
from lostfound.core.identity import Identity
from lostfound.db.base import Base
from lostfound.infrastructure.database import get_db, DatabaseSessionManager
from lostfound.infrastructure.object_store import SqlObjectStore
import lostfound.infrastructure.database as db_module
from lostfound.main import app
from lostfound.services.object_lifecycle import ObjectLifecycleEngine


class RecordingNotifier:
    """Collects notifications instead of sending them."""

    def __init__(self, fail: bool = False):
        self.sent: list[tuple] = []
        self.fail = fail

    async def notify(self, kind, payload):
        if self.fail:
            raise RuntimeError("mail service unavailable")
        self.sent.append((kind, payload))


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


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
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return SqlObjectStore(test_db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine(store, notifier, clock):
    return ObjectLifecycleEngine(store, notifier, clock=clock)


@pytest.fixture
def institution():
    return Identity(UserId("inst-1"), Role.INSTITUTION)


@pytest.fixture
def other_institution():
    return Identity(UserId("inst-2"), Role.INSTITUTION)


@pytest.fixture
def applicant():
    return Identity(UserId("app-1"), Role.APPLICANT)


@pytest.fixture
def other_applicant():
    return Identity(UserId("app-2"), Role.APPLICANT)


@pytest.fixture
async def client(test_engine, test_session_factory, notifier):
    """FastAPI test client with DB and engine dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    async def override_get_engine():
        async with test_session_factory() as session:
            yield ObjectLifecycleEngine(SqlObjectStore(session), notifier)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[objects_routes.get_engine] = override_get_engine

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
