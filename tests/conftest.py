"""
Top-level pytest configuration.

Provides:
  - A SQLite in-memory database (aiosqlite) with all tables created per test.
  - A db_session fixture that rolls back each test in a transaction.
  - An async_client fixture wired to the FastAPI app.
  - Seeded player profiles with access tokens.
  - A fakeredis instance for the Redis realtime backend.
"""

from __future__ import annotations

import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

# ---------------------------------------------------------------------------
# Environment must be set BEFORE any tennismate module is imported so that
# pydantic-settings picks up the test values.
# ---------------------------------------------------------------------------
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-32c")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("REALTIME_BACKEND", "memory")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)


# ---------------------------------------------------------------------------
# Test engine (SQLite in-memory, shared via StaticPool so all connections see
# the same data within a test).
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine():
    """Create the SQLite test engine and all tables."""
    from tennismate.core.database import Base
    import tennismate.models  # noqa: F401

    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


# ---------------------------------------------------------------------------
# Per-test DB session that rolls back after each test for isolation.
#
# commit() is turned into flush() so service code that commits keeps its
# writes inside the outer transaction, which teardown rolls back.
# ---------------------------------------------------------------------------
class _NonCommittingSession(AsyncSession):
    """AsyncSession subclass where commit() becomes flush()."""

    async def commit(self) -> None:  # type: ignore[override]
        await self.flush()


@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a per-test database session that is fully rolled back on teardown."""
    async with engine.connect() as conn:
        await conn.begin()

        session = _NonCommittingSession(
            bind=conn,
            expire_on_commit=False,
        )

        try:
            yield session
        finally:
            await session.close()
            await conn.rollback()


@pytest.fixture
def session_factory(db_session):
    """Stand-in for AsyncSessionLocal that hands out the test session."""
    @asynccontextmanager
    async def _factory():
        yield db_session

    return _factory


# ---------------------------------------------------------------------------
# Realtime hub: the global hub must not leak subscriptions between tests.
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def clean_realtime_hub():
    from tennismate.core.realtime import realtime_hub

    yield realtime_hub
    for subscription in list(realtime_hub._subscriptions.values()):
        realtime_hub.remove(subscription)


@pytest.fixture
def hub():
    """A private in-memory hub for unit tests."""
    from tennismate.core.realtime import RealtimeHub

    return RealtimeHub(backend="memory")


# ---------------------------------------------------------------------------
# Redis mock: fakeredis so the Redis realtime backend works without a server.
# ---------------------------------------------------------------------------
@pytest.fixture
def fake_redis(monkeypatch):
    """Replace the Redis client factory with an in-process fakeredis instance."""
    import fakeredis
    import fakeredis.aioredis as fakeredis_async

    fake_server = fakeredis.FakeServer()
    redis = fakeredis_async.FakeRedis(server=fake_server, decode_responses=True)

    async def _get_redis():
        return redis

    monkeypatch.setattr("tennismate.core.redis.get_redis", _get_redis)
    return _get_redis


# ---------------------------------------------------------------------------
# Override FastAPI database dependency to use the test session.
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient backed by the FastAPI app, sharing the test session."""
    from tennismate.core.database import get_db
    from tennismate.main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seeded fixtures
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """Persisted player in central Frankfurt."""
    from tennismate.models.profile import Profile

    profile = Profile(
        id=uuid.uuid4(),
        name="Anna",
        email="anna@example.com",
        skill_level="Intermediate",
        location="Frankfurt",
        latitude=50.1109,
        longitude=8.6821,
        availability=[{"day": "Sat", "start": "09:00", "end": "12:00"}],
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    db_session.add(profile)
    await db_session.flush()
    return profile


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession):
    """Second persisted player, a few kilometres away."""
    from tennismate.models.profile import Profile

    profile = Profile(
        id=uuid.uuid4(),
        name="Ben",
        email="ben@example.com",
        skill_level="Advanced",
        location="Offenbach",
        latitude=50.0956,
        longitude=8.7761,
        created_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
    )
    db_session.add(profile)
    await db_session.flush()
    return profile


@pytest.fixture
def user_token(test_user) -> str:
    from tennismate.core.security import create_access_token
    return create_access_token(data={"sub": str(test_user.id)})


@pytest.fixture
def other_token(other_user) -> str:
    from tennismate.core.security import create_access_token
    return create_access_token(data={"sub": str(other_user.id)})


@pytest.fixture
def auth_headers(user_token: str) -> dict[str, str]:
    """Authorization headers for test_user."""
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def other_auth_headers(other_token: str) -> dict[str, str]:
    """Authorization headers for other_user."""
    return {"Authorization": f"Bearer {other_token}"}
