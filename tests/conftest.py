"""Shared test fixtures.

Tests run against an in-memory SQLite database (aiosqlite, one shared
connection) created from the ORM metadata. Redis is left uninitialised, so
rate limiting passes every request through unless a test installs a fake.
"""

from __future__ import annotations

import os

os.environ["GRIND_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["GRIND_REDIS_URL"] = ""
os.environ["GRIND_LOG_FORMAT"] = "console"
os.environ["GRIND_JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from grind.auth.jwt import create_access_token
from grind.config import get_settings
from grind.database import close_db, get_engine, get_session, init_db
from grind.db.base import Base
from grind.db.models import GrindSession, Profile
from grind.main import create_app
from grind.users.service import create_profile

get_settings.cache_clear()

# A fixed reference instant for tests that pass ``now`` explicitly.
NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory schema per test."""
    await init_db("sqlite+aiosqlite://", poolclass=StaticPool)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client bound to the in-memory database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    """Bearer header for a gateway token naming user_id."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def make_profile(db: AsyncSession, display_name: str) -> Profile:
    profile = await create_profile(db, display_name)
    await db.commit()
    return profile


async def add_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    room_id: uuid.UUID | None,
    started_at: datetime,
    duration_seconds: int,
) -> GrindSession:
    """Insert a finished session and commit."""
    session = GrindSession(
        user_id=user_id,
        room_id=room_id,
        started_at=started_at,
        ended_at=started_at + timedelta(seconds=duration_seconds),
        duration_seconds=duration_seconds,
    )
    db.add(session)
    await db.commit()
    return session


@pytest_asyncio.fixture
async def alice(db_session: AsyncSession) -> Profile:
    return await make_profile(db_session, "Alice")


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> Profile:
    return await make_profile(db_session, "Bob")


@pytest_asyncio.fixture
async def carol(db_session: AsyncSession) -> Profile:
    return await make_profile(db_session, "Carol")


class FakePipeline:
    """Enough of a redis pipeline for the rate limiter: INCR + EXPIRE."""

    def __init__(self, store: dict[str, int]) -> None:
        self._store = store
        self._ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> None:
        self._ops.append(("incr", key))

    def expire(self, key: str, _seconds: int) -> None:
        self._ops.append(("expire", key))

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for op, key in self._ops:
            if op == "incr":
                self._store[key] = self._store.get(key, 0) + 1
                results.append(self._store[key])
            else:
                results.append(True)
        self._ops.clear()
        return results


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, int] = {}

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self.store)


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    """Route the rate limiter to an in-process counter store."""
    fake = FakeRedis()
    monkeypatch.setattr("grind.middleware.rate_limit.get_redis", lambda: fake)
    return fake
