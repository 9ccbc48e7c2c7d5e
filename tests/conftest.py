"""Shared test fixtures.

Every test gets its own SQLite file, built with ``create_all``, and a pinned
clock (Wednesday 17 January 2024, noon UTC) that API tests can move.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.auth.jwt import create_access_token
from teamquiz.config import get_settings
from teamquiz.database import close_db, create_all, get_session, init_db
from teamquiz.db.models import User
from teamquiz.dependencies import get_now
from teamquiz.main import create_app
from teamquiz.users.service import create_user

WEDNESDAY = datetime(2024, 1, 17, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class Clock:
    now: datetime = field(default=WEDNESDAY)


@dataclass
class Player:
    user: User
    headers: dict[str, str]

    @property
    def id(self) -> int:
        return self.user.id


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point the app at a throwaway database and a fixed secret."""
    monkeypatch.setenv("TQ_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}")
    monkeypatch.setenv("TQ_REDIS_URL", "")
    monkeypatch.setenv("TQ_JWT_SECRET", "test-secret-for-the-quiz-suite-0123456789")
    monkeypatch.setenv("TQ_TIMEZONE", "Europe/London")
    monkeypatch.setenv("TQ_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    await init_db(get_settings().database_url)
    await create_all()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for arranging data and asserting on it."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def app(clock: Clock) -> FastAPI:
    """A fresh app whose clock is ``clock.now``."""
    application = create_app()
    application.dependency_overrides[get_now] = lambda: clock.now
    return application


@pytest_asyncio.fixture
async def client(database: None, app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[Player]]:
    """Factory: store a user and mint a bearer token for them."""

    async def _make(username: str, *, is_admin: bool = False, team: str | None = None, score: int = 0) -> Player:
        user = await create_user(db_session, username, is_admin=is_admin)
        if team is not None:
            user.team = team
            user.team_assigned = True
        user.weekly_score = score
        await db_session.commit()
        token = create_access_token(user.id, user.username, is_admin=is_admin)
        return Player(user=user, headers={"Authorization": f"Bearer {token}"})

    return _make


@pytest_asyncio.fixture
async def player(make_user) -> Player:
    return await make_user("alice", team="Sip Happens")


@pytest_asyncio.fixture
async def admin(make_user) -> Player:
    return await make_user("quizmaster", is_admin=True)


@pytest.fixture
def reload(db_session: AsyncSession) -> Callable[[int], Awaitable[User]]:
    """Re-read a user after the app has changed it through its own session."""

    async def _reload(user_id: int) -> User:
        result = await db_session.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    return _reload
