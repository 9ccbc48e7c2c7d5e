"""User records: lookup, registration hand-off and admin management.

Aggregates (score, quizzes, streak, team) are owned by the score ledger in
``teamquiz.gamification.ledger_service``; this module never touches them
except through an explicit admin update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from teamquiz.db.models import User
from teamquiz.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by primary key."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by unique username."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def require_user(db: AsyncSession, user_id: int) -> User:
    """Fetch a user or raise NotFoundError."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    return user


async def create_user(
    db: AsyncSession,
    username: str,
    password_hash: str = "",
    *,
    is_admin: bool = False,
) -> User:
    """
    Register a user with zeroed aggregates and no team.

    The password hash is produced by the identity provider and stored as-is.

    Raises:
        ValidationError: If the username is blank or already taken.
    """
    username = username.strip()
    if not username:
        msg = "Username is required"
        raise ValidationError(msg)

    user = User(
        username=username,
        password_hash=password_hash,
        is_admin=is_admin,
        team=None,
        team_assigned=False,
        weekly_score=0,
        weekly_quizzes=0,
        current_streak=0,
        longest_streak=0,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "Username already exists"
        raise ValidationError(msg) from e
    logger.info("user_created", user_id=user.id)
    return user


async def list_users(db: AsyncSession) -> Sequence[User]:
    """All users in insertion order."""
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()


async def update_user(
    db: AsyncSession,
    user_id: int,
    *,
    is_admin: bool | None = None,
    username: str | None = None,
) -> User:
    """Admin update of identity fields. Team changes go through assign_team."""
    user = await require_user(db, user_id)
    if username is not None:
        username = username.strip()
        if not username:
            msg = "Username is required"
            raise ValidationError(msg)
        existing = await get_user_by_username(db, username)
        if existing is not None and existing.id != user.id:
            msg = "Username already exists"
            raise ValidationError(msg)
        user.username = username
    if is_admin is not None:
        user.is_admin = is_admin
    await db.flush()
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Remove a user; their answers and achievements go with them."""
    user = await require_user(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)
