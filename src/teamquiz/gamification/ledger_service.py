"""User score ledger: per-user weekly aggregates and team assignment.

Counter updates are single ``UPDATE ... SET x = x + n`` statements so that
concurrent submissions for the same user cannot overwrite each other's
increments. Scores and quiz counts only go up; the only way down is an
explicit reset.
"""

from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.config import get_settings
from teamquiz.db.models import User
from teamquiz.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


async def _require_rowcount(db: AsyncSession, stmt, user_id: int) -> None:  # noqa: ANN001
    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount == 0:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)


async def refresh_user(db: AsyncSession, user_id: int) -> User:
    """Re-read a user, overwriting any stale copy in the identity map."""
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    return user


async def increment_score(db: AsyncSession, user_id: int, delta: int) -> None:
    """Atomically add ``delta`` points to the user's weekly score."""
    if delta < 0:
        msg = "Score delta must be non-negative"
        raise ValidationError(msg)
    await _require_rowcount(
        db,
        update(User).where(User.id == user_id).values(weekly_score=User.weekly_score + delta),
        user_id,
    )


async def increment_quiz_count(db: AsyncSession, user_id: int) -> None:
    """Atomically count one more completed quiz this week."""
    await _require_rowcount(
        db,
        update(User).where(User.id == user_id).values(weekly_quizzes=User.weekly_quizzes + 1),
        user_id,
    )


async def record_quiz_day(db: AsyncSession, user_id: int, day: date) -> User:
    """Update the daily streak for a quiz completed on ``day``.

    Same day: unchanged. Day after the last quiz: +1. Any gap: back to 1.
    """
    user = await refresh_user(db, user_id)
    last = user.last_quiz_date
    if last == day:
        return user

    if last is not None and last == day - timedelta(days=1):
        user.current_streak += 1
    else:
        user.current_streak = 1
    user.longest_streak = max(user.longest_streak, user.current_streak)
    user.last_quiz_date = day
    await db.flush()
    return user


def live_streak(user: User, today: date) -> int:
    """The streak as shown on ``today``: 0 once a whole day passed without a quiz.

    The stored value only moves when a quiz is completed.
    """
    last = user.last_quiz_date
    if last is None or last < today - timedelta(days=1):
        return 0
    return user.current_streak


async def reset_weekly_aggregates(db: AsyncSession, user_id: int) -> User:
    """Zero the user's weekly score and quiz count."""
    await _require_rowcount(
        db,
        update(User).where(User.id == user_id).values(weekly_score=0, weekly_quizzes=0),
        user_id,
    )
    logger.info("Weekly aggregates reset for user %d", user_id)
    return await refresh_user(db, user_id)


async def reset_all_weekly_aggregates(db: AsyncSession) -> int:
    """Zero every user's weekly score and quiz count. Returns rows touched."""
    result = await db.execute(
        update(User).values(weekly_score=0, weekly_quizzes=0).execution_options(synchronize_session=False)
    )
    logger.info("Weekly aggregates reset for %d users", result.rowcount)
    return result.rowcount


def pick_team(teams: list[str], rng: random.Random | None = None) -> str:
    """Draw a team uniformly at random."""
    if not teams:
        msg = "No teams configured"
        raise ValidationError(msg)
    return (rng or random).choice(teams)


async def assign_team(db: AsyncSession, user_id: int, team: str | None = None) -> User:
    """
    Put the user on ``team`` (or a random team when omitted).

    Raises:
        ValidationError: If ``team`` is not one of the configured teams; the
            user's team and ``team_assigned`` flag are left untouched.
        NotFoundError: If the user does not exist.
    """
    teams = list(get_settings().teams)
    if team is None:
        team = pick_team(teams)
    elif team not in teams:
        msg = f"Invalid team: {team!r}. Must be one of: {', '.join(teams)}"
        raise ValidationError(msg)

    await _require_rowcount(
        db,
        update(User).where(User.id == user_id).values(team=team, team_assigned=True),
        user_id,
    )
    logger.info("User %d assigned to team %s", user_id, team)
    return await refresh_user(db, user_id)
