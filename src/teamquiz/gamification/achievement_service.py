"""Achievement rules, awarded after each completed quiz.

Each rule type has bronze/silver/gold milestones. A ``(user, type, milestone)``
is earned at most once; when a higher tier lands, older tiers of the same type
stop being the user's highest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.db.models import Achievement, Answer, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementRule:
    type: str
    tier: str
    milestone: int
    name: str
    description: str
    icon: str
    badge: str


ACHIEVEMENT_RULES: list[AchievementRule] = [
    # Quizzes completed this week
    AchievementRule("quiz_milestone", "bronze", 1, "First Round", "Complete your first quiz of the week", "medal", "quiz_bronze"),
    AchievementRule("quiz_milestone", "silver", 5, "Regular", "Complete 5 quizzes in a week", "medal", "quiz_silver"),
    AchievementRule("quiz_milestone", "gold", 10, "Quiz Master", "Complete 10 quizzes in a week", "medal", "quiz_gold"),
    # Consecutive correct answers
    AchievementRule("perfect_score", "bronze", 3, "Clean Sweep", "Answer a whole quiz correctly", "star", "perfect_bronze"),
    AchievementRule("perfect_score", "silver", 9, "Hat Trick", "Three perfect quizzes in a row", "star", "perfect_silver"),
    AchievementRule("perfect_score", "gold", 15, "Flawless", "Five perfect quizzes in a row", "star", "perfect_gold"),
    # Points banked for the team this week
    AchievementRule("team_contribution", "bronze", 100, "Team Player", "Score 100 points for your team in a week", "target", "team_bronze"),
    AchievementRule("team_contribution", "silver", 250, "Key Player", "Score 250 points for your team in a week", "target", "team_silver"),
    AchievementRule("team_contribution", "gold", 500, "Captain", "Score 500 points for your team in a week", "target", "team_gold"),
    # Consecutive days with a completed quiz
    AchievementRule("streak", "bronze", 3, "On a Roll", "Complete a quiz 3 days running", "flame", "streak_bronze"),
    AchievementRule("streak", "silver", 7, "Week Strong", "Complete a quiz 7 days running", "flame", "streak_silver"),
    AchievementRule("streak", "gold", 14, "Unstoppable", "Complete a quiz 14 days running", "flame", "streak_gold"),
]


async def correct_answer_run(db: AsyncSession, user_id: int, limit: int = 50) -> int:
    """Length of the user's current run of correct answers, newest first."""
    result = await db.execute(
        select(Answer.correct)
        .where(Answer.user_id == user_id)
        .order_by(Answer.answered_at.desc(), Answer.id.desc())
        .limit(limit)
    )
    run = 0
    for correct in result.scalars():
        if not correct:
            break
        run += 1
    return run


def progress_for(user: User, correct_run: int) -> dict[str, int]:
    """Current value of every rule type's metric."""
    return {
        "quiz_milestone": user.weekly_quizzes,
        "perfect_score": correct_run,
        "team_contribution": user.weekly_score,
        "streak": user.current_streak,
    }


async def earned_keys(db: AsyncSession, user_id: int) -> set[tuple[str, int]]:
    """(type, milestone) pairs the user already holds."""
    result = await db.execute(
        select(Achievement.type, Achievement.milestone).where(Achievement.user_id == user_id)
    )
    return {(row.type, row.milestone) for row in result}


async def check_achievements(db: AsyncSession, user: User, now: datetime) -> list[Achievement]:
    """Award every rule the user now satisfies and has not earned yet.

    Returns the newly created achievements (flushed, not committed).
    """
    progress = progress_for(user, await correct_answer_run(db, user.id))
    held = await earned_keys(db, user.id)

    awarded: list[Achievement] = []
    for rule in ACHIEVEMENT_RULES:
        if (rule.type, rule.milestone) in held or progress[rule.type] < rule.milestone:
            continue
        awarded.append(
            Achievement(
                user_id=user.id,
                type=rule.type,
                name=rule.name,
                description=rule.description,
                icon=rule.icon,
                badge=rule.badge,
                tier=rule.tier,
                milestone=rule.milestone,
                is_highest_tier=True,
                earned_at=now,
            )
        )

    if not awarded:
        return []

    # Only the top new tier per type stays highest
    top: dict[str, Achievement] = {}
    for ach in awarded:
        if ach.type not in top or ach.milestone > top[ach.type].milestone:
            top[ach.type] = ach
    for ach in awarded:
        ach.is_highest_tier = ach is top[ach.type]

    await db.execute(
        update(Achievement)
        .where(Achievement.user_id == user.id, Achievement.type.in_(list(top)))
        .values(is_highest_tier=False)
        .execution_options(synchronize_session=False)
    )
    db.add_all(awarded)
    await db.flush()

    for ach in awarded:
        logger.info("User %d earned %s (%s)", user.id, ach.badge, ach.tier)
    return awarded


async def list_achievements(db: AsyncSession, *, newest_first: bool = False) -> list[Achievement]:
    """Every achievement across all users."""
    order = (Achievement.earned_at.desc(), Achievement.id.desc()) if newest_first else (Achievement.id,)
    result = await db.execute(select(Achievement).order_by(*order))
    return list(result.scalars())


async def latest_for_user(db: AsyncSession, user_id: int, limit: int = 5) -> list[Achievement]:
    """The user's most recently earned achievements."""
    result = await db.execute(
        select(Achievement)
        .where(Achievement.user_id == user_id)
        .order_by(Achievement.earned_at.desc(), Achievement.id.desc())
        .limit(limit)
    )
    return list(result.scalars())
