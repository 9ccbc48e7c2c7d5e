"""Answer recorder: grade, persist, then update the score ledger.

The answer row is the source of truth. It is committed on its own first; the
ledger updates that follow (score, quiz count, streak) run in a second
transaction, and a failure there is logged and rolled back without touching
the stored answer. Achievements are awarded inside a SAVEPOINT of that
transaction, so a failed award loses only the award.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.config import get_settings
from teamquiz.database import transactional
from teamquiz.db.models import Achievement, Answer, User
from teamquiz.errors import NotFoundError, PersistenceError
from teamquiz.gamification import achievement_service, ledger_service
from teamquiz.questions.service import get_question
from teamquiz.week_utils import day_bounds, local_date

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    answer: Answer
    quiz_completed: bool = False
    achievements: list[Achievement] = field(default_factory=list)


def is_quiz_boundary(answers_today: int, answers_per_quiz: int = 3) -> bool:
    """True when today's answer count closes a quiz (a positive multiple of the quiz size)."""
    return answers_today > 0 and answers_today % answers_per_quiz == 0


async def count_answers_on_day(db: AsyncSession, user_id: int, moment: datetime, tz: str) -> int:
    """How many answers the user submitted on the local calendar day of ``moment``."""
    start, end = day_bounds(local_date(moment, tz), tz)
    result = await db.execute(
        select(func.count(Answer.id)).where(
            Answer.user_id == user_id,
            Answer.answered_at >= start,
            Answer.answered_at < end,
        )
    )
    return result.scalar_one()


async def _persist_answer(db: AsyncSession, answer: Answer) -> None:
    db.add(answer)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to store answer for user %d question %d", answer.user_id, answer.question_id)
        msg = "Failed to store answer"
        raise PersistenceError(msg) from e


async def _apply_ledger(db: AsyncSession, answer: Answer, now: datetime) -> tuple[bool, list[Achievement]]:
    settings = get_settings()
    quiz_completed = False
    awarded: list[Achievement] = []

    async with transactional(db):
        if answer.correct:
            await ledger_service.increment_score(db, answer.user_id, settings.points_per_correct)

        today_count = await count_answers_on_day(db, answer.user_id, now, settings.timezone)
        if is_quiz_boundary(today_count, settings.answers_per_quiz):
            quiz_completed = True
            await ledger_service.increment_quiz_count(db, answer.user_id)
            await ledger_service.record_quiz_day(db, answer.user_id, local_date(now, settings.timezone))
            user = await ledger_service.refresh_user(db, answer.user_id)
            user_id, quizzes, streak = user.id, user.weekly_quizzes, user.current_streak
            awarded = await _award_achievements(db, user, now)
            logger.info("User %d completed quiz #%d this week (streak %d)", user_id, quizzes, streak)

    return quiz_completed, awarded


async def _award_achievements(db: AsyncSession, user: User, now: datetime) -> list[Achievement]:
    # SAVEPOINT: a failed award must not take the score and quiz count with it.
    user_id = user.id
    try:
        async with transactional(db):
            return await achievement_service.check_achievements(db, user, now)
    except SQLAlchemyError:
        logger.exception("Achievement check failed for user %d", user_id)
        return []


async def submit_answer(
    db: AsyncSession,
    user_id: int,
    question_id: int,
    selected_option: str,
    now: datetime,
    client_correct: bool | None = None,
) -> SubmissionResult:
    """
    Record a user's answer to a question.

    Correctness is always computed here; ``client_correct`` is only compared
    for diagnostics.

    Raises:
        NotFoundError: The question does not exist.
        PersistenceError: The answer row could not be stored.
    """
    question = await get_question(db, question_id)
    correct = selected_option == question.correct_answer
    if client_correct is not None and client_correct != correct:
        logger.debug("Client correctness flag disagreed for user %d question %d", user_id, question_id)

    answer = Answer(
        user_id=user_id,
        question_id=question.id,
        answer=selected_option,
        correct=correct,
        answered_at=now,
    )
    await _persist_answer(db, answer)

    answer_id = answer.id
    result = SubmissionResult(answer=answer)
    try:
        result.quiz_completed, result.achievements = await _apply_ledger(db, answer, now)
    except (SQLAlchemyError, NotFoundError):
        await db.rollback()
        logger.exception("Ledger update failed after storing answer %d", answer_id)
        await db.refresh(answer)
        result.quiz_completed = False
        result.achievements = []
    return result


async def list_user_answers(db: AsyncSession, user_id: int) -> list[Answer]:
    """The user's answer history, oldest first."""
    result = await db.execute(
        select(Answer)
        .where(Answer.user_id == user_id)
        .order_by(Answer.answered_at, Answer.id)
    )
    return list(result.scalars())


async def list_answers_since(db: AsyncSession, since: datetime, until: datetime | None = None) -> list[Answer]:
    """Every answer with ``since <= answered_at`` (and ``< until`` when given)."""
    stmt = select(Answer).where(Answer.answered_at >= since)
    if until is not None:
        stmt = stmt.where(Answer.answered_at < until)
    result = await db.execute(stmt.order_by(Answer.answered_at, Answer.id))
    return list(result.scalars())
