"""Question repository: week-scoped question storage.

Every question carries the Monday of its target week in ``week_of`` and an
``is_archived`` flag. Writers must keep ``correct_answer`` inside ``options``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.config import get_settings
from teamquiz.db.models import Question
from teamquiz.errors import NotFoundError, ValidationError
from teamquiz.week_utils import get_monday, upcoming_weeks

logger = logging.getLogger(__name__)

# Fields an admin may change through update_question
UPDATABLE_FIELDS = frozenset({"question", "options", "correct_answer", "category", "explanation", "week_of", "is_archived"})


def validate_question(question: str, options: Sequence[str], correct_answer: str) -> None:
    """
    Check the question invariant.

    Raises:
        ValidationError: On blank text, no options, or a correct answer that
            is not one of the options.
    """
    if not question or not question.strip():
        msg = "Question text is required"
        raise ValidationError(msg)
    if not options:
        msg = "At least one option is required"
        raise ValidationError(msg)
    if correct_answer not in options:
        msg = "Correct answer must be one of the options"
        raise ValidationError(msg)


def normalize_week(value: datetime | date) -> date:
    """Monday of the week containing ``value`` in the quiz timezone."""
    return get_monday(value, get_settings().timezone)


async def create_question(
    db: AsyncSession,
    *,
    question: str,
    options: Sequence[str],
    correct_answer: str,
    week_of: datetime | date,
    category: str = "General",
    explanation: str = "",
) -> Question:
    """Validate and store a new active question."""
    validate_question(question, options, correct_answer)
    row = Question(
        question=question.strip(),
        options=list(options),
        correct_answer=correct_answer,
        category=category,
        explanation=explanation,
        week_of=normalize_week(week_of),
        is_archived=False,
    )
    db.add(row)
    await db.flush()
    logger.info("Created question %d for week of %s", row.id, row.week_of)
    return row


async def get_question(db: AsyncSession, question_id: int) -> Question:
    """Fetch a question or raise NotFoundError."""
    result = await db.execute(select(Question).where(Question.id == question_id))
    row = result.scalar_one_or_none()
    if row is None:
        msg = f"Question {question_id} not found"
        raise NotFoundError(msg)
    return row


async def list_active(db: AsyncSession) -> list[Question]:
    """All non-archived questions, oldest week first."""
    result = await db.execute(
        select(Question)
        .where(Question.is_archived.is_(False))
        .order_by(Question.week_of, Question.id)
    )
    return list(result.scalars())


async def list_by_week(db: AsyncSession, week: datetime | date) -> list[Question]:
    """Non-archived questions targeted at the week containing ``week``."""
    monday = normalize_week(week)
    result = await db.execute(
        select(Question)
        .where(Question.is_archived.is_(False), Question.week_of == monday)
        .order_by(Question.id)
    )
    return list(result.scalars())


async def list_current_week(db: AsyncSession, now: datetime) -> list[Question]:
    """Active questions for the week containing ``now``."""
    return await list_by_week(db, now)


async def list_archived(db: AsyncSession) -> list[Question]:
    """Archived questions, most recent week first."""
    result = await db.execute(
        select(Question)
        .where(Question.is_archived.is_(True))
        .order_by(Question.week_of.desc(), Question.id.desc())
    )
    return list(result.scalars())


async def set_archived(db: AsyncSession, question_id: int, archived: bool) -> Question:
    """Archive or unarchive a question.

    Unarchiving leaves ``week_of`` alone, so a past-week question comes back
    as active but never shows up in the current week's set.
    """
    row = await get_question(db, question_id)
    row.is_archived = archived
    await db.flush()
    logger.info("Question %d %s", question_id, "archived" if archived else "unarchived")
    return row


async def archive_question(db: AsyncSession, question_id: int) -> Question:
    return await set_archived(db, question_id, True)


async def unarchive_question(db: AsyncSession, question_id: int) -> Question:
    return await set_archived(db, question_id, False)


async def update_question(db: AsyncSession, question_id: int, changes: dict[str, Any]) -> Question:
    """
    Apply a partial update. The merged record must still satisfy the
    question invariant; ``week_of`` is re-normalised to its Monday.

    Raises:
        ValidationError: Unknown field or invariant violation (nothing is changed).
        NotFoundError: No such question.
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        msg = f"Unknown field(s): {', '.join(sorted(unknown))}"
        raise ValidationError(msg)

    row = await get_question(db, question_id)
    merged = {
        "question": changes.get("question", row.question),
        "options": list(changes.get("options", row.options)),
        "correct_answer": changes.get("correct_answer", row.correct_answer),
    }
    validate_question(merged["question"], merged["options"], merged["correct_answer"])

    for key, value in changes.items():
        if key == "week_of":
            value = normalize_week(value)
        elif key == "options":
            value = list(value)
        setattr(row, key, value)
    await db.flush()
    return row


async def delete_question(db: AsyncSession, question_id: int) -> None:
    """Hard-delete a question. Answers that reference it are kept."""
    row = await get_question(db, question_id)
    await db.delete(row)
    await db.flush()
    logger.info("Deleted question %d", question_id)


async def week_counts(db: AsyncSession, weeks: Iterable[date]) -> dict[date, int]:
    """Number of active questions per requested week."""
    weeks = list(weeks)
    result = await db.execute(
        select(Question.week_of, func.count(Question.id))
        .where(Question.is_archived.is_(False), Question.week_of.in_(weeks))
        .group_by(Question.week_of)
    )
    counts = {week: 0 for week in weeks}
    for week, count in result:
        counts[week] = count
    return counts


async def list_weeks(db: AsyncSession, now: datetime) -> list[tuple[date, int]]:
    """The current and upcoming weeks admins can schedule into, with question counts."""
    settings = get_settings()
    weeks = upcoming_weeks(now, settings.timezone, settings.upcoming_weeks)
    counts = await week_counts(db, weeks)
    return [(week, counts[week]) for week in weeks]
