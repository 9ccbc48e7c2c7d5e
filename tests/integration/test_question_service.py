"""Integration tests for the question repository and archival sweep."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.db.models import Answer, Question
from teamquiz.errors import NotFoundError, ValidationError
from teamquiz.questions import service
from teamquiz.questions.archival import sweep_past_weeks

MONDAY_15 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


async def _question(db: AsyncSession, week, text="Capital of France?", **kwargs) -> Question:
    q = await service.create_question(
        db,
        question=text,
        options=kwargs.pop("options", ["Paris", "Lyon", "Nice"]),
        correct_answer=kwargs.pop("correct_answer", "Paris"),
        week_of=week,
        **kwargs,
    )
    await db.commit()
    return q


class TestCreate:
    @pytest.mark.asyncio
    async def test_week_is_normalised_to_monday(self, db_session):
        q = await _question(db_session, datetime(2024, 1, 18, 15, 0, tzinfo=timezone.utc))
        assert q.week_of == date(2024, 1, 15)
        assert q.is_archived is False
        assert q.category == "General"

    @pytest.mark.asyncio
    async def test_correct_answer_outside_options_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await service.create_question(
                db_session, question="Q?", options=["a", "b"], correct_answer="c", week_of=MONDAY_15
            )
        result = await db_session.execute(select(Question))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await service.get_question(db_session, 999)


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update(self, db_session):
        q = await _question(db_session, MONDAY_15)
        updated = await service.update_question(db_session, q.id, {"category": "Geography", "explanation": "Seine"})
        assert updated.category == "Geography"
        assert updated.question == "Capital of France?"

    @pytest.mark.asyncio
    async def test_cannot_drop_the_correct_answer_from_options(self, db_session):
        q = await _question(db_session, MONDAY_15)
        with pytest.raises(ValidationError):
            await service.update_question(db_session, q.id, {"options": ["Lyon", "Nice"]})
        again = await service.get_question(db_session, q.id)
        assert again.options == ["Paris", "Lyon", "Nice"]

    @pytest.mark.asyncio
    async def test_options_and_answer_change_together(self, db_session):
        q = await _question(db_session, MONDAY_15)
        updated = await service.update_question(
            db_session, q.id, {"options": ["Berlin", "Bonn"], "correct_answer": "Berlin"}
        )
        assert updated.correct_answer == "Berlin"

    @pytest.mark.asyncio
    async def test_unknown_field(self, db_session):
        q = await _question(db_session, MONDAY_15)
        with pytest.raises(ValidationError, match="Unknown field"):
            await service.update_question(db_session, q.id, {"id": 5})

    @pytest.mark.asyncio
    async def test_week_change_is_normalised(self, db_session):
        q = await _question(db_session, MONDAY_15)
        updated = await service.update_question(db_session, q.id, {"week_of": date(2024, 1, 25)})
        assert updated.week_of == date(2024, 1, 22)


class TestListing:
    @pytest.mark.asyncio
    async def test_current_week_only_returns_active_questions_for_this_week(self, db_session):
        this_week = await _question(db_session, MONDAY_15, "This week")
        await _question(db_session, date(2024, 1, 22), "Next week")
        archived = await _question(db_session, MONDAY_15, "Archived")
        await service.archive_question(db_session, archived.id)
        await db_session.commit()

        current = await service.list_current_week(db_session, datetime(2024, 1, 19, tzinfo=timezone.utc))
        assert [q.id for q in current] == [this_week.id]

    @pytest.mark.asyncio
    async def test_archived_list_newest_week_first(self, db_session):
        old = await _question(db_session, date(2024, 1, 1), "Old")
        newer = await _question(db_session, date(2024, 1, 8), "Newer")
        for q in (old, newer):
            await service.archive_question(db_session, q.id)
        await db_session.commit()

        archived = await service.list_archived(db_session)
        assert [q.id for q in archived] == [newer.id, old.id]

    @pytest.mark.asyncio
    async def test_list_weeks_counts_active_questions(self, db_session):
        await _question(db_session, MONDAY_15, "a")
        await _question(db_session, MONDAY_15, "b")
        await _question(db_session, date(2024, 1, 29), "c")

        weeks = await service.list_weeks(db_session, datetime(2024, 1, 17, tzinfo=timezone.utc))
        assert weeks == [
            (date(2024, 1, 15), 2),
            (date(2024, 1, 22), 0),
            (date(2024, 1, 29), 1),
            (date(2024, 2, 5), 0),
        ]


class TestArchiveLifecycle:
    @pytest.mark.asyncio
    async def test_unarchive_keeps_the_original_week(self, db_session):
        q = await _question(db_session, date(2024, 1, 8))
        await service.archive_question(db_session, q.id)
        restored = await service.unarchive_question(db_session, q.id)
        await db_session.commit()

        assert restored.is_archived is False
        assert restored.week_of == date(2024, 1, 8)
        assert await service.list_current_week(db_session, MONDAY_15) == []

    @pytest.mark.asyncio
    async def test_delete_keeps_answers(self, db_session, make_user):
        player = await make_user("bob")
        q = await _question(db_session, MONDAY_15)
        db_session.add(Answer(user_id=player.id, question_id=q.id, answer="Paris", correct=True, answered_at=MONDAY_15))
        await db_session.commit()

        await service.delete_question(db_session, q.id)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await service.get_question(db_session, q.id)
        answers = (await db_session.execute(select(Answer))).scalars().all()
        assert [a.question_id for a in answers] == [q.id]


class TestSweep:
    @pytest.mark.asyncio
    async def test_week_rollover_archives_last_weeks_questions(self, db_session):
        last_week = await _question(db_session, date(2024, 1, 8), "Last week")
        this_week = await _question(db_session, date(2024, 1, 15), "This week")

        archived = await sweep_past_weeks(db_session, MONDAY_15)
        await db_session.commit()

        assert archived == 1
        assert (await service.get_question(db_session, last_week.id)).is_archived is True
        assert (await service.get_question(db_session, this_week.id)).is_archived is False
        assert [q.id for q in await service.list_current_week(db_session, MONDAY_15)] == [this_week.id]

    @pytest.mark.asyncio
    async def test_sweep_is_idempotent(self, db_session):
        await _question(db_session, date(2024, 1, 1))
        await _question(db_session, date(2024, 1, 8))
        assert await sweep_past_weeks(db_session, MONDAY_15) == 2
        assert await sweep_past_weeks(db_session, MONDAY_15) == 0

    @pytest.mark.asyncio
    async def test_future_weeks_are_left_alone(self, db_session):
        await _question(db_session, date(2024, 2, 5))
        assert await sweep_past_weeks(db_session, MONDAY_15) == 0

    @pytest.mark.asyncio
    async def test_sunday_night_is_still_the_same_week(self, db_session):
        await _question(db_session, date(2024, 1, 15))
        sunday = datetime(2024, 1, 21, 23, 59, tzinfo=timezone.utc)
        assert await sweep_past_weeks(db_session, sunday) == 0
