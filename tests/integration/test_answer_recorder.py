"""Integration tests for answer submission and its ledger side effects."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from teamquiz.answers.service import count_answers_on_day, list_user_answers, submit_answer
from teamquiz.db.models import Answer
from teamquiz.errors import NotFoundError
from teamquiz.gamification.ledger_service import refresh_user
from teamquiz.questions.service import create_question

TUESDAY = datetime(2024, 1, 16, 10, 0, tzinfo=timezone.utc)
TZ = "Europe/London"


@pytest_asyncio.fixture
async def quiz(db_session):
    """Three questions for the week of 15 January 2024, answers 'a', 'b', 'c'."""
    questions = []
    for i, correct in enumerate(["a", "b", "c"]):
        q = await create_question(
            db_session,
            question=f"Question {i}",
            options=["a", "b", "c"],
            correct_answer=correct,
            week_of=TUESDAY,
        )
        questions.append(q)
    await db_session.commit()
    return questions


async def _answer_all(db, user_id, questions, when, *, right=True):
    results = []
    for i, q in enumerate(questions):
        choice = q.correct_answer if right else next(o for o in q.options if o != q.correct_answer)
        results.append(await submit_answer(db, user_id, q.id, choice, when + timedelta(minutes=i)))
    return results


class TestGrading:
    @pytest.mark.asyncio
    async def test_correctness_is_computed_server_side(self, db_session, make_user, quiz):
        player = await make_user("alice")
        result = await submit_answer(db_session, player.id, quiz[0].id, "b", TUESDAY, client_correct=True)
        assert result.answer.correct is False

        user = await refresh_user(db_session, player.id)
        assert user.weekly_score == 0

    @pytest.mark.asyncio
    async def test_correct_answer_scores_ten_points(self, db_session, make_user, quiz):
        player = await make_user("alice")
        result = await submit_answer(db_session, player.id, quiz[0].id, "a", TUESDAY)
        assert result.answer.correct is True
        assert result.quiz_completed is False

        user = await refresh_user(db_session, player.id)
        assert user.weekly_score == 10
        assert user.weekly_quizzes == 0

    @pytest.mark.asyncio
    async def test_unknown_question(self, db_session, make_user):
        player = await make_user("alice")
        with pytest.raises(NotFoundError):
            await submit_answer(db_session, player.id, 404, "a", TUESDAY)
        count = await db_session.execute(select(func.count(Answer.id)))
        assert count.scalar_one() == 0


class TestQuizCompletion:
    @pytest.mark.asyncio
    async def test_third_answer_of_the_day_completes_a_quiz(self, db_session, make_user, quiz):
        player = await make_user("alice")
        results = await _answer_all(db_session, player.id, quiz, TUESDAY)

        assert [r.quiz_completed for r in results] == [False, False, True]
        user = await refresh_user(db_session, player.id)
        assert user.weekly_quizzes == 1
        assert user.weekly_score == 30

    @pytest.mark.asyncio
    async def test_two_answers_complete_nothing(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz[:2], TUESDAY)
        user = await refresh_user(db_session, player.id)
        assert user.weekly_quizzes == 0

    @pytest.mark.asyncio
    async def test_six_answers_complete_two_quizzes(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz, TUESDAY)
        await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(hours=1), right=False)

        user = await refresh_user(db_session, player.id)
        assert user.weekly_quizzes == 2
        assert user.weekly_score == 30

    @pytest.mark.asyncio
    async def test_answers_on_different_days_do_not_add_up(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz[:2], TUESDAY)
        result = await submit_answer(db_session, player.id, quiz[2].id, "c", TUESDAY + timedelta(days=1))

        assert result.quiz_completed is False
        assert await count_answers_on_day(db_session, player.id, TUESDAY, TZ) == 2
        user = await refresh_user(db_session, player.id)
        assert user.weekly_quizzes == 0

    @pytest.mark.asyncio
    async def test_history_is_oldest_first(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz, TUESDAY)
        history = await list_user_answers(db_session, player.id)
        assert [a.question_id for a in history] == [q.id for q in quiz]


class TestStreaks:
    @pytest.mark.asyncio
    async def test_consecutive_days_extend_the_streak(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz, TUESDAY)
        await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(days=1))

        user = await refresh_user(db_session, player.id)
        assert user.current_streak == 2
        assert user.longest_streak == 2
        assert user.last_quiz_date == date(2024, 1, 17)

    @pytest.mark.asyncio
    async def test_second_quiz_same_day_keeps_the_streak(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz, TUESDAY)
        await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(hours=2))

        user = await refresh_user(db_session, player.id)
        assert user.current_streak == 1

    @pytest.mark.asyncio
    async def test_gap_restarts_the_streak(self, db_session, make_user, quiz):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz, TUESDAY)
        await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(days=1))
        await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(days=3))

        user = await refresh_user(db_session, player.id)
        assert user.current_streak == 1
        assert user.longest_streak == 2


class TestSideEffectFailure:
    @pytest.mark.asyncio
    async def test_answer_survives_a_ledger_failure(self, db_session, make_user, quiz, monkeypatch):
        player = await make_user("alice")

        async def _broken(*_args, **_kwargs):
            raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

        monkeypatch.setattr("teamquiz.gamification.ledger_service.increment_score", _broken)
        result = await submit_answer(db_session, player.id, quiz[0].id, "a", TUESDAY)

        assert result.answer.id is not None
        assert result.answer.correct is True
        assert result.quiz_completed is False
        stored = await list_user_answers(db_session, player.id)
        assert len(stored) == 1
        user = await refresh_user(db_session, player.id)
        assert user.weekly_score == 0

    @pytest.mark.asyncio
    async def test_completed_quiz_survives_a_failed_achievement_check(self, db_session, make_user, quiz, monkeypatch):
        player = await make_user("alice")
        await _answer_all(db_session, player.id, quiz[:2], TUESDAY)

        async def _broken(*_args, **_kwargs):
            raise OperationalError("INSERT INTO achievements", {}, Exception("locked"))

        monkeypatch.setattr("teamquiz.gamification.achievement_service.check_achievements", _broken)
        result = await submit_answer(db_session, player.id, quiz[2].id, "c", TUESDAY + timedelta(minutes=5))

        assert result.quiz_completed is True
        assert result.achievements == []
        assert len(await list_user_answers(db_session, player.id)) == 3
        user = await refresh_user(db_session, player.id)
        assert (user.weekly_score, user.weekly_quizzes, user.current_streak) == (30, 1, 1)

    @pytest.mark.asyncio
    async def test_later_quizzes_still_count_after_a_failed_award(self, db_session, make_user, quiz, monkeypatch):
        from teamquiz.gamification import achievement_service

        player = await make_user("alice")
        real_check = achievement_service.check_achievements
        calls = []

        async def _fails_once(db, user, now):
            calls.append(now)
            if len(calls) == 1:
                raise OperationalError("INSERT INTO achievements", {}, Exception("locked"))
            return await real_check(db, user, now)

        monkeypatch.setattr("teamquiz.gamification.achievement_service.check_achievements", _fails_once)
        first = await _answer_all(db_session, player.id, quiz, TUESDAY)
        second = await _answer_all(db_session, player.id, quiz, TUESDAY + timedelta(hours=1))

        assert [r.quiz_completed for r in first + second] == [False, False, True, False, False, True]
        assert first[-1].achievements == []
        assert second[-1].achievements
        user = await refresh_user(db_session, player.id)
        assert (user.weekly_score, user.weekly_quizzes) == (60, 2)
