"""Leaderboard aggregation: individual ranking, team stats, daily and trend stats.

Nothing here is cached or materialised. Every call re-reads users and answers
and recomputes standings, so results always reflect the live state. The pure
functions take plain rows so they can be exercised without a database.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.answers.service import list_answers_since
from teamquiz.config import get_settings
from teamquiz.db.models import Answer, User
from teamquiz.week_utils import day_bounds, get_monday, local_date, week_bounds, week_days

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"
MOVING_AVERAGE_WEEKS = 4


@dataclass
class TeamStats:
    team_name: str
    total_score: int
    average_score: float
    completed_quizzes: int
    members: int
    weekly_completion_percentage: float


@dataclass
class DailyStats:
    date: date
    day: str
    completed_quizzes: int
    completion_rate: float


@dataclass
class KnowledgePoint:
    week: date
    knowledge_score: float
    moving_average: float


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------


def rank_users(users: Iterable[User]) -> list[User]:
    """Order users by weekly score, highest first; ties keep insertion (id) order."""
    return sorted(users, key=lambda u: (-u.weekly_score, u.id))


def group_users_by_team(users: Iterable[User], *, include_unassigned: bool = False) -> dict[str, list[User]]:
    """Canonical team grouping.

    Aggregations leave team-less users out; display views can ask for them
    under ``"Unassigned"``.
    """
    groups: dict[str, list[User]] = defaultdict(list)
    for user in users:
        if user.team:
            groups[user.team].append(user)
        elif include_unassigned:
            groups[UNASSIGNED].append(user)
    return dict(groups)


def weekly_completions(answers: Iterable[Answer], answers_per_quiz: int = 3) -> set[int]:
    """Ids of users with at least one quiz's worth of answers in ``answers``."""
    counts = Counter(a.user_id for a in answers)
    return {user_id for user_id, count in counts.items() if count >= answers_per_quiz}


def compute_team_stats(
    users: Iterable[User],
    weekly_answers: Iterable[Answer],
    answers_per_quiz: int = 3,
) -> list[TeamStats]:
    """Per-team totals sorted by completion percentage, then average score."""
    completed = weekly_completions(weekly_answers, answers_per_quiz)
    stats: list[TeamStats] = []
    for team, members in group_users_by_team(users).items():
        total = sum(u.weekly_score or 0 for u in members)
        done = sum(1 for u in members if u.id in completed)
        stats.append(
            TeamStats(
                team_name=team,
                total_score=total,
                average_score=total / len(members),
                completed_quizzes=sum(u.weekly_quizzes or 0 for u in members),
                members=len(members),
                weekly_completion_percentage=100 * done / len(members),
            )
        )
    stats.sort(key=lambda s: (-s.weekly_completion_percentage, -s.average_score))
    return stats


def compute_daily_stats(
    answers: Iterable[Answer],
    days: Sequence[date],
    today: date,
    total_users: int,
    tz: str,
    answers_per_quiz: int = 3,
) -> list[DailyStats]:
    """Daily completions for ``days``.

    Every ``answers_per_quiz``-th answer landing on a day, across all users,
    counts as one completed quiz for that day. Days after ``today`` stay at zero.
    """
    per_day = Counter(local_date(a.answered_at, tz) for a in answers)
    out = []
    for day in days:
        completed = per_day.get(day, 0) // answers_per_quiz if day <= today else 0
        rate = 100 * completed / total_users if total_users else 0.0
        out.append(DailyStats(date=day, day=day.strftime("%a"), completed_quizzes=completed, completion_rate=rate))
    return out


def compute_knowledge_trend(
    answers: Iterable[Answer],
    weeks: Sequence[date],
    tz: str,
    window: int = MOVING_AVERAGE_WEEKS,
) -> list[KnowledgePoint]:
    """Share of correct answers per week plus a trailing moving average.

    Weeks without answers score 0. Until ``window`` weeks are available the
    average covers the weeks seen so far.
    """
    totals: Counter[date] = Counter()
    correct: Counter[date] = Counter()
    for a in answers:
        week = get_monday(a.answered_at, tz)
        totals[week] += 1
        if a.correct:
            correct[week] += 1

    points: list[KnowledgePoint] = []
    scores: list[float] = []
    for week in weeks:
        score = 100 * correct[week] / totals[week] if totals[week] else 0.0
        scores.append(score)
        recent = scores[-window:]
        points.append(
            KnowledgePoint(week=week, knowledge_score=round(score, 1), moving_average=round(sum(recent) / len(recent), 1))
        )
    return points


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _all_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars())


async def get_leaderboard(db: AsyncSession) -> list[User]:
    """Individual ranking by weekly score."""
    return rank_users(await _all_users(db))


async def get_team_groups(db: AsyncSession) -> dict[str, list[User]]:
    """Display grouping: every user, team-less ones under ``Unassigned``."""
    groups = group_users_by_team(await _all_users(db), include_unassigned=True)
    for members in groups.values():
        members.sort(key=lambda u: (-u.weekly_score, u.id))
    return groups


async def get_team_stats(db: AsyncSession, now: datetime) -> list[TeamStats]:
    """Team leaderboard for the week containing ``now``."""
    settings = get_settings()
    users = await _all_users(db)
    week_start, _ = week_bounds(now, settings.timezone)
    answers = await list_answers_since(db, week_start)
    return compute_team_stats(users, answers, settings.answers_per_quiz)


async def get_daily_stats(db: AsyncSession, now: datetime) -> list[DailyStats]:
    """Monday..Sunday completion counts for the current week, zero after today."""
    settings = get_settings()
    tz = settings.timezone
    today = local_date(now, tz)
    days = week_days(now, tz)

    week_start, _ = day_bounds(days[0], tz)
    _, today_end = day_bounds(today, tz)
    answers = await list_answers_since(db, week_start, today_end)
    users = await _all_users(db)
    return compute_daily_stats(answers, days, today, len(users), tz, settings.answers_per_quiz)


async def get_team_knowledge(db: AsyncSession, now: datetime, weeks: int = 12) -> list[KnowledgePoint]:
    """Weekly correctness trend over the last ``weeks`` weeks, oldest first."""
    tz = get_settings().timezone
    current = get_monday(now, tz)
    week_list = [current - timedelta(weeks=i) for i in reversed(range(weeks))]
    since, _ = day_bounds(week_list[0], tz)
    answers = await list_answers_since(db, since)
    return compute_knowledge_trend(answers, week_list, tz)
