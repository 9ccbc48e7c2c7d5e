"""Leaderboard and analytics endpoints.

All standings are computed per request from the live tables.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.admin.cache import CacheSettings, apply_cache_headers, get_cache_settings
from teamquiz.auth.dependencies import get_current_admin, get_current_user
from teamquiz.config import get_settings
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.dependencies import get_now
from teamquiz.gamification.ledger_service import live_streak
from teamquiz.leaderboard.schemas import (
    DailyStatsResponse,
    KnowledgePointResponse,
    LeaderboardEntry,
    TeamGroupResponse,
    TeamMember,
    TeamStatsResponse,
)
from teamquiz.leaderboard.service import (
    get_daily_stats,
    get_leaderboard,
    get_team_groups,
    get_team_knowledge,
    get_team_stats,
)
from teamquiz.week_utils import local_date

router = APIRouter(prefix="/api", tags=["Leaderboard"])


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    response: Response,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
    cache: CacheSettings = Depends(get_cache_settings),
) -> list[LeaderboardEntry]:
    """Individual ranking by weekly score; ties keep registration order."""
    apply_cache_headers(response, cache)
    today = local_date(now, get_settings().timezone)
    return [
        LeaderboardEntry(
            rank=i,
            id=u.id,
            username=u.username,
            team=u.team,
            weekly_score=u.weekly_score,
            weekly_quizzes=u.weekly_quizzes,
            current_streak=live_streak(u, today),
        )
        for i, u in enumerate(await get_leaderboard(db), start=1)
    ]


@router.get("/analytics/teams", response_model=list[TeamStatsResponse])
async def team_analytics(
    response: Response,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
    cache: CacheSettings = Depends(get_cache_settings),
) -> list[TeamStatsResponse]:
    apply_cache_headers(response, cache)
    return [TeamStatsResponse.model_validate(s) for s in await get_team_stats(db, now)]


@router.get("/analytics/daily", response_model=list[DailyStatsResponse])
async def daily_analytics(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[DailyStatsResponse]:
    """Monday to Sunday of the current week."""
    return [DailyStatsResponse.model_validate(s) for s in await get_daily_stats(db, now)]


@router.get("/analytics/team-knowledge", response_model=list[KnowledgePointResponse])
async def team_knowledge(
    weeks: int = Query(12, ge=1, le=52),
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[KnowledgePointResponse]:
    return [KnowledgePointResponse.model_validate(p) for p in await get_team_knowledge(db, now, weeks)]


@router.get("/teams", response_model=list[TeamGroupResponse])
async def teams(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[TeamGroupResponse]:
    """Members per team, team-less users under "Unassigned"."""
    groups = await get_team_groups(db)
    return [
        TeamGroupResponse(
            team_name=name,
            members=[TeamMember.model_validate(u) for u in members],
        )
        for name, members in sorted(groups.items())
    ]
