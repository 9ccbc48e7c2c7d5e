"""Achievement endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.auth.dependencies import get_current_user
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.gamification.achievement_service import latest_for_user, list_achievements
from teamquiz.gamification.schemas import AchievementResponse

router = APIRouter(prefix="/api/achievements", tags=["Achievements"])


@router.get("", response_model=list[AchievementResponse])
async def all_achievements(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[AchievementResponse]:
    """Every achievement earned by any player."""
    return [AchievementResponse.model_validate(a) for a in await list_achievements(db)]


@router.get("/latest", response_model=list[AchievementResponse])
async def my_latest_achievements(
    limit: int = Query(5, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[AchievementResponse]:
    return [AchievementResponse.model_validate(a) for a in await latest_for_user(db, user.id, limit)]
