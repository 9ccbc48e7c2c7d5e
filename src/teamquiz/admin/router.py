"""Admin-only operations that span users or the whole app."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.admin.cache import CacheSettings, get_cache_settings, replace_cache_settings
from teamquiz.auth.dependencies import get_current_admin
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.gamification.achievement_service import list_achievements
from teamquiz.gamification.ledger_service import reset_all_weekly_aggregates
from teamquiz.gamification.schemas import AchievementResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/cache-settings", response_model=CacheSettings)
async def read_cache_settings(
    _admin: User = Depends(get_current_admin),
    cache: CacheSettings = Depends(get_cache_settings),
) -> CacheSettings:
    return cache


@router.post("/cache-settings", response_model=CacheSettings)
async def write_cache_settings(
    body: CacheSettings,
    request: Request,
    admin: User = Depends(get_current_admin),
) -> CacheSettings:
    """Replace the cache settings served to clients."""
    new = replace_cache_settings(request.app, body)
    logger.info("cache_settings_replaced", admin_id=admin.id, extended_caching=new.extended_caching)
    return new


@router.post("/reset-weekly")
async def reset_weekly(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, int]:
    """Zero every user's weekly score and quiz count."""
    count = await reset_all_weekly_aggregates(db)
    await db.commit()
    logger.info("weekly_reset", admin_id=admin.id, users=count)
    return {"usersReset": count}


@router.get("/achievements", response_model=list[AchievementResponse])
async def recent_achievements(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AchievementResponse]:
    """All achievements, newest first."""
    return [AchievementResponse.model_validate(a) for a in await list_achievements(db, newest_first=True)]
