"""User endpoints: own profile, team assignment and admin management."""

from __future__ import annotations

from datetime import datetime

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.auth.dependencies import get_current_admin, get_current_user
from teamquiz.config import get_settings
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.dependencies import get_now
from teamquiz.errors import NotFoundError, ValidationError
from teamquiz.gamification.ledger_service import assign_team, live_streak, reset_weekly_aggregates
from teamquiz.users.schemas import AssignTeamRequest, UserResponse, UserUpdateRequest
from teamquiz.users.service import delete_user, list_users, update_user
from teamquiz.week_utils import local_date

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Users"])


def _user_response(user: User, now: datetime) -> UserResponse:
    today = local_date(now, get_settings().timezone)
    return UserResponse.model_validate(user).model_copy(update={"current_streak": live_streak(user, today)})


@router.get("/user", response_model=UserResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
) -> UserResponse:
    """Own profile with weekly aggregates and streak."""
    return _user_response(user, now)


@router.post("/assign-team", response_model=UserResponse)
async def assign_my_team(
    body: AssignTeamRequest | None = Body(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> UserResponse:
    """Join the named team, or a random one when no team is given."""
    try:
        updated = await assign_team(db, user.id, body.team if body else None)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    logger.info("team_assigned", user_id=user.id, team=updated.team)
    return _user_response(updated, now)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
async def all_users(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[UserResponse]:
    return [_user_response(u, now) for u in await list_users(db)]


@router.patch("/users/{user_id}", response_model=UserResponse)
async def patch_user(
    user_id: int,
    body: UserUpdateRequest,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> UserResponse:
    """Rename, toggle admin, or move a user to another team."""
    try:
        user = await update_user(db, user_id, is_admin=body.is_admin, username=body.username)
        if body.team is not None:
            user = await assign_team(db, user_id, body.team)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _user_response(user, now)


@router.delete("/users/{user_id}", status_code=204)
async def remove_user(
    user_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    try:
        await delete_user(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return Response(status_code=204)


@router.post("/users/{user_id}/reset", response_model=UserResponse)
async def reset_user(
    user_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> UserResponse:
    """Zero one user's weekly score and quiz count."""
    try:
        user = await reset_weekly_aggregates(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return _user_response(user, now)
