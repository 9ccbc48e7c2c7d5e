"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.auth.jwt import verify_token
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.errors import UnauthorizedError
from teamquiz.users.service import get_user_by_id

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


def _unauthorized() -> UnauthorizedError:
    return UnauthorizedError("Not authenticated")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the bearer token to a User.

    Every failure is a bare 401; the reason is only logged.
    """
    if credentials is None:
        raise _unauthorized()
    try:
        payload = verify_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.info("auth_rejected", reason=str(e))
        raise _unauthorized() from e

    user = await get_user_by_id(db, user_id)
    if user is None:
        logger.info("auth_rejected", reason="unknown user", user_id=user_id)
        raise _unauthorized()
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user but additionally requires the admin flag."""
    if not user.is_admin:
        logger.info("admin_required", user_id=user.id)
        raise _unauthorized()
    return user
