"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from teamquiz.admin.cache import init_cache_settings
from teamquiz.admin.router import router as admin_router
from teamquiz.answers.router import router as answers_router
from teamquiz.config import get_settings
from teamquiz.database import close_db, create_all, init_db
from teamquiz.gamification.router import router as achievements_router
from teamquiz.health.router import router as health_router
from teamquiz.leaderboard.router import router as leaderboard_router
from teamquiz.middleware import setup_middleware
from teamquiz.questions.router import router as questions_router
from teamquiz.redis_client import close_redis, init_redis
from teamquiz.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        # Local SQLite files are created on the fly; Postgres goes through Alembic
        await create_all()
    await init_redis(settings.redis_url)
    logger.info("Team quiz API started (timezone %s, teams %s)", settings.timezone, ", ".join(settings.teams))

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Team Quiz API",
        description="Weekly team quiz: questions, answers, scores and leaderboards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    init_cache_settings(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(questions_router)
    app.include_router(answers_router)
    app.include_router(leaderboard_router)
    app.include_router(users_router)
    app.include_router(achievements_router)
    app.include_router(admin_router)

    return app


app = create_app()
