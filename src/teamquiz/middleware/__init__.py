"""Middleware registration."""

from fastapi import FastAPI

from teamquiz.config import Settings
from teamquiz.middleware.cors import setup_cors
from teamquiz.middleware.error_handler import setup_error_handlers
from teamquiz.middleware.logging import setup_logging
from teamquiz.middleware.rate_limit import RateLimitMiddleware
from teamquiz.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap every other response, including 429s from the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
