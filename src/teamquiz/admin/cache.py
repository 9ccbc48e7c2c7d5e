"""Client cache settings.

Settings are an immutable value stored on ``app.state``: built from
configuration at startup and swapped wholesale when an admin changes them.
Read endpoints receive the current value through ``get_cache_settings`` and
turn it into a ``Cache-Control`` header; nothing mutates it in place.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from pydantic import ConfigDict, Field

from teamquiz.config import Settings
from teamquiz.schemas import CamelModel


class CacheSettings(CamelModel):
    model_config = ConfigDict(frozen=True)

    extended_caching: bool
    stale_time: int = Field(ge=0, description="Milliseconds before data is considered stale")
    cache_time: int = Field(ge=0, description="Milliseconds unused data stays cached")
    refetch_on_window_focus: bool
    retry_on_reconnect: bool


EXTENDED = CacheSettings(
    extended_caching=True,
    stale_time=5 * 60 * 1000,
    cache_time=10 * 60 * 1000,
    refetch_on_window_focus=False,
    retry_on_reconnect=True,
)

MINIMAL = CacheSettings(
    extended_caching=False,
    stale_time=1 * 60 * 1000,
    cache_time=2 * 60 * 1000,
    refetch_on_window_focus=True,
    retry_on_reconnect=True,
)


def preset_for(extended: bool) -> CacheSettings:
    return EXTENDED if extended else MINIMAL


def init_cache_settings(app: FastAPI, settings: Settings) -> None:
    """Seed the app's cache settings from configuration."""
    app.state.cache_settings = preset_for(settings.extended_caching)


def replace_cache_settings(app: FastAPI, new: CacheSettings) -> CacheSettings:
    app.state.cache_settings = new
    return new


def get_cache_settings(request: Request) -> CacheSettings:
    """FastAPI dependency: the cache settings in force for this request."""
    return getattr(request.app.state, "cache_settings", EXTENDED)


def cache_control_value(cache: CacheSettings) -> str:
    if not cache.extended_caching:
        return "no-cache"
    return f"private, max-age={cache.stale_time // 1000}"


def apply_cache_headers(response: Response, cache: CacheSettings) -> None:
    response.headers["Cache-Control"] = cache_control_value(cache)
