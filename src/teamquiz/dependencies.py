"""Shared FastAPI dependencies."""

from datetime import datetime

from teamquiz.week_utils import utcnow


def get_now() -> datetime:
    """The request's notion of "now" (UTC). Overridden in tests to pin the clock."""
    return utcnow()
