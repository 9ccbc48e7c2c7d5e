"""Archival sweep: retire questions whose week has passed.

Runs in the request path before every question listing rather than on a
schedule, so a server that was down across a week boundary still corrects
itself on the next read. Archival only moves one way; admins undo it
explicitly with unarchive.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.config import get_settings
from teamquiz.db.models import Question
from teamquiz.week_utils import get_monday

logger = logging.getLogger(__name__)


async def sweep_past_weeks(db: AsyncSession, now: datetime) -> int:
    """Archive every active question targeted before the current week.

    Idempotent. Returns the number of questions archived by this call.
    """
    current_week = get_monday(now, get_settings().timezone)
    result = await db.execute(
        update(Question)
        .where(Question.is_archived.is_(False), Question.week_of < current_week)
        .values(is_archived=True)
        .execution_options(synchronize_session="fetch")
    )
    archived = result.rowcount or 0
    if archived:
        logger.info("Archived %d question(s) from weeks before %s", archived, current_week)
    return archived
