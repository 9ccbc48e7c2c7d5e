"""Pydantic response models for achievements and ledger views."""

from __future__ import annotations

from datetime import datetime

from pydantic import field_validator

from teamquiz.schemas import CamelModel
from teamquiz.week_utils import as_utc


class AchievementResponse(CamelModel):
    id: int
    user_id: int
    type: str
    name: str
    description: str
    icon: str
    badge: str
    tier: str
    milestone: int
    is_highest_tier: bool
    earned_at: datetime

    @field_validator("earned_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

