"""Pydantic models for answer endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from teamquiz.gamification.schemas import AchievementResponse
from teamquiz.schemas import CamelModel
from teamquiz.week_utils import as_utc


class AnswerSubmitRequest(CamelModel):
    question_id: int
    answer: str = Field(min_length=1)
    # Older clients send their own verdict; it is never trusted.
    correct: bool | None = None


class AnswerResponse(CamelModel):
    id: int
    user_id: int
    question_id: int
    answer: str
    correct: bool
    answered_at: datetime

    @field_validator("answered_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AnswerSubmitResponse(CamelModel):
    answer: AnswerResponse
    achievements: list[AchievementResponse] = []
    quiz_completed: bool
