"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from teamquiz.schemas import CamelModel


class UserResponse(CamelModel):
    id: int
    username: str
    is_admin: bool
    team: str | None = None
    team_assigned: bool
    weekly_score: int
    weekly_quizzes: int
    current_streak: int
    longest_streak: int
    last_quiz_date: date | None = None
    created_at: datetime | None = None


class UserUpdateRequest(CamelModel):
    username: str | None = Field(default=None, min_length=1, max_length=64)
    is_admin: bool | None = None
    team: str | None = None


class AssignTeamRequest(CamelModel):
    team: str | None = None  # omitted: pick one at random
