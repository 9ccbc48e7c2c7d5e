"""Pydantic response models for leaderboard and analytics endpoints."""

from __future__ import annotations

import datetime as dt

from teamquiz.schemas import CamelModel


class LeaderboardEntry(CamelModel):
    rank: int
    id: int
    username: str
    team: str | None = None
    weekly_score: int
    weekly_quizzes: int
    current_streak: int


class TeamStatsResponse(CamelModel):
    team_name: str
    total_score: int
    average_score: float
    completed_quizzes: int
    members: int
    weekly_completion_percentage: float


class DailyStatsResponse(CamelModel):
    date: dt.date
    day: str
    completed_quizzes: int
    completion_rate: float


class KnowledgePointResponse(CamelModel):
    week: dt.date
    knowledge_score: float
    moving_average: float


class TeamMember(CamelModel):
    id: int
    username: str
    weekly_score: int
    weekly_quizzes: int


class TeamGroupResponse(CamelModel):
    team_name: str
    members: list[TeamMember]
