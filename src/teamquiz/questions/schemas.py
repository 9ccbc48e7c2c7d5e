"""Pydantic models for question endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from teamquiz.schemas import CamelModel


class QuestionCreateRequest(CamelModel):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)
    correct_answer: str
    category: str = "General"
    explanation: str = ""
    week_of: date | None = None  # defaults to the current week


class QuestionUpdateRequest(CamelModel):
    question: str | None = None
    options: list[str] | None = None
    correct_answer: str | None = None
    category: str | None = None
    explanation: str | None = None
    week_of: date | None = None
    is_archived: bool | None = None


class QuestionResponse(CamelModel):
    id: int
    question: str
    options: list[str]
    correct_answer: str
    category: str
    explanation: str
    week_of: date
    is_archived: bool
    created_at: datetime | None = None


class WeekEntry(CamelModel):
    week_of: date
    question_count: int
    is_current: bool
