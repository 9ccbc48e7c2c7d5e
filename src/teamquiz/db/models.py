"""ORM models for users, questions, answers and achievements.

Timestamps are stored in UTC. Calendar dates (``week_of``, ``last_quiz_date``)
are local dates in the configured quiz timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamquiz.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A player. Aggregates only change through answer submission or admin reset."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    # --- Team ---
    team: Mapped[str | None] = mapped_column(String(64), nullable=True)
    team_assigned: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    # --- Weekly aggregates ---
    weekly_score: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    weekly_quizzes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # --- Streak ---
    current_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_quiz_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    achievements: Mapped[list[Achievement]] = relationship(
        "Achievement",
        back_populates="user",
        order_by="Achievement.earned_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class Question(Base):
    """A quiz question targeted at one calendar week."""

    __tablename__ = "questions"
    __table_args__ = (Index("idx_questions_week_archived", "week_of", "is_archived"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="General")
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    week_of: Mapped[date] = mapped_column(Date, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Answers
# ---------------------------------------------------------------------------


class Answer(Base):
    """Append-only answer log.

    ``question_id`` is deliberately not a foreign key: deleting a question
    leaves its historical answers in place.
    """

    __tablename__ = "answers"
    __table_args__ = (
        Index("idx_answers_user_answered", "user_id", "answered_at"),
        Index("idx_answers_answered", "answered_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class Achievement(Base):
    """An achievement tier earned by a user."""

    __tablename__ = "achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "milestone", name="achievements_user_type_milestone_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(32), nullable=False)
    badge: Mapped[str] = mapped_column(String(64), nullable=False)
    tier: Mapped[str] = mapped_column(String(16), nullable=False)
    milestone: Mapped[int] = mapped_column(Integer, nullable=False)
    is_highest_tier: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user: Mapped[User] = relationship("User", back_populates="achievements")
