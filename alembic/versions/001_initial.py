"""Initial schema: users, questions, answers, achievements.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all quiz tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(256), nullable=False, server_default=""),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("team", sa.String(64), nullable=True),
        sa.Column("team_assigned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("weekly_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weekly_quizzes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_quiz_date", sa.Date(), nullable=True),
    )

    # --- questions ---
    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default="General"),
        sa.Column("explanation", sa.Text(), nullable=False, server_default=""),
        sa.Column("week_of", sa.Date(), nullable=False),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_questions_week_archived", "questions", ["week_of", "is_archived"])

    # --- answers (question_id intentionally unconstrained) ---
    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("correct", sa.Boolean(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_answers_user_answered", "answers", ["user_id", "answered_at"])
    op.create_index("idx_answers_answered", "answers", ["answered_at"])

    # --- achievements ---
    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(32), nullable=False),
        sa.Column("badge", sa.String(64), nullable=False),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("milestone", sa.Integer(), nullable=False),
        sa.Column("is_highest_tier", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "type", "milestone", name="achievements_user_type_milestone_key"),
    )


def downgrade() -> None:
    """Drop all quiz tables."""
    op.drop_table("achievements")
    op.drop_index("idx_answers_answered", table_name="answers")
    op.drop_index("idx_answers_user_answered", table_name="answers")
    op.drop_table("answers")
    op.drop_index("idx_questions_week_archived", table_name="questions")
    op.drop_table("questions")
    op.drop_table("users")
