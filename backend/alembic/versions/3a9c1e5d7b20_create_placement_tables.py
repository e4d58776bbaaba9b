"""create placement tables

Revision ID: 3a9c1e5d7b20
Revises:
Create Date: 2026-10-12 10:04:51.220417

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3a9c1e5d7b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUESTION_TYPES = (
    "DEFINITION_CHOICE",
    "TRUE_FALSE",
    "FILL_IN_BLANK",
    "USAGE_IN_SENTENCE",
    "ACRONYM_MATCHING",
    "COMPREHENSION",
)
CATEGORIES = (
    "GENERAL",
    "PROGRAMMING",
    "WEB_DEVELOPMENT",
    "DATABASE",
    "NETWORKING",
    "ALGORITHMS",
    "DATA_STRUCTURES",
    "SOFTWARE_ENGINEERING",
    "SECURITY",
    "AI_ML",
)
DIFFICULTY_LEVELS = ("EASY", "MEDIUM", "HARD")
TEST_STATUSES = ("IN_PROGRESS", "COMPLETED", "ABANDONED")
PROFICIENCY_LEVELS = ("BEGINNER", "INTERMEDIATE", "ADVANCED")


def upgrade() -> None:
    """Create users, placement_questions, test_sessions and answer tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("placement_test_completed", sa.Boolean(), nullable=False),
        sa.Column("placement_test_score", sa.Integer(), nullable=True),
        sa.Column(
            "assigned_level",
            sa.Enum(*PROFICIENCY_LEVELS, name="proficiencylevel"),
            nullable=True,
        ),
        sa.Column("level_assigned_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("strength_areas", sa.JSON(), nullable=False),
        sa.Column("improvement_areas", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "placement_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column(
            "question_type",
            sa.Enum(*QUESTION_TYPES, name="questiontype"),
            nullable=False,
        ),
        sa.Column("category", sa.Enum(*CATEGORIES, name="category"), nullable=False),
        sa.Column(
            "difficulty",
            sa.Enum(*DIFFICULTY_LEVELS, name="difficultylevel"),
            nullable=False,
        ),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("time_allocation", sa.Integer(), nullable=False),
        sa.Column("skills_tested", sa.JSON(), nullable=False),
        sa.Column("answer_key", sa.JSON(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points > 0", name="ck_placement_questions_points_positive"),
        sa.CheckConstraint(
            "time_allocation > 0", name="ck_placement_questions_time_positive"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_placement_questions_id", "placement_questions", ["id"])
    op.create_index(
        "ix_placement_questions_is_active", "placement_questions", ["is_active"]
    )
    op.create_index(
        "ix_placement_questions_difficulty_category",
        "placement_questions",
        ["difficulty", "category"],
    )

    op.create_table(
        "test_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.Enum(*TEST_STATUSES, name="teststatus"), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_time_spent", sa.Integer(), nullable=True),
        sa.Column("time_limit_exceeded", sa.Boolean(), nullable=False),
        sa.Column("composition_metadata", sa.JSON(), nullable=True),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("correct_answers", sa.Integer(), nullable=True),
        sa.Column("earned_points", sa.Integer(), nullable=True),
        sa.Column("percentage_score", sa.Integer(), nullable=True),
        sa.Column("category_scores", sa.JSON(), nullable=True),
        sa.Column("skill_scores", sa.JSON(), nullable=True),
        sa.Column("difficulty_scores", sa.JSON(), nullable=True),
        sa.Column(
            "assigned_level",
            sa.Enum(*PROFICIENCY_LEVELS, name="proficiencylevel"),
            nullable=True,
        ),
        sa.Column("level_code", sa.String(length=10), nullable=True),
        sa.Column("strength_areas", sa.JSON(), nullable=True),
        sa.Column("improvement_areas", sa.JSON(), nullable=True),
        sa.Column("feedback", sa.JSON(), nullable=True),
        sa.CheckConstraint(
            "percentage_score IS NULL OR "
            "(percentage_score >= 0 AND percentage_score <= 100)",
            name="ck_test_sessions_percentage_range",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_sessions_id", "test_sessions", ["id"])
    op.create_index("ix_test_sessions_user_id", "test_sessions", ["user_id"])
    op.create_index("ix_test_sessions_status", "test_sessions", ["status"])
    op.create_index(
        "ix_test_sessions_user_status", "test_sessions", ["user_id", "status"]
    )

    op.create_table(
        "test_session_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_session_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["test_session_id"], ["test_sessions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["placement_questions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "test_session_id", "question_id", name="uq_session_question"
        ),
        sa.UniqueConstraint(
            "test_session_id", "position", name="uq_session_question_position"
        ),
    )
    op.create_index(
        "ix_test_session_questions_id", "test_session_questions", ["id"]
    )
    op.create_index(
        "ix_test_session_questions_question_id",
        "test_session_questions",
        ["question_id"],
    )

    op.create_table(
        "question_attempts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_session_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("user_answer", sa.JSON(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("credit", sa.Float(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["test_session_id"], ["test_sessions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["placement_questions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "test_session_id", "question_id", name="uq_attempt_session_question"
        ),
    )
    op.create_index("ix_question_attempts_id", "question_attempts", ["id"])
    op.create_index(
        "ix_question_attempts_test_session_id",
        "question_attempts",
        ["test_session_id"],
    )
    op.create_index(
        "ix_question_attempts_question_id", "question_attempts", ["question_id"]
    )


def downgrade() -> None:
    """Drop placement tables and their enum types."""
    op.drop_table("question_attempts")
    op.drop_table("test_session_questions")
    op.drop_table("test_sessions")
    op.drop_table("placement_questions")
    op.drop_table("users")
    bind = op.get_bind()
    for enum_name in (
        "proficiencylevel",
        "teststatus",
        "difficultylevel",
        "category",
        "questiontype",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
