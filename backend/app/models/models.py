"""
Database models for the placement test engine.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuestionType(str, enum.Enum):
    """Question type enumeration. Each value maps to one answer-key shape."""

    DEFINITION_CHOICE = "definition-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_BLANK = "fill-in-blank"
    USAGE_IN_SENTENCE = "usage-in-sentence"
    ACRONYM_MATCHING = "acronym-matching"
    COMPREHENSION = "comprehension"


class Category(str, enum.Enum):
    """Subject area a question belongs to."""

    GENERAL = "general"
    PROGRAMMING = "programming"
    WEB_DEVELOPMENT = "web-development"
    DATABASE = "database"
    NETWORKING = "networking"
    ALGORITHMS = "algorithms"
    DATA_STRUCTURES = "data-structures"
    SOFTWARE_ENGINEERING = "software-engineering"
    SECURITY = "security"
    AI_ML = "ai-ml"


class DifficultyLevel(str, enum.Enum):
    """Difficulty level enumeration."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TestStatus(str, enum.Enum):
    """Placement test session status."""

    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ProficiencyLevel(str, enum.Enum):
    """Proficiency level assigned on completion of a placement test."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class User(Base):
    """
    Learner record.

    Identity is owned by the external auth service; this table only holds
    the fields the engine reads (id, email, name) and the denormalized
    placement cache written by ``sync_user_placement_cache``.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200))
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Placement cache: copy of the most recent completed session's results
    placement_test_completed = Column(Boolean, default=False, nullable=False)
    placement_test_score = Column(Integer, nullable=True)
    assigned_level = Column(Enum(ProficiencyLevel), nullable=True)
    level_assigned_date = Column(DateTime(timezone=True), nullable=True)
    strength_areas = Column(JSON, default=list, nullable=False)
    improvement_areas = Column(JSON, default=list, nullable=False)

    test_sessions = relationship(
        "TestSession", back_populates="user", cascade="all, delete-orphan"
    )


class Question(Base):
    """
    Placement question.

    ``answer_key`` holds the type-specific payload (options and correct
    option, matching columns and pairs, or passage and sub-questions). It is
    validated against ``question_type`` by ``parse_answer_key`` on every
    administrative write.
    """

    __tablename__ = "placement_questions"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(Enum(QuestionType), nullable=False)
    category = Column(Enum(Category), nullable=False)
    difficulty = Column(Enum(DifficultyLevel), nullable=False)
    points = Column(Integer, default=1, nullable=False)
    time_allocation = Column(Integer, default=60, nullable=False)  # seconds
    skills_tested = Column(JSON, default=list, nullable=False)
    answer_key = Column(JSON, nullable=False)
    explanation = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_placement_questions_difficulty_category", "difficulty", "category"),
        CheckConstraint("points > 0", name="ck_placement_questions_points_positive"),
        CheckConstraint(
            "time_allocation > 0", name="ck_placement_questions_time_positive"
        ),
    )


class TestSession(Base):
    """One user's placement test attempt."""

    __tablename__ = "test_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        Enum(TestStatus), default=TestStatus.IN_PROGRESS, nullable=False, index=True
    )
    attempt_number = Column(Integer, default=1, nullable=False)
    started_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    total_time_spent = Column(Integer, nullable=True)  # seconds
    time_limit_exceeded = Column(Boolean, default=False, nullable=False)
    composition_metadata = Column(JSON, nullable=True)

    # Totals (total_questions / total_points are fixed at start)
    total_questions = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    correct_answers = Column(Integer, nullable=True)
    earned_points = Column(Integer, nullable=True)
    percentage_score = Column(Integer, nullable=True)

    # Breakdowns: [{"category"|"skill"|"difficulty": str, "total_questions",
    # "correct_answers", "percentage"}]
    category_scores = Column(JSON, nullable=True)
    skill_scores = Column(JSON, nullable=True)
    difficulty_scores = Column(JSON, nullable=True)

    assigned_level = Column(Enum(ProficiencyLevel), nullable=True)
    level_code = Column(String(10), nullable=True)
    strength_areas = Column(JSON, nullable=True)
    improvement_areas = Column(JSON, nullable=True)
    feedback = Column(JSON, nullable=True)

    user = relationship("User", back_populates="test_sessions")
    questions = relationship(
        "TestSessionQuestion",
        back_populates="test_session",
        cascade="all, delete-orphan",
        order_by="TestSessionQuestion.position",
        lazy="selectin",
    )
    attempts = relationship(
        "QuestionAttempt",
        back_populates="test_session",
        cascade="all, delete-orphan",
        order_by="QuestionAttempt.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_test_sessions_user_status", "user_id", "status"),
        # At most one in-progress session per user. Enum columns store member
        # names, hence the upper-case literal.
        Index(
            "ix_test_sessions_user_active",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'IN_PROGRESS'"),
            postgresql_where=text("status = 'IN_PROGRESS'"),
        ),
        CheckConstraint(
            "percentage_score IS NULL OR (percentage_score >= 0 AND percentage_score <= 100)",
            name="ck_test_sessions_percentage_range",
        ),
    )


class TestSessionQuestion(Base):
    """Ordered list of questions sampled into a session."""

    __tablename__ = "test_session_questions"

    id = Column(Integer, primary_key=True, index=True)
    test_session_id = Column(
        Integer, ForeignKey("test_sessions.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("placement_questions.id"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)

    test_session = relationship("TestSession", back_populates="questions")
    question = relationship("Question", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "test_session_id", "question_id", name="uq_session_question"
        ),
        UniqueConstraint(
            "test_session_id", "position", name="uq_session_question_position"
        ),
    )


class QuestionAttempt(Base):
    """A graded answer to one question within one session."""

    __tablename__ = "question_attempts"

    id = Column(Integer, primary_key=True, index=True)
    test_session_id = Column(
        Integer,
        ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Integer, ForeignKey("placement_questions.id"), nullable=False, index=True
    )
    user_answer = Column(JSON, nullable=True)
    is_correct = Column(Boolean, nullable=False)
    credit = Column(Float, nullable=False)  # fraction of the question earned
    points_earned = Column(Integer, nullable=False)
    time_spent_seconds = Column(Integer, default=0, nullable=False)
    answered_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    test_session = relationship("TestSession", back_populates="attempts")
    question = relationship("Question", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "test_session_id", "question_id", name="uq_attempt_session_question"
        ),
    )
