"""
Models package for the placement engine.
"""
from .base import Base, engine, SessionLocal, AsyncSessionLocal, get_db
from .models import (
    User,
    Question,
    TestSession,
    TestSessionQuestion,
    QuestionAttempt,
    QuestionType,
    Category,
    DifficultyLevel,
    TestStatus,
    ProficiencyLevel,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "AsyncSessionLocal",
    "get_db",
    "User",
    "Question",
    "TestSession",
    "TestSessionQuestion",
    "QuestionAttempt",
    "QuestionType",
    "Category",
    "DifficultyLevel",
    "TestStatus",
    "ProficiencyLevel",
]
