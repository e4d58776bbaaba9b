"""
Pydantic schemas for placement question endpoints.

Client-facing schemas never carry answer keys. Admin schemas accept the
answer key as a plain object, since its model depends on ``question_type``.
``app.core.question_bank.validate_question_record`` runs the whole record
through ``QuestionCreate`` and then the answer-key model for the type, so
errors name the offending field path
(e.g. ``answer_key.correct_matches[1].right_id``).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.models import Category, DifficultyLevel, QuestionType


class LabeledItemSchema(BaseModel):
    """Option or matching-column entry."""

    id: str = Field(..., description="Stable label (e.g. 'A', 'L1')")
    text: str = Field(..., description="Display text")


class SubQuestionResponse(BaseModel):
    """Comprehension sub-question without its correct option."""

    question_text: str
    options: List[LabeledItemSchema]


class QuestionResponse(BaseModel):
    """Question as shown to a test taker."""

    id: int = Field(..., description="Question ID")
    question_text: str = Field(..., description="The question text")
    question_type: QuestionType = Field(..., description="Question type")
    category: Category = Field(..., description="Subject area")
    difficulty: DifficultyLevel = Field(..., description="Difficulty tier")
    points: int = Field(..., description="Points available")
    time_allocation: int = Field(..., description="Suggested time in seconds")
    options: Optional[List[LabeledItemSchema]] = Field(
        None, description="Choice options (choice question types)"
    )
    left_column: Optional[List[LabeledItemSchema]] = Field(
        None, description="Terms to match (acronym-matching)"
    )
    right_column: Optional[List[LabeledItemSchema]] = Field(
        None, description="Definitions, shuffled per session (acronym-matching)"
    )
    passage: Optional[str] = Field(None, description="Passage (comprehension)")
    sub_questions: Optional[List[SubQuestionResponse]] = Field(
        None, description="Sub-questions answered by index (comprehension)"
    )


class QuestionCreate(BaseModel):
    """Schema for creating a placement question."""

    question_text: str = Field(..., min_length=1, max_length=5000)
    question_type: QuestionType
    category: Category
    difficulty: DifficultyLevel
    points: int = Field(default=1, ge=1, le=100, strict=True)
    time_allocation: int = Field(
        default=60, ge=1, le=3600, strict=True, description="Seconds"
    )
    skills_tested: List[str] = Field(default_factory=list)
    answer_key: Dict[str, Any] = Field(
        ..., description="Type-specific answer key (see question type docs)"
    )
    explanation: Optional[str] = Field(None, max_length=5000)
    is_active: bool = True

    @field_validator("skills_tested")
    @classmethod
    def strip_skills(cls, v: List[str]) -> List[str]:
        """Drop blank entries and surrounding whitespace."""
        return [skill.strip() for skill in v if skill and skill.strip()]


class QuestionUpdate(BaseModel):
    """Partial update; unset fields keep their stored values."""

    question_text: Optional[str] = Field(None, min_length=1, max_length=5000)
    question_type: Optional[QuestionType] = None
    category: Optional[Category] = None
    difficulty: Optional[DifficultyLevel] = None
    points: Optional[int] = Field(None, ge=1, le=100)
    time_allocation: Optional[int] = Field(None, ge=1, le=3600)
    skills_tested: Optional[List[str]] = None
    answer_key: Optional[Dict[str, Any]] = None
    explanation: Optional[str] = Field(None, max_length=5000)
    is_active: Optional[bool] = None


class AdminQuestionResponse(BaseModel):
    """Full question record, including the answer key."""

    id: int
    question_text: str
    question_type: QuestionType
    category: Category
    difficulty: DifficultyLevel
    points: int
    time_allocation: int
    skills_tested: List[str]
    answer_key: Dict[str, Any]
    explanation: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class QuestionListResponse(BaseModel):
    """Paginated admin question listing."""

    questions: List[AdminQuestionResponse]
    total: int = Field(..., description="Total questions matching the filters")
    page: int
    limit: int
    pages: int = Field(..., description="Total number of pages")


class QuestionDeleteResponse(BaseModel):
    """Outcome of a delete request."""

    id: int
    deleted: bool = Field(
        ..., description="True if removed, False if deactivated because it was used"
    )
    message: str
