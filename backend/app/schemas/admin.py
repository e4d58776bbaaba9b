"""
Pydantic schemas for placement admin endpoints.
"""
from typing import Dict, List

from pydantic import BaseModel, Field

from app.models.models import Category
from app.schemas.test_sessions import CategoryScore, DifficultyScore, SkillScore


class ScoreBucket(BaseModel):
    range: str = Field(..., description="Inclusive score range, e.g. '80-100'")
    count: int


class CategoryAverage(BaseModel):
    category: Category
    display_name: str
    sessions: int = Field(..., description="Completed sessions covering the category")
    average_percentage: int


class PlacementStatsResponse(BaseModel):
    """Aggregate statistics over completed placement tests."""

    total_completed: int
    level_distribution: Dict[str, int]
    average_score: int
    score_distribution: List[ScoreBucket]
    category_averages: List[CategoryAverage]


class RetakeResponse(BaseModel):
    user_id: int
    sessions_abandoned: int
    message: str


class AggregateSnapshot(BaseModel):
    total_questions: int
    correct_answers: int
    total_points: int
    earned_points: int
    percentage_score: int
    category_scores: List[CategoryScore]
    skill_scores: List[SkillScore]
    difficulty_scores: List[DifficultyScore]


class ReaggregateResponse(BaseModel):
    """Stored versus freshly recomputed aggregate for one session."""

    session_id: int
    status: str
    recomputed: AggregateSnapshot
    stored: AggregateSnapshot | None = Field(
        None, description="Stored aggregate (None until the session is completed)"
    )
    matches: bool = Field(
        ..., description="True when the stored aggregate equals the recomputation"
    )
