"""
Score aggregation for completed placement tests.

``aggregate`` is a pure function over graded items. The overall percentage
is points based (partial comprehension credit counts), while the category,
skill and difficulty breakdowns count fully correct questions.

All percentages round half up, so 62.5 becomes 63 rather than Python's
banker's-rounded 62.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.error_responses import ErrorMessages
from app.models.models import Category, DifficultyLevel, TestSession


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))


def percentage_of(part: float, whole: float) -> int:
    """Integer percentage of ``part`` in ``whole``; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


@dataclass(frozen=True)
class GradedItem:
    """One graded question, as consumed by the aggregator."""

    category: Category
    difficulty: DifficultyLevel
    points: int
    is_correct: bool
    points_earned: int
    skills: Sequence[str] = ()
    time_spent_seconds: int = 0


@dataclass
class BreakdownEntry:
    """Correct/total tally for one category, skill or difficulty."""

    name: str
    total_questions: int = 0
    correct_answers: int = 0

    @property
    def percentage(self) -> int:
        return percentage_of(self.correct_answers, self.total_questions)

    def to_dict(self, label: str) -> Dict[str, Any]:
        return {
            label: self.name,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "percentage": self.percentage,
        }


@dataclass
class AggregateScore:
    """Totals and breakdowns for one session."""

    total_questions: int
    correct_answers: int
    total_points: int
    earned_points: int
    percentage_score: int
    total_time_spent: int
    category_breakdown: List[BreakdownEntry] = field(default_factory=list)
    skill_breakdown: List[BreakdownEntry] = field(default_factory=list)
    difficulty_breakdown: List[BreakdownEntry] = field(default_factory=list)

    def category_scores(self) -> List[Dict[str, Any]]:
        return [entry.to_dict("category") for entry in self.category_breakdown]

    def skill_scores(self) -> List[Dict[str, Any]]:
        return [entry.to_dict("skill") for entry in self.skill_breakdown]

    def difficulty_scores(self) -> List[Dict[str, Any]]:
        return [entry.to_dict("difficulty") for entry in self.difficulty_breakdown]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "total_points": self.total_points,
            "earned_points": self.earned_points,
            "percentage_score": self.percentage_score,
            "total_time_spent": self.total_time_spent,
            "category_scores": self.category_scores(),
            "skill_scores": self.skill_scores(),
            "difficulty_scores": self.difficulty_scores(),
        }


def _tally(entries: Dict[str, BreakdownEntry], name: str, is_correct: bool) -> None:
    entry = entries.get(name)
    if entry is None:
        entry = entries[name] = BreakdownEntry(name=name)
    entry.total_questions += 1
    if is_correct:
        entry.correct_answers += 1


def aggregate(
    graded: Iterable[GradedItem], total_time_spent: Optional[int] = None
) -> AggregateScore:
    """
    Aggregate graded items into totals and breakdowns.

    Args:
        graded: Graded items, one per question in the session
        total_time_spent: Client-reported total time in seconds. When
            omitted, the sum of per-question time is used.

    Returns:
        AggregateScore. Category and difficulty breakdowns follow enum
        declaration order, skills follow first-seen order.
    """
    items = list(graded)

    categories: Dict[str, BreakdownEntry] = {}
    difficulties: Dict[str, BreakdownEntry] = {}
    skills: Dict[str, BreakdownEntry] = {}

    for item in items:
        _tally(categories, Category(item.category).value, item.is_correct)
        _tally(difficulties, DifficultyLevel(item.difficulty).value, item.is_correct)
        # A question testing the same skill twice still counts once
        for skill in dict.fromkeys(item.skills or ()):
            _tally(skills, skill, item.is_correct)

    total_points = sum(item.points for item in items)
    earned_points = sum(item.points_earned for item in items)
    if total_time_spent is None:
        total_time_spent = sum(item.time_spent_seconds for item in items)

    return AggregateScore(
        total_questions=len(items),
        correct_answers=sum(1 for item in items if item.is_correct),
        total_points=total_points,
        earned_points=earned_points,
        percentage_score=percentage_of(earned_points, total_points),
        total_time_spent=total_time_spent,
        category_breakdown=[
            categories[c.value] for c in Category if c.value in categories
        ],
        skill_breakdown=list(skills.values()),
        difficulty_breakdown=[
            difficulties[d.value] for d in DifficultyLevel if d.value in difficulties
        ],
    )


def graded_items_for_session(test_session: TestSession) -> List[GradedItem]:
    """Build aggregator input from a session's stored attempts."""
    return [
        GradedItem(
            category=attempt.question.category,
            difficulty=attempt.question.difficulty,
            points=attempt.question.points,
            is_correct=attempt.is_correct,
            points_earned=attempt.points_earned,
            skills=attempt.question.skills_tested or (),
            time_spent_seconds=attempt.time_spent_seconds or 0,
        )
        for attempt in test_session.attempts
    ]


def recompute_session(test_session: TestSession) -> AggregateScore:
    """Aggregate an already loaded session from its attempts."""
    return aggregate(
        graded_items_for_session(test_session),
        total_time_spent=test_session.total_time_spent,
    )


async def reaggregate_session(db: AsyncSession, session_id: int) -> AggregateScore:
    """
    Recompute the aggregate for a stored session from its attempts.

    Used by administrators to audit stored results; nothing is written.

    Raises:
        NotFoundError: If the session does not exist
    """
    result = await db.execute(select(TestSession).where(TestSession.id == session_id))
    test_session = result.scalar_one_or_none()
    if test_session is None:
        raise NotFoundError(ErrorMessages.TEST_SESSION_NOT_FOUND)

    return recompute_session(test_session)
