"""
Proficiency level assignment and feedback.

Maps a percentage score to a proficiency level using configurable cut
points, picks strength and improvement categories from the category
breakdown, and builds the feedback shown on the results screen.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from app.core.config import settings
from app.models.models import Category, ProficiencyLevel

CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    Category.GENERAL.value: "General CS Terms",
    Category.PROGRAMMING.value: "Programming Concepts",
    Category.WEB_DEVELOPMENT.value: "Web Development",
    Category.DATABASE.value: "Database Systems",
    Category.NETWORKING.value: "Networking",
    Category.ALGORITHMS.value: "Algorithms",
    Category.DATA_STRUCTURES.value: "Data Structures",
    Category.SOFTWARE_ENGINEERING.value: "Software Engineering",
    Category.SECURITY.value: "Cybersecurity",
    Category.AI_ML.value: "AI & Machine Learning",
}

LEVEL_CODES: Dict[ProficiencyLevel, str] = {
    ProficiencyLevel.BEGINNER: "A1-A2",
    ProficiencyLevel.INTERMEDIATE: "B1-B2",
    ProficiencyLevel.ADVANCED: "C1-C2",
}

RECOMMENDED_DURATION_WEEKS: Dict[ProficiencyLevel, int] = {
    ProficiencyLevel.BEGINNER: 6,
    ProficiencyLevel.INTERMEDIATE: 8,
    ProficiencyLevel.ADVANCED: 14,
}

RECOMMENDATIONS: Dict[ProficiencyLevel, List[str]] = {
    ProficiencyLevel.BEGINNER: [
        "Start with flashcards to memorize basic terms",
        "Focus on understanding acronyms and their meanings",
        "Practice identifying terms in simple contexts",
        "Complete all beginner modules before moving on",
        "Use the glossary frequently for reference",
    ],
    ProficiencyLevel.INTERMEDIATE: [
        "Practice using jargon in sentences and paragraphs",
        "Read technical documentation to see terms in context",
        "Focus on understanding nuanced differences between similar terms",
        "Attempt comprehension exercises with technical passages",
        "Participate in peer review activities",
    ],
    ProficiencyLevel.ADVANCED: [
        "Read research papers and technical articles",
        "Practice explaining complex concepts using proper terminology",
        "Focus on professional communication and documentation",
        "Work on advanced comprehension and application exercises",
        "Prepare for technical interviews using proper jargon",
    ],
}

DEFAULT_STRENGTH_LINE = "Keep practicing to develop your strengths!"
DEFAULT_WEAKNESS_LINE = "Well-rounded performance across all areas!"


def category_display_name(category: str) -> str:
    """Human-readable name for a category value; unknown values pass through."""
    return CATEGORY_DISPLAY_NAMES.get(category, category)


@dataclass(frozen=True)
class LevelPolicy:
    """Cut points used to assign levels and classify categories."""

    advanced_threshold: int = 80
    intermediate_threshold: int = 60
    strength_threshold: int = 75
    improvement_threshold: int = 50
    developing_floor: int = 40

    @classmethod
    def from_settings(cls) -> "LevelPolicy":
        return cls(
            advanced_threshold=settings.PLACEMENT_LEVEL_THRESHOLDS["advanced"],
            intermediate_threshold=settings.PLACEMENT_LEVEL_THRESHOLDS["intermediate"],
            strength_threshold=settings.PLACEMENT_STRENGTH_THRESHOLD,
            improvement_threshold=settings.PLACEMENT_IMPROVEMENT_THRESHOLD,
            developing_floor=settings.PLACEMENT_DEVELOPING_BAND_FLOOR,
        )

    def level_for(self, percentage: int) -> ProficiencyLevel:
        if percentage >= self.advanced_threshold:
            return ProficiencyLevel.ADVANCED
        if percentage >= self.intermediate_threshold:
            return ProficiencyLevel.INTERMEDIATE
        return ProficiencyLevel.BEGINNER


@dataclass
class LevelAssignment:
    """Level, strengths/improvements and feedback for one completed test."""

    level: ProficiencyLevel
    level_code: str
    recommended_duration_weeks: int
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    feedback: Dict[str, Any] = field(default_factory=dict)


def _summary(percentage: int, level: ProficiencyLevel, policy: LevelPolicy) -> str:
    level_name = level.value.capitalize()
    if percentage >= policy.advanced_threshold:
        return (
            f"Excellent work! Your score of {percentage}% shows a strong command "
            f"of CS terminology. You have been placed in the {level_name} level, "
            "where you will work with complex technical language and "
            "professional communication."
        )
    if percentage >= policy.intermediate_threshold:
        return (
            f"Good job! Your score of {percentage}% shows solid foundational "
            f"knowledge. You have been placed in the {level_name} level to build "
            "on what you know and apply it in context."
        )
    if percentage >= policy.developing_floor:
        return (
            f"You scored {percentage}%. There is room to grow, and the "
            f"{level_name} level will help you build a strong foundation in CS "
            "terminology."
        )
    return (
        f"You scored {percentage}%. Everyone starts somewhere! The {level_name} "
        "level will introduce the essential terms step by step so you can build "
        "confidence."
    )


def assign(
    percentage: int,
    category_breakdown: Sequence[Dict[str, Any]],
    policy: Optional[LevelPolicy] = None,
) -> LevelAssignment:
    """
    Assign a proficiency level and build feedback.

    Args:
        percentage: Overall percentage score (0-100)
        category_breakdown: Category score dicts with "category" and
            "percentage" keys, in display order
        policy: Cut points to use (default: built from settings)

    Returns:
        LevelAssignment. Output depends only on the inputs.
    """
    policy = policy or LevelPolicy.from_settings()
    level = policy.level_for(percentage)

    strengths: List[str] = []
    improvements: List[str] = []
    strength_lines: List[str] = []
    weakness_lines: List[str] = []
    for entry in category_breakdown:
        category = entry["category"]
        category_pct = entry["percentage"]
        name = category_display_name(category)
        if category_pct >= policy.strength_threshold:
            strengths.append(category)
            strength_lines.append(f"Strong in {name} ({category_pct}%)")
        elif category_pct < policy.improvement_threshold:
            improvements.append(category)
            weakness_lines.append(f"Focus on improving {name} ({category_pct}%)")

    feedback = {
        "summary": _summary(percentage, level, policy),
        "strengths": strength_lines or [DEFAULT_STRENGTH_LINE],
        "weaknesses": weakness_lines or [DEFAULT_WEAKNESS_LINE],
        "recommendations": list(RECOMMENDATIONS[level]),
    }

    return LevelAssignment(
        level=level,
        level_code=LEVEL_CODES[level],
        recommended_duration_weeks=RECOMMENDED_DURATION_WEEKS[level],
        strengths=strengths,
        improvements=improvements,
        feedback=feedback,
    )
