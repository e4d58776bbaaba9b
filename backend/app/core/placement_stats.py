"""
Aggregate placement statistics for the admin dashboard.
"""
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.level_assignment import category_display_name
from app.core.score_aggregation import round_half_up
from app.models.models import Category, ProficiencyLevel, TestSession, TestStatus


def score_buckets(bucket_size: int) -> List[Dict[str, Any]]:
    """Histogram buckets covering 0-100; the last bucket includes 100."""
    buckets = []
    lower = 0
    while lower < 100:
        upper = lower + bucket_size - 1
        if upper + bucket_size > 100 or upper >= 99:
            upper = 100
        buckets.append(
            {"range": f"{lower}-{upper}", "min": lower, "max": upper, "count": 0}
        )
        lower = upper + 1
    return buckets


async def get_placement_statistics(db: AsyncSession) -> Dict[str, Any]:
    """
    Summarize all completed placement tests.

    Returns:
        Dict with total_completed, level_distribution, average_score,
        score_distribution (histogram) and category_averages
    """
    result = await db.execute(
        select(
            TestSession.percentage_score,
            TestSession.assigned_level,
            TestSession.category_scores,
        ).where(TestSession.status == TestStatus.COMPLETED)
    )
    rows = result.all()

    level_distribution = {level.value: 0 for level in ProficiencyLevel}
    buckets = score_buckets(settings.PLACEMENT_SCORE_BUCKET_SIZE)
    category_totals: Dict[str, List[int]] = {}
    score_sum = 0

    for percentage_score, assigned_level, category_scores in rows:
        score = percentage_score or 0
        score_sum += score
        if assigned_level is not None:
            level_distribution[ProficiencyLevel(assigned_level).value] += 1
        for bucket in buckets:
            if bucket["min"] <= score <= bucket["max"]:
                bucket["count"] += 1
                break
        for entry in category_scores or []:
            category_totals.setdefault(entry["category"], []).append(entry["percentage"])

    category_averages = [
        {
            "category": category.value,
            "display_name": category_display_name(category.value),
            "sessions": len(category_totals[category.value]),
            "average_percentage": round_half_up(
                sum(category_totals[category.value])
                / len(category_totals[category.value])
            ),
        }
        for category in Category
        if category.value in category_totals
    ]

    return {
        "total_completed": len(rows),
        "level_distribution": level_distribution,
        "average_score": round_half_up(score_sum / len(rows)) if rows else 0,
        "score_distribution": [
            {"range": b["range"], "count": b["count"]} for b in buckets
        ],
        "category_averages": category_averages,
    }
