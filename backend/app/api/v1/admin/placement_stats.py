"""
Placement statistics and result audit admin endpoints.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.placement_stats import get_placement_statistics
from app.core.placement_session import get_session_by_id
from app.core.score_aggregation import recompute_session
from app.models import get_db
from app.schemas.admin import PlacementStatsResponse, ReaggregateResponse

from ._dependencies import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/placement-stats", response_model=PlacementStatsResponse)
async def get_placement_stats(
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Summarize completed placement tests.

    Returns the level distribution, average score, a score histogram in
    fixed-width buckets and per-category average percentages.
    """
    return await get_placement_statistics(db)


@router.get(
    "/placement-sessions/{session_id}/reaggregate",
    response_model=ReaggregateResponse,
)
async def reaggregate_placement_session(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Recompute a session's aggregate from its stored answers.

    Nothing is written. Sessions abandoned by a retake keep their stored
    results, so they can still be audited. `matches` is false when the
    stored totals or breakdowns differ from the recomputation.
    """
    test_session = await get_session_by_id(db, session_id)
    recomputed = recompute_session(test_session)

    recomputed_snapshot = {
        "total_questions": recomputed.total_questions,
        "correct_answers": recomputed.correct_answers,
        "total_points": recomputed.total_points,
        "earned_points": recomputed.earned_points,
        "percentage_score": recomputed.percentage_score,
        "category_scores": recomputed.category_scores(),
        "skill_scores": recomputed.skill_scores(),
        "difficulty_scores": recomputed.difficulty_scores(),
    }

    stored_snapshot = None
    if test_session.completed_at is not None:
        stored_snapshot = {
            "total_questions": test_session.total_questions,
            "correct_answers": test_session.correct_answers,
            "total_points": test_session.total_points,
            "earned_points": test_session.earned_points,
            "percentage_score": test_session.percentage_score,
            "category_scores": test_session.category_scores or [],
            "skill_scores": test_session.skill_scores or [],
            "difficulty_scores": test_session.difficulty_scores or [],
        }

    matches = stored_snapshot == recomputed_snapshot
    if stored_snapshot is not None and not matches:
        logger.warning(
            f"Stored aggregate for placement session {session_id} differs "
            "from recomputation"
        )

    return ReaggregateResponse(
        session_id=session_id,
        status=test_session.status.value,
        recomputed=recomputed_snapshot,
        stored=stored_snapshot,
        matches=matches,
    )
