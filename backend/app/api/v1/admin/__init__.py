"""
Admin API endpoints.

All endpoints require the X-Admin-Token header.

Submodules:
    - placement_questions: Question bank management
    - placement_stats: Completed-test statistics and result audits
    - retake: Granting placement retakes
"""
from fastapi import APIRouter

from . import placement_questions, placement_stats, retake

router = APIRouter()

router.include_router(
    placement_questions.router,
    tags=["Admin - Placement Questions"],
)

router.include_router(
    placement_stats.router,
    tags=["Admin - Placement Stats"],
)

router.include_router(
    retake.router,
    tags=["Admin - Retakes"],
)
