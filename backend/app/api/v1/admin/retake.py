"""
Placement retake admin endpoint.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.retake import allow_retake
from app.models import get_db
from app.schemas.admin import RetakeResponse

from ._dependencies import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/placement-retake/{user_id}", response_model=RetakeResponse)
async def allow_placement_retake(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Allow a user to take the placement test again.

    The user's completed sessions are marked abandoned (kept for audit) and
    their cached placement is cleared. Repeating the call is harmless.
    """
    result = await allow_retake(db, user_id)
    return RetakeResponse(
        user_id=result.user_id,
        sessions_abandoned=result.sessions_abandoned,
        message=f"User {user_id} can now retake the placement test",
    )
