"""
Administrator-granted placement retakes.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages
from app.core.exceptions import NotFoundError
from app.core.placement_cache import sync_user_placement_cache
from app.models.models import TestSession, TestStatus, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetakeResult:
    user_id: int
    sessions_abandoned: int


async def allow_retake(db: AsyncSession, user_id: int) -> RetakeResult:
    """
    Let a user take the placement test again.

    Every completed session of the user is moved to abandoned and the
    user's placement cache is reset, in one transaction. Session rows and
    their attempts are kept for audit. Calling this twice is harmless: the
    second call abandons nothing.

    Raises:
        NotFoundError: If the user does not exist
    """
    async with handle_db_error(db, "allow placement retake"):
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(ErrorMessages.user_not_found(user_id))

        result = await db.execute(
            select(TestSession).where(
                TestSession.user_id == user_id,
                TestSession.status == TestStatus.COMPLETED,
            )
        )
        completed_sessions = list(result.scalars().all())
        for test_session in completed_sessions:
            test_session.status = TestStatus.ABANDONED

        sync_user_placement_cache(user, None)
        await db.commit()

    logger.info(
        f"Placement retake allowed for user {user_id}: "
        f"{len(completed_sessions)} completed session(s) abandoned"
    )
    return RetakeResult(user_id=user_id, sessions_abandoned=len(completed_sessions))
