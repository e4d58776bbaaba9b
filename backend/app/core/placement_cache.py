"""
Denormalized placement results on the User row.

The user's profile shows level, score and focus areas without joining
test sessions. Those columns are a cache of the most recent completed
session and are written only through ``sync_user_placement_cache``.
"""
import logging
from typing import Optional

from app.core.datetime_utils import utc_now
from app.models.models import TestSession, TestStatus, User

logger = logging.getLogger(__name__)


def sync_user_placement_cache(user: User, test_session: Optional[TestSession]) -> None:
    """
    Copy a completed session's results onto the user, or clear them.

    Does not commit; callers commit together with the session change that
    made the cache stale.

    Args:
        user: User whose cache is updated
        test_session: Completed session to copy from, or None to reset

    Raises:
        ValueError: If ``test_session`` is given but is not completed or
            belongs to another user
    """
    if test_session is None:
        user.placement_test_completed = False
        user.placement_test_score = None
        user.assigned_level = None
        user.level_assigned_date = None
        user.strength_areas = []
        user.improvement_areas = []
        logger.info(f"Cleared placement cache for user {user.id}")
        return

    if test_session.status != TestStatus.COMPLETED:
        raise ValueError(
            f"Cannot cache placement from session {test_session.id} "
            f"with status {test_session.status.value}"
        )
    if test_session.user_id != user.id:
        raise ValueError(
            f"Session {test_session.id} does not belong to user {user.id}"
        )

    user.placement_test_completed = True
    user.placement_test_score = test_session.percentage_score
    user.assigned_level = test_session.assigned_level
    user.level_assigned_date = test_session.completed_at or utc_now()
    user.strength_areas = list(test_session.strength_areas or [])
    user.improvement_areas = list(test_session.improvement_areas or [])
