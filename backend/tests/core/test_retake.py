"""
Tests for administrator-granted retakes and the user placement cache.
"""
import pytest
from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.core.placement_cache import sync_user_placement_cache
from app.core.placement_session import complete_session, start_session
from app.core.retake import allow_retake
from app.models.models import ProficiencyLevel, TestSession, TestStatus
from factories import correct_answer, make_question


@pytest.fixture
async def completed_session(async_db_session, async_test_user):
    """A completed 100% session for the test user."""
    async_db_session.add_all([make_question(points=2) for _ in range(5)])
    await async_db_session.commit()

    test_session = await start_session(async_db_session, async_test_user)
    await complete_session(
        async_db_session,
        test_session,
        async_test_user.id,
        answers=[
            {"question_id": sq.question_id, "answer": correct_answer(sq.question)}
            for sq in test_session.questions
        ],
    )
    return test_session


class TestAllowRetake:
    """Tests for allow_retake()."""

    async def test_retake_abandons_completed_sessions(
        self, async_db_session, async_test_user, completed_session
    ):
        result = await allow_retake(async_db_session, async_test_user.id)

        assert result.user_id == async_test_user.id
        assert result.sessions_abandoned == 1
        assert completed_session.status == TestStatus.ABANDONED

    async def test_retake_clears_user_cache(
        self, async_db_session, async_test_user, completed_session
    ):
        assert async_test_user.placement_test_completed is True

        await allow_retake(async_db_session, async_test_user.id)

        assert async_test_user.placement_test_completed is False
        assert async_test_user.placement_test_score is None
        assert async_test_user.assigned_level is None
        assert async_test_user.strength_areas == []

    async def test_retake_keeps_session_rows(
        self, async_db_session, async_test_user, completed_session
    ):
        await allow_retake(async_db_session, async_test_user.id)

        result = await async_db_session.execute(
            select(TestSession).where(TestSession.user_id == async_test_user.id)
        )
        sessions = result.scalars().all()
        assert len(sessions) == 1
        assert len(sessions[0].attempts) == 5

    async def test_retake_twice_is_harmless(
        self, async_db_session, async_test_user, completed_session
    ):
        await allow_retake(async_db_session, async_test_user.id)

        second = await allow_retake(async_db_session, async_test_user.id)

        assert second.sessions_abandoned == 0
        assert async_test_user.placement_test_completed is False

    async def test_user_can_start_after_retake(
        self, async_db_session, async_test_user, completed_session
    ):
        await allow_retake(async_db_session, async_test_user.id)

        test_session = await start_session(async_db_session, async_test_user)

        assert test_session.status == TestStatus.IN_PROGRESS
        assert test_session.attempt_number == 2

    async def test_retake_leaves_in_progress_session_alone(
        self, async_db_session, async_test_user
    ):
        async_db_session.add_all([make_question() for _ in range(5)])
        await async_db_session.commit()
        test_session = await start_session(async_db_session, async_test_user)

        result = await allow_retake(async_db_session, async_test_user.id)

        assert result.sessions_abandoned == 0
        assert test_session.status == TestStatus.IN_PROGRESS

    async def test_unknown_user(self, async_db_session):
        with pytest.raises(NotFoundError):
            await allow_retake(async_db_session, 4242)


class TestSyncUserPlacementCache:
    """Tests for sync_user_placement_cache()."""

    async def test_copies_completed_session(
        self, async_test_user, completed_session
    ):
        sync_user_placement_cache(async_test_user, None)

        sync_user_placement_cache(async_test_user, completed_session)

        assert async_test_user.placement_test_completed is True
        assert async_test_user.placement_test_score == 100
        assert async_test_user.assigned_level == ProficiencyLevel.ADVANCED
        assert async_test_user.level_assigned_date == completed_session.completed_at

    async def test_rejects_unfinished_session(
        self, async_db_session, async_test_user
    ):
        async_db_session.add_all([make_question() for _ in range(5)])
        await async_db_session.commit()
        test_session = await start_session(async_db_session, async_test_user)

        with pytest.raises(ValueError):
            sync_user_placement_cache(async_test_user, test_session)

    async def test_rejects_other_users_session(self, other_user, completed_session):
        with pytest.raises(ValueError):
            sync_user_placement_cache(other_user, completed_session)
