"""
Placement test session lifecycle.

A session moves from in-progress to either completed or abandoned; both
are terminal. Each operation commits at most once, so a failed call
leaves the database unchanged.

Active session prevention uses two checks:

1. An application-level lookup before creating a session, which reports
   the existing session id so clients can offer to resume it.
2. The partial unique index ``ix_test_sessions_user_active``, which
   catches two requests racing past the first check. The existing id is
   not available after the rollback, so that conflict carries no id.
"""
import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.answer_evaluation import correct_answer_for, grade
from app.core.answer_keys import parse_answer_key
from app.core.config import settings
from app.core.datetime_utils import seconds_since, utc_now
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    SessionAccessError,
    ValidationError,
)
from app.core.level_assignment import assign
from app.core.placement_cache import sync_user_placement_cache
from app.core.score_aggregation import aggregate, graded_items_for_session
from app.core.test_composition import sample
from app.models.models import (
    QuestionAttempt,
    TestSession,
    TestSessionQuestion,
    TestStatus,
    User,
)

logger = logging.getLogger(__name__)


def verify_session_ownership(test_session: TestSession, user_id: int) -> None:
    """
    Raises:
        SessionAccessError: If the session belongs to another user
    """
    if test_session.user_id != user_id:
        raise SessionAccessError(ErrorMessages.SESSION_ACCESS_DENIED)


def verify_session_in_progress(test_session: TestSession) -> None:
    """
    Raises:
        ValidationError: If the session is completed or abandoned
    """
    if test_session.status != TestStatus.IN_PROGRESS:
        raise ValidationError(
            ErrorMessages.session_not_in_progress(test_session.status.value)
        )


def time_limit_seconds(test_session: TestSession) -> int:
    """Summed time allocation of the session's questions plus the grace period."""
    allocated = sum(sq.question.time_allocation for sq in test_session.questions)
    return allocated + settings.PLACEMENT_TIME_LIMIT_GRACE_SECONDS


def estimated_minutes(test_session: TestSession) -> int:
    """Summed time allocation of the session's questions, rounded up to minutes."""
    allocated = sum(sq.question.time_allocation for sq in test_session.questions)
    return -(-allocated // 60)


def _check_time_limit(test_session: TestSession, now: Optional[datetime]) -> None:
    if test_session.time_limit_exceeded:
        return
    elapsed = seconds_since(test_session.started_at, now)
    limit = time_limit_seconds(test_session)
    if elapsed > limit:
        test_session.time_limit_exceeded = True
        logger.warning(
            f"Placement session {test_session.id} exceeded its time limit "
            f"({elapsed}s elapsed, {limit}s allowed); flagged for review"
        )


async def get_active_session(db: AsyncSession, user_id: int) -> Optional[TestSession]:
    """Return the user's in-progress session, if any."""
    result = await db.execute(
        select(TestSession).where(
            TestSession.user_id == user_id,
            TestSession.status == TestStatus.IN_PROGRESS,
        )
    )
    return result.scalars().first()


async def get_session_by_id(db: AsyncSession, session_id: int) -> TestSession:
    """
    Fetch a session regardless of owner (admin use).

    Raises:
        NotFoundError: If the session does not exist
    """
    result = await db.execute(select(TestSession).where(TestSession.id == session_id))
    test_session = result.scalar_one_or_none()
    if test_session is None:
        raise NotFoundError(ErrorMessages.TEST_SESSION_NOT_FOUND)
    return test_session


async def get_session(db: AsyncSession, session_id: int, user_id: int) -> TestSession:
    """
    Fetch a session owned by ``user_id``.

    Raises:
        NotFoundError: If the session does not exist
        SessionAccessError: If it belongs to another user
    """
    test_session = await get_session_by_id(db, session_id)
    verify_session_ownership(test_session, user_id)
    return test_session


async def start_session(
    db: AsyncSession, user: User, rng: Optional[random.Random] = None
) -> TestSession:
    """
    Start a new placement test for ``user``.

    Raises:
        ConflictError: If the user has an in-progress session, or has
            already completed the test and no retake has been allowed
        InsufficientQuestionsError: If the bank cannot produce a test
    """
    user_id = user.id
    active_session = await get_active_session(db, user_id)
    if active_session is not None:
        raise ConflictError(
            ErrorMessages.active_session_exists(active_session.id),
            session_id=active_session.id,
        )

    if settings.PLACEMENT_REQUIRE_RETAKE_APPROVAL and user.placement_test_completed:
        raise ConflictError(ErrorMessages.PLACEMENT_ALREADY_COMPLETED)

    questions, composition = await sample(db, rng=rng)

    previous_attempts = (
        await db.execute(
            select(func.count(TestSession.id)).where(
                TestSession.user_id == user_id,
                TestSession.status.in_([TestStatus.COMPLETED, TestStatus.ABANDONED]),
            )
        )
    ).scalar_one()

    test_session = TestSession(
        user_id=user_id,
        status=TestStatus.IN_PROGRESS,
        attempt_number=previous_attempts + 1,
        started_at=utc_now(),
        composition_metadata=composition,
        total_questions=len(questions),
        total_points=sum(q.points for q in questions),
        questions=[
            TestSessionQuestion(question_id=q.id, question=q, position=position)
            for position, q in enumerate(questions)
        ],
        attempts=[],
    )
    db.add(test_session)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning(
            f"Race condition detected: user {user_id} attempted to start "
            "multiple placement tests concurrently"
        )
        raise ConflictError(ErrorMessages.SESSION_ALREADY_IN_PROGRESS)

    await db.commit()

    logger.info(
        f"Started placement session {test_session.id} for user {user_id} "
        f"(attempt {test_session.attempt_number}, {len(questions)} questions)"
    )
    return test_session


def _session_question(test_session: TestSession, question_id: int) -> TestSessionQuestion:
    for session_question in test_session.questions:
        if session_question.question_id == question_id:
            return session_question
    raise ValidationError(
        ErrorMessages.question_not_in_session(question_id),
        fields={"question_id": "Not part of this session."},
    )


def _answered_ids(test_session: TestSession) -> Set[int]:
    return {attempt.question_id for attempt in test_session.attempts}


def _record_attempt(
    test_session: TestSession,
    question_id: int,
    answer: Any,
    time_spent: Optional[int],
) -> QuestionAttempt:
    session_question = _session_question(test_session, question_id)
    if question_id in _answered_ids(test_session):
        raise ValidationError(
            ErrorMessages.question_already_answered(question_id),
            fields={"question_id": "Already answered."},
        )

    question = session_question.question
    result = grade(question, question.points, answer)
    attempt = QuestionAttempt(
        question_id=question_id,
        question=question,
        user_answer=answer,
        is_correct=result.is_correct,
        credit=result.credit,
        points_earned=result.points_earned,
        time_spent_seconds=max(0, int(time_spent or 0)),
        answered_at=utc_now(),
    )
    test_session.attempts.append(attempt)
    return attempt


async def submit_answer(
    db: AsyncSession,
    test_session: TestSession,
    user_id: int,
    question_id: int,
    answer: Any,
    time_spent: Optional[int] = None,
    now: Optional[datetime] = None,
) -> QuestionAttempt:
    """
    Grade and store one answer.

    Answers arriving after the time limit are still accepted, but the
    session is flagged ``time_limit_exceeded`` for review.

    Raises:
        SessionAccessError: If the session belongs to another user
        ValidationError: If the session is not in progress, or the question
            is not part of it or was already answered
    """
    verify_session_ownership(test_session, user_id)
    verify_session_in_progress(test_session)

    try:
        attempt = _record_attempt(test_session, question_id, answer, time_spent)
        _check_time_limit(test_session, now)
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ValidationError(ErrorMessages.question_already_answered(question_id))

    await db.commit()
    return attempt


def _validate_batch(
    test_session: TestSession, answers: Sequence[Mapping[str, Any]]
) -> None:
    """Check a batch of answers fully before any of them is recorded."""
    sampled_ids = {sq.question_id for sq in test_session.questions}
    answered = _answered_ids(test_session)
    seen: Set[int] = set()
    for index, entry in enumerate(answers):
        question_id = entry.get("question_id")
        if question_id not in sampled_ids:
            raise ValidationError(
                ErrorMessages.question_not_in_session(question_id),
                fields={f"answers[{index}].question_id": "Not part of this session."},
            )
        if question_id in answered or question_id in seen:
            raise ValidationError(
                ErrorMessages.question_already_answered(question_id),
                fields={f"answers[{index}].question_id": "Already answered."},
            )
        seen.add(question_id)

    missing = sampled_ids - answered - seen
    if missing:
        raise ValidationError(
            ErrorMessages.unanswered_questions(missing),
            fields={"answers": f"{len(missing)} question(s) unanswered."},
        )


async def complete_session(
    db: AsyncSession,
    test_session: TestSession,
    user_id: int,
    answers: Optional[Sequence[Mapping[str, Any]]] = None,
    total_time_spent: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TestSession:
    """
    Record any remaining answers, score the session and assign a level.

    Args:
        db: Database session
        test_session: Session to complete
        user_id: Authenticated user id
        answers: Optional batch of {"question_id", "answer", "time_spent"}
            entries submitted before completion
        total_time_spent: Client-reported total time in seconds (default:
            wall time since the session started)
        now: Completion time (default: current UTC time)

    Raises:
        SessionAccessError: If the session belongs to another user
        ValidationError: If the session is not in progress, a batch entry is
            invalid, or any sampled question is left unanswered
    """
    verify_session_ownership(test_session, user_id)
    verify_session_in_progress(test_session)

    answers = list(answers or [])
    _validate_batch(test_session, answers)

    now = now or utc_now()
    async with handle_db_error(db, "complete placement test"):
        for entry in answers:
            _record_attempt(
                test_session,
                entry["question_id"],
                entry.get("answer"),
                entry.get("time_spent"),
            )
        _check_time_limit(test_session, now)

        if total_time_spent is None:
            total_time_spent = seconds_since(test_session.started_at, now)
        score = aggregate(
            graded_items_for_session(test_session),
            total_time_spent=max(0, int(total_time_spent)),
        )
        category_scores = score.category_scores()
        assignment = assign(score.percentage_score, category_scores)

        test_session.status = TestStatus.COMPLETED
        test_session.completed_at = now
        test_session.total_time_spent = score.total_time_spent
        test_session.correct_answers = score.correct_answers
        test_session.earned_points = score.earned_points
        test_session.percentage_score = score.percentage_score
        test_session.category_scores = category_scores
        test_session.skill_scores = score.skill_scores()
        test_session.difficulty_scores = score.difficulty_scores()
        test_session.assigned_level = assignment.level
        test_session.level_code = assignment.level_code
        test_session.strength_areas = assignment.strengths
        test_session.improvement_areas = assignment.improvements
        test_session.feedback = {
            **assignment.feedback,
            "recommended_duration_weeks": assignment.recommended_duration_weeks,
        }

        user = await db.get(User, test_session.user_id)
        sync_user_placement_cache(user, test_session)
        await db.commit()

    logger.info(
        f"Completed placement session {test_session.id} for user {user_id}: "
        f"{score.percentage_score}% -> {assignment.level.value}"
    )
    return test_session


async def abandon_session(
    db: AsyncSession, test_session: TestSession, user_id: int
) -> TestSession:
    """
    Cancel an in-progress session. Attempts are kept; nothing is scored.

    Raises:
        SessionAccessError: If the session belongs to another user
        ValidationError: If the session is not in progress
    """
    verify_session_ownership(test_session, user_id)
    verify_session_in_progress(test_session)

    test_session.status = TestStatus.ABANDONED
    await db.commit()

    logger.info(
        f"Abandoned placement session {test_session.id} for user {user_id} "
        f"({len(test_session.attempts)} answer(s) recorded)"
    )
    return test_session


def build_question_details(test_session: TestSession) -> List[Dict[str, Any]]:
    """Per-question review of a completed session, in presentation order."""
    attempts = {attempt.question_id: attempt for attempt in test_session.attempts}
    details = []
    for session_question in test_session.questions:
        question = session_question.question
        attempt = attempts.get(question.id)
        key = parse_answer_key(question.question_type, question.answer_key)
        details.append(
            {
                "question_id": question.id,
                "question_text": question.question_text,
                "question_type": question.question_type.value,
                "category": question.category.value,
                "difficulty": question.difficulty.value,
                "user_answer": attempt.user_answer if attempt else None,
                "correct_answer": correct_answer_for(key),
                "is_correct": attempt.is_correct if attempt else False,
                "points": question.points,
                "points_earned": attempt.points_earned if attempt else 0,
                "explanation": question.explanation,
            }
        )
    return details


async def get_latest_result(db: AsyncSession, user_id: int) -> TestSession:
    """
    Return the user's most recent completed session.

    Raises:
        NotFoundError: If the user has no completed session
    """
    result = await db.execute(
        select(TestSession)
        .where(
            TestSession.user_id == user_id,
            TestSession.status == TestStatus.COMPLETED,
        )
        .order_by(TestSession.completed_at.desc(), TestSession.id.desc())
        .limit(1)
    )
    test_session = result.scalar_one_or_none()
    if test_session is None:
        raise NotFoundError(ErrorMessages.NO_COMPLETED_TEST)
    return test_session
