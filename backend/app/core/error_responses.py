"""
Standardized error messages and HTTPException builders.

All user-facing error strings live in ``ErrorMessages`` so wording stays
consistent between the engine (domain exceptions) and the HTTP layer
(auth and admin-token checks).

Message format:
- Sentence case, ending with a period
- Relevant IDs in parentheses: "(ID: 123)"
"""

from typing import Iterable, NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates."""

    # Authentication (401)
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_TYPE = "Invalid token type."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # Authorization (403)
    SESSION_ACCESS_DENIED = "Not authorized to access this placement test session."
    ADMIN_TOKEN_INVALID = "Invalid admin token."

    # Not found (404)
    TEST_SESSION_NOT_FOUND = "Placement test session not found."
    NO_COMPLETED_TEST = "No completed placement test found."
    USER_NOT_FOUND = "User not found."

    # Conflict (409)
    # Used when the partial unique index rejects a concurrent start; the
    # existing session id is unknown because the transaction rolled back.
    SESSION_ALREADY_IN_PROGRESS = (
        "A placement test is already in progress. "
        "Please complete or abandon it before starting a new one."
    )
    PLACEMENT_ALREADY_COMPLETED = (
        "You have already completed the placement test. "
        "An administrator must allow a retake before you can start again."
    )

    # Validation (400)
    SESSION_NOT_IN_PROGRESS = "Only in-progress sessions can be modified."
    INVALID_ANSWER_KEY = "Answer key does not match the question type."
    INVALID_QUESTION_PAYLOAD = "Invalid question payload."

    # Configuration (500)
    ADMIN_TOKEN_NOT_CONFIGURED = "Admin token not configured on server."

    @staticmethod
    def active_session_exists(session_id: int) -> str:
        """Message when an in-progress session blocks a new one."""
        return (
            f"User already has an active placement test (ID: {session_id}). "
            "Please complete or abandon it before starting a new one."
        )

    @staticmethod
    def session_not_in_progress(status_value: str) -> str:
        """Message when trying to modify a completed or abandoned session."""
        return (
            f"Placement test session is already {status_value}. "
            "Only in-progress sessions can be modified."
        )

    @staticmethod
    def question_not_in_session(question_id: int) -> str:
        """Message when an answer targets a question that was not sampled."""
        return f"Question {question_id} is not part of this placement test session."

    @staticmethod
    def question_already_answered(question_id: int) -> str:
        """Message when a question already has an attempt in this session."""
        return f"Question {question_id} has already been answered in this session."

    @staticmethod
    def unanswered_questions(question_ids: Iterable[int]) -> str:
        """Message when completing a session with questions left unanswered."""
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids))
        return f"All questions must be answered before submitting. Unanswered: {ids_str}."

    @staticmethod
    def insufficient_questions(minimum: int, available: int) -> str:
        """Message when the bank cannot produce a viable test."""
        return (
            f"Only {available} active questions could be selected, "
            f"but a placement test needs at least {minimum}."
        )

    @staticmethod
    def question_not_found(question_id: int) -> str:
        """Message when a specific question is not found."""
        return f"Question {question_id} not found."

    @staticmethod
    def user_not_found(user_id: int) -> str:
        """Message when a specific user is not found."""
        return f"User {user_id} not found."


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header

    Raises:
        HTTPException: 401 Unauthorized
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_not_configured(detail: str) -> NoReturn:
    """Raise a 500 error for missing server configuration.

    Raises:
        HTTPException: 500 Internal Server Error
    """
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
