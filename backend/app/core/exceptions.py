"""
Domain exceptions raised by the placement engine.

Engine modules raise these instead of HTTPException so they can be used
from scripts and tests without a request context. ``app.main`` registers a
handler that maps each class to its HTTP status.

Usage:
    from app.core.exceptions import ValidationError

    raise ValidationError(
        "Answer key does not match question type.",
        fields={"answer_key.correct_option": "Must be one of the option ids."},
    )
"""

from typing import Dict, Optional

from fastapi import status
from pydantic import ValidationError as PydanticValidationError


class PlacementError(Exception):
    """Base class for all placement engine errors.

    Attributes:
        message: User-facing error message
        status_code: HTTP status the API layer reports for this error
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize to the JSON body returned by the API."""
        return {"detail": self.message}


class ValidationError(PlacementError):
    """Malformed question payload, or an answer the session cannot accept.

    Attributes:
        fields: Mapping of field path to a message describing what is wrong
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body

    @classmethod
    def from_pydantic(
        cls, message: str, exc: PydanticValidationError, prefix: str = ""
    ) -> "ValidationError":
        """
        Build a ValidationError from a pydantic one.

        Each error location becomes a dotted path with list indexes in
        brackets (``sub_questions[1].correct_option``). Errors raised by model
        validators name their field in ``ctx["field_path"]``; an error with no
        location is reported under ``prefix``, or ``"answer_key"`` when no
        prefix is given.
        """
        fields: Dict[str, str] = {}
        for error in exc.errors():
            path = prefix
            for part in error["loc"]:
                if isinstance(part, int):
                    path += f"[{part}]"
                else:
                    path = f"{path}.{part}" if path else str(part)
            field = (error.get("ctx") or {}).get("field_path")
            if field:
                path = f"{path}.{field}" if path else field
            fields.setdefault(path or "answer_key", error["msg"])
        return cls(message, fields=fields)


class ConflictError(PlacementError):
    """The request conflicts with the user's current session state."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, session_id: Optional[int] = None):
        super().__init__(message)
        self.session_id = session_id

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.session_id is not None:
            body["session_id"] = self.session_id
        return body


class NotFoundError(PlacementError):
    """Unknown question, session or user id."""

    status_code = status.HTTP_404_NOT_FOUND


class SessionAccessError(PlacementError):
    """The authenticated user does not own the session."""

    status_code = status.HTTP_403_FORBIDDEN


class InsufficientQuestionsError(PlacementError):
    """The question bank cannot produce a test of the minimum viable length."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str, requested: int, available: int):
        super().__init__(message)
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["requested"] = self.requested
        body["available"] = self.available
        return body
