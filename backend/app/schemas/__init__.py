"""
Pydantic schemas for request/response validation.
"""
from .questions import (
    AdminQuestionResponse,
    QuestionCreate,
    QuestionListResponse,
    QuestionResponse,
    QuestionUpdate,
)
from .test_sessions import (
    AnswerSubmission,
    StartTestResponse,
    SubmitTestRequest,
    TestResultResponse,
    TestSessionResponse,
    TestSessionStatusResponse,
)
from .admin import PlacementStatsResponse, ReaggregateResponse, RetakeResponse

__all__ = [
    "AdminQuestionResponse",
    "QuestionCreate",
    "QuestionListResponse",
    "QuestionResponse",
    "QuestionUpdate",
    "AnswerSubmission",
    "StartTestResponse",
    "SubmitTestRequest",
    "TestResultResponse",
    "TestSessionResponse",
    "TestSessionStatusResponse",
    "PlacementStatsResponse",
    "ReaggregateResponse",
    "RetakeResponse",
]
