"""
Placement question bank admin endpoints.

Create and update requests are checked against the question type's
answer-key shape; a mismatch returns 400 with per-field messages.
"""
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import question_bank
from app.models import Category, DifficultyLevel, QuestionType, get_db
from app.schemas.questions import (
    AdminQuestionResponse,
    QuestionCreate,
    QuestionDeleteResponse,
    QuestionListResponse,
    QuestionUpdate,
)

from ._dependencies import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/placement-questions", response_model=QuestionListResponse)
async def list_placement_questions(
    category: Optional[Category] = Query(None, description="Filter by category"),
    difficulty: Optional[DifficultyLevel] = Query(
        None, description="Filter by difficulty"
    ),
    question_type: Optional[QuestionType] = Query(
        None, description="Filter by question type"
    ),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    page: int = Query(1, ge=1),
    limit: int = Query(
        question_bank.DEFAULT_PAGE_SIZE, ge=1, le=question_bank.MAX_PAGE_SIZE
    ),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    List placement questions, newest first.

    Requires X-Admin-Token header with valid admin token.
    """
    questions, total = await question_bank.list_questions(
        db,
        category=category,
        difficulty=difficulty,
        question_type=question_type,
        is_active=is_active,
        page=page,
        limit=limit,
    )
    return QuestionListResponse(
        questions=[AdminQuestionResponse.model_validate(q) for q in questions],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.get(
    "/placement-questions/{question_id}", response_model=AdminQuestionResponse
)
async def get_placement_question(
    question_id: int,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """Get one placement question, including its answer key."""
    question = await question_bank.get_question(db, question_id)
    return AdminQuestionResponse.model_validate(question)


@router.post(
    "/placement-questions", response_model=AdminQuestionResponse, status_code=201
)
async def create_placement_question(
    payload: QuestionCreate,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Create a placement question.

    Requires X-Admin-Token header with valid admin token.
    """
    question = await question_bank.create_question(db, payload.model_dump())
    return AdminQuestionResponse.model_validate(question)


@router.put(
    "/placement-questions/{question_id}", response_model=AdminQuestionResponse
)
async def update_placement_question(
    question_id: int,
    changes: QuestionUpdate,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Update a placement question.

    Only fields present in the body change. The merged record is validated
    as a whole, so changing `question_type` requires a matching
    `answer_key` in the same request.
    """
    question = await question_bank.update_question(
        db, question_id, changes.model_dump(exclude_unset=True)
    )
    return AdminQuestionResponse.model_validate(question)


@router.delete(
    "/placement-questions/{question_id}", response_model=QuestionDeleteResponse
)
async def delete_placement_question(
    question_id: int,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Delete a placement question.

    Questions that already appeared in a test session are deactivated
    instead, so past results keep their question details.
    """
    deleted = await question_bank.delete_question(db, question_id)
    message = (
        "Question deleted"
        if deleted
        else "Question has been used in placement tests and was deactivated"
    )
    return QuestionDeleteResponse(id=question_id, deleted=deleted, message=message)
