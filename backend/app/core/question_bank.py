"""
Placement question bank: administrative CRUD and client projection.

Every write runs the whole record through ``QuestionCreate`` and
``parse_answer_key``, so a stored question always carries an answer key
that matches its type. Sampling lives in ``app.core.test_composition``.
"""
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.answer_keys import (
    ChoiceAnswerKey,
    ComprehensionAnswerKey,
    MatchingAnswerKey,
    parse_answer_key,
)
from app.core.error_responses import ErrorMessages
from app.core.exceptions import NotFoundError, ValidationError
from app.models.models import (
    Category,
    DifficultyLevel,
    Question,
    QuestionType,
    TestSessionQuestion,
)
from app.schemas.questions import QuestionCreate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

EDITABLE_FIELDS = (
    "question_text",
    "question_type",
    "category",
    "difficulty",
    "points",
    "time_allocation",
    "skills_tested",
    "answer_key",
    "explanation",
    "is_active",
)


def validate_question_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a full question record and return it normalized.

    Scalar fields go through ``QuestionCreate``, so enum fields come back as
    their enum types. The answer key is checked against the question type
    and re-serialized from its parsed variant.

    Raises:
        ValidationError: With field-level detail for every problem found
    """
    errors: Dict[str, str] = {}
    normalized: Dict[str, Any] = {}
    try:
        normalized = QuestionCreate.model_validate(record).model_dump()
    except PydanticValidationError as e:
        errors.update(
            ValidationError.from_pydantic(ErrorMessages.INVALID_QUESTION_PAYLOAD, e).fields
        )

    try:
        question_type = QuestionType(record.get("question_type"))
    except ValueError:
        question_type = None

    if question_type is not None:
        try:
            key = parse_answer_key(question_type, record.get("answer_key"))
            normalized["answer_key"] = key.to_payload()
        except ValidationError as e:
            for path, message in e.fields.items():
                full_path = path if path == "answer_key" else f"answer_key.{path}"
                errors.setdefault(full_path, message)

    if errors:
        raise ValidationError(ErrorMessages.INVALID_QUESTION_PAYLOAD, fields=errors)
    return normalized


async def list_questions(
    db: AsyncSession,
    category: Optional[Category] = None,
    difficulty: Optional[DifficultyLevel] = None,
    question_type: Optional[QuestionType] = None,
    is_active: Optional[bool] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[Question], int]:
    """
    List questions with optional filters, newest first.

    Returns:
        Tuple of (questions on the requested page, total matching count)
    """
    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    conditions = []
    if category is not None:
        conditions.append(Question.category == category)
    if difficulty is not None:
        conditions.append(Question.difficulty == difficulty)
    if question_type is not None:
        conditions.append(Question.question_type == question_type)
    if is_active is not None:
        conditions.append(Question.is_active.is_(is_active))

    total = (
        await db.execute(select(func.count(Question.id)).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(Question)
        .where(*conditions)
        .order_by(Question.created_at.desc(), Question.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_question(db: AsyncSession, question_id: int) -> Question:
    """Fetch a question by id or raise NotFoundError."""
    question = await db.get(Question, question_id)
    if question is None:
        raise NotFoundError(ErrorMessages.question_not_found(question_id))
    return question


async def create_question(db: AsyncSession, payload: Dict[str, Any]) -> Question:
    """Validate and insert a question."""
    record = {
        field: payload[field]
        for field in EDITABLE_FIELDS
        if payload.get(field) is not None
    }
    record = validate_question_record(record)

    question = Question(**record)
    db.add(question)
    await db.commit()
    await db.refresh(question)

    logger.info(
        f"Created placement question {question.id} "
        f"({question.question_type.value}, {question.difficulty.value})"
    )
    return question


async def update_question(
    db: AsyncSession, question_id: int, changes: Dict[str, Any]
) -> Question:
    """
    Merge ``changes`` into an existing question and revalidate the result.

    Changing ``question_type`` without a matching ``answer_key`` fails
    validation, since the stored key belongs to the old type.
    """
    question = await get_question(db, question_id)

    record = {field: getattr(question, field) for field in EDITABLE_FIELDS}
    record.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})
    record = validate_question_record(record)

    for field_name, value in record.items():
        setattr(question, field_name, value)
    await db.commit()
    await db.refresh(question)

    logger.info(f"Updated placement question {question.id}")
    return question


async def delete_question(db: AsyncSession, question_id: int) -> bool:
    """
    Delete a question, or deactivate it if any session has used it.

    Returns:
        True if the row was deleted, False if it was deactivated instead
    """
    question = await get_question(db, question_id)

    usage_count = (
        await db.execute(
            select(func.count(TestSessionQuestion.id)).where(
                TestSessionQuestion.question_id == question_id
            )
        )
    ).scalar_one()

    if usage_count:
        question.is_active = False
        await db.commit()
        logger.info(
            f"Deactivated placement question {question_id} "
            f"(used in {usage_count} session(s))"
        )
        return False

    await db.delete(question)
    await db.commit()
    logger.info(f"Deleted placement question {question_id}")
    return True


def question_to_client(question: Question, shuffle_seed: Any) -> Dict[str, Any]:
    """
    Project a question for test takers, without any answer information.

    The right column of matching questions is shuffled with a generator
    seeded from ``shuffle_seed`` and the question id, so the same session
    always sees the same order.
    """
    key = parse_answer_key(question.question_type, question.answer_key)

    payload: Dict[str, Any] = {
        "id": question.id,
        "question_text": question.question_text,
        "question_type": question.question_type.value,
        "category": question.category.value,
        "difficulty": question.difficulty.value,
        "points": question.points,
        "time_allocation": question.time_allocation,
    }

    if isinstance(key, ChoiceAnswerKey):
        payload["options"] = [option.to_dict() for option in key.options]
    elif isinstance(key, MatchingAnswerKey):
        right_column = [item.to_dict() for item in key.right_column]
        random.Random(f"{shuffle_seed}:{question.id}").shuffle(right_column)
        payload["left_column"] = [item.to_dict() for item in key.left_column]
        payload["right_column"] = right_column
    elif isinstance(key, ComprehensionAnswerKey):
        payload["passage"] = key.passage
        payload["sub_questions"] = [
            {
                "question_text": sq.question_text,
                "options": [option.to_dict() for option in sq.options],
            }
            for sq in key.sub_questions
        ]

    return payload
