"""
Answer evaluation for placement questions.

``grade`` takes a parsed answer key (or a Question, whose stored key is
parsed first), the question's point value and whatever the client sent,
and returns a GradeResult. Grading never raises on user input: malformed
answers are simply incorrect.

Grading rules:
- choice: the submitted label must equal the correct label (surrounding
  whitespace ignored). All or nothing.
- matching: the submitted pairs must equal the correct pairs, with no
  repeats. Subsets, supersets, duplicates and swapped pairs are incorrect.
  All or nothing.
- comprehension: each sub-question is graded by index; the item is correct
  only when every sub-question is, and partial credit is
  round_half_up(points * correct / total).
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union, assert_never

from app.core.answer_keys import (
    AnswerKey,
    ChoiceAnswerKey,
    ComprehensionAnswerKey,
    MatchingAnswerKey,
    parse_answer_key,
)
from app.core.score_aggregation import round_half_up
from app.models.models import Question


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one answer."""

    is_correct: bool
    credit: float
    points_earned: int


def _incorrect() -> GradeResult:
    return GradeResult(is_correct=False, credit=0.0, points_earned=0)


def _grade_choice_label(key: ChoiceAnswerKey, user_answer: Any) -> bool:
    if not isinstance(user_answer, str):
        return False
    return user_answer.strip() == key.correct_option


def _extract_pair(entry: Any) -> Optional[Tuple[str, str]]:
    """Accept {left_id, right_id}, {leftId, rightId} or a 2-item list."""
    if isinstance(entry, dict):
        left = entry.get("left_id", entry.get("leftId"))
        right = entry.get("right_id", entry.get("rightId"))
    elif isinstance(entry, (list, tuple)) and len(entry) == 2:
        left, right = entry
    else:
        return None
    if not isinstance(left, str) or not isinstance(right, str):
        return None
    return left, right


def _submitted_pairs(user_answer: Any) -> Optional[List[Tuple[str, str]]]:
    if not isinstance(user_answer, (list, tuple)):
        return None
    pairs = []
    for entry in user_answer:
        pair = _extract_pair(entry)
        if pair is None:
            return None
        pairs.append(pair)
    return pairs


def _grade_matching(
    key: MatchingAnswerKey, points: int, user_answer: Any
) -> GradeResult:
    submitted = _submitted_pairs(user_answer)
    if submitted is None or len(submitted) != len(key.correct_matches):
        return _incorrect()
    if set(submitted) != key.pairs:
        return _incorrect()
    return GradeResult(is_correct=True, credit=1.0, points_earned=points)


def _grade_comprehension(
    key: ComprehensionAnswerKey, points: int, user_answer: Any
) -> GradeResult:
    total = len(key.sub_questions)
    if total == 0 or not isinstance(user_answer, (list, tuple)):
        return _incorrect()

    answers: Sequence[Any] = user_answer
    correct = 0
    for index, sub_question in enumerate(key.sub_questions):
        if index < len(answers) and _grade_choice_label(
            sub_question, answers[index]
        ):
            correct += 1

    credit = correct / total
    return GradeResult(
        is_correct=correct == total,
        credit=credit,
        points_earned=max(0, round_half_up(points * credit)),
    )


def grade(
    question_or_key: Union[Question, AnswerKey],
    points: int,
    user_answer: Any,
) -> GradeResult:
    """
    Grade one answer.

    Args:
        question_or_key: Question whose stored answer key is used, or an
            already-parsed answer key
        points: Point value of the question
        user_answer: Raw answer as submitted by the client

    Returns:
        GradeResult with correctness, fractional credit and points earned
    """
    if isinstance(question_or_key, Question):
        key = parse_answer_key(question_or_key.question_type, question_or_key.answer_key)
    else:
        key = question_or_key

    if user_answer is None:
        return _incorrect()

    if isinstance(key, ChoiceAnswerKey):
        if _grade_choice_label(key, user_answer):
            return GradeResult(is_correct=True, credit=1.0, points_earned=points)
        return _incorrect()
    elif isinstance(key, MatchingAnswerKey):
        return _grade_matching(key, points, user_answer)
    elif isinstance(key, ComprehensionAnswerKey):
        return _grade_comprehension(key, points, user_answer)
    else:
        assert_never(key)


def correct_answer_for(key: AnswerKey) -> Any:
    """Return the correct answer in the same shape a client submits it."""
    if isinstance(key, ChoiceAnswerKey):
        return key.correct_option
    elif isinstance(key, MatchingAnswerKey):
        return [
            {"left_id": left, "right_id": right}
            for left, right in sorted(key.pairs)
        ]
    elif isinstance(key, ComprehensionAnswerKey):
        return [sq.correct_option for sq in key.sub_questions]
    else:
        assert_never(key)
