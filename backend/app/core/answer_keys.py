"""
Answer-key variants for placement questions.

Each question type carries exactly one answer-key shape:

- definition-choice, true-false, fill-in-blank, usage-in-sentence
  -> ChoiceAnswerKey (labeled options + one correct label)
- acronym-matching -> MatchingAnswerKey (two columns + correct pairs)
- comprehension -> ComprehensionAnswerKey (passage + choice sub-questions)

The JSON stored on ``Question.answer_key`` is validated into one of these
frozen pydantic models by ``parse_answer_key``, so grading code can rely on
a well-formed key.

Stored payload shapes:
    choice:        {"options": [{"id": "A", "text": "..."}], "correct_option": "A"}
    matching:      {"left_column": [...], "right_column": [...],
                    "correct_matches": [{"left_id": "L1", "right_id": "R2"}]}
    comprehension: {"passage": "...", "sub_questions": [
                        {"question_text": "...", "options": [...],
                         "correct_option": "B"}]}
"""

from typing import Annotated, Any, Dict, FrozenSet, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from app.core.error_responses import ErrorMessages
from app.core.exceptions import ValidationError
from app.models.models import QuestionType

SINGLE_ANSWER_TYPES = frozenset(
    {
        QuestionType.DEFINITION_CHOICE,
        QuestionType.TRUE_FALSE,
        QuestionType.FILL_IN_BLANK,
        QuestionType.USAGE_IN_SENTENCE,
    }
)

MIN_CHOICE_OPTIONS = 2

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _field_error(field: str, message: str) -> PydanticCustomError:
    """Model-level error that names the offending field path."""
    return PydanticCustomError("answer_key", message, {"field_path": field})


def _check_unique_ids(items: Sequence["LabeledItem"], field: str) -> None:
    seen = set()
    for index, item in enumerate(items):
        if item.id in seen:
            raise _field_error(f"{field}[{index}].id", f"Duplicate id '{item.id}'.")
        seen.add(item.id)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize back to the stored JSON shape."""
        return self.model_dump(mode="json")


class LabeledItem(_FrozenModel):
    """An option or matching-column entry: a stable id plus display text."""

    id: NonEmptyStr
    text: NonEmptyStr

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "text": self.text}


class ChoiceAnswerKey(_FrozenModel):
    """Options with exactly one correct label."""

    options: Tuple[LabeledItem, ...] = Field(..., min_length=MIN_CHOICE_OPTIONS)
    correct_option: NonEmptyStr

    @model_validator(mode="after")
    def check_correct_option(self) -> "ChoiceAnswerKey":
        _check_unique_ids(self.options, "options")
        if self.correct_option not in {option.id for option in self.options}:
            raise _field_error("correct_option", "Must be one of the option ids.")
        return self


class MatchPair(_FrozenModel):
    left_id: NonEmptyStr
    right_id: NonEmptyStr


class MatchingAnswerKey(_FrozenModel):
    """Two labeled columns and the correct (left_id, right_id) pairs."""

    left_column: Tuple[LabeledItem, ...] = Field(..., min_length=1)
    right_column: Tuple[LabeledItem, ...] = Field(..., min_length=1)
    correct_matches: Tuple[MatchPair, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_matches(self) -> "MatchingAnswerKey":
        _check_unique_ids(self.left_column, "left_column")
        _check_unique_ids(self.right_column, "right_column")

        left_ids = {item.id for item in self.left_column}
        right_ids = {item.id for item in self.right_column}
        matched_left: Dict[str, int] = {}
        for index, pair in enumerate(self.correct_matches):
            if pair.left_id not in left_ids:
                raise _field_error(
                    f"correct_matches[{index}].left_id", "Must reference a left_column id."
                )
            if pair.right_id not in right_ids:
                raise _field_error(
                    f"correct_matches[{index}].right_id",
                    "Must reference a right_column id.",
                )
            matched_left[pair.left_id] = matched_left.get(pair.left_id, 0) + 1

        unmatched = sorted(left_ids - set(matched_left))
        if unmatched:
            raise _field_error(
                "correct_matches",
                f"Every left id must be matched; missing: {', '.join(unmatched)}.",
            )
        repeated = sorted(lid for lid, count in matched_left.items() if count > 1)
        if repeated:
            raise _field_error(
                "correct_matches",
                f"Each left id must be matched once; repeated: {', '.join(repeated)}.",
            )
        return self

    @property
    def pairs(self) -> FrozenSet[Tuple[str, str]]:
        """Correct matches as a set of (left_id, right_id) tuples."""
        return frozenset((pair.left_id, pair.right_id) for pair in self.correct_matches)


class SubQuestion(ChoiceAnswerKey):
    """One choice question inside a comprehension item."""

    question_text: NonEmptyStr


class ComprehensionAnswerKey(_FrozenModel):
    """A passage followed by an ordered list of choice sub-questions."""

    passage: NonEmptyStr
    sub_questions: Tuple[SubQuestion, ...] = Field(..., min_length=1)


AnswerKey = Union[ChoiceAnswerKey, MatchingAnswerKey, ComprehensionAnswerKey]


def answer_key_model(question_type: QuestionType) -> Type[AnswerKey]:
    """Return the answer-key model a question type requires."""
    if question_type in SINGLE_ANSWER_TYPES:
        return ChoiceAnswerKey
    if question_type == QuestionType.ACRONYM_MATCHING:
        return MatchingAnswerKey
    if question_type == QuestionType.COMPREHENSION:
        return ComprehensionAnswerKey
    raise ValidationError(
        ErrorMessages.INVALID_QUESTION_PAYLOAD,
        fields={"question_type": f"Unsupported question type: {question_type}"},
    )


def parse_answer_key(question_type: QuestionType, payload: Any) -> AnswerKey:
    """
    Parse and validate a stored answer-key payload for a question type.

    Args:
        question_type: The question's declared type
        payload: JSON-compatible answer-key payload

    Returns:
        The answer-key variant for ``question_type``

    Raises:
        ValidationError: With field-level detail when the payload does not
            match the shape the type requires
    """
    model = answer_key_model(question_type)
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(ErrorMessages.INVALID_ANSWER_KEY, e) from e
