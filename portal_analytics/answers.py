"""Typed answer values, one per question kind.

Submissions store answers loosely (numeric strings for ratings, option ids,
lists of ids, free text). ``parse_answer`` turns a raw value into the tagged
type matching the question so aggregation code never has to guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from portal_analytics.models import Question, QuestionType, Submission
from portal_analytics.utils import parse_numeric


@dataclass(frozen=True, slots=True)
class RatingAnswer:
    value: float


@dataclass(frozen=True, slots=True)
class ChoiceAnswer:
    option_id: str


@dataclass(frozen=True, slots=True)
class SelectAnswer:
    option_ids: frozenset[str]


@dataclass(frozen=True, slots=True)
class TextAnswer:
    text: str


Answer = Union[RatingAnswer, ChoiceAnswer, SelectAnswer, TextAnswer]


def _parse_rating(raw: Any) -> Optional[RatingAnswer]:
    value = parse_numeric(raw)
    if value is None:
        return None
    return RatingAnswer(value)


def _parse_choice(raw: Any) -> Optional[ChoiceAnswer]:
    # Some clients send a single-element list for radio inputs
    if isinstance(raw, list) and len(raw) == 1:
        raw = raw[0]
    if not isinstance(raw, str) or not raw:
        return None
    return ChoiceAnswer(raw)


def _parse_select(raw: Any) -> Optional[SelectAnswer]:
    if isinstance(raw, str):
        raw = [raw] if raw else []
    if not isinstance(raw, list):
        return None
    ids = frozenset(item for item in raw if isinstance(item, str) and item)
    if not ids:
        return None
    return SelectAnswer(ids)


def _parse_text(raw: Any) -> Optional[TextAnswer]:
    if not isinstance(raw, str) or not raw.strip():
        return None
    return TextAnswer(raw)


_PARSERS: dict[QuestionType, Callable[[Any], Optional[Answer]]] = {
    QuestionType.RATING: _parse_rating,
    QuestionType.MULTIPLE_CHOICE: _parse_choice,
    QuestionType.MULTIPLE_SELECT: _parse_select,
    QuestionType.TEXT: _parse_text,
    QuestionType.ESSAY: _parse_text,
}


def parse_answer(question: Question, raw: Any) -> Optional[Answer]:
    """Return the typed answer for ``raw``, or None if it is missing or malformed."""
    try:
        parser = _PARSERS[question.type]
    except KeyError:
        raise ValueError(f"Unsupported question type: {question.type}") from None
    if raw is None:
        return None
    return parser(raw)


def answer_for(question: Question, submission: Submission) -> Optional[Answer]:
    """Typed answer a submission gave to ``question`` (None when absent or unusable)."""
    return parse_answer(question, submission.answers.get(question.id))


def selected_options(question: Question, answer: Optional[Answer]) -> frozenset[str]:
    """Option ids picked by a choice answer that actually belong to ``question``."""
    if isinstance(answer, ChoiceAnswer):
        picked = frozenset([answer.option_id])
    elif isinstance(answer, SelectAnswer):
        picked = answer.option_ids
    else:
        return frozenset()
    return picked & {option.id for option in question.choices}


def answer_is_correct(question: Question, answer: Optional[Answer]) -> bool:
    """Exact-match grading for objective questions.

    Multiple-select answers are compared as sets, so the order in which a
    student ticked the options never matters and no partial credit is given.
    """
    correct = question.correct_set
    if correct is None or answer is None:
        return False
    if isinstance(answer, ChoiceAnswer):
        return question.type == QuestionType.MULTIPLE_CHOICE and answer.option_id in correct
    if isinstance(answer, SelectAnswer):
        return question.type == QuestionType.MULTIPLE_SELECT and answer.option_ids == correct
    return False


def is_correct(submission: Submission, question: Question) -> bool:
    return answer_is_correct(question, answer_for(question, submission))
