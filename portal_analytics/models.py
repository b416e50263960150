"""SQLModel data models for quizzes, preference forms and their submissions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from portal_analytics.config import settings


class QuestionType(str, Enum):
    RATING = "rating"
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple-choice"
    MULTIPLE_SELECT = "multiple-select"
    ESSAY = "essay"


CHOICE_TYPES = (QuestionType.MULTIPLE_CHOICE, QuestionType.MULTIPLE_SELECT)
FREE_TEXT_TYPES = (QuestionType.TEXT, QuestionType.ESSAY)


class FormKind(str, Enum):
    QUIZ = "quiz"
    PREFERENCE = "preference"


class ChoiceOption(SQLModel):
    """One selectable option of a multiple-choice or multiple-select question."""

    id: str
    text: str


class Question(SQLModel):
    """A single question of a quiz or preference form.

    ``options`` depends on ``type``: the ordered rating scale (ints) for
    ``rating`` questions, ``ChoiceOption`` entries for the choice types, and
    nothing for ``text`` / ``essay``.
    """

    id: str
    text: str
    type: QuestionType
    required: bool = False
    options: list[Union[int, ChoiceOption]] = Field(default_factory=list)
    # Quizzes only: single option id for multiple-choice, set of ids for multiple-select
    correct_answer: Optional[str] = None
    correct_answers: Optional[list[str]] = None
    points: Optional[float] = None

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if self.type == QuestionType.RATING:
            if not self.options:
                raise ValueError(f"rating question {self.id!r} needs a non-empty scale")
            if not all(isinstance(o, int) for o in self.options):
                raise ValueError(f"rating question {self.id!r} scale must be integers")
        elif self.type in CHOICE_TYPES:
            if not self.options:
                raise ValueError(f"choice question {self.id!r} needs at least one option")
            if not all(isinstance(o, ChoiceOption) for o in self.options):
                raise ValueError(f"choice question {self.id!r} options must have id and text")
        return self

    @property
    def scale(self) -> list[int]:
        """Rating scale in display order (empty for non-rating questions)."""
        if self.type != QuestionType.RATING:
            return []
        return [o for o in self.options if isinstance(o, int)]

    @property
    def choices(self) -> list[ChoiceOption]:
        if self.type not in CHOICE_TYPES:
            return []
        return [o for o in self.options if isinstance(o, ChoiceOption)]

    @property
    def correct_set(self) -> Optional[frozenset[str]]:
        """Correct option ids for objective questions, or None when no key is defined."""
        if self.type == QuestionType.MULTIPLE_CHOICE and self.correct_answer is not None:
            return frozenset([self.correct_answer])
        if self.type == QuestionType.MULTIPLE_SELECT and self.correct_answers is not None:
            return frozenset(self.correct_answers)
        return None

    @property
    def is_objective(self) -> bool:
        return self.correct_set is not None


class Form(SQLModel):
    """A quiz or preference form: a title, a date range and an ordered list of questions."""

    id: str
    title: str
    description: Optional[str] = None
    course_id: Optional[str] = None
    kind: FormKind = FormKind.PREFERENCE
    start_date: datetime
    end_date: datetime
    is_published: bool = False
    questions: list[Question] = Field(default_factory=list)

    # Quiz settings
    passing_score: Optional[float] = Field(default=None, ge=0, le=100)
    duration_minutes: Optional[int] = None

    @model_validator(mode="after")
    def _check_schedule_and_ids(self) -> "Form":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        seen = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"duplicate question id {question.id!r}")
            seen.add(question.id)
        return self

    @property
    def is_quiz(self) -> bool:
        return self.kind == FormKind.QUIZ

    @property
    def effective_passing_score(self) -> float:
        if self.passing_score is not None:
            return self.passing_score
        return settings.DEFAULT_PASSING_SCORE

    @property
    def total_points(self) -> float:
        return sum(q.points or 0 for q in self.questions)


class Submission(SQLModel):
    """One student's completed answers to a form.

    ``answers`` maps question id to the raw value the client sent: an option
    id or free text as a string, a list of option ids for multiple-select and
    a numeric string (or number) for ratings. Values are kept as sent;
    malformed ones are dropped during aggregation, not rejected here.
    """

    id: str
    form_id: str
    student_id: str
    submitted_at: datetime
    time_spent_minutes: Optional[float] = Field(default=None, ge=0)
    answers: dict[str, Any] = Field(default_factory=dict)
    score: Optional[float] = Field(default=None, ge=0, le=100)  # quizzes only
