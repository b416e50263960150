"""Result values produced by the analytics engine.

Every "not available" figure (no submissions, no eligible students, no timed
submissions) is ``None``. It is never folded into ``0``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterator, Optional, Sequence, Union

from pydantic import BaseModel, PrivateAttr, computed_field

from portal_analytics.answers import TextAnswer, answer_for
from portal_analytics.models import FormKind, Question, QuestionType, Submission


# --- Per-question statistics ---


class QuestionStatsBase(BaseModel):
    question_id: str
    question_text: str
    type: QuestionType
    total_submissions: int
    response_count: int  # submissions with a usable answer to this question


class RatingBucket(BaseModel):
    value: int
    count: int


class RatingStats(QuestionStatsBase):
    average: Optional[float] = None
    distribution: list[RatingBucket]

    def distribution_map(self) -> dict[int, int]:
        return {bucket.value: bucket.count for bucket in self.distribution}


class OptionCount(BaseModel):
    option_id: str
    text: str
    count: int
    percentage: float  # of all submissions, unrounded


class ChoiceStats(QuestionStatsBase):
    options: list[OptionCount]
    # Only set for quiz questions that define a correct answer
    correct_count: Optional[int] = None
    correct_rate: Optional[float] = None

    def counts(self) -> dict[str, int]:
        return {option.option_id: option.count for option in self.options}


class TextResponse(BaseModel):
    student_id: str
    submitted_at: datetime
    answer_text: str


class TextResponseView:
    """Lazy, restartable view over the free-text answers to one question.

    Holds a reference to the submissions sequence and yields a fresh
    ``TextResponse`` per non-empty answer on every iteration.
    """

    __slots__ = ("_question", "_submissions")

    def __init__(self, question: Question, submissions: Sequence[Submission]) -> None:
        self._question = question
        self._submissions = submissions

    def __iter__(self) -> Iterator[TextResponse]:
        for submission in self._submissions:
            answer = answer_for(self._question, submission)
            if isinstance(answer, TextAnswer):
                yield TextResponse(
                    student_id=submission.student_id,
                    submitted_at=submission.submitted_at,
                    answer_text=answer.text,
                )

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextResponseView):
            return NotImplemented
        return self._question.id == other._question.id and list(self) == list(other)

    def __repr__(self) -> str:
        return f"TextResponseView(question_id={self._question.id!r}, submissions={len(self._submissions)})"


class TextStats(QuestionStatsBase):
    _view: Optional[TextResponseView] = PrivateAttr(default=None)

    @classmethod
    def from_view(cls, question: Question, view: TextResponseView, total_submissions: int) -> "TextStats":
        stats = cls(
            question_id=question.id,
            question_text=question.text,
            type=question.type,
            total_submissions=total_submissions,
            response_count=len(view),
        )
        stats._view = view
        return stats

    def iter_responses(self) -> Iterator[TextResponse]:
        if self._view is None:
            return iter(())
        return iter(self._view)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def responses(self) -> list[TextResponse]:
        return list(self.iter_responses())


QuestionStats = Union[RatingStats, ChoiceStats, TextStats]


# --- Form report ---


class ScoreBucket(BaseModel):
    label: str
    min_score: float
    count: int


class ScoreStats(BaseModel):
    average: float
    highest: float
    lowest: float
    scored_count: int


class TimeStats(BaseModel):
    average: float
    min: float
    max: float
    count: int


class Report(BaseModel):
    form_id: str
    title: str
    kind: FormKind
    total_submissions: int
    total_eligible: int
    completion_rate: Optional[float] = None
    over_submitted: bool = False  # more submissions than eligible students
    question_stats: dict[str, QuestionStats]

    # Quizzes only
    total_points: Optional[float] = None  # sum of question points
    score_distribution: Optional[list[ScoreBucket]] = None
    passing_score: Optional[float] = None
    passing_rate: Optional[float] = None
    score_stats: Optional[ScoreStats] = None
    time_stats: Optional[TimeStats] = None


# --- Cross-form summaries ---


class QuizPerformanceRow(BaseModel):
    form_id: str
    title: str
    submission_count: int
    average_score: Optional[float] = None


class QuizPerformanceSummary(BaseModel):
    quizzes: list[QuizPerformanceRow]
    total_quizzes: int
    total_submissions: int
    average_score: Optional[float] = None
    highest_score: Optional[float] = None
    lowest_score: Optional[float] = None


class QuestionTypeRow(BaseModel):
    type: QuestionType
    question_count: int
    answered_count: int
    correct_count: int
    correct_rate: Optional[float] = None


class QuestionTypeAnalysis(BaseModel):
    rows: list[QuestionTypeRow]
    total_questions: int
    best_type: Optional[QuestionType] = None


class CourseComparisonRow(BaseModel):
    course_id: str
    name: str
    student_count: int
    quiz_count: int
    submission_count: int
    average_score: Optional[float] = None
    completion_rate: Optional[float] = None


class WeekEngagement(BaseModel):
    label: str
    start: datetime
    end: datetime
    quiz_submissions: int
    form_submissions: int


class EngagementSummary(BaseModel):
    weeks: list[WeekEngagement]
    total_students: int
    total_quiz_submissions: int
    total_form_submissions: int
    average_engagement: Optional[float] = None
