"""Cross-form summaries used by the faculty and management report screens."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence

from portal_analytics.answers import answer_for, answer_is_correct, selected_options
from portal_analytics.config import settings
from portal_analytics.models import CHOICE_TYPES, Form, Submission
from portal_analytics.schemas import (
    CourseComparisonRow,
    EngagementSummary,
    QuestionTypeAnalysis,
    QuestionTypeRow,
    QuizPerformanceRow,
    QuizPerformanceSummary,
    WeekEngagement,
)
from portal_analytics.utils import mean, percentage

logger = logging.getLogger(__name__)


class DateRange(str, Enum):
    ALL = "all"
    LAST_WEEK = "last-week"
    LAST_MONTH = "last-month"
    LAST_SEMESTER = "last-semester"
    CUSTOM = "custom"


@dataclass(slots=True)
class QuizData:
    """A quiz together with the submissions collected for it."""

    form: Form
    submissions: Sequence[Submission] = field(default_factory=tuple)


@dataclass(slots=True)
class CourseData:
    """Roster size and quizzes of one course, as supplied by the course collaborator."""

    course_id: str
    name: str
    student_count: int
    quizzes: list[QuizData] = field(default_factory=list)


def _months_before(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_date_range(
    date_range: DateRange,
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Optional[tuple[datetime, datetime]]:
    """Turn a preset (or custom bounds) into an inclusive ``(start, end)`` window.

    Returns None when no filtering applies: the ``all`` preset, or a custom
    range missing one of its bounds.
    """
    if date_range == DateRange.LAST_WEEK:
        return now - timedelta(days=7), now
    if date_range == DateRange.LAST_MONTH:
        return _months_before(now, 1), now
    if date_range == DateRange.LAST_SEMESTER:
        return _months_before(now, 6), now
    if date_range == DateRange.CUSTOM:
        if start is None or end is None:
            return None
        if start > end:
            raise ValueError("Custom date range start must not be after its end")
        return start, end
    return None


def filter_by_date_range(
    submissions: Iterable[Submission],
    date_range: DateRange,
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Submission]:
    window = resolve_date_range(date_range, now, start, end)
    if window is None:
        return list(submissions)
    lower, upper = window
    kept = [s for s in submissions if lower <= s.submitted_at <= upper]
    logger.debug("Date range %s kept %d submission(s)", date_range.value, len(kept))
    return kept


def quiz_performance(quizzes: Iterable[QuizData]) -> QuizPerformanceSummary:
    """Average score and submission count per quiz, plus overall figures.

    Quizzes without scored submissions report a None average and are left
    out of the overall average, highest and lowest.
    """
    rows = []
    for quiz in quizzes:
        scores = [s.score for s in quiz.submissions if s.score is not None]
        rows.append(
            QuizPerformanceRow(
                form_id=quiz.form.id,
                title=quiz.form.title,
                submission_count=len(quiz.submissions),
                average_score=mean(scores),
            )
        )

    averages = [row.average_score for row in rows if row.average_score is not None]
    return QuizPerformanceSummary(
        quizzes=rows,
        total_quizzes=len(rows),
        total_submissions=sum(row.submission_count for row in rows),
        average_score=mean(averages),
        highest_score=max(averages) if averages else None,
        lowest_score=min(averages) if averages else None,
    )


def question_type_analysis(quizzes: Iterable[QuizData]) -> QuestionTypeAnalysis:
    """Correct-answer rate per objective question type across quizzes."""
    question_counts = {t: 0 for t in CHOICE_TYPES}
    answered = {t: 0 for t in CHOICE_TYPES}
    correct = {t: 0 for t in CHOICE_TYPES}

    for quiz in quizzes:
        for question in quiz.form.questions:
            if question.type not in CHOICE_TYPES or not question.is_objective:
                continue
            question_counts[question.type] += 1
            for submission in quiz.submissions:
                answer = answer_for(question, submission)
                # Same rule as the per-question option counts
                if not selected_options(question, answer):
                    continue
                answered[question.type] += 1
                if answer_is_correct(question, answer):
                    correct[question.type] += 1

    rows = [
        QuestionTypeRow(
            type=t,
            question_count=question_counts[t],
            answered_count=answered[t],
            correct_count=correct[t],
            correct_rate=percentage(correct[t], answered[t]),
        )
        for t in CHOICE_TYPES
    ]

    best = None
    for row in rows:
        if row.correct_rate is None:
            continue
        if best is None or row.correct_rate > best.correct_rate:
            best = row

    return QuestionTypeAnalysis(
        rows=rows,
        total_questions=sum(question_counts.values()),
        best_type=best.type if best else None,
    )


def course_comparison(courses: Iterable[CourseData]) -> list[CourseComparisonRow]:
    """Average score and completion rate per course, best average first.

    Completion is measured against ``students * quizzes`` expected
    submissions; courses without an average sort last.
    """
    rows = []
    for course in courses:
        submissions = [s for quiz in course.quizzes for s in quiz.submissions]
        scores = [s.score for s in submissions if s.score is not None]
        expected = course.student_count * len(course.quizzes)
        rows.append(
            CourseComparisonRow(
                course_id=course.course_id,
                name=course.name,
                student_count=course.student_count,
                quiz_count=len(course.quizzes),
                submission_count=len(submissions),
                average_score=mean(scores),
                completion_rate=percentage(len(submissions), expected),
            )
        )

    rows.sort(key=lambda r: (r.average_score is None, -(r.average_score or 0)))
    return rows


def weekly_engagement(
    quiz_submissions: Iterable[Submission],
    form_submissions: Iterable[Submission],
    total_students: int,
    now: datetime,
    weeks: Optional[int] = None,
) -> EngagementSummary:
    """Quiz and form submissions per week over the last ``weeks`` weeks.

    Weeks are consecutive half-open windows ending at ``now`` (the last one
    includes ``now`` itself). Average engagement is the share of possible
    student-week engagements that happened, None without students.
    """
    if weeks is None:
        weeks = settings.ENGAGEMENT_WEEKS
    if weeks < 1:
        raise ValueError("weeks must be at least 1")

    quiz_times = [s.submitted_at for s in quiz_submissions]
    form_times = [s.submitted_at for s in form_submissions]
    period_start = now - timedelta(days=7 * weeks)

    rows = []
    for i in range(weeks):
        start = period_start + timedelta(days=7 * i)
        end = start + timedelta(days=7)
        last = i == weeks - 1

        def in_week(moment: datetime) -> bool:
            return start <= moment < end or (last and moment == end)

        rows.append(
            WeekEngagement(
                label=f"Week {i + 1}",
                start=start,
                end=end,
                quiz_submissions=sum(1 for t in quiz_times if in_week(t)),
                form_submissions=sum(1 for t in form_times if in_week(t)),
            )
        )

    total_quiz = sum(r.quiz_submissions for r in rows)
    total_form = sum(r.form_submissions for r in rows)
    return EngagementSummary(
        weeks=rows,
        total_students=total_students,
        total_quiz_submissions=total_quiz,
        total_form_submissions=total_form,
        average_engagement=percentage(total_quiz + total_form, total_students * weeks),
    )
