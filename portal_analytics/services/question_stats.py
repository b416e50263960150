import logging
from typing import Callable, Sequence

from portal_analytics.answers import (
    RatingAnswer,
    answer_for,
    answer_is_correct,
    selected_options,
)
from portal_analytics.models import Question, QuestionType, Submission
from portal_analytics.schemas import (
    ChoiceStats,
    OptionCount,
    QuestionStats,
    RatingBucket,
    RatingStats,
    TextResponseView,
    TextStats,
)
from portal_analytics.utils import mean, percentage

logger = logging.getLogger(__name__)


def rating_stats(question: Question, submissions: Sequence[Submission]) -> RatingStats:
    """Average and per-value distribution for a rating question.

    Missing, non-numeric and off-scale answers are left out of both
    figures. The average is None when no usable answer exists.
    """
    scale = set(question.scale)
    values = []
    for submission in submissions:
        answer = answer_for(question, submission)
        # Values off the scale are treated like malformed answers
        if isinstance(answer, RatingAnswer) and answer.value in scale:
            values.append(answer.value)

    skipped = sum(1 for s in submissions if question.id in s.answers) - len(values)
    if skipped:
        logger.debug("Question %s: ignored %d unusable rating answer(s)", question.id, skipped)

    distribution = [
        RatingBucket(value=point, count=sum(1 for v in values if v == point))
        for point in question.scale
    ]

    return RatingStats(
        question_id=question.id,
        question_text=question.text,
        type=question.type,
        total_submissions=len(submissions),
        response_count=len(values),
        average=mean(values),
        distribution=distribution,
    )


def choice_stats(question: Question, submissions: Sequence[Submission]) -> ChoiceStats:
    """Per-option counts for multiple-choice and multiple-select questions.

    For multiple-select every option is counted independently, so one
    submission can add to several options. Option ids that are not part of
    the question are ignored.
    """
    counts = {option.id: 0 for option in question.choices}
    responded = 0
    correct = 0

    for submission in submissions:
        answer = answer_for(question, submission)
        known = selected_options(question, answer)
        if not known:
            continue
        responded += 1
        for option_id in known:
            counts[option_id] += 1
        if answer_is_correct(question, answer):
            correct += 1

    total = len(submissions)
    options = [
        OptionCount(
            option_id=option.id,
            text=option.text,
            count=counts[option.id],
            percentage=percentage(counts[option.id], total) or 0.0,
        )
        for option in question.choices
    ]

    grading = {}
    if question.is_objective:
        grading = {"correct_count": correct, "correct_rate": percentage(correct, total)}

    return ChoiceStats(
        question_id=question.id,
        question_text=question.text,
        type=question.type,
        total_submissions=total,
        response_count=responded,
        options=options,
        **grading,
    )


def text_stats(question: Question, submissions: Sequence[Submission]) -> TextStats:
    """Collated free-text answers; no numeric aggregation."""
    view = TextResponseView(question, submissions)
    return TextStats.from_view(question, view, total_submissions=len(submissions))


_AGGREGATORS: dict[QuestionType, Callable[[Question, Sequence[Submission]], QuestionStats]] = {
    QuestionType.RATING: rating_stats,
    QuestionType.MULTIPLE_CHOICE: choice_stats,
    QuestionType.MULTIPLE_SELECT: choice_stats,
    QuestionType.TEXT: text_stats,
    QuestionType.ESSAY: text_stats,
}


def aggregate_question(question: Question, submissions: Sequence[Submission]) -> QuestionStats:
    """Compute the statistics for one question across all submissions."""
    try:
        aggregator = _AGGREGATORS[question.type]
    except KeyError:
        raise ValueError(f"Unsupported question type: {question.type}") from None
    return aggregator(question, submissions)
