import logging
from typing import Iterable, List, Optional, Sequence

from portal_analytics.models import Form, Submission
from portal_analytics.schemas import Report, ScoreBucket, ScoreStats, TimeStats
from portal_analytics.services.question_stats import aggregate_question
from portal_analytics.utils import mean, percentage

logger = logging.getLogger(__name__)

# (label, lower bound) from the top bucket down; each bucket ends where the previous begins
SCORE_BUCKETS = (
    ("90-100", 90.0),
    ("80-89", 80.0),
    ("70-79", 70.0),
    ("60-69", 60.0),
    ("below-60", 0.0),
)


def score_bucket_label(score: float) -> str:
    for label, lower in SCORE_BUCKETS:
        if score >= lower:
            return label
    return SCORE_BUCKETS[-1][0]


def score_distribution(submissions: Iterable[Submission]) -> List[ScoreBucket]:
    """Histogram of quiz scores over the fixed grade buckets; unscored submissions are skipped."""
    counts = {label: 0 for label, _ in SCORE_BUCKETS}
    for submission in submissions:
        if submission.score is not None:
            counts[score_bucket_label(submission.score)] += 1
    return [ScoreBucket(label=label, min_score=lower, count=counts[label]) for label, lower in SCORE_BUCKETS]


def score_stats(submissions: Iterable[Submission]) -> Optional[ScoreStats]:
    scores = [s.score for s in submissions if s.score is not None]
    if not scores:
        return None
    return ScoreStats(
        average=sum(scores) / len(scores),
        highest=max(scores),
        lowest=min(scores),
        scored_count=len(scores),
    )


def passing_rate(submissions: Sequence[Submission], passing_score: float) -> Optional[float]:
    """Share of all submissions scoring at least ``passing_score``; unscored ones count as not passed."""
    passed = sum(1 for s in submissions if s.score is not None and s.score >= passing_score)
    return percentage(passed, len(submissions))


def time_stats(submissions: Iterable[Submission]) -> Optional[TimeStats]:
    """Average/min/max time spent, over submissions that recorded one."""
    times = [s.time_spent_minutes for s in submissions if s.time_spent_minutes is not None]
    if not times:
        return None
    return TimeStats(average=mean(times), min=min(times), max=max(times), count=len(times))


def completion_rate(total_submissions: int, total_eligible: int) -> Optional[float]:
    return percentage(total_submissions, total_eligible)


def build_report(form: Form, submissions: Iterable[Submission], total_eligible: int) -> Report:
    """Aggregate a quiz or preference form and its submissions into one report.

    Args:
        form: The quiz or preference form being reported on
        submissions: All submissions collected for the form
        total_eligible: Number of students who could have submitted

    Returns:
        Report with completion rate, per-question statistics and, for
        quizzes, score distribution, passing rate and time statistics

    Raises:
        ValueError: If total_eligible is negative
    """
    if total_eligible < 0:
        raise ValueError(f"total_eligible must not be negative (got {total_eligible})")

    submissions = tuple(submissions)
    total = len(submissions)

    over_submitted = total_eligible > 0 and total > total_eligible
    if over_submitted:
        logger.warning(
            "Form %s has %d submissions but only %d eligible students", form.id, total, total_eligible
        )

    question_stats = {q.id: aggregate_question(q, submissions) for q in form.questions}

    report = Report(
        form_id=form.id,
        title=form.title,
        kind=form.kind,
        total_submissions=total,
        total_eligible=total_eligible,
        completion_rate=completion_rate(total, total_eligible),
        over_submitted=over_submitted,
        question_stats=question_stats,
    )

    if form.is_quiz:
        report.passing_score = form.effective_passing_score
        report.total_points = form.total_points
        report.score_distribution = score_distribution(submissions)
        report.passing_rate = passing_rate(submissions, form.effective_passing_score)
        report.score_stats = score_stats(submissions)
        report.time_stats = time_stats(submissions)

    logger.debug(
        "Built %s report for form %s: %d submissions, %d questions",
        form.kind.value,
        form.id,
        total,
        len(question_stats),
    )
    return report
