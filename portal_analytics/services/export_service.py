"""CSV export of analytics reports."""

import csv
import io
from datetime import datetime
from typing import Any, List, Optional, Sequence

from portal_analytics.config import settings
from portal_analytics.models import FormKind
from portal_analytics.schemas import (
    ChoiceStats,
    QuizPerformanceSummary,
    RatingStats,
    Report,
    TextStats,
)
from portal_analytics.utils import plain_text

REPORT_FIELDS = ["Question", "Type", "Label", "Count", "Value"]
PERFORMANCE_FIELDS = ["Quiz", "Average Score", "Submission Count"]


def _fmt(value: Optional[float]) -> str:
    """Render a statistic for CSV, keeping "not available" distinct from zero."""
    if value is None:
        return settings.CSV_NOT_AVAILABLE
    return f"{value:.1f}"


def _write_block(buffer: io.StringIO, fields: Sequence[str], rows: List[dict]) -> None:
    writer = csv.DictWriter(buffer, fieldnames=fields, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)


def _metadata_block(buffer: io.StringIO, title: str, summary: str, generated_at: datetime) -> None:
    _write_block(
        buffer,
        ["Metadata", "Value"],
        [
            {"Metadata": "Report Type", "Value": title},
            {"Metadata": "Generated On", "Value": generated_at.isoformat()},
            {"Metadata": "Summary", "Value": summary},
        ],
    )
    buffer.write("\n")


def report_summary_line(report: Report) -> str:
    parts = [f"{report.total_submissions} submissions", f"completion {_fmt(report.completion_rate)}%"]
    if report.score_stats is not None:
        parts.append(f"average score {_fmt(report.score_stats.average)}%")
    if report.passing_rate is not None:
        parts.append(f"passing rate {_fmt(report.passing_rate)}%")
    return ", ".join(parts)


def _question_rows(report: Report) -> List[dict[str, Any]]:
    rows = []
    for stats in report.question_stats.values():
        base = {"Question": stats.question_text, "Type": stats.type.value}
        if isinstance(stats, RatingStats):
            rows.append({**base, "Label": "average", "Count": stats.response_count, "Value": _fmt(stats.average)})
            for bucket in stats.distribution:
                rows.append({**base, "Label": str(bucket.value), "Count": bucket.count, "Value": ""})
        elif isinstance(stats, ChoiceStats):
            for option in stats.options:
                rows.append(
                    {**base, "Label": option.text, "Count": option.count, "Value": _fmt(option.percentage)}
                )
            if stats.correct_count is not None:
                rows.append(
                    {**base, "Label": "correct", "Count": stats.correct_count, "Value": _fmt(stats.correct_rate)}
                )
        elif isinstance(stats, TextStats):
            for response in stats.iter_responses():
                rows.append(
                    {
                        **base,
                        "Label": response.student_id,
                        "Count": "",
                        "Value": plain_text(response.answer_text),
                    }
                )
    return rows


def _quiz_rows(report: Report) -> List[dict[str, Any]]:
    rows = []
    for bucket in report.score_distribution or []:
        rows.append({"Question": "SCORES", "Type": "", "Label": bucket.label, "Count": bucket.count, "Value": ""})
    if report.passing_score is not None:
        rows.append(
            {
                "Question": "SCORES",
                "Type": "",
                "Label": f"passing (>= {report.passing_score:g})",
                "Count": "",
                "Value": _fmt(report.passing_rate),
            }
        )
    time = report.time_stats
    for label in ("average", "min", "max"):
        rows.append(
            {
                "Question": "TIME",
                "Type": "",
                "Label": label,
                "Count": time.count if time and label == "average" else "",
                "Value": _fmt(getattr(time, label) if time else None),
            }
        )
    return rows


def report_to_csv(report: Report, generated_at: datetime) -> str:
    """Serialize a form report as CSV: a metadata block, a blank line, then the data rows."""
    buffer = io.StringIO()
    _metadata_block(buffer, report.title, report_summary_line(report), generated_at)

    rows = _question_rows(report)
    if report.kind == FormKind.QUIZ:
        rows.extend(_quiz_rows(report))
    _write_block(buffer, REPORT_FIELDS, rows)
    return buffer.getvalue()


def performance_to_csv(summary: QuizPerformanceSummary, generated_at: datetime) -> str:
    buffer = io.StringIO()
    line = (
        f"Overall average score: {_fmt(summary.average_score)}% "
        f"across {summary.total_submissions} submissions"
    )
    _metadata_block(buffer, "Quiz Performance Report", line, generated_at)

    rows = [
        {
            "Quiz": row.title,
            "Average Score": _fmt(row.average_score),
            "Submission Count": row.submission_count,
        }
        for row in summary.quizzes
    ]
    rows.append(
        {
            "Quiz": "SUMMARY",
            "Average Score": _fmt(summary.average_score),
            "Submission Count": summary.total_submissions,
        }
    )
    _write_block(buffer, PERFORMANCE_FIELDS, rows)
    return buffer.getvalue()


def export_filename(report_type: str, generated_at: datetime) -> str:
    return f"{report_type}-report-{generated_at.date().isoformat()}.csv"
