"""API endpoints that turn posted forms and submissions into analytics reports.

Forms, submissions and roster counts arrive already fetched by the caller;
nothing here touches storage.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from portal_analytics.lifecycle import classify
from portal_analytics.models import Form, Submission
from portal_analytics.services.export_service import export_filename, report_to_csv
from portal_analytics.services.report_service import build_report
from portal_analytics.services.summary_service import (
    DateRange,
    QuizData,
    filter_by_date_range,
    quiz_performance,
)

router = APIRouter()


def get_now() -> datetime:
    """Request-time clock; overridden in tests."""
    return datetime.now(timezone.utc)


# --- Request schemas ---


class FormReportIn(BaseModel):
    form: Form
    submissions: List[Submission] = Field(default_factory=list)
    total_eligible: int = Field(ge=0)


class FormStatusIn(BaseModel):
    form: Form
    now: Optional[datetime] = None


class QuizDataIn(BaseModel):
    form: Form
    submissions: List[Submission] = Field(default_factory=list)


class PerformanceIn(BaseModel):
    quizzes: List[QuizDataIn]
    date_range: DateRange = DateRange.ALL
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@router.post("/form")
def form_report(payload: FormReportIn = Body(...)):
    try:
        return build_report(payload.form, payload.submissions, payload.total_eligible)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/form/export")
def export_form_report(payload: FormReportIn = Body(...), now: datetime = Depends(get_now)):
    try:
        report = build_report(payload.form, payload.submissions, payload.total_eligible)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    report_type = "quiz" if payload.form.is_quiz else "preference-form"
    return Response(
        content=report_to_csv(report, generated_at=now),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(report_type, now)}"},
    )


@router.post("/status")
def form_status(payload: FormStatusIn = Body(...), now: datetime = Depends(get_now)):
    moment = payload.now or now
    try:
        status = classify(payload.form, moment)
    except TypeError:
        # naive vs aware datetimes
        raise HTTPException(status_code=400, detail="Dates must all include a timezone or all omit it")
    return {"form_id": payload.form.id, "status": status.value}


@router.post("/performance")
def performance_report(payload: PerformanceIn = Body(...), now: datetime = Depends(get_now)):
    try:
        quizzes = [
            QuizData(
                form=item.form,
                submissions=filter_by_date_range(
                    item.submissions,
                    payload.date_range,
                    now,
                    start=payload.start_date,
                    end=payload.end_date,
                ),
            )
            for item in payload.quizzes
        ]
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return quiz_performance(quizzes)
