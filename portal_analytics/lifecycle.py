"""Temporal status of quizzes and preference forms."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from portal_analytics.models import Form


class FormStatus(str, Enum):
    DRAFT = "draft"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


def classify(form: Form, now: datetime) -> FormStatus:
    """Derive a form's status from its publish flag and date range.

    ``now`` is passed in by the caller; both ends of the date range are
    inclusive. Naive and timezone-aware datetimes must not be mixed.
    """
    if not form.is_published:
        return FormStatus.DRAFT
    if now < form.start_date:
        return FormStatus.UPCOMING
    if now <= form.end_date:
        return FormStatus.ACTIVE
    return FormStatus.ENDED


def is_open(form: Form, now: datetime) -> bool:
    """True while students can still submit."""
    return classify(form, now) == FormStatus.ACTIVE
