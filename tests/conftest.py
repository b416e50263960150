import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

from portal_analytics.models import ChoiceOption, Form, FormKind, Question, QuestionType, Submission

# Fixed clock used by every test; reports never read the real time
NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# BUILDERS
# ============================================================================


def make_submission(sub_id, answers=None, score=None, minutes=None, student_id=None, submitted_at=None, form_id="quiz-1"):
    """Build a submission with sensible defaults for tests."""
    return Submission(
        id=sub_id,
        form_id=form_id,
        student_id=student_id or f"student-{sub_id}",
        submitted_at=submitted_at or NOW - timedelta(hours=1),
        time_spent_minutes=minutes,
        answers=answers or {},
        score=score,
    )


def rating_question(qid="q-rating", scale=(1, 2, 3, 4, 5)):
    return Question(id=qid, text="How clear were the lectures?", type=QuestionType.RATING, options=list(scale))


def choice_question(qid="q-mc", option_ids=("o1", "o2", "o3", "o4"), correct=None, points=None):
    return Question(
        id=qid,
        text="Which keyword defines a function?",
        type=QuestionType.MULTIPLE_CHOICE,
        options=[ChoiceOption(id=o, text=f"Option {o}") for o in option_ids],
        correct_answer=correct,
        points=points,
    )


def select_question(qid="q-ms", option_ids=("a", "b", "c", "d"), correct=None, points=None):
    return Question(
        id=qid,
        text="Select all immutable types",
        type=QuestionType.MULTIPLE_SELECT,
        options=[ChoiceOption(id=o, text=f"Option {o}") for o in option_ids],
        correct_answers=list(correct) if correct is not None else None,
        points=points,
    )


def essay_question(qid="q-essay", qtype=QuestionType.ESSAY):
    return Question(id=qid, text="Explain recursion", type=qtype)


def make_form(questions, kind=FormKind.QUIZ, form_id="quiz-1", published=True, passing_score=None):
    return Form(
        id=form_id,
        title="Week 3 Quiz" if kind == FormKind.QUIZ else "Course Preferences",
        description=None,
        course_id="SWE101",
        kind=kind,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=1),
        is_published=published,
        questions=questions,
        passing_score=passing_score,
    )


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def quiz_form():
    """Quiz with one question of every type."""
    return make_form(
        [
            choice_question(correct="o2"),
            select_question(correct=["a", "c"]),
            rating_question(),
            essay_question(),
        ],
        passing_score=60,
    )


@pytest.fixture
def quiz_submissions():
    return [
        make_submission("s1", {"q-mc": "o2", "q-ms": ["a", "c"], "q-rating": "5", "q-essay": "A function calling itself"}, score=95, minutes=12),
        make_submission("s2", {"q-mc": "o1", "q-ms": ["c", "a"], "q-rating": "4", "q-essay": ""}, score=82, minutes=20),
        make_submission("s3", {"q-mc": "o2", "q-ms": ["a"], "q-rating": "nope"}, score=58),
        make_submission("s4", {"q-mc": "o3", "q-ms": ["a", "b", "c"], "q-essay": "Base case plus step"}, score=71, minutes=8),
    ]


@pytest.fixture
def preference_form():
    return make_form(
        [rating_question(), essay_question(qid="q-text", qtype=QuestionType.TEXT)],
        kind=FormKind.PREFERENCE,
        form_id="pref-1",
    )


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================

from portal_analytics.main import app
from portal_analytics.routers.reports import get_now


@pytest.fixture
def client():
    """Create test client using httpx AsyncClient with sync wrapper."""
    app.dependency_overrides[get_now] = lambda: NOW

    loop = asyncio.new_event_loop()
    transport = httpx.ASGITransport(app=app)
    async_client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    class SyncClientWrapper:
        def __init__(self, async_client, loop):
            self.async_client = async_client
            self.loop = loop

        def get(self, *args, **kwargs):
            return self.loop.run_until_complete(self.async_client.get(*args, **kwargs))

        def post(self, *args, **kwargs):
            return self.loop.run_until_complete(self.async_client.post(*args, **kwargs))

    yield SyncClientWrapper(async_client, loop)

    # Cleanup
    loop.run_until_complete(async_client.aclose())
    loop.close()
    app.dependency_overrides.clear()
