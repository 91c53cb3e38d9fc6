from __future__ import annotations

from datetime import datetime, timedelta, timezone
import random

import pytest

from exam_app.core.clock import ManualClock
from exam_app.core.errors import SubmissionDeliveryError
from exam_app.core.models import ExamDefinition, Question

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class RecordingRepository:
    """Submission target that records results and can be told to fail."""

    def __init__(self) -> None:
        self.results = []
        self.failures_left = 0

    def submit(self, result) -> None:
        if self.failures_left > 0:
            self.failures_left -= 1
            raise SubmissionDeliveryError("storage unavailable")
        self.results.append(result)


class FakeSurface:
    """Surface that records fullscreen requests and lets tests fire visibility changes."""

    def __init__(self, grant: bool = True) -> None:
        self.grant = grant
        self.requests = 0
        self.releases = 0
        self.watchers = []

    def request_exclusive(self) -> bool:
        self.requests += 1
        return self.grant

    def release(self) -> None:
        self.releases += 1

    def watch_visibility(self, callback):
        self.watchers.append(callback)
        surface = self

        class _Subscription:
            def cancel(self_inner) -> None:
                if callback in surface.watchers:
                    surface.watchers.remove(callback)

        return _Subscription()

    def hide(self) -> None:
        for callback in list(self.watchers):
            callback(True)
        for callback in list(self.watchers):
            callback(False)


def make_question(index: int, correct: int = 0) -> Question:
    return Question(
        id=f"q{index}",
        text=f"Question {index}?",
        options=("A", "B", "C", "D"),
        correct_answer=correct,
    )


def make_exam(question_count: int = 5, *, pass_percentage: float = 50, minutes: int = 60) -> ExamDefinition:
    return ExamDefinition(
        id="exam-1",
        title="Data Structures Mid-term",
        questions=tuple(make_question(i) for i in range(question_count)),
        start_time=START,
        end_time=START + timedelta(minutes=minutes),
        duration_minutes=minutes,
        pass_percentage=pass_percentage,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(current=START + timedelta(minutes=1))


@pytest.fixture
def repository() -> RecordingRepository:
    return RecordingRepository()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)
