"""Service managing one student's timed, monitored attempt at one exam."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
import logging
import random
from typing import Callable, Protocol

from exam_app.constants.exam_constants import (
    DEADLINE_SUBMIT_MESSAGE,
    INTEGRITY_SUBMIT_MESSAGE,
    MANUAL_SUBMIT_MESSAGE,
    MAX_TAB_SWITCHES,
    SUBMIT_FAILED_MESSAGE,
    TAB_SWITCH_WARNING_MESSAGE,
)
from exam_app.core.clock import Clock, TimerHandle
from exam_app.core.errors import (
    SessionClosedError,
    SessionPreconditionError,
    SessionStateError,
    SubmissionDeliveryError,
)
from exam_app.core.models import ExamDefinition, Question, QuestionStatus, SubmissionResult
from exam_app.core.services.availability import as_utc
from exam_app.core.services.scoring import score_answers
from exam_app.core.surface import PresentationSurface, Subscription

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    """Notifications delivered to session listeners."""

    STATE_CHANGED = "state_changed"
    TAB_SWITCH_WARNING = "tab_switch_warning"
    SUBMITTED = "submitted"
    SUBMISSION_FAILED = "submission_failed"
    INTEGRITY_LOCKED = "integrity_locked"
    CLOSED = "closed"


class SubmitReason(str, Enum):
    MANUAL = "manual"
    DEADLINE = "deadline"
    INTEGRITY = "integrity"


_SUBMIT_MESSAGES = {
    SubmitReason.MANUAL: MANUAL_SUBMIT_MESSAGE,
    SubmitReason.DEADLINE: DEADLINE_SUBMIT_MESSAGE,
    SubmitReason.INTEGRITY: INTEGRITY_SUBMIT_MESSAGE,
}

SessionListener = Callable[[SessionEvent, "str | None"], None]
ConfirmCallback = Callable[[int], bool]


class SubmissionTarget(Protocol):
    def submit(self, result: SubmissionResult) -> None: ...


class ExamSessionEngine:
    """Owns the state of a single exam attempt from start to submission.

    The engine is driven entirely by discrete events: learner input, the
    deadline callback armed on the clock, and visibility changes reported by
    the presentation surface. Whichever of them triggers a submission first
    wins; the ``submitted`` flag turns every later trigger into a no-op.
    """

    def __init__(
        self,
        *,
        repository: SubmissionTarget,
        clock: Clock,
        surface: PresentationSurface,
        student_id: str,
        student_name: str,
        max_tab_switches: int = MAX_TAB_SWITCHES,
        confirm: ConfirmCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._surface = surface
        self._student_id = student_id
        self._student_name = student_name
        self._max_tab_switches = max_tab_switches
        self._confirm = confirm
        # A fresh Random() seeds itself from OS entropy, so every session gets its own order.
        self._shuffle_rng = rng or random.Random()

        self._exam: ExamDefinition | None = None
        self._order: tuple[Question, ...] = ()
        self._questions_by_id: dict[str, Question] = {}
        self._answers: dict[str, int | None] = {}
        self._status: dict[str, QuestionStatus] = {}
        self._cursor: int = 0
        self._tab_switch_count: int = 0
        self._warning_sent: bool = False
        self._deadline_passed: bool = False

        self._started: bool = False
        self._submitted: bool = False
        self._submitting: bool = False
        self._closed: bool = False
        self._submit_reason: SubmitReason | None = None
        self._result: SubmissionResult | None = None
        self._pending_result: SubmissionResult | None = None

        self._deadline_handle: TimerHandle | None = None
        self._visibility_subscription: Subscription | None = None
        self._holds_surface: bool = False
        self._listeners: list[SessionListener] = []

    # --- Lifecycle ---

    def start(self, exam: ExamDefinition, now: datetime | None = None) -> None:
        """Shuffle the questions, occupy the surface and arm the deadline.

        The caller is responsible for checking that ``now`` falls inside the
        exam window. A deadline that has already passed submits immediately.
        """
        if self._started:
            raise SessionStateError("Session has already been started.")
        if not exam.questions:
            raise SessionPreconditionError("Cannot start an exam without questions.")

        now = as_utc(now if now is not None else self._clock.now())
        self._started = True
        self._exam = exam

        order = list(exam.questions)
        self._shuffle_rng.shuffle(order)
        self._order = tuple(order)
        self._questions_by_id = {q.id: q for q in self._order}
        self._answers = {q.id: None for q in self._order}
        self._status = {q.id: QuestionStatus.UNANSWERED for q in self._order}
        self._cursor = 0
        logger.info(
            "Student %s started exam %s with %d questions",
            self._student_id,
            exam.id,
            len(self._order),
        )

        self._acquire_surface()
        self._visibility_subscription = self._surface.watch_visibility(self._on_visibility_changed)

        remaining = (as_utc(exam.end_time) - now).total_seconds()
        if remaining <= 0:
            self._deadline_passed = True
            logger.info("Exam %s deadline already passed; submitting immediately", exam.id)
            self._submit(auto_submit=True, reason=SubmitReason.DEADLINE)
            return
        self._deadline_handle = self._clock.after(remaining, self._on_deadline)
        self._notify(SessionEvent.STATE_CHANGED)

    def close(self, discard_pending: bool = False) -> None:
        """Leave the session without submitting. Safe to call more than once.

        A forced submission that is still waiting for delivery is only thrown
        away when ``discard_pending`` is set.
        """
        if self._closed:
            return
        if self._pending_result is not None:
            if not discard_pending:
                raise SessionStateError("A submission is still waiting to be delivered.")
            logger.warning(
                "Discarding undelivered submission of exam %s for %s", self._pending_result.exam_id, self._student_id
            )
            self._pending_result = None
        self._closed = True
        self._teardown()
        if self._exam is not None:
            logger.info("Student %s left exam %s", self._student_id, self._exam.id)
        self._notify(SessionEvent.CLOSED)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Navigation ---

    def go_to(self, index: int) -> Question:
        self._require_started()
        self._cursor = max(0, min(index, len(self._order) - 1))
        self._notify(SessionEvent.STATE_CHANGED)
        return self._order[self._cursor]

    def next(self) -> Question:
        return self.go_to(self._cursor + 1)

    def previous(self) -> Question:
        return self.go_to(self._cursor - 1)

    # --- Answers and flags ---

    def answer(self, question_id: str, option_index: int) -> None:
        self._require_mutable()
        self._require_question(question_id)
        if not 0 <= option_index < len(self._questions_by_id[question_id].options):
            raise ValueError(f"Option index {option_index} out of range")
        self._answers[question_id] = option_index
        self._status[question_id] = QuestionStatus.ANSWERED
        self._notify(SessionEvent.STATE_CHANGED)

    def answer_current(self, option_index: int) -> None:
        self.answer(self.get_current_question().id, option_index)

    def toggle_flag(self, question_id: str) -> QuestionStatus:
        """Flip a question between flagged and unanswered.

        Unflagging always lands on ``UNANSWERED``, even when the question
        holds an answer; the stored answer itself is kept.
        """
        self._require_mutable()
        self._require_question(question_id)
        if self._status[question_id] is QuestionStatus.FLAGGED:
            self._status[question_id] = QuestionStatus.UNANSWERED
        else:
            self._status[question_id] = QuestionStatus.FLAGGED
        self._notify(SessionEvent.STATE_CHANGED)
        return self._status[question_id]

    def toggle_flag_current(self) -> QuestionStatus:
        return self.toggle_flag(self.get_current_question().id)

    # --- Submission ---

    def submit(self, auto_submit: bool = False) -> SubmissionResult | None:
        """Score and deliver the attempt.

        Returns the delivered result, or ``None`` when nothing was delivered:
        the session was already submitted, the learner declined the
        confirmation, or delivery failed.

        Once the deadline has passed every submit counts as a deadline submit.
        """
        if self._deadline_passed:
            auto_submit = True
        reason = SubmitReason.DEADLINE if auto_submit else SubmitReason.MANUAL
        return self._submit(auto_submit=auto_submit, reason=reason)

    def retry_delivery(self) -> SubmissionResult | None:
        """Re-send a result kept after a failed integrity-forced submission."""
        if self._pending_result is None:
            raise SessionStateError("There is no pending submission to deliver.")
        result = self._pending_result
        try:
            self._repository.submit(result)
        except SubmissionDeliveryError as exc:
            logger.warning("Retrying delivery for exam %s failed: %s", result.exam_id, exc)
            self._notify(SessionEvent.SUBMISSION_FAILED, SUBMIT_FAILED_MESSAGE)
            return None
        self._pending_result = None
        self._result = result
        self._notify(SessionEvent.SUBMITTED, _SUBMIT_MESSAGES[SubmitReason.INTEGRITY])
        return result

    def _submit(self, auto_submit: bool, reason: SubmitReason) -> SubmissionResult | None:
        self._require_started()
        if self._submitted or self._submitting:
            logger.info("Ignoring %s submit: exam %s already submitted", reason.value, self._exam.id)
            return None
        if self._closed:
            raise SessionClosedError("Session was closed and can no longer be submitted.")

        unanswered = self.get_unanswered_count()
        if not auto_submit and unanswered > 0 and self._confirm is not None:
            if not self._confirm(unanswered):
                logger.info("Student %s cancelled submission", self._student_id)
                return None
            # A deadline or integrity submit may have completed while the prompt was open.
            if self._submitted or self._closed:
                return None

        self._submitting = True
        try:
            result = score_answers(
                self._exam,
                self._answers,
                student_id=self._student_id,
                student_name=self._student_name,
                submitted_at=self._clock.now(),
                order=self._order,
                auto_submitted=auto_submit,
            )
            try:
                self._repository.submit(result)
            except SubmissionDeliveryError as exc:
                logger.warning("Delivering exam %s failed (%s): %s", self._exam.id, reason.value, exc)
                if reason is SubmitReason.INTEGRITY:
                    # Monitoring must stop even though the result still has to be delivered.
                    self._pending_result = result
                    self._mark_submitted(reason)
                    self._notify(SessionEvent.INTEGRITY_LOCKED, INTEGRITY_SUBMIT_MESSAGE)
                self._notify(SessionEvent.SUBMISSION_FAILED, SUBMIT_FAILED_MESSAGE)
                return None
        finally:
            self._submitting = False

        self._result = result
        self._mark_submitted(reason)
        logger.info(
            "Exam %s submitted (%s) by %s: %d/%d correct",
            self._exam.id,
            reason.value,
            self._student_id,
            result.correct_answers,
            result.total_questions,
        )
        self._notify(SessionEvent.SUBMITTED, _SUBMIT_MESSAGES[reason])
        return result

    def _mark_submitted(self, reason: SubmitReason) -> None:
        self._submitted = True
        self._submit_reason = reason
        self._teardown()

    # --- Event handlers ---

    def _on_deadline(self) -> None:
        self._deadline_handle = None
        self._deadline_passed = True
        if self._submitted or self._closed:
            return
        logger.info("Exam %s time is up for %s", self._exam.id, self._student_id)
        self._submit(auto_submit=True, reason=SubmitReason.DEADLINE)

    def _on_visibility_changed(self, hidden: bool) -> None:
        if not hidden or self._submitted or self._closed or self._deadline_passed:
            return
        self._tab_switch_count += 1
        logger.info(
            "Exam %s lost visibility for %s (%d/%d)",
            self._exam.id,
            self._student_id,
            self._tab_switch_count,
            self._max_tab_switches,
        )
        if self._tab_switch_count == self._max_tab_switches and not self._warning_sent:
            self._warning_sent = True
            self._notify(SessionEvent.TAB_SWITCH_WARNING, TAB_SWITCH_WARNING_MESSAGE)
        elif self._tab_switch_count > self._max_tab_switches:
            logger.warning("Forcing submission of exam %s for %s", self._exam.id, self._student_id)
            self._submit(auto_submit=True, reason=SubmitReason.INTEGRITY)
        else:
            self._notify(SessionEvent.STATE_CHANGED)

    # --- Resources ---

    def _acquire_surface(self) -> None:
        try:
            granted = self._surface.request_exclusive()
        except Exception:  # fullscreen is best effort
            logger.warning("Fullscreen request raised; continuing without it", exc_info=True)
            granted = False
        self._holds_surface = bool(granted)
        if not self._holds_surface:
            logger.info("Fullscreen denied for exam %s; continuing windowed", self._exam.id)

    def _teardown(self) -> None:
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None
        if self._visibility_subscription is not None:
            self._visibility_subscription.cancel()
            self._visibility_subscription = None
        if self._holds_surface:
            self._holds_surface = False
            try:
                self._surface.release()
            except Exception:  # releasing fullscreen is best effort
                logger.warning("Releasing fullscreen failed", exc_info=True)

    def _notify(self, event: SessionEvent, message: str | None = None) -> None:
        for listener in list(self._listeners):
            listener(event, message)

    # --- Guards ---

    def _require_started(self) -> None:
        if not self._started:
            raise SessionStateError("Session has not been started.")

    def _require_mutable(self) -> None:
        self._require_started()
        if self._submitted:
            raise SessionClosedError("Exam has already been submitted.")
        if self._closed:
            raise SessionClosedError("Session was closed.")
        if self._deadline_passed:
            raise SessionClosedError("Time is up for this exam.")

    def _require_question(self, question_id: str) -> None:
        if question_id not in self._questions_by_id:
            raise ValueError(f"Question {question_id} is not part of this exam")

    # --- Queries ---

    def get_exam(self) -> ExamDefinition | None:
        return self._exam

    def get_presentation_order(self) -> tuple[Question, ...]:
        return self._order

    def get_current_index(self) -> int:
        return self._cursor

    def get_current_question(self) -> Question:
        self._require_started()
        return self._order[self._cursor]

    def get_answer(self, question_id: str) -> int | None:
        return self._answers.get(question_id)

    def get_status(self, question_id: str) -> QuestionStatus:
        return self._status[question_id]

    def get_status_counts(self) -> dict[QuestionStatus, int]:
        counts = {status: 0 for status in QuestionStatus}
        for status in self._status.values():
            counts[status] += 1
        return counts

    def get_unanswered_count(self) -> int:
        return sum(1 for answer in self._answers.values() if answer is None)

    def get_tab_switch_count(self) -> int:
        return self._tab_switch_count

    def get_max_tab_switches(self) -> int:
        return self._max_tab_switches

    def get_remaining_seconds(self) -> float:
        if self._exam is None:
            return 0.0
        remaining = (as_utc(self._exam.end_time) - as_utc(self._clock.now())).total_seconds()
        return max(0.0, remaining)

    def get_result(self) -> SubmissionResult | None:
        return self._result

    def get_pending_result(self) -> SubmissionResult | None:
        return self._pending_result

    def get_submit_reason(self) -> SubmitReason | None:
        return self._submit_reason

    def is_started(self) -> bool:
        return self._started

    def is_submitted(self) -> bool:
        return self._submitted

    def is_closed(self) -> bool:
        return self._closed

    def is_deadline_passed(self) -> bool:
        return self._deadline_passed

    def holds_surface(self) -> bool:
        return self._holds_surface
