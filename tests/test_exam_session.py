from __future__ import annotations

from datetime import timedelta
import random

import pytest

from conftest import FakeSurface, RecordingRepository, START, make_exam
from exam_app.constants.exam_constants import (
    DEADLINE_SUBMIT_MESSAGE,
    INTEGRITY_SUBMIT_MESSAGE,
    TAB_SWITCH_WARNING_MESSAGE,
)
from exam_app.core.clock import ManualClock
from exam_app.core.errors import (
    SessionClosedError,
    SessionPreconditionError,
    SessionStateError,
)
from exam_app.core.models import ExamDefinition, QuestionStatus, Verdict
from exam_app.core.services.exam_session import ExamSessionEngine, SessionEvent, SubmitReason
from exam_app.core.surface import NullSurface


def _engine(repository, clock, surface, rng=None, confirm=None, max_tab_switches=2) -> ExamSessionEngine:
    return ExamSessionEngine(
        repository=repository,
        clock=clock,
        surface=surface,
        student_id="s-42",
        student_name="Asha Verma",
        max_tab_switches=max_tab_switches,
        confirm=confirm,
        rng=rng,
    )


@pytest.fixture
def events():
    return []


@pytest.fixture
def engine(repository, clock, surface, rng, events):
    session = _engine(repository, clock, surface, rng=rng)
    session.subscribe(lambda event, message: events.append((event, message)))
    session.start(make_exam(), clock.now())
    return session


def test_presentation_order_is_stable_permutation(engine):
    exam = engine.get_exam()
    order = engine.get_presentation_order()

    assert sorted(q.id for q in order) == sorted(q.id for q in exam.questions)
    engine.next()
    engine.answer(order[0].id, 1)
    assert engine.get_presentation_order() == order


def test_sessions_shuffle_independently(repository, clock, surface):
    exam = make_exam(question_count=12)
    orders = set()
    for seed in range(6):
        session = _engine(repository, clock, surface, rng=random.Random(seed))
        session.start(exam, clock.now())
        orders.add(tuple(q.id for q in session.get_presentation_order()))
        session.close()
    assert len(orders) > 1


def test_start_initialises_state_and_occupies_surface(engine, surface, clock):
    assert surface.requests == 1
    assert engine.holds_surface()
    assert clock.pending_count() == 1
    for question in engine.get_presentation_order():
        assert engine.get_answer(question.id) is None
        assert engine.get_status(question.id) is QuestionStatus.UNANSWERED
    assert engine.get_unanswered_count() == 5


def test_start_twice_is_rejected(engine):
    with pytest.raises(SessionStateError):
        engine.start(engine.get_exam())


def test_zero_question_exam_cannot_start(repository, clock, surface):
    exam = ExamDefinition(
        id="empty",
        title="Empty",
        questions=(),
        start_time=START,
        end_time=START + timedelta(hours=1),
        duration_minutes=60,
        pass_percentage=40,
    )
    with pytest.raises(SessionPreconditionError):
        _engine(repository, clock, surface).start(exam, clock.now())


def test_fullscreen_denial_is_not_fatal(repository, clock):
    surface = FakeSurface(grant=False)
    session = _engine(repository, clock, surface)
    session.start(make_exam(), clock.now())

    assert not session.holds_surface()
    surface.hide()
    assert session.get_tab_switch_count() == 1

    session.close()
    assert surface.releases == 0


def test_navigation_is_clamped(engine):
    order = engine.get_presentation_order()

    assert engine.previous() == order[0]
    assert engine.get_current_index() == 0
    assert engine.go_to(99) == order[-1]
    assert engine.next() == order[-1]
    assert engine.go_to(2) == order[2]
    assert engine.get_current_index() == 2


def test_answer_overwrites_previous_selection(engine):
    question = engine.get_current_question()
    engine.answer_current(1)
    engine.answer_current(3)

    assert engine.get_answer(question.id) == 3
    assert engine.get_status(question.id) is QuestionStatus.ANSWERED


def test_answer_rejects_unknown_question_and_option(engine):
    with pytest.raises(ValueError):
        engine.answer("missing", 0)
    with pytest.raises(ValueError):
        engine.answer(engine.get_current_question().id, 4)


def test_flag_toggle_round_trip_from_unanswered(engine):
    question_id = engine.get_current_question().id

    assert engine.toggle_flag(question_id) is QuestionStatus.FLAGGED
    assert engine.toggle_flag(question_id) is QuestionStatus.UNANSWERED
    assert engine.get_answer(question_id) is None


def test_unflagging_answered_question_demotes_status_but_keeps_answer(engine):
    question_id = engine.get_current_question().id
    engine.answer(question_id, 2)

    engine.toggle_flag(question_id)
    assert engine.get_status(question_id) is QuestionStatus.FLAGGED
    engine.toggle_flag(question_id)

    assert engine.get_status(question_id) is QuestionStatus.UNANSWERED
    assert engine.get_answer(question_id) == 2


def test_scoring_counts_unanswered_against_total(repository, clock, surface, rng):
    session = _engine(repository, clock, surface, rng=rng)
    session.start(make_exam(pass_percentage=50), clock.now())
    ids = [f"q{i}" for i in range(5)]
    for question_id in ids[:3]:
        session.answer(question_id, 0)
    session.answer(ids[3], 2)

    result = session.submit(auto_submit=False)

    assert result.total_questions == 5
    assert result.correct_answers == 3
    assert result.wrong_answers == 2
    assert result.score == 3
    assert result.percentage == pytest.approx(60)
    assert result.verdict is Verdict.PASS
    assert len(result.answers) == 4
    assert {a.question_id for a in result.answers} == set(ids[:4])
    assert repository.results == [result]


def test_scoring_fails_below_pass_percentage(repository, clock, surface):
    session = _engine(repository, clock, surface)
    session.start(make_exam(pass_percentage=70), clock.now())
    for question_id in ("q0", "q1", "q2"):
        session.answer(question_id, 0)
    session.answer("q3", 2)

    result = session.submit()

    assert result.percentage == pytest.approx(60)
    assert result.verdict is Verdict.FAIL


def test_answer_records_follow_presentation_order(engine):
    for question in engine.get_presentation_order():
        engine.answer(question.id, 0)

    result = engine.submit()

    assert [a.question_id for a in result.answers] == [q.id for q in engine.get_presentation_order()]


def test_submit_twice_delivers_once(engine, repository, surface, clock):
    engine.answer_current(0)
    first = engine.submit(auto_submit=True)
    second = engine.submit(auto_submit=True)

    assert first is not None
    assert second is None
    assert repository.results == [first]
    assert engine.is_submitted()
    assert surface.releases == 1
    assert clock.pending_count() == 0
    assert surface.watchers == []


def test_mutations_after_submission_raise(engine):
    engine.submit(auto_submit=True)
    question_id = engine.get_presentation_order()[0].id

    with pytest.raises(SessionClosedError):
        engine.answer(question_id, 1)
    with pytest.raises(SessionClosedError):
        engine.toggle_flag(question_id)


def test_manual_submit_with_unanswered_asks_for_confirmation(repository, clock, surface):
    prompts = []
    session = _engine(repository, clock, surface, confirm=lambda count: prompts.append(count) or False)
    session.start(make_exam(), clock.now())
    session.answer_current(0)

    assert session.submit() is None
    assert prompts == [4]
    assert not session.is_submitted()
    assert repository.results == []
    assert surface.releases == 0


def test_confirmed_submission_goes_through(repository, clock, surface):
    session = _engine(repository, clock, surface, confirm=lambda count: True)
    session.start(make_exam(), clock.now())

    result = session.submit()

    assert result is not None
    assert result.answers == ()
    assert result.verdict is Verdict.FAIL


def test_auto_submit_skips_confirmation(repository, clock, surface):
    prompts = []
    session = _engine(repository, clock, surface, confirm=lambda count: prompts.append(count) or False)
    session.start(make_exam(), clock.now())

    assert session.submit(auto_submit=True) is not None
    assert prompts == []


def test_deadline_auto_submits_once(engine, clock, repository, events):
    engine.answer_current(0)
    clock.advance(59 * 60)

    assert engine.is_submitted()
    assert engine.get_submit_reason() is SubmitReason.DEADLINE
    assert len(repository.results) == 1
    assert repository.results[0].auto_submitted
    assert (SessionEvent.SUBMITTED, DEADLINE_SUBMIT_MESSAGE) in events

    clock.advance(3600)
    assert len(repository.results) == 1


def test_passed_deadline_submits_immediately(repository, surface):
    clock = ManualClock(current=START + timedelta(minutes=60))
    session = _engine(repository, clock, surface)

    session.start(make_exam(), clock.now())

    assert session.is_submitted()
    result = repository.results[0]
    assert result.answers == ()
    assert result.total_questions == 5
    assert result.correct_answers == 0
    assert clock.pending_count() == 0


def test_tab_switch_warning_at_threshold(engine, surface, repository, events):
    surface.hide()
    assert engine.get_tab_switch_count() == 1
    assert not any(event is SessionEvent.TAB_SWITCH_WARNING for event, _ in events)

    surface.hide()

    assert engine.get_tab_switch_count() == 2
    assert events.count((SessionEvent.TAB_SWITCH_WARNING, TAB_SWITCH_WARNING_MESSAGE)) == 1
    assert not engine.is_submitted()
    assert repository.results == []


def test_exceeding_tab_switches_forces_single_submission(engine, surface, repository, events):
    for _ in range(3):
        surface.hide()

    assert engine.is_submitted()
    assert engine.get_submit_reason() is SubmitReason.INTEGRITY
    assert len(repository.results) == 1
    assert (SessionEvent.SUBMITTED, INTEGRITY_SUBMIT_MESSAGE) in events

    surface.hide()
    assert engine.get_tab_switch_count() == 3
    assert len(repository.results) == 1


def test_showing_surface_again_does_not_count(engine, surface):
    for callback in list(surface.watchers):
        callback(False)

    assert engine.get_tab_switch_count() == 0
    assert not engine.is_submitted()


def test_delivery_failure_keeps_session_open_for_retry(repository, clock, surface, events):
    repository.failures_left = 1
    session = _engine(repository, clock, surface)
    session.subscribe(lambda event, message: events.append((event, message)))
    session.start(make_exam(), clock.now())
    session.answer_current(0)

    assert session.submit(auto_submit=True) is None
    assert not session.is_submitted()
    assert any(event is SessionEvent.SUBMISSION_FAILED for event, _ in events)
    assert surface.releases == 0

    session.answer("q1", 0)
    result = session.submit(auto_submit=True)
    assert result is not None
    assert repository.results == [result]


def test_integrity_submission_failure_is_terminal_locally(repository, clock, surface):
    repository.failures_left = 1
    session = _engine(repository, clock, surface)
    session.start(make_exam(), clock.now())

    for _ in range(3):
        surface.hide()

    assert session.is_submitted()
    assert session.get_pending_result() is not None
    assert surface.watchers == []
    assert surface.releases == 1
    assert clock.pending_count() == 0
    with pytest.raises(SessionClosedError):
        session.answer_current(0)

    result = session.retry_delivery()
    assert result is not None
    assert session.get_pending_result() is None
    assert repository.results == [result]


def test_failed_integrity_submission_still_tells_student_why(repository, clock, surface, events):
    repository.failures_left = 1
    session = _engine(repository, clock, surface)
    session.subscribe(lambda event, message: events.append((event, message)))
    session.start(make_exam(), clock.now())

    for _ in range(3):
        surface.hide()

    notices = [(event, message) for event, message in events if event is not SessionEvent.STATE_CHANGED]
    assert (SessionEvent.INTEGRITY_LOCKED, INTEGRITY_SUBMIT_MESSAGE) in notices
    assert any(event is SessionEvent.SUBMISSION_FAILED for event, _ in notices)
    assert not any(event is SessionEvent.SUBMITTED for event, _ in notices)


def test_close_keeps_undelivered_submission_unless_discarded(repository, clock, surface, events):
    repository.failures_left = 2
    session = _engine(repository, clock, surface)
    session.subscribe(lambda event, message: events.append((event, message)))
    session.start(make_exam(), clock.now())
    for _ in range(3):
        surface.hide()
    assert session.retry_delivery() is None

    with pytest.raises(SessionStateError):
        session.close()
    assert not session.is_closed()
    assert session.get_pending_result() is not None

    session.close(discard_pending=True)

    assert session.is_closed()
    assert session.get_pending_result() is None
    assert (SessionEvent.CLOSED, None) in events
    assert repository.results == []


def test_failed_deadline_submission_locks_answers_and_retries_without_prompt(repository, clock, surface):
    prompts = []
    repository.failures_left = 1
    session = _engine(repository, clock, surface, confirm=lambda count: prompts.append(count) or True)
    session.start(make_exam(), clock.now())
    session.answer("q0", 0)

    clock.advance(59 * 60)

    assert not session.is_submitted()
    assert session.is_deadline_passed()
    with pytest.raises(SessionClosedError):
        session.answer("q1", 0)
    with pytest.raises(SessionClosedError):
        session.toggle_flag("q1")
    surface.hide()
    assert session.get_tab_switch_count() == 0

    result = session.submit()

    assert prompts == []
    assert result.auto_submitted
    assert session.get_submit_reason() is SubmitReason.DEADLINE
    assert [a.question_id for a in result.answers] == ["q0"]
    assert repository.results == [result]


def test_retry_without_pending_result_is_rejected(engine):
    with pytest.raises(SessionStateError):
        engine.retry_delivery()


def test_close_leaves_no_timer_or_listener(engine, clock, surface, repository, events):
    engine.close()
    engine.close()

    assert engine.is_closed()
    assert surface.releases == 1
    assert surface.watchers == []
    assert events.count((SessionEvent.CLOSED, None)) == 1

    clock.advance(2 * 3600)
    assert repository.results == []
    assert not engine.is_submitted()
    with pytest.raises(SessionClosedError):
        engine.submit()


def test_unsubscribed_listener_receives_nothing(engine):
    received = []
    unsubscribe = engine.subscribe(lambda event, message: received.append(event))
    engine.next()
    unsubscribe()
    engine.next()

    assert received == [SessionEvent.STATE_CHANGED]


def test_status_counts_and_remaining_time(engine, clock):
    order = engine.get_presentation_order()
    engine.answer(order[0].id, 1)
    engine.toggle_flag(order[1].id)

    counts = engine.get_status_counts()
    assert counts[QuestionStatus.ANSWERED] == 1
    assert counts[QuestionStatus.FLAGGED] == 1
    assert counts[QuestionStatus.UNANSWERED] == 3
    assert engine.get_remaining_seconds() == pytest.approx(59 * 60)

    clock.advance(30 * 60)
    assert engine.get_remaining_seconds() == pytest.approx(29 * 60)


def test_deadline_during_confirmation_wins(repository, surface):
    clock = ManualClock(current=START + timedelta(minutes=1))

    def confirm(count: int) -> bool:
        clock.advance(3600)
        return True

    session = _engine(repository, clock, surface, confirm=confirm)
    session.start(make_exam(), clock.now())

    assert session.submit() is None
    assert session.get_submit_reason() is SubmitReason.DEADLINE
    assert len(repository.results) == 1


def test_failed_delivery_passes_result_to_recording_repository_later():
    repository = RecordingRepository()
    repository.failures_left = 2
    clock = ManualClock(current=START)
    surface = FakeSurface()
    session = _engine(repository, clock, surface)
    session.start(make_exam(), clock.now())

    assert session.submit(auto_submit=True) is None
    assert session.submit(auto_submit=True) is None
    assert session.submit(auto_submit=True) is not None
    assert len(repository.results) == 1


def test_headless_surface_runs_windowed_and_reports_visibility(repository, clock):
    surface = NullSurface()
    session = _engine(repository, clock, surface)
    session.start(make_exam(), clock.now())

    assert not session.holds_surface()
    for _ in range(3):
        surface.emit_visibility(True)
        surface.emit_visibility(False)

    assert session.get_submit_reason() is SubmitReason.INTEGRITY
    assert surface.watchers == []
