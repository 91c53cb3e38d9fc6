"""Component rendering a running exam session."""

from __future__ import annotations

import math
from typing import Callable

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.exam_constants import OPTION_LETTERS
from exam_app.constants.ui_constants import (
    COUNTDOWN_REFRESH_INTERVAL_MS,
    FLAG_QUESTION_BUTTON,
    LEAVE_EXAM_BUTTON,
    NEXT_QUESTION_BUTTON,
    PREV_QUESTION_BUTTON,
    STATUS_COLORS,
    SUBMIT_EXAM_BUTTON,
    UNFLAG_QUESTION_BUTTON,
)
from exam_app.core.errors import SessionClosedError
from exam_app.core.models import QuestionStatus
from exam_app.core.services.exam_session import ExamSessionEngine, SessionEvent
from exam_app.styling.styles import Styles
from exam_app.ui.dialog_helpers import (
    confirm_discard_pending_submission,
    confirm_leave_exam,
    show_error,
    show_info,
    show_warning,
)
from exam_app.ui.question_renderer import render_question

_NAVIGATOR_COLUMNS = 5


def _format_remaining(seconds: float) -> str:
    total = max(0, math.ceil(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ExamSessionPanel(QWidget):
    """UI component for answering one exam; all state lives in the engine."""

    def __init__(
        self,
        engine: ExamSessionEngine,
        on_finished: Callable[[], None],
        font_size: int = 14,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.engine = engine
        self.on_finished = on_finished
        self._font_size = font_size
        self._finished = False

        self._build_ui()
        self._configure_countdown_timer()
        self._unsubscribe = engine.subscribe(self._handle_session_event)
        self._refresh()

    def _build_ui(self) -> None:
        root = QHBoxLayout()
        self.setLayout(root)

        # Question column
        question_column = QVBoxLayout()
        self.question_view = QWebEngineView(self)
        question_column.addWidget(self.question_view, stretch=1)

        self.option_buttons: list[QPushButton] = []
        for idx, letter in enumerate(OPTION_LETTERS):
            button = QPushButton(letter, self)
            button.setCheckable(True)
            button.setStyleSheet("text-align: left; padding: 10px;")
            button.clicked.connect(lambda _checked=False, option=idx: self._handle_answer(option))
            question_column.addWidget(button)
            self.option_buttons.append(button)

        nav_row = QHBoxLayout()
        self.prev_button = QPushButton(PREV_QUESTION_BUTTON, self)
        self.prev_button.clicked.connect(self.engine.previous)
        nav_row.addWidget(self.prev_button)

        self.flag_button = QPushButton(FLAG_QUESTION_BUTTON, self)
        self.flag_button.clicked.connect(self._handle_flag)
        nav_row.addWidget(self.flag_button)

        nav_row.addStretch()

        self.next_button = QPushButton(NEXT_QUESTION_BUTTON, self)
        self.next_button.clicked.connect(self.engine.next)
        nav_row.addWidget(self.next_button)
        question_column.addLayout(nav_row)
        root.addLayout(question_column, stretch=3)

        # Side column
        side = QGroupBox(self.engine.get_exam().title, self)
        side.setMinimumWidth(260)
        side_layout = QVBoxLayout()
        side.setLayout(side_layout)

        self.countdown_label = QLabel("", side)
        self.countdown_label.setAlignment(Qt.AlignCenter)
        self.countdown_label.setStyleSheet(Styles.get_large_label_style())
        side_layout.addWidget(self.countdown_label)

        navigator = QGridLayout()
        self.navigator_buttons: list[QPushButton] = []
        for idx, _question in enumerate(self.engine.get_presentation_order()):
            button = QPushButton(str(idx + 1), side)
            button.clicked.connect(lambda _checked=False, index=idx: self.engine.go_to(index))
            navigator.addWidget(button, idx // _NAVIGATOR_COLUMNS, idx % _NAVIGATOR_COLUMNS)
            self.navigator_buttons.append(button)
        side_layout.addLayout(navigator)

        legend = QHBoxLayout()
        for status in QuestionStatus:
            swatch = QLabel(status.value.capitalize(), side)
            swatch.setStyleSheet(
                f"background-color: {STATUS_COLORS[status.value]}; padding: 2px 6px; border-radius: 4px;"
            )
            legend.addWidget(swatch)
        side_layout.addLayout(legend)

        self.progress_label = QLabel("", side)
        self.progress_label.setStyleSheet(Styles.get_muted_label_style())
        side_layout.addWidget(self.progress_label)

        self.tab_switch_label = QLabel("", side)
        self.tab_switch_label.setStyleSheet(Styles.get_alert_label_style())
        side_layout.addWidget(self.tab_switch_label)

        side_layout.addStretch()

        self.submit_button = QPushButton(SUBMIT_EXAM_BUTTON, side)
        self.submit_button.setStyleSheet(Styles.get_primary_button_style())
        self.submit_button.clicked.connect(self._handle_submit)
        side_layout.addWidget(self.submit_button)

        self.leave_button = QPushButton(LEAVE_EXAM_BUTTON, side)
        self.leave_button.clicked.connect(self._handle_leave)
        side_layout.addWidget(self.leave_button)

        root.addWidget(side, stretch=1)

    def _configure_countdown_timer(self) -> None:
        self.countdown_timer = QTimer(self)
        self.countdown_timer.setInterval(COUNTDOWN_REFRESH_INTERVAL_MS)
        self.countdown_timer.timeout.connect(self._tick_countdown)
        self.countdown_timer.start()
        self._tick_countdown()

    def _tick_countdown(self) -> None:
        remaining = self.engine.get_remaining_seconds()
        self.countdown_label.setText(f"Time left: {_format_remaining(remaining)}")

    # --- Engine events ---

    def _handle_session_event(self, event: SessionEvent, message: str | None) -> None:
        # Dialogs run nested event loops, so they are deferred until the engine has returned.
        if event is SessionEvent.STATE_CHANGED:
            self._refresh()
        elif event is SessionEvent.TAB_SWITCH_WARNING:
            self._refresh()
            self._defer(lambda: show_warning(self, "Tab switch detected", message or ""))
        elif event is SessionEvent.INTEGRITY_LOCKED:
            self._refresh()
            self._defer(lambda: show_warning(self, "Exam locked", message or ""))
        elif event is SessionEvent.SUBMITTED:
            self._defer(lambda: self._finish("Exam submitted", message or ""))
        elif event is SessionEvent.SUBMISSION_FAILED:
            self._refresh()
            self._defer(lambda: show_error(self, "Submission failed", message or ""))
        elif event is SessionEvent.CLOSED:
            self._defer(lambda: self._finish(None, None))

    def _defer(self, action: Callable[[], None]) -> None:
        def run() -> None:
            if not self._finished:
                action()

        QTimer.singleShot(0, run)

    def _refresh(self) -> None:
        if not self.engine.is_started():
            return
        order = self.engine.get_presentation_order()
        index = self.engine.get_current_index()
        question = order[index]
        self.question_view.setHtml(render_question(index + 1, len(order), question.text, self._font_size))

        selected = self.engine.get_answer(question.id)
        locked = self.engine.is_submitted() or self.engine.is_closed() or self.engine.is_deadline_passed()
        for idx, button in enumerate(self.option_buttons):
            button.setText(f"{OPTION_LETTERS[idx]}. {question.options[idx]}")
            button.setChecked(selected == idx)
            button.setEnabled(not locked)

        status = self.engine.get_status(question.id)
        self.flag_button.setText(UNFLAG_QUESTION_BUTTON if status is QuestionStatus.FLAGGED else FLAG_QUESTION_BUTTON)
        self.flag_button.setEnabled(not locked)
        self.prev_button.setEnabled(index > 0)
        self.next_button.setEnabled(index < len(order) - 1)

        for idx, button in enumerate(self.navigator_buttons):
            button_status = self.engine.get_status(order[idx].id)
            button.setStyleSheet(Styles.get_navigator_button_style(button_status.value, idx == index))

        counts = self.engine.get_status_counts()
        self.progress_label.setText(
            f"Answered: {counts[QuestionStatus.ANSWERED]} | Flagged: {counts[QuestionStatus.FLAGGED]} | "
            f"Unanswered: {self.engine.get_unanswered_count()}"
        )
        self.tab_switch_label.setText(
            f"Tab switches: {self.engine.get_tab_switch_count()}/{self.engine.get_max_tab_switches()}"
        )
        if self.engine.get_pending_result() is not None:
            self.submit_button.setText("Retry Submission")
        self.submit_button.setEnabled(not self.engine.is_closed())

    # --- Student actions ---

    def _handle_answer(self, option_index: int) -> None:
        try:
            self.engine.answer_current(option_index)
        except SessionClosedError as exc:
            show_warning(self, "Exam closed", str(exc))
            self._refresh()

    def _handle_flag(self) -> None:
        try:
            self.engine.toggle_flag_current()
        except SessionClosedError as exc:
            show_warning(self, "Exam closed", str(exc))

    def _handle_submit(self) -> None:
        if self.engine.get_pending_result() is not None:
            self.engine.retry_delivery()
            return
        self.engine.submit(auto_submit=False)

    def confirm_leave(self) -> bool:
        """Resolve the session so it can be dropped; False keeps the student in the exam.

        An undelivered forced submission is retried first and only discarded
        after the student confirms.
        """
        if self.engine.get_pending_result() is not None:
            if self.engine.retry_delivery() is not None:
                return True
            if not confirm_discard_pending_submission(self):
                return False
            self.engine.close(discard_pending=True)
            return True
        if self.engine.is_submitted() or self.engine.is_closed():
            return True
        if not confirm_leave_exam(self):
            return False
        self.engine.close()
        return True

    def _handle_leave(self) -> None:
        if self.confirm_leave():
            self._finish(None, None)

    def _finish(self, title: str | None, message: str | None) -> None:
        if self._finished:
            return
        self._finished = True
        self.countdown_timer.stop()
        self._unsubscribe()
        if title and message:
            show_info(self, title, message)
        self.on_finished()
