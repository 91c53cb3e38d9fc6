"""Qt main window switching between the exam list and a running exam."""

from __future__ import annotations

import logging

from PySide6.QtCore import QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QMainWindow, QStackedWidget

from exam_app.constants.exam_constants import DEADLINE_SUBMIT_MESSAGE, MAX_TAB_SWITCHES
from exam_app.constants.ui_constants import EXAM_LIST_REFRESH_INTERVAL_MS, WINDOW_TITLE
from exam_app.core.errors import ExamAppError
from exam_app.core.exam_manager import ExamManager
from exam_app.core.services.exam_session import ExamSessionEngine
from exam_app.styling.styles import Styles
from exam_app.ui.components.exam_list_panel import ExamListPanel
from exam_app.ui.components.exam_session_panel import ExamSessionPanel
from exam_app.ui.dialog_helpers import (
    confirm_incomplete_submission,
    show_info,
    show_warning,
)
from exam_app.ui.qt_adapters import QtClock, QtPresentationSurface

logger = logging.getLogger(__name__)


class StudentMainWindow(QMainWindow):
    """Main Qt window for a signed-in student."""

    def __init__(
        self,
        exam_manager: ExamManager,
        *,
        student_id: str,
        student_name: str,
        class_name: str | None = None,
        semester: int | None = None,
        max_tab_switches: int = MAX_TAB_SWITCHES,
    ) -> None:
        super().__init__()
        self.setWindowTitle(f"{WINDOW_TITLE} - {student_name}")
        self.exam_manager = exam_manager
        self.student_id = student_id
        self.student_name = student_name
        self.max_tab_switches = max_tab_switches

        self._engine: ExamSessionEngine | None = None
        self._session_panel: ExamSessionPanel | None = None
        self._clock = QtClock(self)
        self._surface = QtPresentationSurface(self)

        self.mode_stack = QStackedWidget(self)
        self.setCentralWidget(self.mode_stack)
        self.exam_list_panel = ExamListPanel(
            exam_manager,
            student_id=student_id,
            class_name=class_name,
            semester=semester,
            on_start_exam=self._handle_start_exam,
            parent=self,
        )
        self.mode_stack.addWidget(self.exam_list_panel)
        self.setStyleSheet(Styles.get_main_window_style())
        self._configure_refresh_timer()

    def _configure_refresh_timer(self) -> None:
        self.refresh_timer = QTimer(self)
        self.refresh_timer.setInterval(EXAM_LIST_REFRESH_INTERVAL_MS)
        self.refresh_timer.timeout.connect(self._refresh_state)
        self.refresh_timer.start()

    def _refresh_state(self) -> None:
        if self._engine is None:
            self.exam_list_panel.refresh()

    def _handle_start_exam(self, exam_id: str) -> None:
        if self._engine is not None:
            return
        try:
            engine = self.exam_manager.open_session(
                exam_id,
                student_id=self.student_id,
                student_name=self.student_name,
                clock=self._clock,
                surface=self._surface,
                confirm=lambda unanswered: confirm_incomplete_submission(self, unanswered),
                max_tab_switches=self.max_tab_switches,
            )
        except ExamAppError as exc:
            logger.info("Could not start exam %s: %s", exam_id, exc)
            show_warning(self, "Cannot start exam", str(exc))
            self.exam_list_panel.refresh()
            return

        if engine.is_submitted():
            # The window closed between listing and starting; the engine already auto-submitted.
            show_info(self, "Exam submitted", DEADLINE_SUBMIT_MESSAGE)
            self.exam_list_panel.refresh()
            return

        self._engine = engine
        self._session_panel = ExamSessionPanel(engine, on_finished=self._handle_session_finished, parent=self)
        self.mode_stack.addWidget(self._session_panel)
        self.mode_stack.setCurrentWidget(self._session_panel)

    def _handle_session_finished(self) -> None:
        if self._engine is not None:
            self._engine.close()
        self._engine = None
        if self._session_panel is not None:
            self.mode_stack.removeWidget(self._session_panel)
            self._session_panel.deleteLater()
            self._session_panel = None
        self.mode_stack.setCurrentWidget(self.exam_list_panel)
        self.exam_list_panel.refresh()

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        if self._session_panel is not None and not self._session_panel.confirm_leave():
            event.ignore()
            return
        super().closeEvent(event)
