"""Component listing the student's exams as cards."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from exam_app.constants.ui_constants import (
    ABOUT_BUTTON,
    EXAM_LIST_EMPTY_STATE,
    EXAM_LIST_TITLE,
    MONITORING_NOTICE,
    START_EXAM_BUTTON,
    STATUS_LABELS,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import ExamCard, ExamStatus
from exam_app.styling.styles import Styles
from exam_app.ui.dialog_helpers import show_info


def _format_window(card: ExamCard) -> str:
    start = card.exam.start_time.astimezone()
    end = card.exam.end_time.astimezone()
    return f"{start:%d %b %Y %H:%M} - {end:%d %b %Y %H:%M}"


class ExamListPanel(QWidget):
    """Shows active, upcoming and completed exams with a start button for active ones."""

    def __init__(
        self,
        exam_manager: ExamManager,
        *,
        student_id: str,
        class_name: str | None,
        semester: int | None,
        on_start_exam: Callable[[str], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.exam_manager = exam_manager
        self.student_id = student_id
        self.class_name = class_name
        self.semester = semester
        self.on_start_exam = on_start_exam
        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        header = QLabel(EXAM_LIST_TITLE, self)
        header.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(header, stretch=1)
        self.about_button = QPushButton(ABOUT_BUTTON, self)
        self.about_button.clicked.connect(self._handle_about)
        header_row.addWidget(self.about_button)
        layout.addLayout(header_row)

        self.scroll_area = QScrollArea(self)
        self.scroll_area.setWidgetResizable(True)
        self.cards_container = QWidget(self.scroll_area)
        self.cards_layout = QVBoxLayout()
        self.cards_container.setLayout(self.cards_layout)
        self.scroll_area.setWidget(self.cards_container)
        layout.addWidget(self.scroll_area, stretch=1)

    def refresh(self) -> None:
        while self.cards_layout.count():
            item = self.cards_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()

        cards = self.exam_manager.list_exam_cards(
            class_name=self.class_name,
            semester=self.semester,
            student_id=self.student_id,
        )
        if not cards:
            empty = QLabel(EXAM_LIST_EMPTY_STATE, self.cards_container)
            empty.setAlignment(Qt.AlignCenter)
            empty.setStyleSheet(Styles.get_muted_label_style())
            self.cards_layout.addWidget(empty)
        for card in cards:
            self.cards_layout.addWidget(self._build_card(card))
        self.cards_layout.addStretch()

    def _build_card(self, card: ExamCard) -> QGroupBox:
        exam = card.exam
        box = QGroupBox(exam.title, self.cards_container)
        box_layout = QVBoxLayout()
        box.setLayout(box_layout)

        top_row = QHBoxLayout()
        description = QLabel(exam.description or "", box)
        description.setWordWrap(True)
        description.setStyleSheet(Styles.get_muted_label_style())
        top_row.addWidget(description, stretch=1)
        top_row.addWidget(QLabel(STATUS_LABELS[card.status.value], box))
        box_layout.addLayout(top_row)

        details = QLabel(
            f"Window: {_format_window(card)}\n"
            f"Duration: {exam.duration_minutes} min | Questions: {len(exam.questions)} | "
            f"Total marks: {exam.total_marks} | Pass mark: {exam.pass_percentage:g}%",
            box,
        )
        box_layout.addWidget(details)

        if card.status is ExamStatus.ACTIVE:
            notice = QLabel(MONITORING_NOTICE, box)
            notice.setStyleSheet(Styles.get_alert_label_style())
            box_layout.addWidget(notice)
            start_button = QPushButton(START_EXAM_BUTTON, box)
            start_button.setStyleSheet(Styles.get_primary_button_style())
            start_button.clicked.connect(lambda _checked=False, exam_id=exam.id: self.on_start_exam(exam_id))
            box_layout.addWidget(start_button)
        return box

    def _handle_about(self) -> None:
        show_info(self, f"About {APP_NAME}", f"{APP_NAME} v{APP_VERSION}\n\n{APP_ABOUT_TEXT}")
