"""Qt UI components for the student client."""

from .dialog_helpers import (
    confirm_discard_pending_submission,
    confirm_incomplete_submission,
    confirm_leave_exam,
    show_error,
    show_info,
    show_warning,
)
from .qt_adapters import QtClock, QtPresentationSurface
from .question_renderer import render_question
from .student_main_window import StudentMainWindow

__all__ = [
    "QtClock",
    "QtPresentationSurface",
    "StudentMainWindow",
    "confirm_discard_pending_submission",
    "confirm_incomplete_submission",
    "confirm_leave_exam",
    "render_question",
    "show_error",
    "show_info",
    "show_warning",
]
