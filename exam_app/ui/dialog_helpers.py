"""Helper functions for common dialog patterns in the student client."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget


def confirm_incomplete_submission(parent: QWidget, unanswered_count: int) -> bool:
    """Ask whether to submit while some questions are still unanswered.

    Returns:
        True if the student confirmed, False otherwise
    """
    reply = QMessageBox.question(
        parent,
        "Submit Exam",
        f"You have {unanswered_count} unanswered questions. Are you sure you want to submit?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def confirm_leave_exam(parent: QWidget) -> bool:
    """Ask whether to leave a running exam without submitting it."""
    reply = QMessageBox.question(
        parent,
        "Leave Exam",
        "Leaving now discards your answers and does not submit the exam. Continue?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.information(parent, title, message)


def show_warning(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.warning(parent, title, message)


def confirm_discard_pending_submission(parent: QWidget) -> bool:
    """Ask whether to leave although the forced submission could not be delivered."""
    reply = QMessageBox.question(
        parent,
        "Submission Not Delivered",
        "Your exam was submitted but could not be saved, and retrying failed. "
        "Leaving now discards the result. Leave anyway?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes
