"""Application entry point for the ExamDesk student client."""

from __future__ import annotations

import argparse
from datetime import timedelta
from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication

from exam_app.constants.exam_constants import MAX_TAB_SWITCHES
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.clock import utc_now
from exam_app.core.errors import ExamAppError
from exam_app.core.exam_manager import ExamManager
from exam_app.server.api_server import start_api_server
from exam_app.ui.student_main_window import StudentMainWindow
from exam_app.utils.logging_config import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the ExamDesk student client and API server.")
    parser.add_argument("--student-id", default="student-1")
    parser.add_argument("--student-name", default="Student")
    parser.add_argument("--class-name", default=None)
    parser.add_argument("--semester", type=int, default=None)
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--max-tab-switches", type=int, default=MAX_TAB_SWITCHES)
    parser.add_argument(
        "--practice-file",
        type=Path,
        default=None,
        help="Question file to deploy as a practice exam that opens immediately.",
    )
    parser.add_argument("--practice-minutes", type=int, default=30)
    return parser.parse_args(argv)


def _deploy_practice_exam(manager: ExamManager, args: argparse.Namespace) -> None:
    questions = manager.import_questions_from_file(args.practice_file, subject_id="practice")
    start = utc_now()
    manager.deploy_exam(
        title=f"Practice: {args.practice_file.stem}",
        question_ids=[q.id for q in questions],
        start_time=start,
        end_time=start + timedelta(minutes=args.practice_minutes),
        duration_minutes=args.practice_minutes,
        pass_percentage=50,
        class_name=args.class_name,
        semester=args.semester,
    )


def main() -> None:
    """Initialize logging, start the API server, and launch the Qt UI."""
    args = _parse_args(sys.argv[1:])
    logger = configure_logging()
    logger.info("Starting ExamDesk…")

    exam_manager = ExamManager()
    if args.practice_file is not None:
        try:
            _deploy_practice_exam(exam_manager, args)
        except (ExamAppError, OSError) as exc:
            logger.error("Could not deploy practice exam from %s: %s", args.practice_file, exc)
    start_api_server(exam_manager=exam_manager, host=args.host, port=args.port)

    app = QApplication(sys.argv[:1])
    window = StudentMainWindow(
        exam_manager,
        student_id=args.student_id,
        student_name=args.student_name,
        class_name=args.class_name,
        semester=args.semester,
        max_tab_switches=args.max_tab_switches,
    )
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
