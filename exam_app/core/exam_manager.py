"""Business logic for exams shared between the desktop client and the API."""

from __future__ import annotations

from datetime import datetime
import logging
from pathlib import Path
import random
from threading import Lock
from typing import Mapping

from exam_app.constants.exam_constants import MAX_TAB_SWITCHES
from exam_app.core.clock import Clock, utc_now
from exam_app.core.errors import ExamValidationError, SessionPreconditionError
from exam_app.core.models import (
    ExamCard,
    ExamDefinition,
    ExamSummary,
    Question,
    Subject,
    SubmissionResult,
)
from exam_app.core.question_exporter import save_questions_to_file
from exam_app.core.question_importer import load_questions_from_file, parse_questions
from exam_app.core.services.availability import exam_status, is_exam_open
from exam_app.core.services.exam_repository import ExamRepository
from exam_app.core.services.exam_session import ConfirmCallback, ExamSessionEngine
from exam_app.core.services.question_bank import QuestionBank
from exam_app.core.services.scoring import score_answers, summarize_results
from exam_app.core.services.subject_registry import SubjectRegistry
from exam_app.core.surface import PresentationSurface

logger = logging.getLogger(__name__)


class ExamManager:
    """Facade for exam services: SubjectRegistry, QuestionBank, ExamRepository and sessions."""

    def __init__(self) -> None:
        self._lock = Lock()

        # Services
        self._question_bank = QuestionBank()
        self._repository = ExamRepository()
        self._subjects = SubjectRegistry()

    # --- Subject Registry Delegation ---

    def create_subject(
        self,
        *,
        code: str,
        name: str,
        department: str,
        semester: int,
        is_lab: bool = False,
    ) -> Subject:
        with self._lock:
            return self._subjects.create_subject(
                code=code, name=name, department=department, semester=semester, is_lab=is_lab
            )

    def get_subject(self, subject_id: str) -> Subject:
        with self._lock:
            return self._subjects.get_subject(subject_id)

    def get_subjects(self, teacher_id: str | None = None) -> list[Subject]:
        with self._lock:
            if teacher_id is None:
                return self._subjects.get_subjects()
            return self._subjects.get_teacher_subjects(teacher_id)

    def assign_teacher(self, subject_id: str, teacher_id: str, name: str = "", username: str = "") -> Subject:
        with self._lock:
            return self._subjects.assign_teacher(subject_id, teacher_id, name, username)

    def remove_teacher(self, subject_id: str, teacher_id: str) -> Subject:
        with self._lock:
            return self._subjects.remove_teacher(subject_id, teacher_id)

    # --- Question Bank Delegation ---

    def add_question(self, question: Question) -> Question:
        with self._lock:
            return self._question_bank.add_question(question)

    def update_question(self, question_id: str, question: Question) -> Question:
        with self._lock:
            return self._question_bank.update_question(question_id, question)

    def delete_question(self, question_id: str) -> None:
        with self._lock:
            self._question_bank.delete_question(question_id)

    def get_question(self, question_id: str) -> Question:
        with self._lock:
            return self._question_bank.get_question(question_id)

    def get_questions(self, subject_id: str | None = None) -> list[Question]:
        with self._lock:
            if subject_id is None:
                return self._question_bank.get_questions()
            return self._question_bank.get_questions_by_subject(subject_id)

    def import_questions_from_text(self, text: str, subject_id: str | None = None) -> list[Question]:
        questions = parse_questions(text, subject_id)
        with self._lock:
            return self._question_bank.add_questions(questions, subject_id)

    def import_questions_from_file(self, file_path: Path, subject_id: str | None = None) -> list[Question]:
        imported = load_questions_from_file(file_path, subject_id)
        with self._lock:
            added = self._question_bank.add_questions(imported.questions, subject_id)
        logger.info("Imported %d questions from %s", len(added), file_path)
        return added

    def export_questions_to_file(self, file_path: Path, subject_id: str | None = None) -> int:
        questions = self.get_questions(subject_id)
        save_questions_to_file(file_path, questions)
        return len(questions)

    # --- Exam Repository Delegation ---

    def deploy_exam(
        self,
        *,
        title: str,
        question_ids: list[str],
        start_time: datetime,
        end_time: datetime,
        duration_minutes: int,
        pass_percentage: float,
        description: str = "",
        subject_id: str | None = None,
        class_name: str | None = None,
        semester: int | None = None,
    ) -> ExamDefinition:
        with self._lock:
            if subject_id is not None:
                self._subjects.get_subject(subject_id)
            questions = [self._question_bank.get_question(qid) for qid in question_ids]
            return self._repository.deploy_exam(
                title=title,
                questions=questions,
                start_time=start_time,
                end_time=end_time,
                duration_minutes=duration_minutes,
                pass_percentage=pass_percentage,
                description=description,
                subject_id=subject_id,
                class_name=class_name,
                semester=semester,
            )

    def fetch_definition(self, exam_id: str) -> ExamDefinition:
        with self._lock:
            return self._repository.fetch_definition(exam_id)

    def list_exam_cards(
        self,
        *,
        class_name: str | None = None,
        semester: int | None = None,
        student_id: str | None = None,
        now: datetime | None = None,
    ) -> list[ExamCard]:
        """Return exams for a class with their status as seen by ``student_id``."""
        moment = now or utc_now()
        with self._lock:
            exams = self._repository.list_exams(class_name, semester)
            return [
                ExamCard(
                    exam=exam,
                    status=exam_status(
                        exam,
                        moment,
                        attended=student_id is not None and self._repository.has_attended(exam.id, student_id),
                    ),
                )
                for exam in exams
            ]

    def submit(self, result: SubmissionResult) -> None:
        """Store a finished session's result; used as the sessions' submission target."""
        with self._lock:
            self._repository.submit(result)

    def get_results(self, exam_id: str) -> list[SubmissionResult]:
        with self._lock:
            return self._repository.get_results(exam_id)

    def get_exam_summary(self, exam_id: str) -> ExamSummary:
        with self._lock:
            return summarize_results(exam_id, self._repository.get_results(exam_id))

    # --- Sessions ---

    def open_session(
        self,
        exam_id: str,
        *,
        student_id: str,
        student_name: str,
        clock: Clock,
        surface: PresentationSurface,
        confirm: ConfirmCallback | None = None,
        max_tab_switches: int = MAX_TAB_SWITCHES,
        rng: random.Random | None = None,
    ) -> ExamSessionEngine:
        """Check the exam can be sat now and return a started session for it."""
        now = clock.now()
        with self._lock:
            exam = self._repository.fetch_definition(exam_id)
            if self._repository.has_attended(exam_id, student_id):
                raise SessionPreconditionError("You have already submitted this exam.")
        if not is_exam_open(exam, now):
            raise SessionPreconditionError("This exam is not open at the moment.")

        engine = ExamSessionEngine(
            repository=self,
            clock=clock,
            surface=surface,
            student_id=student_id,
            student_name=student_name,
            max_tab_switches=max_tab_switches,
            confirm=confirm,
            rng=rng,
        )
        # Started outside the lock: an immediate auto-submit calls back into submit().
        engine.start(exam, now)
        return engine

    def submit_answers(
        self,
        exam_id: str,
        *,
        student_id: str,
        student_name: str,
        answers: Mapping[str, int | None],
        now: datetime | None = None,
    ) -> SubmissionResult:
        """Score answers posted by a remote client and store the result."""
        moment = now or utc_now()
        with self._lock:
            exam = self._repository.fetch_definition(exam_id)
            if not is_exam_open(exam, moment):
                raise SessionPreconditionError("This exam is not open at the moment.")
            known = {question.id: question for question in exam.questions}
            for question_id, selected in answers.items():
                if question_id not in known:
                    raise ExamValidationError(f"Question {question_id} is not part of this exam.")
                if selected is not None and not 0 <= selected < len(known[question_id].options):
                    raise ExamValidationError(f"Option {selected} is out of range for question {question_id}.")
            result = score_answers(
                exam,
                answers,
                student_id=student_id,
                student_name=student_name,
                submitted_at=moment,
            )
            self._repository.submit(result)
            return result
