"""Service for storing deployed exams and their submissions."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from uuid import uuid4

from exam_app.core.errors import ExamNotFoundError, ExamValidationError, SubmissionDeliveryError
from exam_app.core.models import ExamDefinition, Question, SubmissionResult
from exam_app.core.services.availability import as_utc

logger = logging.getLogger(__name__)


class ExamRepository:
    """In-memory store of exam definitions and their scored submissions."""

    def __init__(self) -> None:
        self._exams: dict[str, ExamDefinition] = {}
        self._submissions: dict[str, list[SubmissionResult]] = {}

    def deploy_exam(
        self,
        *,
        title: str,
        questions: list[Question],
        start_time: datetime,
        end_time: datetime,
        duration_minutes: int,
        pass_percentage: float,
        description: str = "",
        subject_id: str | None = None,
        class_name: str | None = None,
        semester: int | None = None,
    ) -> ExamDefinition:
        """Validate the exam settings and store a new exam definition."""
        cleaned_title = title.strip()
        if not cleaned_title:
            raise ExamValidationError("Exam title must not be empty.")
        if not questions:
            raise ExamValidationError("Please select at least one question.")
        start = as_utc(start_time)
        end = as_utc(end_time)
        if end <= start:
            raise ExamValidationError("Exam end time must be after its start time.")
        if duration_minutes < 1:
            raise ExamValidationError("Exam duration must be at least one minute.")
        if end - start < timedelta(minutes=duration_minutes):
            logger.warning(
                "Exam '%s' window is shorter than its %d minute duration", cleaned_title, duration_minutes
            )
        if not 0 <= pass_percentage <= 100:
            raise ExamValidationError("Pass percentage must be between 0 and 100.")
        ids = [question.id for question in questions]
        if len(set(ids)) != len(ids):
            raise ExamValidationError("An exam cannot contain the same question twice.")

        exam = ExamDefinition(
            id=uuid4().hex,
            title=cleaned_title,
            description=description.strip(),
            questions=tuple(questions),
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
            pass_percentage=pass_percentage,
            subject_id=subject_id,
            class_name=class_name,
            semester=semester,
            total_marks=sum(question.marks for question in questions),
        )
        self._exams[exam.id] = exam
        self._submissions[exam.id] = []
        logger.info("Deployed exam %s (%s) with %d questions", exam.id, exam.title, len(questions))
        return exam

    def fetch_definition(self, exam_id: str) -> ExamDefinition:
        try:
            return self._exams[exam_id]
        except KeyError:
            raise ExamNotFoundError(f"Exam {exam_id} does not exist.") from None

    def list_exams(self, class_name: str | None = None, semester: int | None = None) -> list[ExamDefinition]:
        """Return exams ordered by start time, optionally narrowed to a class and semester."""
        exams = [
            exam
            for exam in self._exams.values()
            if (class_name is None or exam.class_name == class_name)
            and (semester is None or exam.semester == semester)
        ]
        return sorted(exams, key=lambda e: e.start_time)

    def submit(self, result: SubmissionResult) -> None:
        """Store a scored submission; each student may submit an exam once."""
        if result.exam_id not in self._exams:
            raise SubmissionDeliveryError(f"Exam {result.exam_id} does not exist.")
        if self.has_attended(result.exam_id, result.student_id):
            raise SubmissionDeliveryError(
                f"Student {result.student_id} already submitted exam {result.exam_id}."
            )
        self._submissions[result.exam_id].append(result)
        logger.info(
            "Stored submission of %s for exam %s: %.1f%% (%s)",
            result.student_id,
            result.exam_id,
            result.percentage,
            result.verdict.value,
        )

    def has_attended(self, exam_id: str, student_id: str) -> bool:
        return any(r.student_id == student_id for r in self._submissions.get(exam_id, []))

    def get_results(self, exam_id: str) -> list[SubmissionResult]:
        if exam_id not in self._exams:
            raise ExamNotFoundError(f"Exam {exam_id} does not exist.")
        return list(self._submissions[exam_id])
