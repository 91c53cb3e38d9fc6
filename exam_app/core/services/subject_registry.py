"""Service keeping the subjects on offer and the teachers assigned to them."""

from __future__ import annotations

from dataclasses import replace
import logging
from uuid import uuid4

from exam_app.core.errors import ExamValidationError, SubjectConflictError, SubjectNotFoundError
from exam_app.core.models import Subject, TeacherAssignment

logger = logging.getLogger(__name__)


class SubjectRegistry:
    """In-memory registry of subjects keyed by id, with unique subject codes."""

    def __init__(self) -> None:
        self._subjects: dict[str, Subject] = {}

    def create_subject(
        self,
        *,
        code: str,
        name: str,
        department: str,
        semester: int,
        is_lab: bool = False,
    ) -> Subject:
        cleaned_code = code.strip()
        cleaned_name = name.strip()
        cleaned_department = department.strip()
        if not cleaned_code or not cleaned_name or not cleaned_department:
            raise ExamValidationError("Subject code, name and department are required.")
        if semester < 1:
            raise ExamValidationError("Semester must be a positive integer.")
        if any(subject.code == cleaned_code for subject in self._subjects.values()):
            raise SubjectConflictError(f"Subject with code {cleaned_code} already exists.")

        subject = Subject(
            id=uuid4().hex,
            code=cleaned_code,
            name=cleaned_name,
            department=cleaned_department,
            semester=semester,
            is_lab=is_lab,
        )
        self._subjects[subject.id] = subject
        logger.info("Created subject %s (%s)", subject.code, subject.id)
        return subject

    def get_subject(self, subject_id: str) -> Subject:
        try:
            return self._subjects[subject_id]
        except KeyError:
            raise SubjectNotFoundError(f"Subject {subject_id} does not exist.") from None

    def get_subjects(self) -> list[Subject]:
        return sorted(self._subjects.values(), key=lambda s: s.code)

    def get_teacher_subjects(self, teacher_id: str) -> list[Subject]:
        return [subject for subject in self.get_subjects() if subject.has_teacher(teacher_id)]

    def assign_teacher(self, subject_id: str, teacher_id: str, name: str, username: str) -> Subject:
        """Add a teacher to a subject; assigning the same teacher twice is a conflict."""
        if not teacher_id.strip():
            raise ExamValidationError("Teacher id is required.")
        subject = self.get_subject(subject_id)
        if subject.has_teacher(teacher_id):
            raise SubjectConflictError(f"Teacher {teacher_id} is already assigned to {subject.code}.")
        assignment = TeacherAssignment(teacher_id=teacher_id, name=name.strip(), username=username.strip())
        updated = replace(subject, teachers=subject.teachers + (assignment,))
        self._subjects[subject_id] = updated
        logger.info("Assigned teacher %s to subject %s", teacher_id, subject.code)
        return updated

    def remove_teacher(self, subject_id: str, teacher_id: str) -> Subject:
        """Drop a teacher from a subject. Removing an unassigned teacher changes nothing."""
        subject = self.get_subject(subject_id)
        updated = replace(subject, teachers=tuple(a for a in subject.teachers if a.teacher_id != teacher_id))
        self._subjects[subject_id] = updated
        return updated
