"""Domain models for the exam application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from exam_app.constants.exam_constants import DEFAULT_DIFFICULTY, DEFAULT_QUESTION_MARKS


class QuestionStatus(str, Enum):
    """Navigator status of a question inside a running session."""

    UNANSWERED = "unanswered"
    ANSWERED = "answered"
    FLAGGED = "flagged"


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class ExamStatus(str, Enum):
    """Availability of an exam from a student's point of view."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"
    ATTENDED = "attended"


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four options."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: int
    difficulty: str = DEFAULT_DIFFICULTY
    subject_id: str | None = None
    marks: int = DEFAULT_QUESTION_MARKS


@dataclass(frozen=True, slots=True)
class ExamDefinition:
    """A deployed exam: its questions, timing window and pass threshold."""

    id: str
    title: str
    questions: tuple[Question, ...]
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    pass_percentage: float
    description: str = ""
    subject_id: str | None = None
    class_name: str | None = None
    semester: int | None = None
    total_marks: int = 0

    def __post_init__(self) -> None:
        if self.end_time <= self.start_time:
            raise ValueError("Exam end time must be after its start time.")


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """One answered question inside a submission."""

    question_id: str
    selected_option: int
    is_correct: bool


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Scored outcome of a single exam attempt."""

    exam_id: str
    student_id: str
    student_name: str
    answers: tuple[AnswerRecord, ...]
    total_questions: int
    correct_answers: int
    wrong_answers: int
    score: int
    percentage: float
    verdict: Verdict
    submitted_at: datetime
    auto_submitted: bool = False


@dataclass(slots=True)
class ExamSummary:
    """Aggregate statistics over the submissions of one exam."""

    exam_id: str
    attempts: int = 0
    passed: int = 0
    average_percentage: float = 0.0
    student_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ExamCard:
    """An exam as listed to a student, with its current availability."""

    exam: ExamDefinition
    status: ExamStatus


@dataclass(frozen=True, slots=True)
class TeacherAssignment:
    """A teacher assigned to teach a subject."""

    teacher_id: str
    name: str
    username: str


@dataclass(frozen=True, slots=True)
class Subject:
    """A course offered to one semester of a department."""

    id: str
    code: str
    name: str
    department: str
    semester: int
    is_lab: bool = False
    teachers: tuple[TeacherAssignment, ...] = ()

    def has_teacher(self, teacher_id: str) -> bool:
        return any(assignment.teacher_id == teacher_id for assignment in self.teachers)
