"""FastAPI server exposing subjects, question authoring, exam deployment and results."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel, Field
import uvicorn

from exam_app.constants.about import APP_NAME, APP_VERSION
from exam_app.constants.exam_constants import DEFAULT_DIFFICULTY, DEFAULT_QUESTION_MARKS
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.errors import (
    ExamAppError,
    ExamNotFoundError,
    ExamValidationError,
    QuestionNotFoundError,
    SessionPreconditionError,
    SubjectConflictError,
    SubjectNotFoundError,
    SubmissionDeliveryError,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import ExamDefinition, Question, Subject, SubmissionResult

logger = logging.getLogger(__name__)


class SubjectPayload(BaseModel):
    """Payload schema for registering a subject."""

    code: str
    name: str
    department: str
    semester: int = Field(ge=1)
    is_lab: bool = False


class TeacherAssignmentPayload(BaseModel):
    """Payload schema for assigning a teacher to a subject."""

    teacher_id: str
    name: str = ""
    username: str = ""


class QuestionPayload(BaseModel):
    """Payload schema for authored questions."""

    text: str
    options: list[str]
    correct_answer: int
    difficulty: str = DEFAULT_DIFFICULTY
    subject_id: str | None = None
    marks: int = DEFAULT_QUESTION_MARKS


class QuestionImportPayload(BaseModel):
    """Payload schema for bulk import in the plain-text question format."""

    text: str
    subject_id: str | None = None


class DeployExamPayload(BaseModel):
    """Payload schema for deploying an exam from bank questions."""

    title: str
    description: str = ""
    question_ids: list[str]
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    pass_percentage: float = Field(ge=0, le=100)
    subject_id: str | None = None
    class_name: str | None = None
    semester: int | None = None


class SubmissionPayload(BaseModel):
    """Payload schema for answers posted by a remote exam client."""

    student_id: str
    student_name: str
    answers: dict[str, int | None]


def _to_http_error(exc: ExamAppError) -> HTTPException:
    if isinstance(exc, (ExamNotFoundError, QuestionNotFoundError, SubjectNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ExamValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, (SessionPreconditionError, SubjectConflictError, SubmissionDeliveryError)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _isoformat(moment: datetime) -> str:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc).isoformat()
    return moment.astimezone(timezone.utc).isoformat()


def _subject_to_dict(subject: Subject) -> dict[str, object]:
    return {
        "id": subject.id,
        "code": subject.code,
        "name": subject.name,
        "department": subject.department,
        "semester": subject.semester,
        "is_lab": subject.is_lab,
        "teachers": [
            {"teacher_id": a.teacher_id, "name": a.name, "username": a.username} for a in subject.teachers
        ],
    }


def _question_to_dict(question: Question, include_answer: bool = True) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": question.id,
        "text": question.text,
        "options": list(question.options),
        "difficulty": question.difficulty,
        "subject_id": question.subject_id,
        "marks": question.marks,
    }
    if include_answer:
        payload["correct_answer"] = question.correct_answer
    else:
        payload["question_html"] = renderer.render_fragment(question.text)
    return payload


def _exam_to_dict(exam: ExamDefinition, include_questions: bool = False) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": exam.id,
        "title": exam.title,
        "description": exam.description,
        "start_time": _isoformat(exam.start_time),
        "end_time": _isoformat(exam.end_time),
        "duration_minutes": exam.duration_minutes,
        "total_marks": exam.total_marks,
        "pass_percentage": exam.pass_percentage,
        "subject_id": exam.subject_id,
        "class_name": exam.class_name,
        "semester": exam.semester,
        "question_count": len(exam.questions),
    }
    if include_questions:
        # Students only ever see the questions without their answer key.
        payload["questions"] = [_question_to_dict(q, include_answer=False) for q in exam.questions]
    return payload


def _result_to_dict(result: SubmissionResult) -> dict[str, object]:
    return {
        "exam_id": result.exam_id,
        "student_id": result.student_id,
        "student_name": result.student_name,
        "answers": [
            {
                "question_id": answer.question_id,
                "selected_option": answer.selected_option,
                "is_correct": answer.is_correct,
            }
            for answer in result.answers
        ],
        "total_questions": result.total_questions,
        "correct_answers": result.correct_answers,
        "wrong_answers": result.wrong_answers,
        "score": result.score,
        "percentage": result.percentage,
        "status": result.verdict.value,
        "submitted_at": _isoformat(result.submitted_at),
        "auto_submitted": result.auto_submitted,
    }


def _build_question(payload: QuestionPayload) -> Question:
    return Question(
        id="",
        text=payload.text,
        options=tuple(payload.options),
        correct_answer=payload.correct_answer,
        difficulty=payload.difficulty,
        subject_id=payload.subject_id,
        marks=payload.marks,
    )


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def create_api_app(exam_manager: ExamManager) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    exam_manager_dep = _get_exam_manager_dependency(exam_manager)

    @app.get("/subjects")
    def list_subjects(
        teacher_id: str | None = None,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        return [_subject_to_dict(s) for s in manager.get_subjects(teacher_id)]

    @app.post("/subjects", status_code=201)
    def create_subject(
        payload: SubjectPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            subject = manager.create_subject(
                code=payload.code,
                name=payload.name,
                department=payload.department,
                semester=payload.semester,
                is_lab=payload.is_lab,
            )
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _subject_to_dict(subject)

    @app.get("/subjects/{subject_id}")
    def get_subject(
        subject_id: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            subject = manager.get_subject(subject_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _subject_to_dict(subject)

    @app.post("/subjects/{subject_id}/teachers")
    def assign_teacher(
        subject_id: str,
        payload: TeacherAssignmentPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            subject = manager.assign_teacher(subject_id, payload.teacher_id, payload.name, payload.username)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _subject_to_dict(subject)

    @app.delete("/subjects/{subject_id}/teachers/{teacher_id}")
    def remove_teacher(
        subject_id: str,
        teacher_id: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            subject = manager.remove_teacher(subject_id, teacher_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _subject_to_dict(subject)

    @app.get("/questions")
    def list_questions(
        subject_id: str | None = None,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        return [_question_to_dict(q) for q in manager.get_questions(subject_id)]

    @app.post("/questions", status_code=201)
    def create_question(
        payload: QuestionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            question = manager.add_question(_build_question(payload))
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _question_to_dict(question)

    @app.post("/questions/import", status_code=201)
    def import_questions(
        payload: QuestionImportPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            questions = manager.import_questions_from_text(payload.text, payload.subject_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return [_question_to_dict(q) for q in questions]

    @app.put("/questions/{question_id}")
    def update_question(
        question_id: str,
        payload: QuestionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            question = manager.update_question(question_id, _build_question(payload))
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _question_to_dict(question)

    @app.delete("/questions/{question_id}", status_code=204)
    def delete_question(
        question_id: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> Response:
        try:
            manager.delete_question(question_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return Response(status_code=204)

    @app.get("/exams")
    def list_exams(
        class_name: str | None = None,
        semester: int | None = None,
        student_id: str | None = None,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> list[dict[str, object]]:
        cards = manager.list_exam_cards(class_name=class_name, semester=semester, student_id=student_id)
        return [{**_exam_to_dict(card.exam), "status": card.status.value} for card in cards]

    @app.post("/exams", status_code=201)
    def deploy_exam(
        payload: DeployExamPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            exam = manager.deploy_exam(
                title=payload.title,
                question_ids=payload.question_ids,
                start_time=payload.start_time,
                end_time=payload.end_time,
                duration_minutes=payload.duration_minutes,
                pass_percentage=payload.pass_percentage,
                description=payload.description,
                subject_id=payload.subject_id,
                class_name=payload.class_name,
                semester=payload.semester,
            )
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _exam_to_dict(exam)

    @app.get("/exams/{exam_id}")
    def get_exam(
        exam_id: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            exam = manager.fetch_definition(exam_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _exam_to_dict(exam, include_questions=True)

    @app.post("/exams/{exam_id}/submissions", status_code=201)
    def submit_exam(
        exam_id: str,
        payload: SubmissionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.submit_answers(
                exam_id,
                student_id=payload.student_id,
                student_name=payload.student_name,
                answers=payload.answers,
            )
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return _result_to_dict(result)

    @app.get("/exams/{exam_id}/results")
    def get_results(
        exam_id: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            results = manager.get_results(exam_id)
            summary = manager.get_exam_summary(exam_id)
        except ExamAppError as exc:
            raise _to_http_error(exc) from exc
        return {
            "results": [_result_to_dict(r) for r in results],
            "summary": {
                "attempts": summary.attempts,
                "passed": summary.passed,
                "average_percentage": summary.average_percentage,
            },
        }

    return app


def start_api_server(
    exam_manager: ExamManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(exam_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="ExamApiServer", daemon=True)
    thread.start()
    logger.info("API server listening on %s:%d", host, port)
    return thread
