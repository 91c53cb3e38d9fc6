"""Scoring of exam attempts and aggregate result statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Sequence

from exam_app.core.errors import SessionPreconditionError
from exam_app.core.models import (
    AnswerRecord,
    ExamDefinition,
    ExamSummary,
    Question,
    SubmissionResult,
    Verdict,
)


def score_answers(
    exam: ExamDefinition,
    answers: Mapping[str, int | None],
    *,
    student_id: str,
    student_name: str,
    submitted_at: datetime,
    order: Sequence[Question] | None = None,
    auto_submitted: bool = False,
) -> SubmissionResult:
    """Score the selected options of one attempt.

    Unanswered questions are left out of the answer records but still count
    towards ``total_questions``, so they lower the percentage like a wrong
    answer would.
    """
    total = len(exam.questions)
    if total == 0:
        raise SessionPreconditionError("Cannot score an exam without questions.")

    records: list[AnswerRecord] = []
    for question in order if order is not None else exam.questions:
        selected = answers.get(question.id)
        if selected is None:
            continue
        records.append(
            AnswerRecord(
                question_id=question.id,
                selected_option=selected,
                is_correct=selected == question.correct_answer,
            )
        )

    correct = sum(1 for record in records if record.is_correct)
    percentage = correct * 100 / total
    verdict = Verdict.PASS if percentage >= exam.pass_percentage else Verdict.FAIL
    return SubmissionResult(
        exam_id=exam.id,
        student_id=student_id,
        student_name=student_name,
        answers=tuple(records),
        total_questions=total,
        correct_answers=correct,
        wrong_answers=total - correct,
        score=correct,
        percentage=percentage,
        verdict=verdict,
        submitted_at=submitted_at,
        auto_submitted=auto_submitted,
    )


def summarize_results(exam_id: str, results: Iterable[SubmissionResult]) -> ExamSummary:
    """Aggregate attempts, passes and the mean percentage for one exam."""
    summary = ExamSummary(exam_id=exam_id)
    total_percentage = 0.0
    for result in results:
        summary.attempts += 1
        if result.verdict is Verdict.PASS:
            summary.passed += 1
        total_percentage += result.percentage
        summary.student_ids.append(result.student_id)
    if summary.attempts:
        summary.average_percentage = total_percentage / summary.attempts
    return summary
