"""Utilities for exporting questions to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path

from exam_app.constants.exam_constants import DEFAULT_QUESTION_MARKS, OPTION_LETTERS
from exam_app.core.models import Question


def save_questions_to_file(file_path: Path, questions: list[Question]) -> None:
    """Persist the provided questions to disk in the text import format."""

    if not questions:
        raise ValueError("Cannot export an empty question list.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_questions(questions), encoding="utf-8")


def serialize_questions(questions: list[Question]) -> str:
    blocks = [_serialize_question(question) for question in questions]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    question_lines = question.text.splitlines() or [question.text]
    lines = [f"Q: {question_lines[0]}", *question_lines[1:]]

    for idx, letter in enumerate(OPTION_LETTERS):
        option_text = question.options[idx] if idx < len(question.options) else ""
        option_lines = option_text.splitlines() or [option_text]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {OPTION_LETTERS[question.correct_answer]}")
    lines.append(f"DIFFICULTY: {question.difficulty}")
    if question.marks != DEFAULT_QUESTION_MARKS:
        lines.append(f"MARKS: {question.marks}")
    return "\n".join(lines)
