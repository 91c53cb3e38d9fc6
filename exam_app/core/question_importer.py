"""Utilities for importing questions from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    DIFFICULTY: easy|medium|hard   (optional, defaults to medium)
    MARKS: positive integer        (optional, defaults to 1)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B
    DIFFICULTY: easy
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from exam_app.constants.exam_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUESTION_MARKS,
    DIFFICULTY_LEVELS,
    OPTION_LETTERS,
)
from exam_app.core.errors import QuestionImportError
from exam_app.core.models import Question


@dataclass(slots=True)
class ImportedQuestions:
    """Container for imported questions and where they came from."""

    source_path: Path | None
    questions: list[Question]


def load_questions_from_file(file_path: Path, subject_id: str | None = None) -> ImportedQuestions:
    text = file_path.read_text(encoding="utf-8")
    return ImportedQuestions(source_path=file_path, questions=parse_questions(text, subject_id))


def parse_questions(text: str, subject_id: str | None = None) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions = [_parse_block(block, subject_id) for block in blocks if block]
    if not questions:
        raise QuestionImportError("Question file did not contain any questions.")
    return questions


def _parse_block(block: str, subject_id: str | None) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    difficulty = DEFAULT_DIFFICULTY
    marks = DEFAULT_QUESTION_MARKS
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("DIFFICULTY:"):
            difficulty = line.split(":", 1)[1].strip().lower()
            if difficulty not in DIFFICULTY_LEVELS:
                raise QuestionImportError(
                    f"DIFFICULTY must be one of {', '.join(DIFFICULTY_LEVELS)}."
                )
            current_section = None
            continue

        if upper.startswith("MARKS:"):
            marks = _parse_marks(line.split(":", 1)[1].strip())
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in OPTION_LETTERS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")
    if len(options) != len(OPTION_LETTERS):
        raise QuestionImportError("Each question must define exactly four options (A-D).")

    option_list = tuple(options.get(letter, "").strip() for letter in OPTION_LETTERS)
    if any(not opt for opt in option_list):
        raise QuestionImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuestionImportError("CORRECT is required for every question.")
    if correct_letter not in OPTION_LETTERS:
        raise QuestionImportError("CORRECT must be one of A, B, C, or D.")

    return Question(
        id="",  # assigned by the question bank
        text=question_text,
        options=option_list,
        correct_answer=OPTION_LETTERS.index(correct_letter),
        difficulty=difficulty,
        subject_id=subject_id,
        marks=marks,
    )


def _parse_marks(raw_value: str) -> int:
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise QuestionImportError("MARKS must be an integer.") from exc
    if parsed <= 0:
        raise QuestionImportError("MARKS must be a positive integer.")
    return parsed
