"""Service for managing the bank of authored questions."""

from __future__ import annotations

from dataclasses import replace

from exam_app.constants.exam_constants import DIFFICULTY_LEVELS, OPTION_COUNT
from exam_app.core.errors import ExamValidationError, QuestionNotFoundError
from exam_app.core.models import Question


class QuestionBank:
    """Stores questions per subject and validates them on the way in."""

    def __init__(self) -> None:
        self._questions: dict[str, Question] = {}
        self._question_counter: int = 0

    def add_question(self, question: Question) -> Question:
        """Validate and store a question under a freshly assigned id."""
        prepared = self._prepare_question(question, self._next_question_id())
        self._questions[prepared.id] = prepared
        return prepared

    def add_questions(self, questions: list[Question], subject_id: str | None = None) -> list[Question]:
        if not questions:
            raise ExamValidationError("No questions to add.")
        # Validate everything first so a bad block does not leave half an import behind.
        for question in questions:
            self._prepare_question(question, question.id)
        added = []
        for question in questions:
            if subject_id is not None:
                question = replace(question, subject_id=subject_id)
            added.append(self.add_question(question))
        return added

    def update_question(self, question_id: str, question: Question) -> Question:
        if question_id not in self._questions:
            raise QuestionNotFoundError(f"Question {question_id} does not exist.")
        # Preserve the original ID
        prepared = self._prepare_question(question, question_id)
        self._questions[question_id] = prepared
        return prepared

    def delete_question(self, question_id: str) -> None:
        if self._questions.pop(question_id, None) is None:
            raise QuestionNotFoundError(f"Question {question_id} does not exist.")

    def get_question(self, question_id: str) -> Question:
        try:
            return self._questions[question_id]
        except KeyError:
            raise QuestionNotFoundError(f"Question {question_id} does not exist.") from None

    def get_questions(self) -> list[Question]:
        return list(self._questions.values())

    def get_questions_by_subject(self, subject_id: str) -> list[Question]:
        return [q for q in self._questions.values() if q.subject_id == subject_id]

    def get_question_count(self) -> int:
        return len(self._questions)

    def _prepare_question(self, question: Question, question_id: str) -> Question:
        """Validate and normalize a question before storage."""
        options = self._validate_options(list(question.options))
        if not isinstance(question.correct_answer, int) or not 0 <= question.correct_answer < OPTION_COUNT:
            raise ExamValidationError(f"Correct answer must be between 0 and {OPTION_COUNT - 1}.")

        cleaned_text = question.text.strip()
        if not cleaned_text:
            raise ExamValidationError("Question text must not be empty.")

        difficulty = question.difficulty.strip().lower()
        if difficulty not in DIFFICULTY_LEVELS:
            raise ExamValidationError(f"Difficulty must be one of: {', '.join(DIFFICULTY_LEVELS)}.")

        if question.marks < 1:
            raise ExamValidationError("Marks must be a positive integer.")

        return Question(
            id=question_id,
            text=cleaned_text,
            options=tuple(options),
            correct_answer=question.correct_answer,
            difficulty=difficulty,
            subject_id=question.subject_id,
            marks=question.marks,
        )

    def _next_question_id(self) -> str:
        self._question_counter += 1
        return str(self._question_counter)

    @staticmethod
    def _validate_options(options: list[str]) -> list[str]:
        if len(options) != OPTION_COUNT:
            raise ExamValidationError(f"Each question must have exactly {OPTION_COUNT} options.")
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise ExamValidationError("Option text cannot be empty.")
        return cleaned
