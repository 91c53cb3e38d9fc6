"""Exam-related constants shared across UI, server and core layers."""

OPTION_COUNT: int = 4
OPTION_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")
DIFFICULTY_LEVELS: tuple[str, ...] = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY: str = "medium"
DEFAULT_QUESTION_MARKS: int = 1

# Hidden transitions allowed before the session is force-submitted.
MAX_TAB_SWITCHES: int = 2

TAB_SWITCH_WARNING_MESSAGE: str = "Warning: One more tab switch will submit your exam!"
INTEGRITY_SUBMIT_MESSAGE: str = "Exam submitted due to multiple tab switches!"
DEADLINE_SUBMIT_MESSAGE: str = "Exam time ended. Your answers have been submitted."
MANUAL_SUBMIT_MESSAGE: str = "Exam submitted successfully"
SUBMIT_FAILED_MESSAGE: str = "Failed to submit exam"
