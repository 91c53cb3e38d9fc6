"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "ExamDesk Student"
COUNTDOWN_REFRESH_INTERVAL_MS: int = 500
EXAM_LIST_REFRESH_INTERVAL_MS: int = 30000

EXAM_LIST_TITLE: str = "My Exams"
EXAM_LIST_EMPTY_STATE: str = "No exams have been scheduled for your class yet."
START_EXAM_BUTTON: str = "Start Exam"
ABOUT_BUTTON: str = "About"
MONITORING_NOTICE: str = "Note: Exam will enter fullscreen mode and tab switching is monitored."

PREV_QUESTION_BUTTON: str = "Previous"
NEXT_QUESTION_BUTTON: str = "Next"
FLAG_QUESTION_BUTTON: str = "Flag for Review"
UNFLAG_QUESTION_BUTTON: str = "Remove Flag"
SUBMIT_EXAM_BUTTON: str = "Submit Exam"
LEAVE_EXAM_BUTTON: str = "Leave Exam"

STATUS_LABELS: dict[str, str] = {
    "active": "Active",
    "upcoming": "Upcoming",
    "ended": "Closed",
    "attended": "Completed",
}

# Navigator colours keyed by question status.
STATUS_COLORS: dict[str, str] = {
    "unanswered": "#E5E7EB",
    "answered": "#22C55E",
    "flagged": "#FACC15",
}
