"""Static metadata describing ExamDesk."""

APP_NAME = "ExamDesk"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "ExamDesk runs timed multiple-choice college exams. Teachers author questions and deploy "
    "exams over the HTTP API; students sit them in a monitored fullscreen session."
)
