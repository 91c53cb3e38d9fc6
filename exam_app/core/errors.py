"""Exception hierarchy shared by the core services, the server and the UI."""

from __future__ import annotations


class ExamAppError(Exception):
    """Base class for all application errors."""


class ExamValidationError(ExamAppError, ValueError):
    """Raised when question or exam data fails validation."""


class QuestionImportError(ExamValidationError):
    """Raised when a question file cannot be parsed."""


class ExamNotFoundError(ExamAppError, LookupError):
    """Raised when an exam id is unknown to the repository."""


class QuestionNotFoundError(ExamAppError, LookupError):
    """Raised when a question id is unknown to the question bank."""


class SubjectNotFoundError(ExamAppError, LookupError):
    """Raised when a subject id is unknown to the subject registry."""


class SubjectConflictError(ExamAppError):
    """Raised for a duplicate subject code or a teacher assigned twice."""


class SessionPreconditionError(ExamAppError):
    """Raised when a session cannot be started for the given exam and time."""


class SessionStateError(ExamAppError, RuntimeError):
    """Raised when an operation is not valid in the session's current state."""


class SessionClosedError(SessionStateError):
    """Raised when mutating a session that was submitted or closed."""


class SubmissionDeliveryError(ExamAppError):
    """Raised when a scored submission could not be stored."""
