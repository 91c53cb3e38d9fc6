"""Helpers deciding whether an exam can be sat right now."""

from __future__ import annotations

from datetime import datetime, timezone

from exam_app.core.models import ExamDefinition, ExamStatus


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def is_exam_open(exam: ExamDefinition, now: datetime) -> bool:
    moment = as_utc(now)
    return as_utc(exam.start_time) <= moment < as_utc(exam.end_time)


def exam_status(exam: ExamDefinition, now: datetime, attended: bool = False) -> ExamStatus:
    if attended:
        return ExamStatus.ATTENDED
    moment = as_utc(now)
    if moment < as_utc(exam.start_time):
        return ExamStatus.UPCOMING
    if moment < as_utc(exam.end_time):
        return ExamStatus.ACTIVE
    return ExamStatus.ENDED
