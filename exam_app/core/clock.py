"""Time sources used by exam sessions.

A clock answers two questions: what time is it, and "call me back after N
seconds". Sessions never sleep or poll; they arm a single deadline callback
through the clock and keep the returned handle so it can be cancelled on every
exit path. The Qt client supplies a QTimer-backed clock (see
``exam_app.ui.qt_adapters``); headless code and tests use ``ManualClock``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...

    def after(self, seconds: float, callback: Callable[[], None]) -> TimerHandle: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class _ScheduledCall:
    due: datetime
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class ManualClock:
    """Deterministic clock whose time only moves when ``advance`` is called."""

    current: datetime = field(default_factory=utc_now)
    _scheduled: list[_ScheduledCall] = field(default_factory=list, repr=False)

    def now(self) -> datetime:
        return self.current

    def after(self, seconds: float, callback: Callable[[], None]) -> _ScheduledCall:
        call = _ScheduledCall(due=self.current + timedelta(seconds=seconds), callback=callback)
        self._scheduled.append(call)
        return call

    def advance(self, seconds: float) -> None:
        """Move time forward and fire every callback that became due, oldest first."""
        self.current = self.current + timedelta(seconds=seconds)
        while True:
            due = [c for c in self._scheduled if not c.cancelled and c.due <= self.current]
            if not due:
                break
            call = min(due, key=lambda c: c.due)
            self._scheduled.remove(call)
            call.callback()
        self._scheduled = [c for c in self._scheduled if not c.cancelled]

    def pending_count(self) -> int:
        return sum(1 for c in self._scheduled if not c.cancelled)
