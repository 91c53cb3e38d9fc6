"""Qt implementations of the session clock and presentation surface."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QWidget

from exam_app.core.clock import utc_now
from exam_app.core.surface import VisibilityCallback

logger = logging.getLogger(__name__)

# QTimer intervals are signed 32-bit milliseconds.
_MAX_TIMER_MS = 2**31 - 1


class QtTimerHandle:
    """Cancellable single-shot QTimer; long delays are re-armed in chunks."""

    def __init__(self, parent: QObject, seconds: float, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._remaining_ms = max(0, int(seconds * 1000))
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._handle_timeout)
        self._arm()

    def _arm(self) -> None:
        chunk = min(self._remaining_ms, _MAX_TIMER_MS)
        self._remaining_ms -= chunk
        self._timer.start(chunk)

    def _handle_timeout(self) -> None:
        if self._remaining_ms > 0:
            self._arm()
            return
        self._timer.deleteLater()
        self._callback()

    def cancel(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
            self._timer.deleteLater()


class QtClock:
    """Wall clock whose callbacks run on the Qt event loop of ``parent``."""

    def __init__(self, parent: QObject) -> None:
        self._parent = parent

    def now(self) -> datetime:
        return utc_now()

    def after(self, seconds: float, callback: Callable[[], None]) -> QtTimerHandle:
        return QtTimerHandle(self._parent, seconds, callback)


class _ApplicationStateSubscription:
    def __init__(self, callback: VisibilityCallback) -> None:
        self._callback = callback
        self._hidden = False
        self._app = QGuiApplication.instance()
        self._app.applicationStateChanged.connect(self._handle_state_changed)
        self._active = True

    def _handle_state_changed(self, state: Qt.ApplicationState) -> None:
        hidden = state != Qt.ApplicationState.ApplicationActive
        if hidden == self._hidden:
            return
        self._hidden = hidden
        self._callback(hidden)

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._app.applicationStateChanged.disconnect(self._handle_state_changed)


class QtPresentationSurface:
    """Puts a top-level window into fullscreen and reports application focus loss."""

    def __init__(self, window: QWidget) -> None:
        self._window = window
        self._previous_state: Qt.WindowState | None = None

    def request_exclusive(self) -> bool:
        self._previous_state = self._window.windowState()
        self._window.showFullScreen()
        granted = bool(self._window.windowState() & Qt.WindowState.WindowFullScreen)
        if not granted:
            logger.info("Window manager refused fullscreen")
        return granted

    def release(self) -> None:
        if self._window.isFullScreen():
            self._window.showNormal()
        if self._previous_state is not None:
            self._window.setWindowState(self._previous_state)
            self._previous_state = None

    def watch_visibility(self, callback: VisibilityCallback) -> _ApplicationStateSubscription:
        return _ApplicationStateSubscription(callback)
