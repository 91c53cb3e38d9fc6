"""Presentation surface contract used by exam sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

VisibilityCallback = Callable[[bool], None]


class Subscription(Protocol):
    def cancel(self) -> None: ...


class PresentationSurface(Protocol):
    """Screen area a session occupies exclusively (fullscreen) while it runs.

    ``watch_visibility`` callbacks receive ``True`` when the surface becomes
    hidden (tab switch, minimise, focus loss) and ``False`` when it is shown
    again.
    """

    def request_exclusive(self) -> bool: ...

    def release(self) -> None: ...

    def watch_visibility(self, callback: VisibilityCallback) -> Subscription: ...


@dataclass(slots=True)
class _CallbackSubscription:
    owner: "NullSurface"
    callback: VisibilityCallback

    def cancel(self) -> None:
        if self.callback in self.owner.watchers:
            self.owner.watchers.remove(self.callback)


@dataclass(slots=True)
class NullSurface:
    """Headless surface: never grants exclusivity, forwards visibility events by hand."""

    watchers: list[VisibilityCallback] = field(default_factory=list)

    def request_exclusive(self) -> bool:
        logger.debug("Headless surface cannot enter fullscreen.")
        return False

    def release(self) -> None:
        return None

    def watch_visibility(self, callback: VisibilityCallback) -> _CallbackSubscription:
        self.watchers.append(callback)
        return _CallbackSubscription(owner=self, callback=callback)

    def emit_visibility(self, hidden: bool) -> None:
        for callback in list(self.watchers):
            callback(hidden)
