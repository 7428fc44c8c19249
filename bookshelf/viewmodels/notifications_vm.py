"""Transient user notifications (toasts) with timed expiry.

Call context:
    ``BookRepositoryClient`` posts outcome messages here; the presentation
    layer renders ``NotificationManager.active()`` and calls ``dismiss`` when
    the user closes a toast.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from bookshelf.domain.ports import TimerPort

log = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5000


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """One visible toast."""
    id: int
    message: str
    severity: Severity
    ttl_ms: int
    created_at: float


class NotificationManager:
    """Owns the live notification set and its expiry timers.

    Ids come from an injected generator owned by this instance. Automatic
    expiry and manual dismissal share ``_remove`` so a notification is removed
    at most once.
    """

    def __init__(
        self,
        *,
        scheduler: TimerPort,
        id_factory: Optional[Callable[[], int]] = None,
        clock: Callable[[], float] = time.time,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        on_change: Optional[Callable[[List[Notification]], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._next_id = id_factory or itertools.count(1).__next__
        self._clock = clock
        self.default_ttl_ms = int(default_ttl_ms)
        self.on_change = on_change
        # dicts keep insertion order -> FIFO display order
        self._active: Dict[int, Notification] = {}

    def post(
        self,
        message: str,
        severity: Union[Severity, str] = Severity.INFO,
        ttl_ms: Optional[int] = None,
    ) -> int:
        """Append a notification and start its timer.

        ``ttl_ms <= 0`` keeps the notification until it is dismissed.
        """
        ttl = self.default_ttl_ms if ttl_ms is None else int(ttl_ms)
        note = Notification(
            id=self._next_id(),
            message=str(message),
            severity=Severity(severity),
            ttl_ms=ttl,
            created_at=self._clock(),
        )
        # Timer first: a scheduler failure must not leave an unexpiring note
        if ttl > 0:
            self._scheduler.schedule(str(note.id), ttl, lambda: self._remove(note.id))
        self._active[note.id] = note
        log.debug("Notification %s posted (%s): %s", note.id, note.severity.value, note.message)
        self._emit()
        return note.id

    def success(self, message: str, ttl_ms: Optional[int] = None) -> int:
        return self.post(message, Severity.SUCCESS, ttl_ms)

    def error(self, message: str, ttl_ms: Optional[int] = None) -> int:
        return self.post(message, Severity.ERROR, ttl_ms)

    def warning(self, message: str, ttl_ms: Optional[int] = None) -> int:
        return self.post(message, Severity.WARNING, ttl_ms)

    def info(self, message: str, ttl_ms: Optional[int] = None) -> int:
        return self.post(message, Severity.INFO, ttl_ms)

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification. Dismissing an unknown id is a no-op."""
        return self._remove(notification_id)

    def clear(self) -> None:
        for notification_id in list(self._active):
            self._remove(notification_id)

    def active(self) -> List[Notification]:
        return list(self._active.values())

    def get(self, notification_id: int) -> Optional[Notification]:
        return self._active.get(notification_id)

    # ------------------------------------------------------------------
    def _remove(self, notification_id: int) -> bool:
        note = self._active.pop(notification_id, None)
        if note is None:
            return False
        self._scheduler.cancel(str(notification_id))
        log.debug("Notification %s removed", notification_id)
        self._emit()
        return True

    def _emit(self) -> None:
        if self.on_change:
            self.on_change(self.active())


__all__ = ["DEFAULT_TTL_MS", "Notification", "NotificationManager", "Severity"]
