"""Scheduler helper that owns keyed one-shot timers.

Callers pass ``schedule`` and ``cancel`` callables so timer state is tracked in
one place and cancelled safely. ``TimerScheduler.for_asyncio`` binds them to the
running event loop (``loop.call_later`` / ``TimerHandle.cancel``).
"""

from __future__ import annotations


import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


ScheduleFn = Callable[[int, Callable[[], None]], Any]
CancelFn = Callable[[Any], None]


@dataclass
class TimerHandle:
    """Timer token associated with a single key.

    Attributes:
        key: Timer key (for example a notification id).
        token: Token returned by the underlying schedule function.
    """
    key: str
    token: Any


class TimerScheduler:
    """Manage keyed timers on top of an ``after``-style scheduler."""

    def __init__(self, schedule: ScheduleFn, cancel: CancelFn) -> None:
        """Store schedule/cancel functions and initialize handle registry.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function that cancels a token returned by ``schedule``.
        """
        self._schedule = schedule
        self._cancel = cancel
        self._handles: Dict[str, TimerHandle] = {}

    @classmethod
    def for_asyncio(cls, loop: Optional[asyncio.AbstractEventLoop] = None) -> "TimerScheduler":
        """Build a scheduler on ``loop``, or on the loop running at schedule time."""

        def schedule(delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
            target = loop or asyncio.get_running_loop()
            return target.call_later(delay_ms / 1000.0, callback)

        def cancel(token: asyncio.TimerHandle) -> None:
            token.cancel()

        return cls(schedule, cancel)

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        """Schedule or reschedule the timer for ``key``.

        The handle is dropped before ``callback`` runs, so a callback that
        cancels its own key is a no-op.
        """
        delay = max(1, int(delay_ms))
        self.cancel(key)

        handle = TimerHandle(key=key, token=None)

        def fire() -> None:
            # Stale token from a rescheduled or cancelled key
            if self._handles.get(key) is not handle:
                return
            del self._handles[key]
            callback()

        handle.token = self._schedule(delay, fire)
        self._handles[key] = handle

    def cancel(self, key: str) -> bool:
        """Cancel a pending timer. Returns ``True`` if one was pending."""
        handle = self._handles.pop(key, None)
        if not handle:
            return False
        self._cancel(handle.token)
        return True

    def cancel_all(self) -> None:
        for key in list(self._handles.keys()):
            self.cancel(key)

    def pending(self, key: str) -> bool:
        return key in self._handles


__all__ = ["TimerHandle", "TimerScheduler"]
