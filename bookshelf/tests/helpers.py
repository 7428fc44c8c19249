from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Tuple

from bookshelf.adapters.books_mock import BooksMemoryAdapter
from bookshelf.app.timer_scheduler import TimerScheduler
from bookshelf.domain.isbn import check_digit
from bookshelf.usecases.book_repository import BookRepositoryClient
from bookshelf.viewmodels.notifications_vm import NotificationManager


class ManualTimers:
    """Deterministic ``after``-style scheduler driven by ``advance``."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = 0
        self._pending: Dict[int, Tuple[int, Callable[[], None]]] = {}

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._seq += 1
        self._pending[self._seq] = (self.now_ms + delay_ms, callback)
        return self._seq

    def cancel(self, token: int) -> None:
        self._pending.pop(token, None)

    def advance(self, ms: int) -> None:
        self.now_ms += ms
        due = sorted(
            (at, token) for token, (at, _) in self._pending.items() if at <= self.now_ms
        )
        for _, token in due:
            entry = self._pending.pop(token, None)
            if entry is not None:
                entry[1]()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def scheduler(self) -> TimerScheduler:
        return TimerScheduler(self.schedule, self.cancel)


class GatedStore(BooksMemoryAdapter):
    """Memory store whose calls can be held open until a gate is released."""

    def __post_init__(self) -> None:
        super().__post_init__()
        self.gates: Dict[Tuple[str, Any], asyncio.Event] = {}

    def hold(self, op: str, key: Any) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[(op, key)] = gate
        return gate

    async def _wait(self, op: str, key: Any) -> None:
        gate = self.gates.pop((op, key), None)
        if gate is not None:
            await gate.wait()

    async def list_books(self, page: int, page_size: int):
        await self._wait("list", page)
        return await super().list_books(page, page_size)

    async def update_book(self, book_id, payload):
        await self._wait("update", book_id)
        return await super().update_book(book_id, payload)

    async def delete_book(self, book_id):
        await self._wait("delete", book_id)
        return await super().delete_book(book_id)


def make_isbn(n: int) -> str:
    prefix = f"978{n:09d}"
    return prefix + str(check_digit(prefix))


def book_payloads(count: int, *, author: str = "Author") -> List[Dict[str, Any]]:
    start = date(2000, 1, 1)
    return [
        {
            "title": f"Book {i}",
            "author": f"{author} {i}",
            "isbn": make_isbn(i),
            "published": (start + timedelta(days=i)).isoformat(),
        }
        for i in range(1, count + 1)
    ]


def make_repository(
    store: BooksMemoryAdapter | None = None,
) -> Tuple[BookRepositoryClient, BooksMemoryAdapter, NotificationManager, ManualTimers]:
    timers = ManualTimers()
    notifications = NotificationManager(scheduler=timers.scheduler())
    store = store if store is not None else BooksMemoryAdapter()
    return BookRepositoryClient(store, notifications), store, notifications, timers


def calls_of(store: BooksMemoryAdapter, op: str) -> List[Any]:
    return [args for name, args in store.calls if name == op]


__all__ = [
    "GatedStore",
    "ManualTimers",
    "book_payloads",
    "calls_of",
    "make_isbn",
    "make_repository",
]
