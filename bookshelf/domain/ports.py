from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from .entities import Book, BookId, BookPage


# ---- Events ----
@dataclass(frozen=True)
class Invalidated:
    """Cached list data for ``scope`` is stale and must be re-queried."""

    scope: str = "books"


# ---- Ports (Hexagonal boundaries) ----
class BookStorePort(Protocol):
    """CRUD operations against the remote book store.

    Implementations raise ``bookshelf.adapters.api_errors.ApiError`` subclasses;
    the repository client maps them to domain errors.
    """

    async def list_books(self, page: int, page_size: int) -> BookPage: ...
    async def create_book(self, payload: Dict[str, Any]) -> Book: ...
    async def update_book(self, book_id: BookId, payload: Dict[str, Any]) -> Book: ...
    async def delete_book(self, book_id: BookId) -> None: ...


class PrefsStoragePort(Protocol):
    """Persistence for user preferences."""

    def save_user_prefs(self, prefs: Dict) -> None: ...
    def load_user_prefs(self) -> Dict: ...


class NotifierPort(Protocol):
    """Sink for user-facing outcome messages (toasts)."""

    def success(self, message: str, ttl_ms: Optional[int] = None) -> int: ...
    def error(self, message: str, ttl_ms: Optional[int] = None) -> int: ...
    def warning(self, message: str, ttl_ms: Optional[int] = None) -> int: ...


class TimerPort(Protocol):
    """Keyed one-shot timers; rescheduling a key replaces its pending timer."""

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None: ...
    def cancel(self, key: str) -> bool: ...
