from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bookshelf.domain.entities import Book, BookId, BookPage, EDITABLE_FIELDS, field_errors, parse_published
from bookshelf.domain.isbn import format_isbn, normalize_isbn
from bookshelf.domain.ports import BookStorePort

from .api_errors import ApiClientError, ApiError, ApiServerError


@dataclass
class BooksMemoryAdapter(BookStorePort):
    """Offline substitute for ``BooksRestAdapter`` with server-like responses.

    Books are listed newest first. ``delay_s`` adds latency to every call so
    overlapping requests can be exercised; ``fail_next`` queues an error for
    the next call.
    """

    delay_s: float = 0.0
    calls: List[Tuple[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._books: Dict[BookId, Book] = {}
        self._order: List[BookId] = []
        self._next_id = 1
        self._failures: List[ApiError] = []

    # ---------- test helpers ----------

    def seed(self, *books: Dict[str, Any]) -> List[Book]:
        """Insert books directly, bypassing validation and call recording."""
        created = [self._insert(dict(payload)) for payload in books]
        return created

    def fail_next(self, status: int, message: Optional[str] = None) -> None:
        body = {"message": message} if message else {}
        text = message or f"An error occurred (HTTP {status})"
        if status >= 500:
            self._failures.append(ApiServerError(text, status=status, payload=body))
        else:
            self._failures.append(ApiClientError(text, status=status, payload=body))

    @property
    def books(self) -> List[Book]:
        return [self._books[book_id] for book_id in reversed(self._order)]

    # ---------- BookStorePort ----------

    async def list_books(self, page: int, page_size: int) -> BookPage:
        await self._enter("list", (page, page_size))
        page = max(1, int(page))
        ordered = self.books
        start = (page - 1) * page_size
        return BookPage(
            books=tuple(ordered[start : start + page_size]),
            total_count=len(ordered),
            page=page,
            page_size=page_size,
        )

    async def create_book(self, payload: Dict[str, Any]) -> Book:
        await self._enter("create", dict(payload))
        data = dict(payload)
        data["isbn"] = format_isbn(str(data.get("isbn") or ""))
        self._check(data, partial=False)
        self._check_isbn_unique(data["isbn"], exclude=None)
        return self._insert(data)

    async def update_book(self, book_id: BookId, payload: Dict[str, Any]) -> Book:
        await self._enter("update", (book_id, dict(payload)))
        existing = self._books.get(str(book_id))
        if existing is None:
            raise ApiClientError("Book not found", status=404, payload={"message": "Book not found"})
        changes = {key: value for key, value in payload.items() if key in EDITABLE_FIELDS}
        self._check(changes, partial=True)
        if "isbn" in changes:
            changes["isbn"] = format_isbn(str(changes["isbn"]))
            self._check_isbn_unique(changes["isbn"], exclude=existing.id)
        if "published" in changes:
            changes["published"] = parse_published(changes["published"])
        updated = replace(existing, updated_at=_now(), **changes)
        self._books[existing.id] = updated
        return updated

    async def delete_book(self, book_id: BookId) -> None:
        await self._enter("delete", book_id)
        key = str(book_id)
        if key not in self._books:
            raise ApiClientError("Book not found", status=404, payload={"message": "Book not found"})
        del self._books[key]
        self._order.remove(key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _enter(self, op: str, args: Any) -> None:
        self.calls.append((op, args))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self._failures:
            raise self._failures.pop(0)

    def _insert(self, data: Dict[str, Any]) -> Book:
        book_id = str(self._next_id)
        self._next_id += 1
        now = _now()
        book = Book(
            id=book_id,
            title=str(data.get("title") or "").strip(),
            author=str(data.get("author") or "").strip(),
            isbn=format_isbn(str(data.get("isbn") or "")),
            published=parse_published(data.get("published")),
            created_at=now,
            updated_at=now,
        )
        self._books[book_id] = book
        self._order.append(book_id)
        return book

    @staticmethod
    def _check(data: Dict[str, Any], *, partial: bool) -> None:
        errors = field_errors(data, partial=partial)
        if errors:
            message = next(iter(errors.values()))
            raise ApiClientError(message, status=400, code="BAD_REQUEST", payload={"message": message})

    def _check_isbn_unique(self, isbn: str, *, exclude: Optional[BookId]) -> None:
        digits = normalize_isbn(isbn)
        for book in self._books.values():
            if book.id != exclude and book.isbn_digits == digits:
                message = f"A book with ISBN {book.isbn} already exists"
                raise ApiClientError(message, status=409, payload={"message": message})


def _now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["BooksMemoryAdapter"]
