"""Catalog list view-model: pagination, search, edit and delete state.

State is an explicit pair ``ListState`` x ``Idle | Editing(EditSession)``.
``CatalogVM.view()`` is a pure projection of that state for the presentation
layer, which is notified through ``on_change`` after every transition.

Call context:
    The presentation layer dispatches user intents (``set_page``,
    ``begin_edit``...) and renders ``view()``. ``BookRepositoryClient`` emits
    ``Invalidated`` after successful mutations; the view-model answers by
    re-fetching its *current* page.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from bookshelf.domain.entities import Book, BookId, EDITABLE_FIELDS, PageCursor, parse_published
from bookshelf.domain.errors import CatalogError, ConflictError, ValidationError
from bookshelf.domain.isbn import format_isbn, normalize_isbn
from bookshelf.domain.ports import Invalidated
from bookshelf.usecases.book_repository import BookRepositoryClient

log = logging.getLogger(__name__)

_ISBN_QUERY_CHARS = set("0123456789- ")


class ListState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class EditSession:
    """In-progress edit of a single book."""
    book_id: BookId
    original: Book
    draft: Dict[str, Any]
    original_isbn: str
    isbn_touched: bool = False
    field_errors: Dict[str, str] = field(default_factory=dict)

    def changes(self) -> Dict[str, Any]:
        """Draft fields that differ from the original; isbn only if touched."""
        changed: Dict[str, Any] = {}
        for name in ("title", "author"):
            value = self.draft.get(name)
            if value is not None and str(value) != getattr(self.original, name):
                changed[name] = value
        if "published" in self.draft:
            value = self.draft["published"]
            try:
                same = parse_published(value) == self.original.published
            except (TypeError, ValueError):
                same = False
            if not same:
                changed["published"] = value
        if self.isbn_touched:
            changed["isbn"] = self.draft.get("isbn", "")
        return changed


@dataclass(frozen=True)
class BookRow:
    id: BookId
    title: str
    author: str
    isbn: str
    published: str
    editing: bool
    busy: bool


@dataclass(frozen=True)
class CatalogView:
    """Render-ready snapshot of the catalog screen."""
    state: ListState
    rows: Tuple[BookRow, ...]
    page: int
    total_pages: int
    total_count: int
    search_query: str
    pagination_enabled: bool
    can_prev: bool
    can_next: bool
    error: Optional[str]
    editing_id: Optional[BookId]
    draft: Dict[str, Any]
    field_errors: Dict[str, str]
    pending_delete_id: Optional[BookId]


class CatalogVM:
    """Owns the page cursor, search query, and the single edit session."""

    def __init__(
        self,
        repository: BookRepositoryClient,
        *,
        page_size: int = 10,
        on_change: Optional[Callable[[CatalogView], None]] = None,
        on_confirm_delete: Optional[Callable[[Book], None]] = None,
        spawn: Optional[Callable[[Awaitable[None]], "asyncio.Future[None]"]] = None,
    ) -> None:
        self._repository = repository
        self.on_change = on_change
        self.on_confirm_delete = on_confirm_delete
        self._spawn = spawn or asyncio.ensure_future

        self.cursor = PageCursor(page=1, page_size=page_size, total_count=0)
        self.state = ListState.LOADING
        self.books: List[Book] = []
        self.error: Optional[str] = None
        self.search_query = ""
        self.edit_session: Optional[EditSession] = None
        self.pending_delete: Optional[Book] = None

        self._fetch_seq = 0
        self._refresh_tasks: Set["asyncio.Future[None]"] = set()
        self._unsubscribe = repository.subscribe(self._on_invalidated)

    # ------------------------------------------------------------------
    # Loading & pagination
    # ------------------------------------------------------------------
    async def load(self) -> None:
        await self._fetch()

    async def refresh(self) -> None:
        await self._fetch()

    async def set_page(self, page: int) -> None:
        """Clamp ``page`` against the last known total and fetch it."""
        self.cursor = self.cursor.with_page(page)
        await self._fetch()

    async def next_page(self) -> None:
        await self.set_page(self.cursor.page + 1)

    async def prev_page(self) -> None:
        await self.set_page(self.cursor.page - 1)

    def set_search_query(self, query: str) -> List[Book]:
        """Filter the loaded page client-side; never re-queries the store."""
        self.search_query = str(query or "").strip()
        self._changed()
        return self.displayed_books

    @property
    def displayed_books(self) -> List[Book]:
        query = self.search_query.lower()
        if not query:
            return list(self.books)
        return [book for book in self.books if self._matches(book, query)]

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    @property
    def is_editing(self) -> bool:
        return self.edit_session is not None

    def begin_edit(self, book: Book) -> EditSession:
        if self.edit_session is not None:
            raise ConflictError("Finish or cancel the current edit first.", code="EDIT_IN_PROGRESS")
        self.edit_session = EditSession(
            book_id=book.id,
            original=book,
            draft={
                "title": book.title,
                "author": book.author,
                "isbn": book.isbn,
                "published": book.published,
            },
            original_isbn=book.isbn,
        )
        self._changed()
        return self.edit_session

    def update_draft_field(self, name: str, value: Any) -> None:
        session = self._require_session()
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown book field: {name}")
        if name == "isbn":
            value = format_isbn(str(value or ""))
            session.isbn_touched = normalize_isbn(value) != normalize_isbn(session.original_isbn)
        session.draft[name] = value
        session.field_errors.pop(name, None)
        self._changed()

    async def save_edit(self) -> Optional[Book]:
        """Submit changed fields. Returns the saved book, or ``None`` on failure.

        Local validation errors land in ``EditSession.field_errors``; remote
        failures were already posted as notifications. Either way the session
        stays open so the user can retry or cancel.
        """
        session = self._require_session()
        changes = session.changes()
        if not changes:
            self.edit_session = None
            self._changed()
            return session.original
        try:
            book = await self._repository.update(session.book_id, changes)
        except ValidationError as exc:
            session.field_errors = dict(exc.errors) or {"form": exc.message}
            self._changed()
            return None
        except CatalogError:
            self._changed()
            return None
        if self.edit_session is session:
            self.edit_session = None
        self._changed()
        return book

    def cancel_edit(self) -> None:
        self.edit_session = None
        self._changed()

    # ------------------------------------------------------------------
    # Deleting (two-phase)
    # ------------------------------------------------------------------
    def request_delete(self, book: Book) -> None:
        """Ask the confirmation surface; nothing is sent to the store."""
        self.pending_delete = book
        self._changed()
        if self.on_confirm_delete:
            self.on_confirm_delete(book)

    def cancel_delete(self) -> None:
        self.pending_delete = None
        self._changed()

    async def confirm_delete(self, book: Book) -> bool:
        if self.pending_delete is None or self.pending_delete.id != book.id:
            raise ValueError(f"Delete of book {book.id} was not requested.")
        try:
            await self._repository.delete(book.id)
        except CatalogError:
            self._changed()
            return False
        finally:
            self.pending_delete = None
        if self.edit_session is not None and self.edit_session.book_id == book.id:
            self.edit_session = None
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------
    def view(self) -> CatalogView:
        session = self.edit_session
        searching = bool(self.search_query)
        rows = tuple(
            BookRow(
                id=book.id,
                title=book.title,
                author=book.author,
                isbn=book.isbn,
                published=book.published.isoformat(),
                editing=session is not None and session.book_id == book.id,
                busy=self._repository.is_busy(book.id),
            )
            for book in self.displayed_books
        )
        return CatalogView(
            state=self.state,
            rows=rows,
            page=self.cursor.page,
            total_pages=self.cursor.max_page,
            total_count=self.cursor.total_count,
            search_query=self.search_query,
            pagination_enabled=not searching,
            can_prev=not searching and self.cursor.page > 1,
            can_next=not searching and self.cursor.page < self.cursor.max_page,
            error=self.error,
            editing_id=session.book_id if session else None,
            draft=dict(session.draft) if session else {},
            field_errors=dict(session.field_errors) if session else {},
            pending_delete_id=self.pending_delete.id if self.pending_delete else None,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def settle(self) -> None:
        """Wait for refetches triggered by invalidation events."""
        while self._refresh_tasks:
            await asyncio.gather(*list(self._refresh_tasks))

    def close(self) -> None:
        self._unsubscribe()
        for task in list(self._refresh_tasks):
            task.cancel()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _on_invalidated(self, event: Invalidated) -> None:
        # Runs after the mutation's success; the task reads the cursor
        # when it executes, not when the mutation was issued.
        log.debug("Refetch scheduled after %s invalidation", event.scope)
        task = self._spawn(self.refresh())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _fetch(self) -> None:
        self._fetch_seq += 1
        seq = self._fetch_seq
        page, page_size = self.cursor.page, self.cursor.page_size
        self.state = ListState.LOADING
        self._changed()
        try:
            result = await self._repository.list(page, page_size)
        except CatalogError as exc:
            if not self._is_current(seq, page, page_size):
                log.debug("Discarding stale list error for page %s", page)
                return
            self.state = ListState.ERROR
            self.error = exc.message
            self._changed()
            return
        if not self._is_current(seq, page, page_size):
            log.debug("Discarding stale list response for page %s", page)
            return

        self.cursor = self.cursor.with_total(result.total_count)
        if self.cursor.page != page:
            # Total shrank below the current page; load the clamped one
            await self._fetch()
            return
        self.books = list(result.books)
        self.state = ListState.LOADED
        self.error = None
        self._changed()

    def _is_current(self, seq: int, page: int, page_size: int) -> bool:
        return (
            seq == self._fetch_seq
            and page == self.cursor.page
            and page_size == self.cursor.page_size
        )

    @staticmethod
    def _matches(book: Book, query: str) -> bool:
        if query in book.title.lower() or query in book.author.lower():
            return True
        digits = book.isbn_digits
        if query in digits:
            return True
        if set(query) <= _ISBN_QUERY_CHARS:
            query_digits = normalize_isbn(query)
            return bool(query_digits) and query_digits in digits
        return False

    def _require_session(self) -> EditSession:
        if self.edit_session is None:
            raise RuntimeError("No book is being edited.")
        return self.edit_session

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self.view())


__all__ = ["BookRow", "CatalogVM", "CatalogView", "EditSession", "ListState"]
