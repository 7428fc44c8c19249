"""Repository client coordinating the remote book store with local state.

Responsibilities:
    - Validate drafts locally (ISBN codec, required fields) before any I/O.
    - Reject a second concurrent mutation for the same book id.
    - Cache list pages and invalidate them after every successful mutation,
      then emit ``Invalidated`` to subscribers.
    - Report outcomes through a ``NotifierPort`` (the toast manager).

Call context:
    ``CatalogVM`` and ``BookFormVM`` call this client; the client talks to a
    ``BookStorePort`` adapter.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Set, Tuple

from bookshelf.domain.entities import Book, BookId, BookPage, clean_fields, field_errors
from bookshelf.domain.errors import CatalogError, ConflictError, ValidationError
from bookshelf.domain.ports import BookStorePort, Invalidated, NotifierPort

from .error_mapping import map_api_error

log = logging.getLogger(__name__)

InvalidationListener = Callable[[Invalidated], None]
BOOKS_SCOPE = "books"


class BookRepositoryClient:
    def __init__(self, store: BookStorePort, notifications: NotifierPort) -> None:
        self._store = store
        self._notifications = notifications
        self._in_flight: Set[BookId] = set()
        self._cache: Dict[Tuple[int, int], BookPage] = {}
        # Bumped on every invalidation; a list response from an older
        # generation must not repopulate the cache.
        self._generation = 0
        self._listeners: List[InvalidationListener] = []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, listener: InvalidationListener) -> Callable[[], None]:
        """Register ``listener`` for ``Invalidated`` events; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def invalidate(self, scope: str = BOOKS_SCOPE) -> None:
        self._cache.clear()
        self._generation += 1
        log.debug("Invalidated %s (generation %d)", scope, self._generation)
        event = Invalidated(scope)
        for listener in list(self._listeners):
            listener(event)

    def is_busy(self, book_id: BookId) -> bool:
        return str(book_id) in self._in_flight

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def list(self, page: int, page_size: int) -> BookPage:
        key = (int(page), int(page_size))
        cached = self._cache.get(key)
        if cached is not None:
            log.debug("List cache hit page=%s size=%s", *key)
            return cached
        generation = self._generation
        try:
            result = await self._store.list_books(*key)
        except Exception as exc:
            raise self._report(exc, "Failed to load books") from exc
        if generation == self._generation:
            self._cache[key] = result
        return result

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create(self, draft: Mapping[str, Any]) -> Book:
        """Validate and submit a new book.

        Raises:
            ValidationError: Locally invalid draft; nothing is transmitted.
            CatalogError: Remote failure, already posted as a notification.
        """
        payload = self._validated(draft, partial=False)
        try:
            book = await self._store.create_book(payload)
        except Exception as exc:
            raise self._report(exc, "Failed to add book") from exc
        log.info("Created book %s (%s)", book.id, book.isbn)
        self._notifications.success(f'Book "{book.title}" added')
        self.invalidate(BOOKS_SCOPE)
        return book

    async def update(self, book_id: BookId, changes: Mapping[str, Any]) -> Book:
        """Send only the fields present in ``changes``."""
        book_id = str(book_id)
        with self._claim(book_id):
            payload = self._validated(changes, partial=True)
            try:
                book = await self._store.update_book(book_id, payload)
            except Exception as exc:
                raise self._report(exc, "Failed to update book") from exc
        log.info("Updated book %s fields=%s", book_id, sorted(payload))
        self._notifications.success(f'Book "{book.title}" updated')
        self.invalidate(BOOKS_SCOPE)
        return book

    async def delete(self, book_id: BookId) -> None:
        book_id = str(book_id)
        with self._claim(book_id):
            try:
                await self._store.delete_book(book_id)
            except Exception as exc:
                raise self._report(exc, "Failed to delete book") from exc
        log.info("Deleted book %s", book_id)
        self._notifications.success("Book deleted")
        self.invalidate(BOOKS_SCOPE)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @contextmanager
    def _claim(self, book_id: BookId) -> Iterator[None]:
        # Check-and-claim runs before the first await, so it is atomic on
        # the event loop.
        if book_id in self._in_flight:
            message = "This book is already being saved. Please wait."
            log.warning("Rejected concurrent mutation for book %s", book_id)
            self._notifications.warning(message)
            raise ConflictError(message, code="BUSY")
        self._in_flight.add(book_id)
        try:
            yield
        finally:
            self._in_flight.discard(book_id)

    @staticmethod
    def _validated(fields: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
        errors = field_errors(fields, partial=partial)
        if errors:
            field, message = next(iter(errors.items()))
            raise ValidationError(message, field=field, errors=errors)
        if partial and not fields:
            raise ValidationError("Nothing to update.")
        return clean_fields(fields)

    def _report(self, exc: Exception, default_message: str) -> CatalogError:
        err = map_api_error(exc, default_message=default_message)
        log.warning("%s: %s (%s)", default_message, err.message, err.code)
        self._notifications.error(err.message)
        return err


__all__ = ["BOOKS_SCOPE", "BookRepositoryClient", "InvalidationListener"]
