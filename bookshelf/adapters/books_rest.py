from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from bookshelf.domain.entities import Book, BookId, BookPage
from bookshelf.domain.ports import BookStorePort

from .api_errors import ApiError, error_from_response
from .http_client import HttpConfig, RetryingSession

log = logging.getLogger(__name__)


class BooksRestAdapter(BookStorePort):
    """REST adapter for the ``/books`` resource.

    Contract:
        ``GET /books?page=&page_size=`` list, ``POST /books`` create,
        ``PUT /books?id=`` partial update, ``DELETE /books?id=`` delete.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        request_timeout_s: float = 10,
        retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url or not str(base_url).strip():
            raise ValueError("BooksRestAdapter requires a base URL")
        self.base_url = str(base_url).strip().rstrip("/")
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(api_key, self.cfg, transport=transport)

    # ---------- BookStorePort ----------

    async def list_books(self, page: int, page_size: int) -> BookPage:
        resp = await self.session.get(
            self._url(), params={"page": int(page), "page_size": int(page_size)}
        )
        self._ensure_ok(resp, "list_books")
        data = self._json_any(resp)
        if not isinstance(data, dict):
            raise ApiError("list_books: expected object response", context="list_books")
        raw_books = data.get("books") or []
        if not isinstance(raw_books, list):
            raise ApiError("list_books: 'books' must be a list", context="list_books")
        try:
            books: List[Book] = [
                Book.from_payload(item) for item in raw_books if isinstance(item, dict)
            ]
        except (TypeError, ValueError) as exc:
            raise ApiError(f"list_books: malformed book: {exc}", context="list_books") from exc
        total = _as_int(data.get("total_books"), len(books))
        return BookPage(
            books=tuple(books),
            total_count=max(0, total),
            page=_as_int(data.get("page"), page),
            page_size=_as_int(data.get("page_size"), page_size) or page_size,
        )

    async def create_book(self, payload: Dict[str, Any]) -> Book:
        resp = await self.session.send("POST", self._url(), json_body=dict(payload))
        self._ensure_ok(resp, "create_book")
        return self._book(resp, "create_book")

    async def update_book(self, book_id: BookId, payload: Dict[str, Any]) -> Book:
        ctx = f"update_book[{book_id}]"
        resp = await self.session.send(
            "PUT", self._url(), params={"id": book_id}, json_body=dict(payload)
        )
        self._ensure_ok(resp, ctx)
        return self._book(resp, ctx)

    async def delete_book(self, book_id: BookId) -> None:
        resp = await self.session.send("DELETE", self._url(), params={"id": book_id})
        self._ensure_ok(resp, f"delete_book[{book_id}]")

    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "BooksRestAdapter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _url(self) -> str:
        return f"{self.base_url}/books"

    @staticmethod
    def _ensure_ok(resp: httpx.Response, ctx: str) -> None:
        if 200 <= resp.status_code < 300:
            return
        err = error_from_response(resp, ctx)
        log.info("%s -> HTTP %s: %s", ctx, resp.status_code, err.message)
        raise err

    @staticmethod
    def _json_any(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            snippet = resp.text[:400]
            raise ApiError(f"Invalid JSON response: {snippet}", status=resp.status_code)

    def _book(self, resp: httpx.Response, ctx: str) -> Book:
        data = self._json_any(resp)
        if not isinstance(data, dict):
            raise ApiError(f"{ctx}: expected object response", context=ctx)
        try:
            return Book.from_payload(data)
        except (TypeError, ValueError) as exc:
            raise ApiError(f"{ctx}: malformed book: {exc}", context=ctx) from exc


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


__all__ = ["BooksRestAdapter"]
