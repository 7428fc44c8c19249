"""Composition root and command-line entry point.

``build_catalog`` wires adapters, the repository client and the view-models
from ``CatalogSettings``. ``main`` is a small terminal front-end: it loads one
page, optionally filters it, and prints the projected rows together with any
notifications that were posted while doing so.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from bookshelf.adapters.books_mock import BooksMemoryAdapter
from bookshelf.adapters.books_rest import BooksRestAdapter
from bookshelf.adapters.storage_local import StorageLocal
from bookshelf.app.settings import CatalogSettings, load_settings
from bookshelf.app.timer_scheduler import TimerScheduler
from bookshelf.usecases.book_repository import BookRepositoryClient
from bookshelf.utils.logging import configure_root
from bookshelf.viewmodels.book_form_vm import BookFormVM
from bookshelf.viewmodels.catalog_vm import CatalogView, CatalogVM
from bookshelf.viewmodels.notifications_vm import NotificationManager

log = logging.getLogger(__name__)

_DEMO_BOOKS = (
    {"title": "The Hobbit", "author": "J.R.R. Tolkien", "isbn": "9780547928227", "published": "1937-09-21"},
    {"title": "Nineteen Eighty-Four", "author": "George Orwell", "isbn": "9780451524935", "published": "1949-06-08"},
    {"title": "Test Book", "author": "Jane Doe", "isbn": "978-3-16-148410-0", "published": "2002-01-01"},
)


@dataclass
class CatalogApp:
    settings: CatalogSettings
    store: Union[BooksRestAdapter, BooksMemoryAdapter]
    notifications: NotificationManager
    repository: BookRepositoryClient
    catalog: CatalogVM
    form: BookFormVM

    async def aclose(self) -> None:
        self.catalog.close()
        self.notifications.clear()
        if isinstance(self.store, BooksRestAdapter):
            await self.store.aclose()


def build_catalog(settings: CatalogSettings, *, offline: bool = False) -> CatalogApp:
    """Wire the object graph. Must be called with a running event loop for timers."""
    if offline:
        store: Union[BooksRestAdapter, BooksMemoryAdapter] = BooksMemoryAdapter()
        store.seed(*_DEMO_BOOKS)
    else:
        store = BooksRestAdapter(
            settings.api_base_url,
            api_key=settings.api_key or None,
            request_timeout_s=settings.request_timeout_s,
            retries=settings.list_retries,
        )
    notifications = NotificationManager(
        scheduler=TimerScheduler.for_asyncio(), default_ttl_ms=settings.toast_ttl_ms
    )
    repository = BookRepositoryClient(store, notifications)
    catalog = CatalogVM(repository, page_size=settings.page_size)
    form = BookFormVM(repository)
    return CatalogApp(settings, store, notifications, repository, catalog, form)


def render_view(view: CatalogView) -> List[str]:
    lines = [f"[{view.state.value}] page {view.page}/{view.total_pages} ({view.total_count} books)"]
    if view.search_query:
        lines.append(f'search: "{view.search_query}" ({len(view.rows)} matches on this page)')
    if view.error:
        lines.append(f"error: {view.error}")
    for row in view.rows:
        lines.append(f"{row.id:>5}  {row.isbn:<17}  {row.published}  {row.title} / {row.author}")
    return lines


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bookshelf", description="Browse the book catalog.")
    parser.add_argument("--url", help="Catalog server base URL (overrides settings).")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, help="Books per page (overrides settings).")
    parser.add_argument("--search", default="", help="Filter the loaded page.")
    parser.add_argument("--prefs-dir", default=".", help="Directory holding bookshelf_prefs.json.")
    parser.add_argument("--offline", action="store_true", help="Use the in-memory demo store.")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings(StorageLocal(args.prefs_dir))
    overrides = {}
    if args.url:
        overrides["api_base_url"] = args.url
    if args.page_size:
        overrides["page_size"] = args.page_size
    if args.debug:
        overrides["debug_logging"] = True
    settings = settings.apply_dict(overrides) if overrides else settings
    configure_root(settings.debug_logging)

    app = build_catalog(settings, offline=args.offline)
    try:
        if args.page > 1:
            # Learn the total first so the requested page clamps correctly
            await app.catalog.load()
        await app.catalog.set_page(args.page)
        app.catalog.set_search_query(args.search)
        view = app.catalog.view()
        for line in render_view(view):
            print(line)
        for note in app.notifications.active():
            print(f"({note.severity.value}) {note.message}")
        return 0 if view.error is None else 1
    finally:
        await app.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_root(args.debug)
    try:
        return asyncio.run(_run(args))
    except ValueError as exc:
        log.error("Invalid configuration: %s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
