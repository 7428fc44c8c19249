import asyncio

import pytest

from bookshelf.domain.errors import ConflictError
from bookshelf.viewmodels.catalog_vm import CatalogVM, ListState
from bookshelf.tests.helpers import GatedStore, book_payloads, calls_of, make_repository

DEMO = (
    {"title": "The Hobbit", "author": "J.R.R. Tolkien", "isbn": "9780547928227", "published": "1937-09-21"},
    {"title": "Nineteen Eighty-Four", "author": "George Orwell", "isbn": "9780451524935", "published": "1949-06-08"},
)


def _catalog(count=0, *, store=None, payloads=None, **kwargs):
    repo, store, notifications, _ = make_repository(store)
    store.seed(*(payloads or book_payloads(count)))
    vm = CatalogVM(repo, **kwargs)
    return vm, store, notifications


@pytest.mark.asyncio
async def test_load_populates_first_page():
    vm, _, _ = _catalog(25)

    await vm.load()
    view = vm.view()

    assert view.state is ListState.LOADED
    assert len(view.rows) == 10
    assert view.rows[0].title == "Book 25"
    assert (view.page, view.total_pages, view.total_count) == (1, 3, 25)
    assert view.can_next and not view.can_prev


@pytest.mark.asyncio
async def test_set_page_clamps_to_valid_range():
    vm, _, _ = _catalog(25)
    await vm.load()

    await vm.set_page(99)
    assert vm.cursor.page == 3
    assert [row.title for row in vm.view().rows] == [f"Book {i}" for i in range(5, 0, -1)]

    await vm.set_page(-1)
    assert vm.cursor.page == 1


@pytest.mark.asyncio
async def test_next_and_prev_page():
    vm, _, _ = _catalog(15)
    await vm.load()

    await vm.next_page()
    assert vm.cursor.page == 2
    await vm.next_page()
    assert vm.cursor.page == 2
    await vm.prev_page()
    assert vm.cursor.page == 1


@pytest.mark.asyncio
async def test_load_failure_sets_error_state():
    vm, store, notifications = _catalog(3)
    store.fail_next(503, "Maintenance")

    await vm.load()

    view = vm.view()
    assert view.state is ListState.ERROR
    assert view.error == "Maintenance"
    assert notifications.active()[0].message == "Maintenance"


@pytest.mark.asyncio
async def test_search_filters_loaded_page_without_requests():
    vm, store, _ = _catalog(payloads=DEMO)
    await vm.load()

    matches = vm.set_search_query("tolkien")

    assert [book.title for book in matches] == ["The Hobbit"]
    assert len(calls_of(store, "list")) == 1
    view = vm.view()
    assert not view.pagination_enabled
    assert not view.can_next and not view.can_prev

    assert [b.title for b in vm.set_search_query("978-0-547")] == ["The Hobbit"]
    assert [b.title for b in vm.set_search_query("9780451524935")] == ["Nineteen Eighty-Four"]
    assert vm.set_search_query("nothing like this") == []
    assert len(vm.set_search_query("")) == 2
    assert vm.view().pagination_enabled


@pytest.mark.asyncio
async def test_only_one_edit_session_at_a_time():
    vm, _, _ = _catalog(2)
    await vm.load()
    first, second = vm.books

    vm.begin_edit(first)
    with pytest.raises(ConflictError) as excinfo:
        vm.begin_edit(second)

    assert excinfo.value.code == "EDIT_IN_PROGRESS"
    assert vm.view().editing_id == first.id


@pytest.mark.asyncio
async def test_isbn_is_touched_only_when_digits_change():
    vm, _, _ = _catalog(payloads=DEMO)
    await vm.load()
    hobbit = vm.books[1]
    session = vm.begin_edit(hobbit)

    vm.update_draft_field("isbn", "9780547928227")
    assert not session.isbn_touched
    assert session.draft["isbn"] == "978-0-547-92822-7"

    vm.update_draft_field("isbn", "9780451524935")
    assert session.isbn_touched


@pytest.mark.asyncio
async def test_save_sends_only_changed_fields_and_refetches():
    vm, store, _ = _catalog(3)
    await vm.load()
    book = vm.books[0]
    vm.begin_edit(book)
    vm.update_draft_field("title", "Renamed")

    saved = await vm.save_edit()
    await vm.settle()

    assert saved.title == "Renamed"
    assert calls_of(store, "update") == [(book.id, {"title": "Renamed"})]
    assert vm.edit_session is None
    assert len(calls_of(store, "list")) == 2
    assert vm.books[0].title == "Renamed"


@pytest.mark.asyncio
async def test_save_without_changes_closes_session_quietly():
    vm, store, _ = _catalog(1)
    await vm.load()
    vm.begin_edit(vm.books[0])

    assert await vm.save_edit() == vm.books[0]
    assert vm.edit_session is None
    assert calls_of(store, "update") == []


@pytest.mark.asyncio
async def test_failed_save_keeps_session_open():
    vm, store, notifications = _catalog(1)
    await vm.load()
    vm.begin_edit(vm.books[0])
    vm.update_draft_field("author", "Someone Else")
    store.fail_next(500)

    assert await vm.save_edit() is None

    assert vm.edit_session is not None
    assert vm.edit_session.draft["author"] == "Someone Else"
    assert notifications.active()[0].message == "An error occurred (HTTP 500)"


@pytest.mark.asyncio
async def test_invalid_draft_shows_field_errors_without_request():
    vm, store, _ = _catalog(1)
    await vm.load()
    vm.begin_edit(vm.books[0])
    vm.update_draft_field("title", "   ")

    assert await vm.save_edit() is None

    assert "title" in vm.view().field_errors
    assert calls_of(store, "update") == []

    vm.update_draft_field("title", "Fixed")
    assert vm.view().field_errors == {}


@pytest.mark.asyncio
async def test_cancel_edit_discards_draft():
    vm, store, _ = _catalog(1)
    await vm.load()
    vm.begin_edit(vm.books[0])
    vm.update_draft_field("title", "Draft")

    vm.cancel_edit()

    assert vm.edit_session is None
    assert vm.view().draft == {}
    assert calls_of(store, "update") == []


@pytest.mark.asyncio
async def test_delete_requires_confirmation():
    asked = []
    vm, store, _ = _catalog(3, on_confirm_delete=asked.append)
    await vm.load()
    book = vm.books[0]

    vm.request_delete(book)
    assert asked == [book]
    assert vm.view().pending_delete_id == book.id
    assert calls_of(store, "delete") == []

    assert await vm.confirm_delete(book) is True
    await vm.settle()

    assert calls_of(store, "delete") == [book.id]
    assert vm.view().total_count == 2
    assert vm.view().pending_delete_id is None


@pytest.mark.asyncio
async def test_cancelled_delete_sends_nothing():
    vm, store, _ = _catalog(1)
    await vm.load()
    book = vm.books[0]

    vm.request_delete(book)
    vm.cancel_delete()

    with pytest.raises(ValueError):
        await vm.confirm_delete(book)
    assert calls_of(store, "delete") == []


@pytest.mark.asyncio
async def test_late_response_for_previous_page_is_discarded():
    vm, store, _ = _catalog(25, store=GatedStore())
    await vm.load()
    gate = store.hold("list", 2)

    slow = asyncio.create_task(vm.set_page(2))
    await asyncio.sleep(0)
    await vm.set_page(3)
    gate.set()
    await slow

    assert vm.cursor.page == 3
    assert [row.title for row in vm.view().rows] == [f"Book {i}" for i in range(5, 0, -1)]


@pytest.mark.asyncio
async def test_refetch_after_mutation_uses_current_page():
    vm, store, _ = _catalog(25, store=GatedStore())
    await vm.load()
    book = vm.books[0]
    vm.begin_edit(book)
    vm.update_draft_field("title", "Renamed")
    gate = store.hold("update", book.id)

    saving = asyncio.create_task(vm.save_edit())
    await asyncio.sleep(0)
    await vm.set_page(2)
    gate.set()
    await saving
    await vm.settle()

    assert calls_of(store, "list")[-1] == (2, 10)
    assert vm.cursor.page == 2


@pytest.mark.asyncio
async def test_page_is_reclamped_when_total_shrinks():
    vm, store, _ = _catalog(11)
    await vm.load()
    await vm.set_page(2)
    (last,) = vm.books

    vm.request_delete(last)
    await vm.confirm_delete(last)
    await vm.settle()

    view = vm.view()
    assert view.page == 1
    assert view.total_pages == 1
    assert len(view.rows) == 10


@pytest.mark.asyncio
async def test_on_change_receives_views():
    views = []
    vm, _, _ = _catalog(1, on_change=views.append)

    await vm.load()

    assert [v.state for v in views] == [ListState.LOADING, ListState.LOADED]


@pytest.mark.asyncio
async def test_close_stops_listening_for_invalidation():
    vm, store, _ = _catalog(1)
    await vm.load()
    vm.close()

    vm._repository.invalidate()
    await vm.settle()

    assert len(calls_of(store, "list")) == 1
