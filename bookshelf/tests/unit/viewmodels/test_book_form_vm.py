import asyncio
from datetime import date

import pytest

from bookshelf.adapters.books_mock import BooksMemoryAdapter
from bookshelf.viewmodels.book_form_vm import BookFormVM
from bookshelf.tests.helpers import calls_of, make_repository

TODAY = date(2024, 6, 1)


def _form(store=None, **kwargs):
    repo, store, notifications, _ = make_repository(store)
    form = BookFormVM(repo, today=lambda: TODAY, **kwargs)
    return form, store, notifications


def _fill(form):
    form.set_field("title", "Test Book")
    form.set_field("author", "Test Author")
    form.set_field("isbn", "978-3-16-148410-0")
    form.set_field("published", "2002-01-01")


def test_new_form_defaults_published_to_today():
    form, _, _ = _form()

    assert form.fields["published"] == "2024-06-01"
    assert form.can_submit


def test_isbn_input_keeps_only_digits_and_hyphens():
    form, _, _ = _form()

    form.set_field("isbn", "978x3-16-148410-0 ")

    assert form.fields["isbn"] == "9783-16-148410-0"
    assert form.isbn_display == "978-3-161-48410-0"
    assert "isbn" not in form.errors


def test_live_validation_flags_bad_checksum():
    form, _, _ = _form()

    form.set_field("isbn", "9783161484101")

    assert form.errors["isbn"] == "Invalid ISBN checksum."
    assert not form.can_submit

    form.set_field("isbn", "")
    assert form.can_submit


def test_future_published_date_is_flagged():
    form, _, _ = _form()

    form.set_field("published", "2024-06-02")

    assert "published" in form.errors


@pytest.mark.asyncio
async def test_submit_creates_book_and_resets():
    submitted = []
    form, store, notifications = _form(on_submitted=submitted.append)
    _fill(form)

    book = await form.submit()

    assert book is not None
    assert submitted == [book]
    assert calls_of(store, "create")[0]["isbn"] == "978-3-161-48410-0"
    assert form.fields["title"] == ""
    assert notifications.active()[0].message == 'Book "Test Book" added'


@pytest.mark.asyncio
async def test_double_submit_sends_one_request():
    form, store, notifications = _form(BooksMemoryAdapter(delay_s=0.01))
    _fill(form)

    first = asyncio.create_task(form.submit())
    await asyncio.sleep(0)
    assert form.submitting
    second = await form.submit()
    book = await first

    assert second is None
    assert book is not None
    assert len(calls_of(store, "create")) == 1
    assert not form.submitting
    assert [n.message for n in notifications.active()] == ['Book "Test Book" added']


@pytest.mark.asyncio
async def test_submit_with_missing_fields_sends_nothing():
    form, store, _ = _form()
    form.set_field("title", "Only a title")

    assert await form.submit() is None

    assert {"author", "isbn"} <= set(form.errors)
    assert calls_of(store, "create") == []


@pytest.mark.asyncio
async def test_remote_conflict_keeps_the_draft():
    form, store, notifications = _form()
    _fill(form)
    store.fail_next(409, "A book with this ISBN already exists")

    assert await form.submit() is None

    assert form.fields["title"] == "Test Book"
    assert not form.submitting
    assert notifications.active()[0].message == "A book with this ISBN already exists"
