"""Domain value objects shared across adapters, use-cases, and view models."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ValidationError
from .isbn import format_isbn, normalize_isbn, validate_isbn

BookId = str

EDITABLE_FIELDS: Tuple[str, ...] = ("title", "author", "isbn", "published")
"""Book fields a user may set on create or change on update."""


@dataclass(frozen=True)
class Book:
    """A catalog entry as stored by the remote store."""

    id: BookId
    """Server-assigned identifier, kept as text and never modified client-side."""

    title: str
    author: str
    isbn: str
    """Canonical hyphenated ISBN-13 (``XXX-X-XXX-XXXXX-X``)."""

    published: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def isbn_digits(self) -> str:
        """Raw 13-digit sequence used for identity and search."""
        return normalize_isbn(self.isbn)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Book":
        """Build a book from the JSON object returned by the store."""
        if not isinstance(payload, Mapping):
            raise TypeError("Book payload must be a mapping.")
        raw_id = payload.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ValueError("Book payload is missing 'id'.")
        published = parse_published(payload.get("published"))
        if published is None:
            raise ValueError("Book payload is missing 'published'.")
        return cls(
            id=str(raw_id),
            title=str(payload.get("title") or ""),
            author=str(payload.get("author") or ""),
            isbn=format_isbn(str(payload.get("isbn") or "")),
            published=published,
            created_at=_parse_timestamp(payload.get("created_at")),
            updated_at=_parse_timestamp(payload.get("updated_at")),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "published": published_to_wire(self.published),
        }


@dataclass(frozen=True)
class BookPage:
    """One page of the remote list together with the total item count."""

    books: Tuple[Book, ...]
    total_count: int
    page: int
    page_size: int


@dataclass(frozen=True)
class PageCursor:
    """Pagination position. ``page`` always lies in ``[1, max_page]``."""

    page: int = 1
    page_size: int = 10
    total_count: int = 0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive.")
        if self.total_count < 0:
            raise ValueError("total_count must be non-negative.")
        clamped = self.clamp(self.page)
        if clamped != self.page:
            object.__setattr__(self, "page", clamped)

    @property
    def max_page(self) -> int:
        return max(1, math.ceil(self.total_count / self.page_size))

    def clamp(self, page: int) -> int:
        return min(max(1, int(page)), self.max_page)

    def with_page(self, page: int) -> "PageCursor":
        return replace(self, page=self.clamp(page))

    def with_total(self, total_count: int) -> "PageCursor":
        # __post_init__ re-clamps the page against the new total
        return replace(self, total_count=max(0, int(total_count)))


# ---------------------------------------------------------------------------
# Field parsing and validation
# ---------------------------------------------------------------------------
def parse_published(value: Any) -> Optional[date]:
    """Accept ``date``/``datetime`` objects or ISO-8601 date / date-time text."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        # Fractions longer than microseconds; only the date part is kept
        return date.fromisoformat(text[:10])


def published_to_wire(value: date) -> str:
    """Serialize a calendar date as the ISO date-time text the store expects."""
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).isoformat().replace(
        "+00:00", "Z"
    )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def field_errors(
    fields: Mapping[str, Any], *, partial: bool, today: Optional[date] = None
) -> Dict[str, str]:
    """Return ``{field: message}`` for every invalid book field.

    With ``partial=False`` all editable fields are required; otherwise only
    the fields present in ``fields`` are checked.
    """
    errors: Dict[str, str] = {}
    for name in fields:
        if name not in EDITABLE_FIELDS:
            errors[name] = f"Unknown field '{name}'."

    for name in ("title", "author"):
        if name not in fields and partial:
            continue
        if not str(fields.get(name) or "").strip():
            errors[name] = f"{name.capitalize()} is required."

    if "isbn" in fields or not partial:
        try:
            validate_isbn(str(fields.get("isbn") or ""))
        except ValidationError as exc:
            errors["isbn"] = exc.message

    if "published" in fields or not partial:
        try:
            published = parse_published(fields.get("published"))
        except (TypeError, ValueError):
            errors["published"] = "Published date is not a valid date."
        else:
            if published is None:
                errors["published"] = "Published date is required."
            elif published > (today or date.today()):
                errors["published"] = "Published date cannot be in the future."
    return errors


def clean_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Produce the wire payload for already validated fields."""
    payload: Dict[str, Any] = {}
    for name in EDITABLE_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if name in ("title", "author"):
            payload[name] = str(value).strip()
        elif name == "isbn":
            payload[name] = format_isbn(normalize_isbn(str(value)))
        else:
            payload[name] = published_to_wire(parse_published(value))
    return payload


__all__ = [
    "Book",
    "BookId",
    "BookPage",
    "EDITABLE_FIELDS",
    "PageCursor",
    "clean_fields",
    "field_errors",
    "parse_published",
    "published_to_wire",
]
