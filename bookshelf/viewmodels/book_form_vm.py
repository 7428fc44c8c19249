from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Optional

from bookshelf.domain.entities import Book, EDITABLE_FIELDS, field_errors
from bookshelf.domain.errors import CatalogError, ValidationError
from bookshelf.domain.isbn import format_isbn
from bookshelf.usecases.book_repository import BookRepositoryClient


def _blank_fields(today: date) -> Dict[str, Any]:
    return {"title": "", "author": "", "isbn": "", "published": today.isoformat()}


@dataclass
class BookFormVM:
    """Keeps add-book form state and inline validation; I/O via the repository."""

    repository: BookRepositoryClient
    today: Callable[[], date] = date.today
    on_submitted: Optional[Callable[[Book], None]] = None

    fields: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    submitting: bool = False

    def __post_init__(self) -> None:
        if not self.fields:
            self.fields = _blank_fields(self.today())

    @property
    def isbn_display(self) -> str:
        """ISBN as shown in the input: grouped once 13 digits are typed."""
        return format_isbn(str(self.fields.get("isbn") or ""))

    @property
    def can_submit(self) -> bool:
        return not self.submitting and not any(self.errors.values())

    def set_field(self, name: str, value: Any) -> None:
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown book field: {name}")
        if name == "isbn":
            # Only digits and hyphens may be typed
            value = "".join(ch for ch in str(value or "") if ch.isdigit() or ch == "-")
        self.fields[name] = value
        if name == "isbn" and not value:
            self.errors.pop(name, None)
            return
        problem = field_errors({name: value}, partial=True, today=self.today()).get(name)
        if problem:
            self.errors[name] = problem
        else:
            self.errors.pop(name, None)

    async def submit(self) -> Optional[Book]:
        """Create the book; returns it, or ``None`` when validation/remote call fails.

        A submit while another one is in flight is ignored.
        """
        if self.submitting:
            return None
        problems = field_errors(self.fields, partial=False, today=self.today())
        if problems:
            self.errors = problems
            return None
        self.submitting = True
        try:
            book = await self.repository.create(self.fields)
        except ValidationError as exc:
            self.errors = dict(exc.errors) or {"form": exc.message}
            return None
        except CatalogError:
            return None
        finally:
            self.submitting = False
        self.reset()
        if self.on_submitted:
            self.on_submitted(book)
        return book

    def reset(self) -> None:
        self.fields = _blank_fields(self.today())
        self.errors = {}


__all__ = ["BookFormVM"]
