"""Domain package exports for value objects, codecs, and errors."""

from .entities import Book, BookId, BookPage, EDITABLE_FIELDS, PageCursor
from .errors import (
    CatalogError,
    ChecksumError,
    ConflictError,
    LengthError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from .isbn import check_digit, format_isbn, is_valid_isbn, normalize_isbn, validate_isbn
from .ports import BookStorePort, Invalidated, NotifierPort, TimerPort

__all__ = [
    "Book",
    "BookId",
    "BookPage",
    "BookStorePort",
    "CatalogError",
    "ChecksumError",
    "ConflictError",
    "EDITABLE_FIELDS",
    "Invalidated",
    "LengthError",
    "NetworkError",
    "NotFoundError",
    "NotifierPort",
    "PageCursor",
    "ServerError",
    "TimerPort",
    "ValidationError",
    "check_digit",
    "format_isbn",
    "is_valid_isbn",
    "normalize_isbn",
    "validate_isbn",
]
