"""Domain-level error types for use-case and view-model handling.

Transport exceptions from ``bookshelf.adapters.api_errors`` never cross the
use-case boundary; ``bookshelf.usecases.error_mapping`` converts them into the
classes below. Every error carries a stable ``code`` and a user-presentable
``message`` that is surfaced unchanged in notifications.
"""

from __future__ import annotations

from typing import Dict, Optional


class CatalogError(Exception):
    """Base class for user-presentable catalog failures."""

    default_code = "CATALOG_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message


class ValidationError(CatalogError):
    """Local or server-side rejection of book field values.

    Attributes:
        field: Name of the first offending field, if known.
        errors: Mapping of field name to message for every offending field.
    """

    default_code = "INVALID_BOOK"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.field = field
        self.errors: Dict[str, str] = dict(errors or {})
        if field and field not in self.errors:
            self.errors[field] = message


class LengthError(ValidationError):
    default_code = "ISBN_LENGTH"

    def __init__(self, message: str) -> None:
        super().__init__(message, field="isbn")


class ChecksumError(ValidationError):
    default_code = "ISBN_CHECKSUM"

    def __init__(self, message: str) -> None:
        super().__init__(message, field="isbn")


class NotFoundError(CatalogError):
    default_code = "NOT_FOUND"


class ConflictError(CatalogError):
    """Remote 409 or a local busy/edit-in-progress rejection."""

    default_code = "CONFLICT"


class ServerError(CatalogError):
    default_code = "SERVER_ERROR"


class NetworkError(CatalogError):
    default_code = "NETWORK_ERROR"


__all__ = [
    "CatalogError",
    "ChecksumError",
    "ConflictError",
    "LengthError",
    "NetworkError",
    "NotFoundError",
    "ServerError",
    "ValidationError",
]
