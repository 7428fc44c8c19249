"""Translate adapter errors into user-facing ``CatalogError`` instances."""

from __future__ import annotations

from typing import Optional

from bookshelf.adapters.api_errors import (
    GENERIC_ERROR_MESSAGE,
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    extract_message,
)
from bookshelf.domain.errors import (
    CatalogError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)

NETWORK_MESSAGE = "Network error: the catalog server could not be reached."


def map_api_error(
    exc: Exception,
    *,
    default_message: Optional[str] = None,
) -> CatalogError:
    """Map adapter exceptions to the catalog error taxonomy.

    HTTP 404 -> ``NotFoundError``, 409 -> ``ConflictError``, any other 4xx ->
    ``ValidationError``, 5xx -> ``ServerError``, transport failures ->
    ``NetworkError``. The server ``message`` is kept verbatim when present.

    Args:
        exc: Exception raised by an adapter (or already a ``CatalogError``).
        default_message: Fallback text when the error carries no message.

    Returns:
        CatalogError: Domain error to raise and surface to the user.
    """
    if isinstance(exc, CatalogError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return NetworkError(NETWORK_MESSAGE)
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        message = _message_for(exc, default_message)
        if status == 404:
            return NotFoundError(message)
        if status == 409:
            return ConflictError(message)
        return ValidationError(message, code=exc.code or "INVALID_BOOK")
    if isinstance(exc, ApiServerError):
        return ServerError(_message_for(exc, default_message))
    if isinstance(exc, ApiError):
        return ServerError(str(exc) or _fallback(default_message))

    message = default_message or str(exc) or "Unexpected error."
    return ServerError(message, code="UNEXPECTED")


def _message_for(exc: ApiError, default_message: Optional[str]) -> str:
    return extract_message(exc.payload) or exc.message or _fallback(default_message)


def _fallback(default_message: Optional[str]) -> str:
    return default_message or GENERIC_ERROR_MESSAGE


__all__ = ["NETWORK_MESSAGE", "map_api_error"]
