from __future__ import annotations

from typing import Any, Optional

GENERIC_ERROR_MESSAGE = "An error occurred"


class ApiError(RuntimeError):
    """Base class for REST adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the book store."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            code=code,
            payload=payload,
            context=context,
        )


class ApiServerError(ApiError):
    """HTTP 5xx from the book store."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            payload=payload,
            context=context,
        )


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except Exception:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def extract_message(payload: Any) -> Optional[str]:
    """Return the ``message`` field of an error body, if it carries one."""
    if isinstance(payload, dict):
        value = payload.get("message")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_error_code(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("error", "code"):
            value = payload.get(key)
            if value is None:
                continue
            return value if isinstance(value, str) else str(value)
    return None


def build_error_message(status: int, payload: Any) -> str:
    """User-facing text: the server message, else a generic fallback."""
    return extract_message(payload) or f"{GENERIC_ERROR_MESSAGE} (HTTP {status})"


def error_from_response(resp: Any, ctx: str) -> ApiError:
    """Classify a non-2xx response into the matching ``ApiError`` subclass."""
    status = int(resp.status_code)
    payload = parse_error_payload(resp)
    message = build_error_message(status, payload)
    if 400 <= status < 500:
        return ApiClientError(
            message,
            status=status,
            code=extract_error_code(payload),
            payload=payload,
            context=ctx,
        )
    if 500 <= status < 600:
        return ApiServerError(message, status=status, payload=payload, context=ctx)
    return ApiError(message, status=status, payload=payload, context=ctx)


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "GENERIC_ERROR_MESSAGE",
    "build_error_message",
    "error_from_response",
    "extract_error_code",
    "extract_message",
    "parse_error_payload",
]
