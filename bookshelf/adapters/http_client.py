"""Shared async HTTP transport for REST adapters.

This module provides a thin wrapper around ``httpx.AsyncClient`` so adapter
implementations share timeout policy, retry behavior, and API-key header
construction.

Dependencies:
    - ``httpx`` for non-blocking network I/O on the running event loop.
    - ``bookshelf.adapters.api_errors.ApiTimeoutError`` for typed transport
      failures.

Call context:
    - Constructed by ``BooksRestAdapter`` in ``bookshelf/adapters/books_rest.py``.
    - Used only inside adapter layer methods; use cases interact through ports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from bookshelf.adapters.api_errors import ApiTimeoutError

log = logging.getLogger(__name__)


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Timeout in seconds for JSON API calls.
        retries: Retry attempts after the initial request. Applied to GET
            only; mutations are sent exactly once.
    """
    request_timeout_s: float = 10
    retries: int = 0


class RetryingSession:
    """Shared ``httpx.AsyncClient`` wrapper with API-key headers.

    This class is intentionally transport-only. Callers provide endpoint URLs and
    decide how to map non-2xx responses into domain/use-case errors.
    """

    def __init__(
        self,
        api_key: Optional[str],
        cfg: HttpConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Create the async client.

        Args:
            api_key: API key value to place in ``X-API-Key`` headers, or ``None``.
            cfg: Shared timeout and retry settings.
            transport: Optional ``httpx`` transport override (tests inject
                ``httpx.MockTransport``).
        """
        self.api_key = api_key
        self.cfg = cfg
        self.client = httpx.AsyncClient(timeout=cfg.request_timeout_s, transport=transport)

    def _headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def get(
        self, url: str, *, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Send a GET request, retrying on timeout/connectivity failures.

        Raises:
            ApiTimeoutError: If all attempts fail with transport errors.
        """
        context = f"GET {url}"
        last_err: ApiTimeoutError | None = None
        attempts = self.cfg.retries + 1
        for attempt in range(attempts):
            try:
                log.debug("%s params=%s (attempt %d/%d)", context, params, attempt + 1, attempts)
                return await self.client.get(url, params=params, headers=self._headers())
            except httpx.TransportError as exc:
                log.warning("%s failed: %s", context, exc)
                last_err = ApiTimeoutError(_transport_message(exc, url), context=context)
        raise last_err

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a single, non-retried request (POST/PUT/DELETE).

        Raises:
            ApiTimeoutError: On timeout or connectivity failure.
        """
        context = f"{method} {url}"
        log.debug("%s params=%s body=%s", context, params, json_body)
        try:
            return await self.client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(json_body=json_body is not None),
            )
        except httpx.TransportError as exc:
            log.warning("%s failed: %s", context, exc)
            raise ApiTimeoutError(_transport_message(exc, url), context=context) from exc

    async def aclose(self) -> None:
        await self.client.aclose()


def _transport_message(exc: httpx.TransportError, url: str) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return f"Timeout contacting {url}"
    return f"Could not connect to {url}"


__all__ = ["HttpConfig", "RetryingSession"]
