import pytest

from bookshelf.adapters.api_errors import ApiClientError, ApiError, ApiServerError, ApiTimeoutError
from bookshelf.domain.errors import (
    ConflictError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from bookshelf.usecases.error_mapping import NETWORK_MESSAGE, map_api_error


@pytest.mark.parametrize(
    "status, expected",
    [(404, NotFoundError), (409, ConflictError), (400, ValidationError), (422, ValidationError)],
)
def test_client_errors_map_by_status(status, expected):
    exc = ApiClientError("boom", status=status, payload={"message": "Server says no"})

    mapped = map_api_error(exc)

    assert isinstance(mapped, expected)
    assert mapped.message == "Server says no"


def test_server_error_keeps_generic_message():
    exc = ApiServerError("An error occurred (HTTP 502)", status=502, payload="<html>")

    mapped = map_api_error(exc)

    assert isinstance(mapped, ServerError)
    assert mapped.message == "An error occurred (HTTP 502)"


def test_timeout_maps_to_network_error():
    mapped = map_api_error(ApiTimeoutError("Timeout contacting http://x"))

    assert isinstance(mapped, NetworkError)
    assert mapped.message == NETWORK_MESSAGE


def test_malformed_response_maps_to_server_error():
    mapped = map_api_error(ApiError("list_books: expected object response"))

    assert isinstance(mapped, ServerError)
    assert "expected object" in mapped.message


def test_domain_errors_pass_through_unchanged():
    original = ConflictError("busy", code="BUSY")

    assert map_api_error(original) is original


def test_unexpected_exception_uses_default_message():
    mapped = map_api_error(KeyError("x"), default_message="Failed to load books")

    assert isinstance(mapped, ServerError)
    assert mapped.code == "UNEXPECTED"
    assert mapped.message == "Failed to load books"
