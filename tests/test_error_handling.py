"""
Unit tests for error categorization and normalization.
"""

import asyncio
import json
from unittest.mock import Mock

import aiohttp
import pytest

from library_sync.api.error_handling import (
    STATUS_MESSAGES,
    ApiError,
    ErrorCategory,
    HTTPStatusError,
    PermanentTransportError,
    RequestTimeoutError,
    TransientTransportError,
    UnknownApiError,
    ValidationError,
    categorize_error,
    message_for,
    normalize_error,
    status_code_of,
)
from library_sync.config.api import APIConfig

TRANSIENT = APIConfig.RETRYABLE_STATUS_CODES


def response_error(status, message="", detail=None):
    return HTTPStatusError(Mock(), (), status=status, message=message, detail=detail)


class TestCategorizeError:
    """Test mapping of exceptions onto categories."""

    @pytest.mark.parametrize(
        "exception, expected",
        [
            (asyncio.TimeoutError(), ErrorCategory.TIMEOUT),
            (aiohttp.ClientConnectionError("refused"), ErrorCategory.NETWORK),
            (aiohttp.ContentTypeError(Mock(), ()), ErrorCategory.DATA),
            (json.JSONDecodeError("bad", "doc", 0), ErrorCategory.DATA),
            (KeyError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_exception_types(self, exception, expected):
        assert categorize_error(exception) is expected

    @pytest.mark.parametrize(
        "status, expected",
        [
            (400, ErrorCategory.CLIENT),
            (404, ErrorCategory.CLIENT),
            (408, ErrorCategory.TIMEOUT),
            (429, ErrorCategory.RATE_LIMITED),
            (500, ErrorCategory.SERVER),
            (503, ErrorCategory.SERVER),
        ],
    )
    def test_http_statuses(self, status, expected):
        assert categorize_error(response_error(status)) is expected

    def test_api_error_keeps_kind(self):
        assert categorize_error(ApiError(ErrorCategory.DATA, "bad")) is ErrorCategory.DATA


class TestStatusCodeOf:
    def test_transport_failures_use_pseudo_codes(self):
        assert status_code_of(aiohttp.ClientConnectionError()) == 0
        assert status_code_of(asyncio.TimeoutError()) == 408

    def test_response_error_uses_status(self):
        assert status_code_of(response_error(502)) == 502

    def test_decode_failure_has_no_status(self):
        assert status_code_of(aiohttp.ContentTypeError(Mock(), ())) is None


class TestMessageFor:
    """Test the user-facing message table."""

    def test_known_codes(self):
        assert message_for(0) == STATUS_MESSAGES[0]
        assert message_for(503) == "Server temporarily unavailable. Please try again later."

    def test_bad_request_prefers_server_detail(self):
        assert message_for(400, detail="Title is required") == "Title is required"
        assert message_for(400) == "Invalid request"

    def test_unlisted_code(self):
        assert message_for(418, reason="I'm a teapot") == "Error 418: I'm a teapot"
        assert message_for(409, detail="Book already exists") == "Book already exists"

    def test_no_status(self):
        assert message_for(None) == "An unexpected error occurred"


class TestNormalizeError:
    """Test conversion into the ApiError hierarchy."""

    def test_timeout(self):
        error = normalize_error(asyncio.TimeoutError(), TRANSIENT)
        assert isinstance(error, RequestTimeoutError)
        assert isinstance(error, TransientTransportError)
        assert error.status_code == 408
        assert error.kind is ErrorCategory.TIMEOUT

    def test_network(self):
        error = normalize_error(aiohttp.ClientConnectionError("refused"), TRANSIENT)
        assert isinstance(error, TransientTransportError)
        assert error.status_code == 0
        assert error.message == STATUS_MESSAGES[0]

    def test_server_error_is_transient(self):
        error = normalize_error(response_error(503, "Service Unavailable"), TRANSIENT)
        assert type(error) is TransientTransportError
        assert error.kind is ErrorCategory.SERVER

    def test_not_found_is_permanent(self):
        error = normalize_error(response_error(404, "Not Found"), TRANSIENT)
        assert isinstance(error, PermanentTransportError)
        assert error.message == "Requested resource not found"

    def test_server_error_outside_transient_codes_is_permanent(self):
        error = normalize_error(response_error(501, "Not Implemented"), TRANSIENT)
        assert isinstance(error, PermanentTransportError)
        assert error.message == "Error 501: Not Implemented"

    def test_bad_request_carries_detail(self):
        error = normalize_error(response_error(400, "Bad Request", detail="ISBN is malformed"), TRANSIENT)
        assert error.message == "ISBN is malformed"

    def test_decode_failure_is_unknown_data_error(self):
        error = normalize_error(ValueError("Expecting value"), TRANSIENT)
        assert isinstance(error, UnknownApiError)
        assert error.kind is ErrorCategory.DATA
        assert "Invalid response from server" in error.message

    def test_api_error_passes_through(self):
        original = PermanentTransportError(ErrorCategory.CLIENT, "nope", 403)
        assert normalize_error(original) is original

    def test_to_dict(self):
        error = normalize_error(response_error(429), TRANSIENT)
        assert error.to_dict() == {
            "kind": "rate_limited",
            "message": "Too many requests. Please wait a moment.",
            "status_code": 429,
        }


def test_validation_error_is_value_error():
    assert issubclass(ValidationError, ValueError)
