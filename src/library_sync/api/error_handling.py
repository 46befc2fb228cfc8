"""Error taxonomy and categorization for API operations."""

import asyncio
import json
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

# Pseudo status codes for failures that never produced an HTTP response
NETWORK_STATUS = 0
TIMEOUT_STATUS = 408


class ErrorCategory(Enum):
    """Categories for different types of API errors."""

    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    DATA = "data"
    UNKNOWN = "unknown"


STATUS_MESSAGES: Dict[int, str] = {
    0: "Unable to connect to server. Please check your internet connection.",
    400: "Invalid request",
    401: "Unauthorized access. Please check your credentials.",
    403: "Access forbidden",
    404: "Requested resource not found",
    408: "Request timeout. Please try again.",
    429: "Too many requests. Please wait a moment.",
    500: "Internal server error. Please try again later.",
    502: "Server temporarily unavailable. Please try again later.",
    503: "Server temporarily unavailable. Please try again later.",
    504: "Server temporarily unavailable. Please try again later.",
}
UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred"


class HTTPStatusError(aiohttp.ClientResponseError):
    """Non-2xx response, carrying the server's own error message when it sent one."""

    def __init__(self, *args: Any, detail: Optional[str] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.detail = detail


class LibrarySyncError(Exception):
    """Base class for all errors raised by the client."""


class ValidationError(LibrarySyncError, ValueError):
    """Caller input rejected before any request is sent."""


class ApiError(LibrarySyncError):
    """A request that failed after the pipeline gave up on it."""

    def __init__(self, kind: ErrorCategory, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "status_code": self.status_code}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, status_code={self.status_code!r})"


class TransientTransportError(ApiError):
    """Connection failures and overloaded servers; retried before surfacing."""


class RequestTimeoutError(TransientTransportError):
    """The request did not complete within its timeout."""


class PermanentTransportError(ApiError):
    """Client errors (4xx other than 408/429); never retried."""


class UnknownApiError(ApiError):
    """Anything that could not be classified."""


def status_code_of(exception: BaseException) -> Optional[int]:
    """Map a transport exception to the status code used by the retry policy."""
    if isinstance(exception, ApiError):
        return exception.status_code
    if isinstance(exception, asyncio.TimeoutError):
        return TIMEOUT_STATUS
    if isinstance(exception, aiohttp.ContentTypeError):
        return None
    if isinstance(exception, aiohttp.ClientResponseError):
        return exception.status
    if isinstance(exception, aiohttp.ClientConnectionError):
        return NETWORK_STATUS
    return None


def categorize_error(exception: BaseException) -> ErrorCategory:
    """Categorize an exception into error types for better handling."""
    if isinstance(exception, ApiError):
        return exception.kind
    elif isinstance(exception, asyncio.TimeoutError):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, aiohttp.ContentTypeError):
        return ErrorCategory.DATA
    elif isinstance(exception, aiohttp.ClientResponseError):
        if exception.status == TIMEOUT_STATUS:
            return ErrorCategory.TIMEOUT
        elif exception.status == 429:
            return ErrorCategory.RATE_LIMITED
        elif 400 <= exception.status < 500:
            return ErrorCategory.CLIENT
        elif 500 <= exception.status < 600:
            return ErrorCategory.SERVER
        else:
            return ErrorCategory.UNKNOWN
    elif isinstance(exception, aiohttp.ClientError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, (json.JSONDecodeError, ValueError)):
        return ErrorCategory.DATA
    else:
        return ErrorCategory.UNKNOWN


def message_for(status_code: Optional[int], detail: Optional[str] = None, reason: Optional[str] = None) -> str:
    """Human-readable message for a failed request."""
    if status_code is None:
        return detail or UNKNOWN_ERROR_MESSAGE
    if status_code == 400:
        return detail or STATUS_MESSAGES[400]
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    return detail or f"Error {status_code}: {reason or 'Unknown Error'}"


def normalize_error(exception: BaseException, transient_codes=frozenset()) -> ApiError:
    """Convert any transport failure into a single ``ApiError`` shape.

    Args:
        exception: The exception raised by the transport or response decoding.
        transient_codes: Status codes the retry policy treats as transient.

    Returns:
        An ``ApiError`` subclass carrying kind, message and status code.
    """
    if isinstance(exception, ApiError):
        return exception

    category = categorize_error(exception)
    status_code = status_code_of(exception)
    detail = None
    reason = None
    if category is ErrorCategory.DATA:
        detail = f"Invalid response from server: {exception}"
    elif isinstance(exception, aiohttp.ClientResponseError):
        detail = getattr(exception, "detail", None)
        reason = exception.message or None

    message = message_for(status_code, detail=detail, reason=reason)

    if category is ErrorCategory.TIMEOUT:
        return RequestTimeoutError(category, message, status_code)
    if status_code is not None and status_code in transient_codes:
        return TransientTransportError(category, message, status_code)
    if category is ErrorCategory.CLIENT or (status_code is not None and 400 <= status_code < 600):
        return PermanentTransportError(category, message, status_code)
    if category is ErrorCategory.NETWORK:
        return TransientTransportError(category, message, status_code)
    return UnknownApiError(category, message, status_code)
