"""Client-side access layer for the library synchronization service."""

from .api.error_handling import (
    ApiError,
    ErrorCategory,
    LibrarySyncError,
    PermanentTransportError,
    RequestTimeoutError,
    TransientTransportError,
    UnknownApiError,
    ValidationError,
)
from .core.dependencies import LibrarySyncClient
from .core.notifications import Notifier, Severity

__version__ = "0.1.0"

__all__ = [
    "LibrarySyncClient",
    "Notifier",
    "Severity",
    "LibrarySyncError",
    "ValidationError",
    "ApiError",
    "TransientTransportError",
    "RequestTimeoutError",
    "PermanentTransportError",
    "UnknownApiError",
    "ErrorCategory",
]
