"""API clients and communication modules."""

from .book_client import BookClient
from .error_handling import ApiError, ErrorCategory, categorize_error
from .request_pipeline import RequestPipeline
from .retry_policy import RetryDecision, RetryPolicy
from .sync_client import SyncClient

__all__ = [
    "BookClient",
    "SyncClient",
    "RequestPipeline",
    "RetryPolicy",
    "RetryDecision",
    "ApiError",
    "ErrorCategory",
    "categorize_error",
]
