"""API configuration for the library sync service."""

import os
from typing import Optional, Tuple


class APIConfig:
    """API configuration and settings."""

    # Service endpoint
    BASE_URL = os.getenv("LIBRARY_SYNC_API_URL", "http://localhost:8000/api/v1").rstrip("/")

    # Request settings
    REQUEST_TIMEOUT = 30
    HEALTH_CHECK_TIMEOUT = 5
    CLIENT_ID_HEADER = "X-Requested-With"
    CLIENT_ID_VALUE = "XMLHttpRequest"
    DEFAULT_CONTENT_TYPE = "application/json"

    # Retry settings
    MAX_RETRIES = 3
    RETRY_BASE_DELAY = 1.0
    RETRYABLE_STATUS_CODES = frozenset({0, 408, 429, 500, 502, 503, 504})

    # Status polling
    FAST_POLL_INTERVAL = 2.0
    SLOW_POLL_INTERVAL = 5.0
    HISTORY_REFRESH_LIMIT = 20

    # Failures on these paths are logged but never shown to the user
    BACKGROUND_PATHS: Tuple[str, ...] = ("/sync/status",)

    @classmethod
    def get_url(cls, path: str, base_url: Optional[str] = None) -> str:
        """Get the full URL for an API path."""
        base = (base_url or cls.BASE_URL).rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    @classmethod
    def get_root_url(cls, base_url: Optional[str] = None) -> str:
        """Get the service root, without the versioned API prefix."""
        base = (base_url or cls.BASE_URL).rstrip("/")
        if base.endswith("/api/v1"):
            base = base[: -len("/api/v1")]
        return base

    @classmethod
    def is_background_path(cls, path: str) -> bool:
        """Check whether failures on a path should stay out of user notifications."""
        return any(background in path for background in cls.BACKGROUND_PATHS)
