"""In-memory response cache with per-entry expiry."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from library_sync.config.settings import Settings

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and the moment it was stored."""

    data: T
    timestamp: float


class TTLCache:
    """Key/value store whose entries expire ``ttl`` seconds after being set.

    Expired entries are evicted lazily when read. There is no size cap: the
    cache lives only as long as the client that owns it.
    """

    def __init__(
        self,
        ttl: float = Settings.CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        logger_obj: Optional[logging.Logger] = None,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self.logger = logger_obj or logging.getLogger(__name__)

    @staticmethod
    def make_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Build a stable cache key from an endpoint and its parameters."""
        if not params:
            return endpoint
        return f"{endpoint}{json.dumps(params, sort_keys=True, default=str)}"

    def _is_valid(self, entry: CacheEntry[Any]) -> bool:
        return self._clock() - entry.timestamp < self.ttl

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_valid(entry):
            return entry.data
        del self._entries[key]
        self.logger.debug(f"Cache entry expired: {key}")
        return None

    def set(self, key: str, data: Any) -> None:
        """Store a value, replacing any previous entry and its timestamp."""
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Drop every entry whose key contains ``pattern``, or all entries.

        Returns:
            The number of entries removed.
        """
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            matching = [key for key in self._entries if pattern in key]
            for key in matching:
                del self._entries[key]
            removed = len(matching)

        if removed:
            self.logger.debug(f"Invalidated {removed} cache entries (pattern={pattern!r})")
        return removed

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
