"""Client for sync job, comparison and history endpoints."""

import logging
from typing import Any, Callable, Dict, List, Optional

from library_sync.core.notifications import Severity
from library_sync.data.cache import TTLCache
from library_sync.data.models import ComparisonResult
from library_sync.data.sync_types import SyncStatus, SyncStatusResponse, TransportStatus

from .book_client import BOOKS_SCOPE
from .error_handling import ApiError, ErrorCategory, ValidationError
from .request_pipeline import RequestPipeline

STATUS_PATH = "/sync/status"
HISTORY_SCOPE = "/sync/history"
COMPARE_SCOPE = "/compare"

StatusListener = Callable[[SyncStatus], None]


class SyncClient:
    """Triggers and inspects replica synchronization jobs."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        cache: TTLCache,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.pipeline = pipeline
        self.cache = cache
        self.logger = logger_obj or logging.getLogger(__name__)
        self.latest_status: Optional[SyncStatus] = None
        self._listeners: List[StatusListener] = []

    @property
    def notifier(self):
        return self.pipeline.notifier

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Be told about every status the client receives."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, response: SyncStatusResponse) -> SyncStatus:
        status = SyncStatus.from_response(response)
        self.latest_status = status
        for listener in list(self._listeners):
            listener(status)
        return status

    @staticmethod
    def _parse_status(payload: Any) -> SyncStatusResponse:
        try:
            return SyncStatusResponse.from_dict(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiError(ErrorCategory.DATA, f"Invalid sync status response: {e}") from e

    async def trigger_sync(self, dry_run: bool = False) -> SyncStatusResponse:
        """Start a sync job, or a dry run that only reports differences."""
        action = "Dry run" if dry_run else "Sync"
        payload = await self.pipeline.post("/sync/trigger", params={"dry_run": "true" if dry_run else "false"})
        response = self._parse_status(payload)

        # Content may change once the job runs
        self.cache.invalidate(BOOKS_SCOPE)
        self._publish(response)

        if response.status is TransportStatus.ALREADY_RUNNING:
            self.notifier.notify("A sync is already in progress", Severity.WARNING)
        else:
            self.notifier.notify(f"{action} started successfully", Severity.SUCCESS)
        return response

    async def get_sync_status(self, use_cache: bool = False) -> SyncStatusResponse:
        """Current job status. Failures here never reach the user."""
        cache_key = self.cache.make_key(STATUS_PATH)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        response = self._parse_status(await self.pipeline.get(STATUS_PATH, background=True))
        self.cache.set(cache_key, response)
        self._publish(response)
        return response

    async def compare_libraries(self, use_cache: bool = False) -> ComparisonResult:
        cache_key = self.cache.make_key(COMPARE_SCOPE)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        payload = await self.pipeline.get("/libraries/compare-all")
        if not isinstance(payload, dict):
            raise ApiError(ErrorCategory.DATA, "Invalid response format: expected comparison result")
        result = ComparisonResult.from_dict(payload)
        self.cache.set(cache_key, result)

        differences = result.total_differences
        if differences > 0:
            message = f"Library comparison completed - {differences} unique books found"
        else:
            message = "Library comparison completed - all libraries are in sync"
        self.notifier.notify(message, Severity.SUCCESS)
        return result

    async def get_sync_history(self, limit: Optional[int] = None, use_cache: bool = False) -> List[Dict[str, Any]]:
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
            raise ValidationError(f"History limit must be a positive integer, got {limit!r}")

        params = {"limit": limit} if limit else None
        cache_key = self.cache.make_key(HISTORY_SCOPE, params)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return list(cached)

        payload = await self.pipeline.get(HISTORY_SCOPE, params=params)
        if isinstance(payload, dict):
            payload = payload.get("history", [])
        history = list(payload or [])
        self.cache.set(cache_key, tuple(history))
        return history

    async def get_sync_stats(self, use_cache: bool = False) -> Dict[str, Any]:
        cache_key = self.cache.make_key(f"{HISTORY_SCOPE}/stats")
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return dict(cached)

        stats = await self.pipeline.get(f"{HISTORY_SCOPE}/stats") or {}
        self.cache.set(cache_key, dict(stats))
        return stats

    async def get_latest_sync(self) -> Optional[Dict[str, Any]]:
        return await self.pipeline.get(f"{HISTORY_SCOPE}/latest")

    async def clear_sync_history(self) -> Any:
        response = await self.pipeline.delete(HISTORY_SCOPE)
        self.cache.invalidate(HISTORY_SCOPE)
        self.notifier.notify("Sync history cleared", Severity.SUCCESS)
        return response

    async def check_health(self) -> Any:
        """Lightweight liveness probe against the service root."""
        return await self.pipeline.get(
            "/health",
            base_url=self.pipeline.config.get_root_url(self.pipeline.base_url),
            timeout=self.pipeline.config.HEALTH_CHECK_TIMEOUT,
        )
