"""Dependency container wiring one client session together."""

import logging
from pathlib import Path
from typing import List, Optional

import aiohttp

from library_sync.api.book_client import BookClient
from library_sync.api.error_handling import LibrarySyncError
from library_sync.api.request_pipeline import RequestPipeline
from library_sync.api.retry_policy import RetryPolicy
from library_sync.api.sync_client import SyncClient
from library_sync.config.api import APIConfig
from library_sync.config.settings import Settings
from library_sync.data.cache import TTLCache
from library_sync.data.services.status_poller import AdaptivePoller
from library_sync.data.sync_types import JobState, job_state_for
from library_sync.utils.logger_setup import setup_logging

from .loading import LoadingTracker
from .notifications import LoggingNotifier, Notifier


class LibrarySyncClient:
    """Container for the cache, loading tracker, pipeline and resource clients.

    Each instance owns its own cache and loading counter; nothing is shared
    between instances. Use it as an async context manager, or call ``close``
    when done, so pollers stop and the HTTP session is released.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        session: Optional[aiohttp.ClientSession] = None,
        retry_policy: Optional[RetryPolicy] = None,
        cache_ttl: float = Settings.CACHE_TTL_SECONDS,
        logger_name: str = Settings.LOGGER_NAME,
        log_dir: Optional[Path] = None,
    ):
        self.logger = setup_logging(logger_name, log_dir=log_dir)
        self.notifier = notifier or LoggingNotifier(logger_obj=self.logger)
        self.cache = TTLCache(ttl=cache_ttl)
        self.loading = LoadingTracker()
        self.pipeline = RequestPipeline(
            session=session,
            loading=self.loading,
            notifier=self.notifier,
            retry_policy=retry_policy,
            base_url=base_url,
        )

        # Initialize services
        self._books: Optional[BookClient] = None
        self._sync: Optional[SyncClient] = None
        self._pollers: List[AdaptivePoller] = []

    @property
    def books(self) -> BookClient:
        """Get or create the book client."""
        if self._books is None:
            self._books = BookClient(self.pipeline, self.cache)
        return self._books

    @property
    def sync(self) -> SyncClient:
        """Get or create the sync client."""
        if self._sync is None:
            self._sync = SyncClient(self.pipeline, self.cache)
        return self._sync

    async def _fetch_job_state(self) -> JobState:
        response = await self.sync.get_sync_status()
        return job_state_for(response.status)

    async def _refresh_history(self) -> None:
        """Reload recent history and stats; each is fetched even if the other fails."""
        try:
            await self.sync.get_sync_history(limit=APIConfig.HISTORY_REFRESH_LIMIT)
        except LibrarySyncError as e:
            self.logger.warning(f"Could not refresh sync history: {e}")
        try:
            await self.sync.get_sync_stats()
        except LibrarySyncError as e:
            self.logger.warning(f"Could not refresh sync stats: {e}")

    def create_status_poller(self, **kwargs) -> AdaptivePoller:
        """Build a poller bound to this client's sync status and history endpoints."""
        poller = AdaptivePoller(self._fetch_job_state, self._refresh_history, **kwargs)
        self._pollers.append(poller)
        return poller

    def start_status_polling(self, **kwargs) -> AdaptivePoller:
        poller = self.create_status_poller(**kwargs)
        poller.start()
        return poller

    async def trigger_sync(self, dry_run: bool = False, poller: Optional[AdaptivePoller] = None):
        """Trigger a sync and, when given a poller, switch it to fast polling."""
        response = await self.sync.trigger_sync(dry_run=dry_run)
        if poller is not None:
            poller.accelerate()
        return response

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger instance."""
        if name:
            return logging.getLogger(name)
        return self.logger

    async def close(self) -> None:
        for poller in self._pollers:
            await poller.stop()
        self._pollers.clear()
        await self.pipeline.close()
        self.loading.reset()

    async def __aenter__(self) -> "LibrarySyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
