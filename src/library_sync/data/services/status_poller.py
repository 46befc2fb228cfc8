"""Adaptive polling of the sync job status."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from library_sync.config.api import APIConfig
from library_sync.data.sync_types import JobState

StatusFetcher = Callable[[], Awaitable[JobState]]
CompletionHandler = Callable[[], Awaitable[None]]


@dataclass
class PollState:
    """Interval and last status seen by one poller."""

    interval: float
    last_known_status: JobState = JobState.IDLE


@dataclass(frozen=True)
class Transition:
    interval: float
    refresh_history: bool = False


class AdaptivePoller:
    """Polls job status quickly while a sync runs and slowly otherwise.

    The switch from the fast back to the slow interval marks a finished job
    and is the only point where ``on_complete`` runs.
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        on_complete: CompletionHandler,
        fast_interval: float = APIConfig.FAST_POLL_INTERVAL,
        slow_interval: float = APIConfig.SLOW_POLL_INTERVAL,
        logger_obj: Optional[logging.Logger] = None,
    ):
        if fast_interval <= 0 or slow_interval <= 0:
            raise ValueError("poll intervals must be positive")
        if fast_interval >= slow_interval:
            raise ValueError("fast_interval must be shorter than slow_interval")
        self._fetch_status = fetch_status
        self._on_complete = on_complete
        self.fast_interval = fast_interval
        self.slow_interval = slow_interval
        self.logger = logger_obj or logging.getLogger(__name__)
        self.state = PollState(interval=slow_interval)
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def handle_status(self, status: JobState) -> Transition:
        """Apply one status result to the poll state."""
        self.state.last_known_status = status

        if status is JobState.RUNNING:
            if self.state.interval != self.fast_interval:
                self.logger.debug(f"Sync running; polling every {self.fast_interval}s")
                self.state.interval = self.fast_interval
            return Transition(self.state.interval)

        if self.state.interval == self.fast_interval:
            self.logger.info(f"Sync finished; polling every {self.slow_interval}s")
            self.state.interval = self.slow_interval
            return Transition(self.state.interval, refresh_history=True)

        return Transition(self.state.interval)

    async def poll_once(self) -> Optional[JobState]:
        """Fetch the status once and act on it. Failures are logged, never raised."""
        try:
            status = await self._fetch_status()
        except Exception as e:
            self.logger.warning(f"Status poll failed, keeping {self.state.interval}s interval: {e}")
            return None

        transition = self.handle_status(status)
        if transition.refresh_history:
            try:
                await self._on_complete()
            except Exception as e:
                self.logger.error(f"Refreshing sync history after completion failed: {e}", exc_info=True)
        return status

    def start(self) -> None:
        """Fetch immediately, then keep polling until ``stop``."""
        if self.running:
            return
        self._wake = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._wake = None
        self.state = PollState(interval=self.slow_interval)

    def accelerate(self) -> None:
        """Switch to the fast interval now, e.g. right after a sync was triggered."""
        self.state.interval = self.fast_interval
        if self._wake is not None:
            self._wake.set()

    async def _run(self) -> None:
        await self.poll_once()
        while True:
            await self._sleep(self.state.interval)
            await self.poll_once()

    async def _sleep(self, interval: float) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
        finally:
            self._wake.clear()
