"""Loading indicator bookkeeping for in-flight requests."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

LoadingListener = Callable[[bool], None]


class LoadingTracker:
    """Counts outstanding requests and publishes ``loading`` as ``count > 0``.

    Overlapping requests each hold one slot, so the flag stays up until the
    last of them finishes.
    """

    def __init__(self, logger_obj: Optional[logging.Logger] = None):
        self._count = 0
        self._listeners: List[LoadingListener] = []
        self.logger = logger_obj or logging.getLogger(__name__)

    @property
    def count(self) -> int:
        return self._count

    @property
    def loading(self) -> bool:
        return self._count > 0

    def subscribe(self, listener: LoadingListener) -> Callable[[], None]:
        """Register a ``loading_changed`` listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def acquire(self) -> None:
        was_loading = self.loading
        self._count += 1
        if not was_loading:
            self._publish()

    def release(self) -> None:
        was_loading = self.loading
        self._count = max(0, self._count - 1)
        if was_loading and not self.loading:
            self._publish()

    @contextmanager
    def track(self) -> Iterator[None]:
        """Hold one loading slot for the duration of the block, however it exits."""
        self.acquire()
        try:
            yield
        finally:
            self.release()

    def reset(self) -> None:
        was_loading = self.loading
        self._count = 0
        if was_loading:
            self._publish()

    def _publish(self) -> None:
        state = self.loading
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.error(f"Loading listener failed: {e}", exc_info=True)
