# tests/conftest.py
import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

# Make sure `src/` is on the import path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
sys.path.insert(0, os.path.join(ROOT, "src"))

from library_sync.api.book_client import BookClient  # noqa: E402
from library_sync.api.request_pipeline import RequestPipeline  # noqa: E402
from library_sync.api.retry_policy import RetryPolicy  # noqa: E402
from library_sync.api.sync_client import SyncClient  # noqa: E402
from library_sync.core.loading import LoadingTracker  # noqa: E402
from library_sync.core.notifications import RecordingNotifier  # noqa: E402
from library_sync.data.cache import TTLCache  # noqa: E402

BASE_URL = "http://sync.test/api/v1"


class FakeResponse:
    """Stands in for an aiohttp response inside ``async with session.request(...)``."""

    def __init__(self, status: int = 200, body: Any = None, *, reason: str = "OK", content: Optional[bytes] = None):
        self.status = status
        self.reason = reason
        self._body = body
        self._content = content
        self.request_info = Mock(real_url=BASE_URL)
        self.history = ()
        self.headers = {}

    async def json(self, content_type: Optional[str] = "application/json"):
        if self._content is not None:
            return json.loads(self._content.decode("utf-8"))
        return self._body

    async def read(self) -> bytes:
        if self._content is not None:
            return self._content
        return json.dumps(self._body).encode("utf-8")

    async def text(self) -> str:
        return (await self.read()).decode("utf-8")


class _FakeRequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Scripted replacement for ``aiohttp.ClientSession``.

    Outcomes are registered per method and URL fragment. Each request pops the
    next outcome for the first matching route; the last one repeats. An
    outcome is either a ``FakeResponse`` or an exception to raise.
    """

    def __init__(self):
        self.closed = False
        self.calls: List[Dict[str, Any]] = []
        self._routes: List[Tuple[str, str, List[Any]]] = []

    def add(self, method: str, url_part: str, *outcomes) -> "FakeSession":
        self._routes.append((method.upper(), url_part, list(outcomes)))
        return self

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        for route_method, url_part, outcomes in self._routes:
            if route_method == method and url_part in url and outcomes:
                outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
                return _FakeRequestContext(outcome)
        raise AssertionError(f"Unexpected request: {method} {url}")

    def calls_to(self, url_part: str, method: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            call for call in self.calls if url_part in call["url"] and (method is None or call["method"] == method)
        ]

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def loading():
    return LoadingTracker()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl=300, clock=clock)


@pytest.fixture
def pipeline(fake_session, loading, notifier):
    """Pipeline with zero retry delays so retried tests do not sleep."""
    return RequestPipeline(
        session=fake_session,
        loading=loading,
        notifier=notifier,
        retry_policy=RetryPolicy(base_delay=0.0),
        base_url=BASE_URL,
    )


@pytest.fixture
def book_client(pipeline, cache):
    return BookClient(pipeline, cache)


@pytest.fixture
def sync_client(pipeline, cache):
    return SyncClient(pipeline, cache)
