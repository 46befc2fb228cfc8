"""Request pipeline wrapping every call to the sync service."""

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Set, Union

import aiohttp
import backoff

from library_sync.config.api import APIConfig
from library_sync.core.loading import LoadingTracker
from library_sync.core.notifications import LoggingNotifier, Notifier, Severity

from .error_handling import HTTPStatusError, categorize_error, normalize_error, status_code_of
from .retry_policy import RetryPolicy

# A form body can only be serialized once, so callers pass a factory for retried uploads
RequestBody = Union[aiohttp.FormData, bytes, str, Callable[[], Any], None]

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class _AttemptState:
    """Per-request retry bookkeeping shared by the giveup check and the wait generator."""

    __slots__ = ("index", "pending_delay")

    def __init__(self):
        self.index = 0
        self.pending_delay = 0.0


def _policy_delays(attempt: _AttemptState):
    """Wait generator yielding whatever delay the retry policy last authorized."""
    yield
    while True:
        yield attempt.pending_delay


class RequestPipeline:
    """Sends requests to the sync service with retries, timing and error normalization."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        loading: Optional[LoadingTracker] = None,
        notifier: Optional[Notifier] = None,
        retry_policy: Optional[RetryPolicy] = None,
        base_url: Optional[str] = None,
        logger_obj: Optional[logging.Logger] = None,
    ):
        self.logger = logger_obj or logging.getLogger(__name__)
        self.config = APIConfig()
        self.base_url = (base_url or self.config.BASE_URL).rstrip("/")
        self.loading = loading or LoadingTracker(logger_obj=self.logger)
        self.notifier = notifier or LoggingNotifier(logger_obj=self.logger)
        self.retry_policy = retry_policy or RetryPolicy()
        self._session = session
        self._owns_session = session is None
        self._closed = False
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise aiohttp.ClientConnectionError("pipeline closed")
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Cancel in-flight requests and close the HTTP session if the pipeline created it.

        Once closed, the pipeline sends nothing more: pending retries are
        cancelled and new requests fail with a connection error.
        """
        self._closed = True
        current = asyncio.current_task()
        pending = [task for task in self._in_flight if task is not current and not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            self.logger.debug(f"Cancelling {len(pending)} in-flight request(s) on close")
            await asyncio.gather(*pending, return_exceptions=True)

        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    @contextmanager
    def _registered(self) -> Iterator[None]:
        """Record the calling task as in flight so ``close`` can cancel it."""
        task = asyncio.current_task()
        if task is not None:
            self._in_flight.add(task)
        try:
            yield
        finally:
            self._in_flight.discard(task)

    def _build_headers(self, headers: Optional[Mapping[str, str]], has_body: bool) -> Dict[str, str]:
        merged = dict(headers or {})
        present = {name.lower() for name in merged}
        # Multipart and raw bodies set their own content type
        if not has_body and "content-type" not in present:
            merged["Content-Type"] = self.config.DEFAULT_CONTENT_TYPE
        if self.config.CLIENT_ID_HEADER.lower() not in present:
            merged[self.config.CLIENT_ID_HEADER] = self.config.CLIENT_ID_VALUE
        return merged

    def _on_backoff(self, details: Dict[str, Any]) -> None:
        exception = details["exception"]
        error_category = categorize_error(exception)
        self.logger.warning(
            f"Backing off {details['wait']:.1f}s after {error_category.value} error "
            f"(attempt {details['tries']}/{self.retry_policy.max_retries + 1}): {exception}"
        )

    def _on_giveup(self, details: Dict[str, Any]) -> None:
        exception = details["exception"]
        self.logger.debug(
            f"Giving up after {details['tries']} attempt(s) on {categorize_error(exception).value} error: {exception}"
        )

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]],
        json_body: Any,
        data: RequestBody,
        headers: Dict[str, str],
        timeout: aiohttp.ClientTimeout,
        expect: str,
    ):
        session = self._get_session()
        body = data() if callable(data) else data
        async with session.request(
            method, url, params=params, json=json_body, data=body, headers=headers, timeout=timeout
        ) as resp:
            if resp.status >= 400:
                detail = await self._error_detail(resp)
                raise HTTPStatusError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=resp.reason or "",
                    headers=resp.headers,
                    detail=detail,
                )

            if expect == "bytes":
                payload = await resp.read()
            elif expect == "text":
                payload = await resp.text()
            else:
                payload = await resp.json(content_type=None)
            return resp.status, payload

    @staticmethod
    async def _error_detail(resp) -> Optional[str]:
        """Pull a server-supplied message out of an error body, if there is one."""
        try:
            body = await resp.json(content_type=None)
        except (ValueError, aiohttp.ClientError):
            return None
        if isinstance(body, dict):
            for field in ("message", "detail", "error"):
                value = body.get(field)
                if isinstance(value, str) and value:
                    return value
        return None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: RequestBody = None,
        headers: Optional[Mapping[str, str]] = None,
        expect: str = "json",
        timeout: Optional[float] = None,
        background: Optional[bool] = None,
        base_url: Optional[str] = None,
    ) -> Any:
        """Send one logical request and return its decoded body.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            params: Query string parameters.
            json: JSON body.
            data: Raw or multipart body, or a factory producing one per attempt.
            headers: Caller headers; these win over the injected defaults.
            expect: ``"json"``, ``"bytes"`` or ``"text"``.
            timeout: Total timeout in seconds for each attempt.
            background: Suppress user notifications on failure. Defaults to
                whether ``path`` is a configured background path.
            base_url: Override the base URL for this call.

        Raises:
            ApiError: once retries are exhausted or the failure is not retryable.
        """
        method = method.upper()
        url = self.config.get_url(path, base_url or self.base_url)
        is_background = self.config.is_background_path(path) if background is None else background
        request_headers = self._build_headers(headers, has_body=data is not None)
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.config.REQUEST_TIMEOUT)

        attempt = _AttemptState()

        def giveup(exception: Exception) -> bool:
            if self._closed:
                return True
            decision = self.retry_policy.should_retry(status_code_of(exception), attempt.index)
            if decision.retry:
                attempt.pending_delay = decision.delay
                attempt.index += 1
            return not decision.retry

        send = backoff.on_exception(
            _policy_delays,
            TRANSPORT_ERRORS,
            jitter=None,
            giveup=giveup,
            on_backoff=self._on_backoff,
            on_giveup=self._on_giveup,
            logger=None,
            attempt=attempt,
        )(self._send)

        start_time = time.perf_counter()
        with self._registered(), self.loading.track():
            try:
                status, payload = await send(
                    method,
                    url,
                    params=params,
                    json_body=json,
                    data=data,
                    headers=request_headers,
                    timeout=client_timeout,
                    expect=expect,
                )
            except (*TRANSPORT_ERRORS, ValueError) as e:
                duration_ms = int((time.perf_counter() - start_time) * 1000)
                error = normalize_error(e, self.retry_policy.retryable_codes)
                log = self.logger.warning if is_background else self.logger.error
                log(
                    f"{method} {url} - {error.status_code} ({duration_ms}ms): {error.message}",
                    extra={"method": method, "url": url, "status": error.status_code, "duration_ms": duration_ms},
                )
                if not is_background:
                    self.notifier.notify(error.message, Severity.ERROR)
                raise error from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        self.logger.info(
            f"{method} {url} - {status} ({duration_ms}ms)",
            extra={"method": method, "url": url, "status": status, "duration_ms": duration_ms},
        )
        return payload

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
