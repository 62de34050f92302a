"""Sync and async HTTP transports for the Notion API.

Request lifecycle, identical for both transports:

1. Wait for the shared :class:`~.throttle.MinIntervalThrottle` gate.
2. Send the request with auth and ``Notion-Version`` headers.
3. ``2xx`` -- return the parsed JSON body (``{}`` for an empty body).
4. ``429`` -- honour ``Retry-After`` (else exponential backoff) and retry.
5. ``500``/``502``/``503``/``504`` or a network error -- back off and retry.
6. Any other ``4xx`` -- raise the matching typed error immediately.
7. Attempts exhausted -- raise :class:`NotionctlRetryExhaustedError`
   carrying the last status and server body.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import AsyncIterator, Iterator
from typing import Any

import httpx

from notionctl.config import NotionctlConfig
from notionctl.errors import (
    NotionctlAuthError,
    NotionctlConflictError,
    NotionctlNetworkError,
    NotionctlNotFoundError,
    NotionctlPermissionError,
    NotionctlRateLimitError,
    NotionctlRetryExhaustedError,
    NotionctlValidationError,
)
from notionctl.observability import NoopMetricsHook, get_logger
from notionctl.utils.redact import redact

from .retries import (
    RATE_LIMITED_STATUS,
    RETRYABLE_STATUSES,
    compute_backoff,
    parse_retry_after,
    should_retry,
)
from .throttle import AsyncMinIntervalThrottle, MinIntervalThrottle

log = get_logger("notionctl.transport")

_STATUS_ERRORS: dict[int, tuple[type, str]] = {
    400: (NotionctlValidationError, "Validation error"),
    401: (NotionctlAuthError, "Authentication failed"),
    403: (NotionctlPermissionError, "Permission denied"),
    404: (NotionctlNotFoundError, "Resource not found"),
    409: (NotionctlConflictError, "Conflict"),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _response_body(response: httpx.Response) -> Any:
    """Parsed JSON body, falling back to (truncated) text."""
    try:
        return response.json()
    except ValueError:
        return response.text[:1000]


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable ``4xx`` response."""
    status = response.status_code
    body = _response_body(response)
    details = body if isinstance(body, dict) else {}
    notion_message = details.get("message") or f"HTTP {status}"
    notion_code = details.get("code", "")

    error_cls, label = _STATUS_ERRORS.get(status, (NotionctlValidationError, f"Client error {status}"))
    context: dict[str, Any] = {"status_code": status, "notion_code": notion_code}
    if status == 403:
        context["operation"] = f"{method} {path}"
    elif status == 404:
        context["path"] = path
    else:
        context["body"] = body
    raise error_cls(message=f"{label} on {method} {path}: {notion_message}", context=context)


def _dump_payload(
    config: NotionctlConfig, method: str, path: str, response: httpx.Response, payload: Any,
) -> None:
    """Write a redacted request/response dump to stderr when enabled."""
    if not config.debug_dump_payload:
        return
    dump: dict[str, Any] = {
        "method": method,
        "url": config.base_url + path,
        "response_status": response.status_code,
        "response_body": _response_body(response),
    }
    if payload is not None:
        dump["request_body"] = payload
    print(_json.dumps(redact(dump, config.token), indent=2, default=str), file=sys.stderr)


def _client_kwargs(config: NotionctlConfig) -> dict[str, Any]:
    return {
        "base_url": config.base_url,
        "headers": {
            "Authorization": f"Bearer {config.token}",
            "Notion-Version": config.notion_version,
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }


class _RetryState:
    """Book-keeping shared by the sync and async request loops.

    ``on_response`` / ``on_network_error`` return the delay before the
    next attempt, or ``None`` when the loop must stop.
    """

    def __init__(self, config: NotionctlConfig, metrics: Any, method: str, path: str) -> None:
        self.config = config
        self.metrics = metrics
        self.method = method
        self.path = path
        self.last_status: int | None = None
        self.last_body: Any = None
        self.last_exception: Exception | None = None

    @property
    def tags(self) -> dict[str, str]:
        return {"method": self.method, "path": self.path}

    def on_throttle(self, waited: float) -> None:
        if waited > 0:
            self.metrics.timing("notionctl.throttle_wait_ms", waited * 1000, tags=self.tags)

    def on_network_error(self, exc: Exception, attempt: int) -> float:
        """Return the retry delay, or raise :class:`NotionctlNetworkError`."""
        self.last_exception = exc
        self.last_status = None
        self.metrics.increment("notionctl.requests_total", tags={**self.tags, "status": "error"})
        log.warning(
            "Request network error",
            extra={"extra_fields": {
                "op": "request",
                "method": self.method,
                "path": self.path,
                "attempt": attempt + 1,
                "error": str(exc),
            }},
        )
        if not should_retry(None, exc, attempt, self.config.retry_max_attempts):
            raise NotionctlNetworkError(
                message=f"Network error on {self.method} {self.path}: {exc}",
                context={"url": self.path, "attempt": attempt + 1},
                cause=exc,
            ) from exc
        self.metrics.increment("notionctl.retries_total", tags={**self.tags, "reason": "network_error"})
        return self._backoff(attempt, None, None)

    def on_response(self, response: httpx.Response, attempt: int, elapsed_ms: float) -> float | None:
        """Classify an HTTP response.

        Returns ``None`` for success or exhaustion, a delay for a retry,
        and raises for non-retryable client errors.
        """
        status = response.status_code
        self.last_status = status
        self.last_exception = None
        status_tags = {**self.tags, "status": str(status)}
        self.metrics.increment("notionctl.requests_total", tags=status_tags)
        self.metrics.timing("notionctl.request_duration_ms", elapsed_ms, tags=status_tags)

        if 200 <= status < 300:
            return None
        if status not in RETRYABLE_STATUSES:
            _raise_for_status(response, self.method, self.path)

        self.last_body = _response_body(response)
        retry_after = None
        reason = "server_error"
        if status == RATE_LIMITED_STATUS:
            reason = "rate_limited"
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            self.metrics.increment("notionctl.rate_limited_total", tags=self.tags)
            log.warning(
                "Rate limited by Notion API",
                extra={"extra_fields": {
                    "op": "request",
                    "method": self.method,
                    "path": self.path,
                    "retry_after": retry_after,
                    "attempt": attempt + 1,
                }},
            )
            self.last_exception = NotionctlRateLimitError(
                message=f"Rate limited on {self.method} {self.path}",
                context={"retry_after_seconds": retry_after, "attempt": attempt + 1},
            )

        if not should_retry(status, None, attempt, self.config.retry_max_attempts):
            return None
        self.metrics.increment("notionctl.retries_total", tags={**self.tags, "reason": reason})
        return self._backoff(attempt, status, retry_after)

    def exhausted(self) -> NotionctlRetryExhaustedError:
        attempts = self.config.retry_max_attempts
        last = f"last error: {self.last_exception}" if self.last_status is None else f"last status: {self.last_status}"
        return NotionctlRetryExhaustedError(
            message=f"All {attempts} attempts exhausted for {self.method} {self.path} ({last})",
            context={
                "attempts": attempts,
                "last_status_code": self.last_status,
                "body": self.last_body,
            },
            cause=self.last_exception,
        )

    def _backoff(self, attempt: int, status: int | None, retry_after: float | None) -> float:
        return compute_backoff(
            attempt,
            status,
            base=self.config.retry_base_delay,
            maximum=self.config.retry_max_delay,
            jitter=self.config.retry_jitter,
            retry_after=retry_after,
        )


def _success_body(response: httpx.Response) -> dict:
    if response.status_code == 204 or not response.content:
        return {}
    result: dict = response.json()
    return result


def _page_params(kwargs: dict[str, Any], method: str, page_size: int, cursor: str | None) -> None:
    """Merge ``page_size`` / ``start_cursor`` into the body or query string."""
    key = "json" if method.upper() in ("POST", "PATCH") else "params"
    values: dict = dict(kwargs.get(key) or {})
    values["page_size"] = page_size
    if cursor is not None:
        values["start_cursor"] = cursor
    else:
        values.pop("start_cursor", None)
    kwargs[key] = values


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class NotionTransport:
    """Synchronous HTTP transport with auth, retry, and request pacing.

    Parameters
    ----------
    config:
        Transport settings.
    throttle:
        Request gate to use.  Pass the same instance to several
        transports to pace them together; by default each transport gets
        its own gate spaced ``config.min_request_interval`` apart.
    """

    def __init__(self, config: NotionctlConfig, throttle: MinIntervalThrottle | None = None) -> None:
        self._config = config
        self._throttle = throttle or MinIntervalThrottle(config.min_request_interval)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.Client(**_client_kwargs(config))

    @property
    def throttle(self) -> MinIntervalThrottle:
        return self._throttle

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute a request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to ``base_url`` (e.g. ``/pages``).
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``json=``,
            ``params=``, ...).

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        NotionctlValidationError
            On 400 and other non-retryable 4xx responses.
        NotionctlAuthError
            On 401.
        NotionctlPermissionError
            On 403.
        NotionctlNotFoundError
            On 404.
        NotionctlConflictError
            On 409.
        NotionctlNetworkError
            When a network failure persists through the last attempt.
        NotionctlRetryExhaustedError
            When 429/5xx responses persist through the last attempt.
        """
        state = _RetryState(self._config, self._metrics, method, path)

        for attempt in range(self._config.retry_max_attempts):
            state.on_throttle(self._throttle.acquire())

            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                time.sleep(state.on_network_error(exc, attempt))
                continue

            _dump_payload(self._config, method, path, response, kwargs.get("json"))
            delay = state.on_response(response, attempt, (time.monotonic() - t0) * 1000)
            if delay is None:
                if 200 <= response.status_code < 300:
                    return _success_body(response)
                break
            time.sleep(delay)

        raise state.exhausted()

    def paginate(self, path: str, **kwargs: Any) -> Iterator[dict]:
        """Yield every result of a cursor-paginated list endpoint.

        Stops when ``has_more`` is false **or** the server omits
        ``next_cursor``, whichever comes first.  Pass ``method="POST"``
        for endpoints (like search) that take the cursor in the body.
        """
        method = kwargs.pop("method", "GET")
        cursor: str | None = None

        while True:
            _page_params(kwargs, method, self._config.page_size, cursor)
            data = self.request(method, path, **kwargs)
            yield from data.get("results", [])

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if not cursor:
                break

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport:
    """Asynchronous HTTP transport with auth, retry, and request pacing.

    Mirrors :class:`NotionTransport` on ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        config: NotionctlConfig,
        throttle: AsyncMinIntervalThrottle | None = None,
    ) -> None:
        self._config = config
        self._throttle = throttle or AsyncMinIntervalThrottle(config.min_request_interval)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(**_client_kwargs(config))

    @property
    def throttle(self) -> AsyncMinIntervalThrottle:
        return self._throttle

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute a request (async); see :meth:`NotionTransport.request`."""
        state = _RetryState(self._config, self._metrics, method, path)

        for attempt in range(self._config.retry_max_attempts):
            state.on_throttle(await self._throttle.acquire())

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                await asyncio.sleep(state.on_network_error(exc, attempt))
                continue

            _dump_payload(self._config, method, path, response, kwargs.get("json"))
            delay = state.on_response(response, attempt, (time.monotonic() - t0) * 1000)
            if delay is None:
                if 200 <= response.status_code < 300:
                    return _success_body(response)
                break
            await asyncio.sleep(delay)

        raise state.exhausted()

    async def paginate(self, path: str, **kwargs: Any) -> AsyncIterator[dict]:
        """Async equivalent of :meth:`NotionTransport.paginate`."""
        method = kwargs.pop("method", "GET")
        cursor: str | None = None

        while True:
            _page_params(kwargs, method, self._config.page_size, cursor)
            data = await self.request(method, path, **kwargs)
            for item in data.get("results", []):
                yield item

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if not cursor:
                break

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
