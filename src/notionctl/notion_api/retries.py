"""Retry policy for Notion API requests.

Pure functions used by both transports:

* :func:`should_retry` -- is this failure worth another attempt?
* :func:`parse_retry_after` -- read the server's ``Retry-After`` hint.
* :func:`compute_backoff` -- how long to wait before the next attempt.

Rate-limit responses (``429``) wait for ``Retry-After`` when the server
sends one and otherwise back off from ``base``; transient server errors
(``500``/``502``/``503``/``504``) and network failures back off from
``base / 2``.  Both double per attempt and are capped at ``maximum``.
"""

from __future__ import annotations

import random

import httpx

RATE_LIMITED_STATUS = 429

RETRYABLE_STATUSES: frozenset[int] = frozenset({RATE_LIMITED_STATUS, 500, 502, 503, 504})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a failed attempt should be retried.

    Parameters
    ----------
    status_code:
        Response status, or ``None`` when no response arrived.
    exception:
        The transport exception, or ``None`` when a response arrived.
    attempt:
        Zero-based number of the attempt that just failed.
    max_attempts:
        Total attempts allowed, the initial request included.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, RETRYABLE_EXCEPTIONS)
    return status_code in RETRYABLE_STATUSES


def parse_retry_after(raw: str | None) -> float | None:
    """Parse a ``Retry-After`` header given in seconds.

    Negative values are clamped to zero; missing or non-numeric values
    (including HTTP dates) give ``None``.
    """
    if raw is None:
        return None
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        return None
    if seconds != seconds:  # NaN
        return None
    return max(0.0, seconds)


def compute_backoff(
    attempt: int,
    status_code: int | None = None,
    *,
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Compute the delay in seconds before retrying.

    Parameters
    ----------
    attempt:
        Zero-based number of the attempt that just failed.
    status_code:
        The failed response's status; ``None`` for network errors.
    base:
        Base delay for rate-limit backoff; server errors use half of it.
    maximum:
        Upper bound for computed delays.  A server-provided
        *retry_after* is honoured as-is.
    jitter:
        Scale computed delays to a random 50-100 % of their value.
    retry_after:
        Parsed ``Retry-After`` value, if the server sent one.

    Examples
    --------
    >>> compute_backoff(2, 429, jitter=False)
    4.0
    >>> compute_backoff(2, 503, jitter=False)
    2.0
    >>> compute_backoff(0, 429, jitter=False, retry_after=7.0)
    7.0
    """
    if retry_after is not None:
        return retry_after

    step = base if status_code == RATE_LIMITED_STATUS else base / 2
    delay = min(step * (2 ** attempt), maximum)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay
