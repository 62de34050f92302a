"""Minimum-interval request throttles.

Notion allows an average of about three requests per second per
integration.  A throttle spaces consecutive request starts at least
*interval* seconds apart.  It is an explicit object handed to the
transport, so several transports (or a sync and an async client in the
same process) can share one gate.

Both variants reserve their slot while holding the lock and sleep after
releasing it, so concurrent callers queue up in arrival order without
holding the lock across the wait.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable

DEFAULT_MIN_INTERVAL = 0.35
"""Seconds between request starts (roughly three requests per second)."""


class MinIntervalThrottle:
    """Thread-safe throttle for the synchronous transport.

    Parameters
    ----------
    interval:
        Minimum number of seconds between the start of two requests.
        ``0`` disables throttling.
    clock, sleep:
        Time source and sleep function; injectable for tests.
    """

    __slots__ = ("_clock", "_lock", "_next_allowed", "_sleep", "interval")

    def __init__(
        self,
        interval: float = DEFAULT_MIN_INTERVAL,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval: float = interval
        self._clock = clock
        self._sleep = sleep
        self._next_allowed: float = 0.0
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """Wait until the next request may start.

        Returns the number of seconds the caller waited (``0.0`` if the
        gate was open).
        """
        with self._lock:
            now = self._clock()
            start = max(now, self._next_allowed)
            self._next_allowed = start + self.interval
            wait = start - now

        if wait > 0:
            self._sleep(wait)
        return wait


class AsyncMinIntervalThrottle:
    """Coroutine-safe throttle for the asynchronous transport.

    Mirrors :class:`MinIntervalThrottle` with an :class:`asyncio.Lock`
    and :func:`asyncio.sleep`.
    """

    __slots__ = ("_clock", "_lock", "_next_allowed", "_sleep", "interval")

    def __init__(
        self,
        interval: float = DEFAULT_MIN_INTERVAL,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = asyncio.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval: float = interval
        self._clock = clock
        self._sleep = sleep
        self._next_allowed: float = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """Await until the next request may start; returns seconds waited."""
        async with self._lock:
            now = self._clock()
            start = max(now, self._next_allowed)
            self._next_allowed = start + self.interval
            wait = start - now

        if wait > 0:
            await self._sleep(wait)  # type: ignore[misc]
        return wait
