"""Metrics hook protocol and no-op default implementation.

notionctl emits counters and timings from the transport and the
clients.  A :class:`NoopMetricsHook` is used unless the configuration
supplies an object satisfying :class:`MetricsHook`.

Emitted metric names:

* ``notionctl.requests_total``        -- counter
* ``notionctl.retries_total``         -- counter
* ``notionctl.rate_limited_total``    -- counter
* ``notionctl.request_duration_ms``   -- timing
* ``notionctl.throttle_wait_ms``      -- timing
* ``notionctl.blocks_created_total``  -- counter
* ``notionctl.export_duration_ms``    -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* are string key/value pairs; backends translate them into
    their own tagging mechanism.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
