"""notionctl.notion_api -- Notion API transport and endpoint wrappers.

* :mod:`.throttle` -- minimum-interval request gates (sync and async).
* :mod:`.retries` -- retry decision and backoff computation.
* :mod:`.transport` -- HTTP transport with auth, pacing and retries.
* :mod:`.blocks` -- block API wrappers (pagination, tree fetch, chunked append).
* :mod:`.pages` -- page, data source, search and user API wrappers.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI, BlockAPI, ChildrenPage
from .pages import (
    AsyncDataSourceAPI,
    AsyncPageAPI,
    AsyncSearchAPI,
    AsyncUserAPI,
    DataSourceAPI,
    PageAPI,
    SearchAPI,
    UserAPI,
)
from .retries import compute_backoff, parse_retry_after, should_retry
from .throttle import AsyncMinIntervalThrottle, MinIntervalThrottle
from .transport import AsyncNotionTransport, NotionTransport

__all__ = [
    "AsyncBlockAPI",
    "AsyncDataSourceAPI",
    "AsyncMinIntervalThrottle",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncSearchAPI",
    "AsyncUserAPI",
    "BlockAPI",
    "ChildrenPage",
    "DataSourceAPI",
    "MinIntervalThrottle",
    "NotionTransport",
    "PageAPI",
    "SearchAPI",
    "UserAPI",
    "compute_backoff",
    "parse_retry_after",
    "should_retry",
]
