"""Page, data source, search and user API wrappers.

Thin sync and async wrappers around ``/pages``, ``/data_sources``,
``/search`` and ``/users``.  All HTTP concerns (auth, pacing, retries)
live in the transport.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport, NotionTransport

SEARCH_OBJECT_TYPES: frozenset[str] = frozenset({"all", "page", "data_source"})


def _page_body(
    parent: dict[str, Any],
    properties: dict[str, Any],
    children: list[dict[str, Any]] | None,
    position: dict[str, Any] | None,
    template: dict[str, Any] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"parent": parent, "properties": properties}
    if template is not None:
        body["template"] = template
    elif children:
        body["children"] = children
    if position is not None:
        body["position"] = position
    return body


def _update_body(properties: dict[str, Any] | None, in_trash: bool | None) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if properties is not None:
        body["properties"] = properties
    if in_trash is not None:
        body["in_trash"] = in_trash
    return body


def _search_body(query: str, object_type: str, page_size: int, cursor: str | None) -> dict[str, Any]:
    if object_type not in SEARCH_OBJECT_TYPES:
        raise ValueError(f"object_type must be one of {sorted(SEARCH_OBJECT_TYPES)}, got {object_type!r}")
    body: dict[str, Any] = {
        "page_size": page_size,
        "sort": {"direction": "descending", "timestamp": "last_edited_time"},
    }
    if query:
        body["query"] = query
    if object_type != "all":
        body["filter"] = {"property": "object", "value": object_type}
    if cursor:
        body["start_cursor"] = cursor
    return body


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

class PageAPI:
    """Synchronous wrapper for the Notion Pages API."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        position: dict[str, Any] | None = None,
        template: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a page.

        Parameters
        ----------
        parent:
            ``{"type": "page_id", "page_id": ...}`` or
            ``{"type": "data_source_id", "data_source_id": ...}``.
        properties:
            Page properties, including the title property.
        children:
            Up to 100 initial content blocks.  Ignored when *template* is
            given, since Notion fills the page from the template.
        position:
            Where to place the page under a page parent, e.g.
            ``{"type": "page_start"}`` or
            ``{"type": "after_block", "after_block": {"id": ...}}``.
        template:
            ``{"type": "default"}``, ``{"type": "none"}`` or
            ``{"type": "template_id", "template_id": ...}``.
        """
        body = _page_body(parent, properties, children, position, template)
        return self._transport.request("POST", "/pages", json=body)

    def retrieve(self, page_id: str) -> dict[str, Any]:
        return self._transport.request("GET", f"/pages/{page_id}")

    def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        in_trash: bool | None = None,
    ) -> dict[str, Any]:
        """Update page properties; omitted properties are untouched."""
        return self._transport.request("PATCH", f"/pages/{page_id}", json=_update_body(properties, in_trash))

    def move(self, page_id: str, parent: dict[str, Any]) -> dict[str, Any]:
        """Move a page under a new page or data source parent."""
        return self._transport.request("POST", f"/pages/{page_id}/move", json={"parent": parent})


class DataSourceAPI:
    """Synchronous wrapper for ``/data_sources``."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, data_source_id: str) -> dict[str, Any]:
        """Retrieve a data source, including its property schema."""
        return self._transport.request("GET", f"/data_sources/{data_source_id}")


class SearchAPI:
    """Synchronous wrapper for ``/search``."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def search(self, query: str = "", object_type: str = "all", limit: int = 20) -> list[dict[str, Any]]:
        """Search pages and data sources shared with the integration.

        Parameters
        ----------
        query:
            Title text to match; empty lists everything.
        object_type:
            ``"all"``, ``"page"`` or ``"data_source"``.
        limit:
            Maximum number of results to return.
        """
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while len(results) < limit:
            page_size = min(100, limit - len(results))
            data = self._transport.request(
                "POST", "/search", json=_search_body(query, object_type, page_size, cursor)
            )
            results.extend(data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        return results[:limit]


class UserAPI:
    """Synchronous wrapper for ``/users``."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def me(self) -> dict[str, Any]:
        """Return the bot user the integration token belongs to."""
        return self._transport.request("GET", "/users/me")


# ---------------------------------------------------------------------------
# Async
# ---------------------------------------------------------------------------

class AsyncPageAPI:
    """Asynchronous wrapper for the Notion Pages API; mirrors :class:`PageAPI`."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        position: dict[str, Any] | None = None,
        template: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        body = _page_body(parent, properties, children, position, template)
        return await self._transport.request("POST", "/pages", json=body)

    async def retrieve(self, page_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/pages/{page_id}")

    async def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        in_trash: bool | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "PATCH", f"/pages/{page_id}", json=_update_body(properties, in_trash)
        )

    async def move(self, page_id: str, parent: dict[str, Any]) -> dict[str, Any]:
        return await self._transport.request("POST", f"/pages/{page_id}/move", json={"parent": parent})


class AsyncDataSourceAPI:
    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, data_source_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/data_sources/{data_source_id}")


class AsyncSearchAPI:
    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def search(
        self,
        query: str = "",
        object_type: str = "all",
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while len(results) < limit:
            page_size = min(100, limit - len(results))
            data = await self._transport.request(
                "POST", "/search", json=_search_body(query, object_type, page_size, cursor)
            )
            results.extend(data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        return results[:limit]


class AsyncUserAPI:
    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def me(self) -> dict[str, Any]:
        return await self._transport.request("GET", "/users/me")
