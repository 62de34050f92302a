"""Block API wrappers for the Notion API.

:class:`BlockAPI` (sync) and :class:`AsyncBlockAPI` (async) wrap the
``/blocks`` endpoints.  On top of the single-request calls they provide
:meth:`~BlockAPI.get_children` (follows pagination cursors),
:meth:`~BlockAPI.get_tree` (recursive fetch with a depth cap) and a
chunked :meth:`~BlockAPI.append_children`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from notionctl.utils.chunk import chunk_children

from .transport import AsyncNotionTransport, NotionTransport

MAX_BLOCKS_PER_APPEND = 100


@dataclass
class ChildrenPage:
    """One page of a ``GET /blocks/{id}/children`` listing."""

    results: list[dict[str, Any]] = field(default_factory=list)
    has_more: bool = False
    next_cursor: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> ChildrenPage:
        return cls(
            results=list(data.get("results") or []),
            has_more=bool(data.get("has_more", False)),
            next_cursor=data.get("next_cursor") or None,
        )


def extract_block_ids(response: dict[str, Any]) -> list[str]:
    """Return the ``id`` of every block in an append response."""
    return [r["id"] for r in response.get("results", []) if "id" in r]


def _children_params(page_size: int, start_cursor: str | None) -> dict[str, Any]:
    params: dict[str, Any] = {"page_size": page_size}
    if start_cursor:
        params["start_cursor"] = start_cursor
    return params


class BlockAPI:
    """Synchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport`.
    batch_size:
        Maximum blocks per append request (Notion accepts 100).
    """

    def __init__(self, transport: NotionTransport, batch_size: int = MAX_BLOCKS_PER_APPEND) -> None:
        self._transport = transport
        self._batch_size = batch_size

    def retrieve(self, block_id: str) -> dict[str, Any]:
        """Retrieve a single block object."""
        return self._transport.request("GET", f"/blocks/{block_id}")

    def update(self, block_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """Update a block.

        Parameters
        ----------
        block_id:
            The block to update.
        patch:
            Partial block body, typically ``{block_type: {...}}``.  Only
            the fields present are modified.
        """
        return self._transport.request("PATCH", f"/blocks/{block_id}", json=patch)

    def delete(self, block_id: str) -> dict[str, Any]:
        """Delete (move to trash) a block."""
        return self._transport.request("DELETE", f"/blocks/{block_id}")

    def list_children(
        self,
        block_id: str,
        page_size: int = 100,
        start_cursor: str | None = None,
    ) -> ChildrenPage:
        """Fetch a single page of a block's children."""
        data = self._transport.request(
            "GET",
            f"/blocks/{block_id}/children",
            params=_children_params(page_size, start_cursor),
        )
        return ChildrenPage.from_response(data)

    def get_children(self, block_id: str) -> list[dict[str, Any]]:
        """Fetch every direct child of a block, following cursors.

        Stops when ``has_more`` is false or no cursor is returned.
        """
        return list(self._transport.paginate(f"/blocks/{block_id}/children", method="GET"))

    def get_tree(self, block_id: str, max_depth: int = 50, _depth: int = 0) -> list[dict[str, Any]]:
        """Fetch a block's descendants recursively.

        Children of every record with ``has_children`` are fetched and
        attached under the record's ``"children"`` key.  Records at
        *max_depth* keep ``has_children`` but get no ``"children"``.

        Parameters
        ----------
        block_id:
            The root block or page.
        max_depth:
            Number of levels below the root's direct children to expand.
        """
        records = self.get_children(block_id)
        if _depth >= max_depth:
            return records
        for record in records:
            if record.get("has_children") and record.get("id"):
                record["children"] = self.get_tree(record["id"], max_depth, _depth + 1)
        return records

    def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        """Append child blocks, splitting into requests of at most 100.

        Parameters
        ----------
        block_id:
            The parent block or page.
        children:
            Block payloads, in order.
        after:
            Optional existing child after which to insert.  Later batches
            are inserted after the last block of the previous batch so
            the order is kept.

        Returns
        -------
        list[dict]
            One API response per request, in order.  Empty when
            *children* is empty.
        """
        responses: list[dict[str, Any]] = []
        for batch in chunk_children(children, self._batch_size):
            body: dict[str, Any] = {"children": batch}
            if after is not None:
                body["after"] = after
            response = self._transport.request("PATCH", f"/blocks/{block_id}/children", json=body)
            responses.append(response)
            if after is not None:
                ids = extract_block_ids(response)
                after = ids[-1] if ids else after
        return responses


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Mirrors :class:`BlockAPI`; every method is a coroutine.
    """

    def __init__(
        self,
        transport: AsyncNotionTransport,
        batch_size: int = MAX_BLOCKS_PER_APPEND,
    ) -> None:
        self._transport = transport
        self._batch_size = batch_size

    async def retrieve(self, block_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/blocks/{block_id}")

    async def update(self, block_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        return await self._transport.request("PATCH", f"/blocks/{block_id}", json=patch)

    async def delete(self, block_id: str) -> dict[str, Any]:
        return await self._transport.request("DELETE", f"/blocks/{block_id}")

    async def list_children(
        self,
        block_id: str,
        page_size: int = 100,
        start_cursor: str | None = None,
    ) -> ChildrenPage:
        data = await self._transport.request(
            "GET",
            f"/blocks/{block_id}/children",
            params=_children_params(page_size, start_cursor),
        )
        return ChildrenPage.from_response(data)

    async def get_children(self, block_id: str) -> list[dict[str, Any]]:
        return [
            item
            async for item in self._transport.paginate(f"/blocks/{block_id}/children", method="GET")
        ]

    async def get_tree(
        self,
        block_id: str,
        max_depth: int = 50,
        _depth: int = 0,
    ) -> list[dict[str, Any]]:
        """Recursive fetch (async); see :meth:`BlockAPI.get_tree`."""
        records = await self.get_children(block_id)
        if _depth >= max_depth:
            return records
        for record in records:
            if record.get("has_children") and record.get("id"):
                record["children"] = await self.get_tree(record["id"], max_depth, _depth + 1)
        return records

    async def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        """Chunked append (async); see :meth:`BlockAPI.append_children`."""
        responses: list[dict[str, Any]] = []
        for batch in chunk_children(children, self._batch_size):
            body: dict[str, Any] = {"children": batch}
            if after is not None:
                body["after"] = after
            response = await self._transport.request(
                "PATCH", f"/blocks/{block_id}/children", json=body
            )
            responses.append(response)
            if after is not None:
                ids = extract_block_ids(response)
                after = ids[-1] if ids else after
        return responses
