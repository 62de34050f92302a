"""Asynchronous notionctl client.

:class:`AsyncNotionctlClient` mirrors :class:`~notionctl.client.NotionctlClient`
but every I/O method is a coroutine running on the async transport.

Usage::

    import asyncio
    from notionctl import AsyncNotionctlClient

    async def main():
        async with AsyncNotionctlClient(token="ntn_xxx") as client:
            export = await client.export_markdown("<page id or url>")
            print(export.markdown)

    asyncio.run(main())
"""

from __future__ import annotations

import time
from typing import Any

from notionctl.client import (
    build_parent,
    build_position,
    build_template,
    child_page_refs,
    search_hit,
    single_block_patch,
    title_properties_for,
)
from notionctl.config import NotionctlConfig, resolve_token
from notionctl.converter.md_parser import parse_document
from notionctl.converter.md_renderer import MarkdownRenderer
from notionctl.converter.payload import blocks_from_payload, blocks_to_payload
from notionctl.errors import NotionctlError
from notionctl.models import (
    AppendResult,
    BlockUpdateResult,
    ChildPageRef,
    PageCreateResult,
    PageExport,
    SearchHit,
    TriageMove,
    TriageResult,
)
from notionctl.notion_api.blocks import AsyncBlockAPI
from notionctl.notion_api.pages import AsyncDataSourceAPI, AsyncPageAPI, AsyncSearchAPI, AsyncUserAPI
from notionctl.notion_api.throttle import AsyncMinIntervalThrottle
from notionctl.notion_api.transport import AsyncNotionTransport
from notionctl.observability import NoopMetricsHook, get_logger
from notionctl.properties import build_properties, page_title
from notionctl.triage import RulesSource, load_rules, move_parent, plan_triage
from notionctl.utils.ids import normalise_id

log = get_logger("notionctl.async_client")


class AsyncNotionctlClient:
    """Asynchronous notionctl client.

    Parameters
    ----------
    token:
        Notion integration token; resolved from the environment or key
        file when omitted.
    throttle:
        Optional shared :class:`AsyncMinIntervalThrottle`.
    **kwargs:
        Forwarded to :class:`NotionctlConfig`.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        throttle: AsyncMinIntervalThrottle | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = NotionctlConfig(token=token or resolve_token(), **kwargs)
        self._metrics = self._config.metrics or NoopMetricsHook()
        self._transport = AsyncNotionTransport(self._config, throttle=throttle)
        self._blocks = AsyncBlockAPI(self._transport, batch_size=self._config.append_batch_size)
        self._pages = AsyncPageAPI(self._transport)
        self._data_sources = AsyncDataSourceAPI(self._transport)
        self._search = AsyncSearchAPI(self._transport)
        self._users = AsyncUserAPI(self._transport)
        self._renderer = MarkdownRenderer(self._config.unsupported_block_policy)

    @property
    def config(self) -> NotionctlConfig:
        return self._config

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def whoami(self) -> dict[str, Any]:
        return await self._users.me()

    async def search(self, query: str = "", object_type: str = "all", limit: int = 20) -> list[SearchHit]:
        results = await self._search.search(query, object_type=object_type, limit=limit)
        return [search_hit(r) for r in results]

    async def get_page(self, page: str) -> dict[str, Any]:
        return await self._pages.retrieve(normalise_id(page))

    async def get_blocks(self, page: str) -> list[dict[str, Any]]:
        return await self._blocks.get_tree(normalise_id(page), max_depth=self._config.max_tree_depth)

    async def export_markdown(self, page: str) -> PageExport:
        """Render a page's content as Markdown (async)."""
        page_id = normalise_id(page)
        t0 = time.monotonic()
        page_obj = await self._pages.retrieve(page_id)
        records = await self._blocks.get_tree(page_id, max_depth=self._config.max_tree_depth)
        markdown = self._renderer.render_document(blocks_from_payload(records))
        self._metrics.timing("notionctl.export_duration_ms", (time.monotonic() - t0) * 1000)
        log.info(
            "export_markdown complete",
            extra={"extra_fields": {"op": "export_markdown", "page_id": page_id, "blocks": len(records)}},
        )
        return PageExport(page_id=page_id, title=page_title(page_obj), markdown=markdown)

    async def list_child_pages(self, page: str) -> list[ChildPageRef]:
        return child_page_refs(await self._blocks.get_children(normalise_id(page)))

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def create_page_from_markdown(
        self,
        title: str,
        markdown: str = "",
        *,
        parent_page: str | None = None,
        parent_data_source: str | None = None,
        properties: dict[str, Any] | None = None,
        position: str | None = None,
        after_block: str | None = None,
        template: str | None = None,
    ) -> PageCreateResult:
        """Create a page from Markdown (async).

        See :meth:`NotionctlClient.create_page_from_markdown`.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError("create_page_from_markdown requires a title")
        parent = build_parent(parent_page, parent_data_source)

        schema: dict[str, Any] | None = None
        if parent["type"] == "data_source_id":
            schema = (await self._data_sources.retrieve(parent["data_source_id"])).get("properties") or {}
        elif properties:
            raise ValueError("properties can only be set on pages in a data source")

        page_props = title_properties_for(parent, schema, title)
        if properties:
            page_props.update(build_properties(schema or {}, properties))

        position_obj = build_position(position, after_block) if parent["type"] == "page_id" else None
        template_obj = build_template(template)
        records = [] if template_obj else blocks_to_payload(parse_document(markdown))
        batch = self._config.append_batch_size
        first, rest = records[:batch], records[batch:]

        page = await self._pages.create(
            parent=parent,
            properties=page_props,
            children=first,
            position=position_obj,
            template=template_obj,
        )
        page_id = page["id"]
        if rest:
            await self._blocks.append_children(page_id, rest)

        self._metrics.increment("notionctl.blocks_created_total", len(records))
        log.info(
            "create_page_from_markdown complete",
            extra={"extra_fields": {"op": "create_page", "page_id": page_id, "blocks": len(records)}},
        )
        return PageCreateResult(page_id=page_id, url=page.get("url", ""), blocks_created=len(records), page=page)

    async def append_markdown(self, page: str, markdown: str) -> AppendResult:
        page_id = normalise_id(page)
        records = blocks_to_payload(parse_document(markdown))
        responses = await self._blocks.append_children(page_id, records)
        self._metrics.increment("notionctl.blocks_created_total", len(records))
        log.info(
            "append_markdown complete",
            extra={"extra_fields": {"op": "append_markdown", "page_id": page_id, "blocks": len(records)}},
        )
        return AppendResult(page_id=page_id, blocks_appended=len(records), responses=responses)

    async def update_page(
        self,
        page: str,
        title: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if title is None and not properties:
            raise ValueError("update_page requires a title or properties")
        page_id = normalise_id(page)
        parent = (await self._pages.retrieve(page_id)).get("parent") or {}

        schema: dict[str, Any] | None = None
        if parent.get("type") == "data_source_id":
            schema = (await self._data_sources.retrieve(parent["data_source_id"])).get("properties") or {}
        elif properties:
            raise ValueError("properties can only be set on pages in a data source")

        updates: dict[str, Any] = {}
        if title is not None:
            updates.update(title_properties_for(parent, schema, title.strip()))
        if properties:
            updates.update(build_properties(schema or {}, properties))
        return await self._pages.update(page_id, properties=updates)

    async def update_block_from_markdown(self, block: str, markdown: str) -> BlockUpdateResult:
        block_id = normalise_id(block)
        block_type, patch = single_block_patch(markdown)
        updated = await self._blocks.update(block_id, patch)
        return BlockUpdateResult(block_id=block_id, block_type=block_type, block=updated)

    async def delete_block(self, block: str) -> dict[str, Any]:
        return await self._blocks.delete(normalise_id(block))

    async def move_page(
        self,
        page: str,
        *,
        to_page: str | None = None,
        to_data_source: str | None = None,
    ) -> dict[str, Any]:
        parent = build_parent(to_page, to_data_source)
        return await self._pages.move(normalise_id(page), parent)

    async def triage(
        self,
        inbox_page: str,
        rules: RulesSource,
        *,
        limit: int = 50,
        apply: bool = False,
    ) -> TriageResult:
        """Sort an inbox page's child pages (async).

        See :meth:`NotionctlClient.triage`.
        """
        inbox_id = normalise_id(inbox_page)
        rule_list = load_rules(rules)
        pages = (await self.list_child_pages(inbox_id))[: max(limit, 0)]
        plan = plan_triage(pages, rule_list)
        result = TriageResult(inbox_page_id=inbox_id, applied=apply, planned=plan)
        if not apply:
            return result

        for item in plan:
            try:
                parent = move_parent(item.move_to)
                moved = await self._pages.move(normalise_id(item.page_id), parent)
            except (ValueError, NotionctlError) as exc:
                log.warning(
                    "triage move failed",
                    extra={"extra_fields": {"op": "triage", "page_id": item.page_id, "error": str(exc)}},
                )
                result.moved.append(TriageMove(page_id=item.page_id, ok=False, error=str(exc)))
                continue
            result.moved.append(TriageMove(page_id=item.page_id, ok=True, moved_to=parent, result=moved))

        log.info(
            "triage complete",
            extra={"extra_fields": {
                "op": "triage",
                "page_id": inbox_id,
                "planned": len(plan),
                "moved": sum(1 for m in result.moved if m.ok),
            }},
        )
        return result

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncNotionctlClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
