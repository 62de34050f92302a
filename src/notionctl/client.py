"""Synchronous notionctl client.

:class:`NotionctlClient` ties the converter to the Notion API: it turns
Markdown into block payloads for page creation, appends and single-block
updates, and renders fetched block trees back to Markdown.

Usage::

    from notionctl import NotionctlClient

    with NotionctlClient() as client:          # token from NOTION_API_KEY
        result = client.create_page_from_markdown(
            "Release notes",
            "# v2\\n\\n- faster\\n- smaller",
            parent_page="https://www.notion.so/Team-0123456789abcdef0123456789abcdef",
        )
        print(client.export_markdown(result.page_id).markdown)
"""

from __future__ import annotations

import time
from typing import Any

from notionctl.config import NotionctlConfig, resolve_token
from notionctl.converter.md_parser import parse_document
from notionctl.converter.md_renderer import MarkdownRenderer
from notionctl.converter.payload import block_to_payload, blocks_from_payload, blocks_to_payload
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
from notionctl.notion_api.blocks import BlockAPI
from notionctl.notion_api.pages import DataSourceAPI, PageAPI, SearchAPI, UserAPI
from notionctl.notion_api.throttle import MinIntervalThrottle
from notionctl.notion_api.transport import NotionTransport
from notionctl.observability import NoopMetricsHook, get_logger
from notionctl.properties import build_properties, find_title_property, page_title, title_property
from notionctl.triage import RulesSource, load_rules, move_parent, plan_triage
from notionctl.utils.ids import normalise_id

log = get_logger("notionctl.client")

DEFAULT_TITLE_PROPERTY = "Name"

POSITIONS: frozenset[str] = frozenset({"page_start", "page_end"})


# ---------------------------------------------------------------------------
# Request-building helpers (shared with the async client)
# ---------------------------------------------------------------------------

def build_parent(parent_page: str | None, parent_data_source: str | None) -> dict[str, Any]:
    """Build a page parent object from exactly one of the two IDs."""
    if bool(parent_page) == bool(parent_data_source):
        raise ValueError("Specify exactly one of parent_page or parent_data_source")
    if parent_page:
        return {"type": "page_id", "page_id": normalise_id(parent_page)}
    return {"type": "data_source_id", "data_source_id": normalise_id(parent_data_source)}  # type: ignore[arg-type]


def build_position(position: str | None, after_block: str | None) -> dict[str, Any] | None:
    """Build a ``position`` object; *after_block* wins over *position*."""
    if after_block:
        return {"type": "after_block", "after_block": {"id": normalise_id(after_block)}}
    if position is None:
        return None
    if position not in POSITIONS:
        raise ValueError(f"position must be one of {sorted(POSITIONS)}, got {position!r}")
    return {"type": position}


def build_template(template: str | None) -> dict[str, Any] | None:
    """``"none"`` / ``"default"``, or any other value as a template page ID."""
    if template is None:
        return None
    if template in ("none", "default"):
        return {"type": template}
    return {"type": "template_id", "template_id": normalise_id(template)}


def single_block_patch(markdown: str) -> tuple[str, dict[str, Any]]:
    """Parse *markdown* that must hold exactly one block into an update body.

    Returns ``(block_type, patch)``.  Children are dropped since the
    update endpoint does not accept them.
    """
    blocks = parse_document(markdown)
    if len(blocks) != 1:
        raise ValueError(
            f"Expected exactly one block in markdown, got {len(blocks)}; "
            "use append_markdown for multiple blocks"
        )
    payload = block_to_payload(blocks[0])
    block_type = payload["type"]
    data = {k: v for k, v in payload[block_type].items() if k != "children"}
    return block_type, {block_type: data}


def search_hit(result: dict[str, Any]) -> SearchHit:
    """Trim a raw search result to a :class:`SearchHit`."""
    obj = result.get("object", "")
    title: str | None = None
    if obj == "page":
        title = page_title(result)
    elif isinstance(result.get("title"), list):
        title = "".join(item.get("plain_text", "") for item in result["title"])
    return SearchHit(
        object=obj,
        id=result.get("id", ""),
        title=title,
        url=result.get("url"),
        last_edited_time=result.get("last_edited_time"),
        parent=result.get("parent"),
    )


def child_page_refs(records: list[dict[str, Any]]) -> list[ChildPageRef]:
    return [
        ChildPageRef(id=r["id"], title=(r.get("child_page") or {}).get("title") or "Untitled")
        for r in records
        if r.get("type") == "child_page" and "id" in r
    ]


def title_properties_for(parent: dict[str, Any], schema: dict[str, Any] | None, title: str) -> dict[str, Any]:
    if parent.get("type") == "data_source_id":
        name = find_title_property(schema) or DEFAULT_TITLE_PROPERTY
        return {name: title_property(title)}
    return {"title": title_property(title)}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class NotionctlClient:
    """Synchronous notionctl client.

    Parameters
    ----------
    token:
        Notion integration token.  When omitted it is looked up with
        :func:`~notionctl.config.resolve_token`.
    throttle:
        Optional shared :class:`MinIntervalThrottle`.
    **kwargs:
        Remaining keyword arguments are forwarded to
        :class:`NotionctlConfig`.

    Page, block and data source arguments accept dashed or undashed
    UUIDs as well as Notion URLs.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        throttle: MinIntervalThrottle | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = NotionctlConfig(token=token or resolve_token(), **kwargs)
        self._metrics = self._config.metrics or NoopMetricsHook()
        self._transport = NotionTransport(self._config, throttle=throttle)
        self._blocks = BlockAPI(self._transport, batch_size=self._config.append_batch_size)
        self._pages = PageAPI(self._transport)
        self._data_sources = DataSourceAPI(self._transport)
        self._search = SearchAPI(self._transport)
        self._users = UserAPI(self._transport)
        self._renderer = MarkdownRenderer(self._config.unsupported_block_policy)

    @property
    def config(self) -> NotionctlConfig:
        return self._config

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def whoami(self) -> dict[str, Any]:
        """Return the bot user behind the token."""
        return self._users.me()

    def search(self, query: str = "", object_type: str = "all", limit: int = 20) -> list[SearchHit]:
        """Search pages and data sources, most recently edited first."""
        results = self._search.search(query, object_type=object_type, limit=limit)
        return [search_hit(r) for r in results]

    def get_page(self, page: str) -> dict[str, Any]:
        return self._pages.retrieve(normalise_id(page))

    def get_blocks(self, page: str) -> list[dict[str, Any]]:
        """Fetch a page's full block tree (children under ``"children"``)."""
        return self._blocks.get_tree(normalise_id(page), max_depth=self._config.max_tree_depth)

    def export_markdown(self, page: str) -> PageExport:
        """Render a page's content as Markdown.

        Raises
        ------
        NotionctlUnsupportedBlockError
            If the page holds a block with no Markdown form and the
            configured policy is ``"raise"``.
        """
        page_id = normalise_id(page)
        t0 = time.monotonic()
        page_obj = self._pages.retrieve(page_id)
        records = self._blocks.get_tree(page_id, max_depth=self._config.max_tree_depth)
        markdown = self._renderer.render_document(blocks_from_payload(records))
        self._metrics.timing("notionctl.export_duration_ms", (time.monotonic() - t0) * 1000)
        log.info(
            "export_markdown complete",
            extra={"extra_fields": {"op": "export_markdown", "page_id": page_id, "blocks": len(records)}},
        )
        return PageExport(page_id=page_id, title=page_title(page_obj), markdown=markdown)

    def list_child_pages(self, page: str) -> list[ChildPageRef]:
        """List the ``child_page`` blocks directly under a page."""
        return child_page_refs(self._blocks.get_children(normalise_id(page)))

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create_page_from_markdown(
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
        """Create a page whose content is *markdown*.

        Parameters
        ----------
        title:
            Page title (inline Markdown allowed).
        markdown:
            Page content.  Ignored when *template* is given.
        parent_page, parent_data_source:
            Exactly one parent.
        properties:
            Raw property values (name -> string), data source parents
            only; see :func:`~notionctl.properties.build_properties`.
        position, after_block:
            Placement under a page parent: ``"page_start"`` /
            ``"page_end"``, or after an existing block.
        template:
            ``"none"``, ``"default"`` or a template page ID.

        Raises
        ------
        ValueError
            On a missing title or inconsistent arguments.
        NotionctlSchemaError
            If *properties* do not fit the data source schema.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError("create_page_from_markdown requires a title")
        parent = build_parent(parent_page, parent_data_source)

        schema: dict[str, Any] | None = None
        if parent["type"] == "data_source_id":
            schema = self._data_sources.retrieve(parent["data_source_id"]).get("properties") or {}
        elif properties:
            raise ValueError("properties can only be set on pages in a data source")

        page_props = title_properties_for(parent, schema, title)
        if properties:
            page_props.update(build_properties(schema or {}, properties))

        position_obj = build_position(position, after_block) if parent["type"] == "page_id" else None
        template_obj = build_template(template)
        records = [] if template_obj else blocks_to_payload(parse_document(markdown))
        first, rest = records[: self._config.append_batch_size], records[self._config.append_batch_size:]

        page = self._pages.create(
            parent=parent,
            properties=page_props,
            children=first,
            position=position_obj,
            template=template_obj,
        )
        page_id = page["id"]
        if rest:
            self._blocks.append_children(page_id, rest)

        self._metrics.increment("notionctl.blocks_created_total", len(records))
        log.info(
            "create_page_from_markdown complete",
            extra={"extra_fields": {"op": "create_page", "page_id": page_id, "blocks": len(records)}},
        )
        return PageCreateResult(page_id=page_id, url=page.get("url", ""), blocks_created=len(records), page=page)

    def append_markdown(self, page: str, markdown: str) -> AppendResult:
        """Append the blocks parsed from *markdown* to a page or block."""
        page_id = normalise_id(page)
        records = blocks_to_payload(parse_document(markdown))
        responses = self._blocks.append_children(page_id, records)
        self._metrics.increment("notionctl.blocks_created_total", len(records))
        log.info(
            "append_markdown complete",
            extra={"extra_fields": {"op": "append_markdown", "page_id": page_id, "blocks": len(records)}},
        )
        return AppendResult(page_id=page_id, blocks_appended=len(records), responses=responses)

    def update_page(
        self,
        page: str,
        title: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Change a page's title and/or data source properties.

        Raises
        ------
        ValueError
            If nothing is to be changed, or *properties* are given for a
            page that is not in a data source.
        """
        if title is None and not properties:
            raise ValueError("update_page requires a title or properties")
        page_id = normalise_id(page)
        parent = self._pages.retrieve(page_id).get("parent") or {}

        schema: dict[str, Any] | None = None
        if parent.get("type") == "data_source_id":
            schema = self._data_sources.retrieve(parent["data_source_id"]).get("properties") or {}
        elif properties:
            raise ValueError("properties can only be set on pages in a data source")

        updates: dict[str, Any] = {}
        if title is not None:
            updates.update(title_properties_for(parent, schema, title.strip()))
        if properties:
            updates.update(build_properties(schema or {}, properties))
        return self._pages.update(page_id, properties=updates)

    def update_block_from_markdown(self, block: str, markdown: str) -> BlockUpdateResult:
        """Replace a block's content with a single-block Markdown fragment."""
        block_id = normalise_id(block)
        block_type, patch = single_block_patch(markdown)
        updated = self._blocks.update(block_id, patch)
        return BlockUpdateResult(block_id=block_id, block_type=block_type, block=updated)

    def delete_block(self, block: str) -> dict[str, Any]:
        """Move a block (or page) to the trash."""
        return self._blocks.delete(normalise_id(block))

    def move_page(
        self,
        page: str,
        *,
        to_page: str | None = None,
        to_data_source: str | None = None,
    ) -> dict[str, Any]:
        """Move a page under another page or into a data source."""
        parent = build_parent(to_page, to_data_source)
        return self._pages.move(normalise_id(page), parent)

    def triage(
        self,
        inbox_page: str,
        rules: RulesSource,
        *,
        limit: int = 50,
        apply: bool = False,
    ) -> TriageResult:
        """Sort an inbox page's child pages with title-matching rules.

        Parameters
        ----------
        inbox_page:
            The page whose ``child_page`` blocks are triaged.
        rules:
            A rule list or a path to a JSON file holding one; see
            :mod:`notionctl.triage` for the format.
        limit:
            Only the first *limit* child pages are considered.
        apply:
            When false only the plan is returned.  When true every planned
            page is moved; a failed move is recorded on its
            :class:`TriageMove` and the remaining moves still run.

        Raises
        ------
        ValueError
            If *rules* is not an array or holds an invalid ``title_regex``.
        """
        inbox_id = normalise_id(inbox_page)
        rule_list = load_rules(rules)
        pages = self.list_child_pages(inbox_id)[: max(limit, 0)]
        plan = plan_triage(pages, rule_list)
        result = TriageResult(inbox_page_id=inbox_id, applied=apply, planned=plan)
        if not apply:
            return result

        for item in plan:
            try:
                parent = move_parent(item.move_to)
                moved = self._pages.move(normalise_id(item.page_id), parent)
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

    def close(self) -> None:
        """Close the HTTP transport."""
        self._transport.close()

    def __enter__(self) -> NotionctlClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
