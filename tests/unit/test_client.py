"""Tests for notionctl/client.py and notionctl/async_client.py.

The per-endpoint API objects are replaced with MagicMock/AsyncMock so the
tests exercise the orchestration: Markdown parsing, payload building,
batching, property handling, and result shapes.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from notionctl import AsyncNotionctlClient, NotionctlClient
from notionctl.client import (
    build_parent,
    build_position,
    build_template,
    child_page_refs,
    search_hit,
    single_block_patch,
)
from notionctl.errors import (
    NotionctlAuthError,
    NotionctlNotFoundError,
    NotionctlSchemaError,
    NotionctlUnsupportedBlockError,
)
from notionctl.models import ChildPageRef, PageCreateResult

PAGE = "0123456789abcdef0123456789abcdef"
PAGE_ID = "01234567-89ab-cdef-0123-456789abcdef"
OTHER = "fedcba9876543210fedcba9876543210"
OTHER_ID = "fedcba98-7654-3210-fedc-ba9876543210"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_client(**kwargs) -> NotionctlClient:
    client = NotionctlClient(token="test_token_1234", min_request_interval=0, **kwargs)
    client._pages = MagicMock()
    client._blocks = MagicMock()
    client._data_sources = MagicMock()
    client._search = MagicMock()
    client._users = MagicMock()
    return client


def make_async_client(**kwargs) -> AsyncNotionctlClient:
    client = AsyncNotionctlClient(token="test_token_1234", min_request_interval=0, **kwargs)
    client._pages = AsyncMock()
    client._blocks = AsyncMock()
    client._data_sources = AsyncMock()
    client._search = AsyncMock()
    client._users = AsyncMock()
    return client


def rt(text: str) -> list[dict]:
    return [{"type": "text", "text": {"content": text}, "plain_text": text, "annotations": {}}]


# ---------------------------------------------------------------------------
# Request-building helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_build_parent(self):
        assert build_parent(PAGE, None) == {"type": "page_id", "page_id": PAGE_ID}
        assert build_parent(None, PAGE) == {"type": "data_source_id", "data_source_id": PAGE_ID}

    @pytest.mark.parametrize(("page", "ds"), [(None, None), (PAGE, OTHER)])
    def test_build_parent_requires_exactly_one(self, page, ds):
        with pytest.raises(ValueError):
            build_parent(page, ds)

    def test_build_position(self):
        assert build_position(None, None) is None
        assert build_position("page_start", None) == {"type": "page_start"}
        assert build_position("page_end", PAGE) == {"type": "after_block", "after_block": {"id": PAGE_ID}}
        with pytest.raises(ValueError):
            build_position("middle", None)

    def test_build_template(self):
        assert build_template(None) is None
        assert build_template("default") == {"type": "default"}
        assert build_template(PAGE) == {"type": "template_id", "template_id": PAGE_ID}

    def test_single_block_patch(self):
        block_type, patch = single_block_patch("- [x] done\n  - child")
        assert block_type == "to_do"
        assert patch["to_do"]["checked"] is True
        assert "children" not in patch["to_do"]

    @pytest.mark.parametrize("markdown", ["", "one\n\ntwo"])
    def test_single_block_patch_requires_one_block(self, markdown):
        with pytest.raises(ValueError):
            single_block_patch(markdown)

    def test_search_hit_page(self):
        result = {
            "object": "page",
            "id": "p",
            "url": "https://notion.so/p",
            "last_edited_time": "2026-01-01T00:00:00.000Z",
            "parent": {"type": "workspace"},
            "properties": {"Name": {"type": "title", "title": rt("Doc")}},
        }
        hit = search_hit(result)
        assert (hit.object, hit.id, hit.title) == ("page", "p", "Doc")

    def test_search_hit_data_source(self):
        hit = search_hit({"object": "data_source", "id": "d", "title": rt("Tasks")})
        assert hit.title == "Tasks"

    def test_child_page_refs(self):
        records = [
            {"id": "a", "type": "child_page", "child_page": {"title": "A"}},
            {"id": "b", "type": "paragraph"},
            {"id": "c", "type": "child_page", "child_page": {}},
        ]
        assert child_page_refs(records) == [ChildPageRef("a", "A"), ChildPageRef("c", "Untitled")]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("NOTION_API_KEY", "env_token_9999")
        client = NotionctlClient()
        assert client.config.token == "env_token_9999"
        client.close()

    def test_missing_token(self, monkeypatch, tmp_path):
        for name in ("NOTION_API_KEY", "NOTION_TOKEN", "NOTION_API_TOKEN"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("notionctl.config.TOKEN_FILE", tmp_path / "missing")
        with pytest.raises(NotionctlAuthError):
            NotionctlClient()

    def test_kwargs_reach_config(self):
        client = NotionctlClient(token="t", append_batch_size=10, min_request_interval=0)
        assert client.config.append_batch_size == 10
        assert client._blocks._batch_size == 10
        client.close()


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------

class TestReadOperations:
    def test_export_markdown(self):
        client = make_client()
        client._pages.retrieve = MagicMock(return_value={
            "properties": {"title": {"type": "title", "title": rt("My Page")}},
        })
        client._blocks.get_tree = MagicMock(return_value=[
            {"id": "h", "type": "heading_1", "heading_1": {"rich_text": rt("Hello")}},
            {
                "id": "l", "type": "bulleted_list_item", "has_children": True,
                "bulleted_list_item": {"rich_text": rt("item")},
                "children": [{"id": "c", "type": "to_do", "to_do": {"rich_text": rt("sub"), "checked": False}}],
            },
        ])
        export = client.export_markdown(f"https://www.notion.so/My-Page-{PAGE}")
        assert export.page_id == PAGE_ID
        assert export.title == "My Page"
        assert export.markdown == "# Hello\n\n- item\n  - [ ] sub\n"
        client._blocks.get_tree.assert_called_once_with(PAGE_ID, max_depth=50)

    def test_export_respects_raise_policy(self):
        client = make_client(unsupported_block_policy="raise")
        client._pages.retrieve = MagicMock(return_value={})
        client._blocks.get_tree = MagicMock(return_value=[{"id": "e", "type": "embed", "embed": {}}])
        with pytest.raises(NotionctlUnsupportedBlockError):
            client.export_markdown(PAGE)

    def test_export_emits_timing(self):
        metrics = MagicMock()
        client = make_client(metrics=metrics)
        client._pages.retrieve = MagicMock(return_value={})
        client._blocks.get_tree = MagicMock(return_value=[])
        client.export_markdown(PAGE)
        assert metrics.timing.call_args.args[0] == "notionctl.export_duration_ms"

    def test_search(self):
        client = make_client()
        client._search.search = MagicMock(return_value=[{"object": "page", "id": "p", "properties": {}}])
        hits = client.search("q", object_type="page", limit=3)
        assert hits[0].id == "p"
        client._search.search.assert_called_once_with("q", object_type="page", limit=3)

    def test_list_child_pages(self):
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=[
            {"id": "a", "type": "child_page", "child_page": {"title": "A"}},
        ])
        assert client.list_child_pages(PAGE) == [ChildPageRef("a", "A")]

    def test_whoami_and_get_page(self):
        client = make_client()
        client._users.me = MagicMock(return_value={"object": "user"})
        client._pages.retrieve = MagicMock(return_value={"id": PAGE_ID})
        assert client.whoami() == {"object": "user"}
        assert client.get_page(PAGE) == {"id": PAGE_ID}
        client._pages.retrieve.assert_called_once_with(PAGE_ID)


# ---------------------------------------------------------------------------
# create_page_from_markdown
# ---------------------------------------------------------------------------

class TestCreatePage:
    def test_page_parent(self):
        client = make_client()
        client._pages.create = MagicMock(return_value={"id": "new", "url": "https://notion.so/new"})
        result = client.create_page_from_markdown("Title", "# H\n\ntext", parent_page=PAGE, position="page_start")
        assert result == PageCreateResult(
            page_id="new", url="https://notion.so/new", blocks_created=2,
            page={"id": "new", "url": "https://notion.so/new"},
        )
        kwargs = client._pages.create.call_args.kwargs
        assert kwargs["parent"] == {"type": "page_id", "page_id": PAGE_ID}
        assert list(kwargs["properties"]) == ["title"]
        assert [c["type"] for c in kwargs["children"]] == ["heading_1", "paragraph"]
        assert kwargs["position"] == {"type": "page_start"}
        client._blocks.append_children.assert_not_called()

    def test_overflow_is_appended(self):
        client = make_client()
        client._pages.create = MagicMock(return_value={"id": "new"})
        markdown = "\n\n".join(f"para {i}" for i in range(150))
        result = client.create_page_from_markdown("T", markdown, parent_page=PAGE)
        assert result.blocks_created == 150
        assert len(client._pages.create.call_args.kwargs["children"]) == 100
        page_id, rest = client._blocks.append_children.call_args.args
        assert page_id == "new"
        assert len(rest) == 50

    def test_data_source_parent_uses_schema(self):
        client = make_client()
        client._data_sources.retrieve = MagicMock(return_value={
            "properties": {"Task": {"type": "title"}, "Status": {"type": "status"}},
        })
        client._pages.create = MagicMock(return_value={"id": "new"})
        client.create_page_from_markdown("Do it", parent_data_source=PAGE, properties={"Status": "Todo"})
        kwargs = client._pages.create.call_args.kwargs
        assert set(kwargs["properties"]) == {"Task", "Status"}
        assert kwargs["properties"]["Status"] == {"status": {"name": "Todo"}}
        assert kwargs["position"] is None

    def test_data_source_without_title_property_uses_name(self):
        client = make_client()
        client._data_sources.retrieve = MagicMock(return_value={"properties": {}})
        client._pages.create = MagicMock(return_value={"id": "new"})
        client.create_page_from_markdown("X", parent_data_source=PAGE)
        assert "Name" in client._pages.create.call_args.kwargs["properties"]

    def test_unknown_property_rejected(self):
        client = make_client()
        client._data_sources.retrieve = MagicMock(return_value={"properties": {"Name": {"type": "title"}}})
        with pytest.raises(NotionctlSchemaError):
            client.create_page_from_markdown("X", parent_data_source=PAGE, properties={"Nope": "1"})
        client._pages.create.assert_not_called()

    def test_properties_need_data_source(self):
        client = make_client()
        with pytest.raises(ValueError):
            client.create_page_from_markdown("X", parent_page=PAGE, properties={"A": "b"})

    def test_template_skips_content(self):
        client = make_client()
        client._pages.create = MagicMock(return_value={"id": "new"})
        result = client.create_page_from_markdown("X", "# ignored", parent_page=PAGE, template="default")
        assert result.blocks_created == 0
        assert client._pages.create.call_args.kwargs["template"] == {"type": "default"}

    def test_blank_title_rejected(self):
        with pytest.raises(ValueError):
            make_client().create_page_from_markdown("   ", parent_page=PAGE)


# ---------------------------------------------------------------------------
# Other write operations
# ---------------------------------------------------------------------------

class TestWriteOperations:
    def test_append_markdown(self):
        metrics = MagicMock()
        client = make_client(metrics=metrics)
        client._blocks.append_children = MagicMock(return_value=[{"results": []}])
        result = client.append_markdown(PAGE, "- a\n- b\n\n---")
        assert result.page_id == PAGE_ID
        assert result.blocks_appended == 3
        assert result.responses == [{"results": []}]
        metrics.increment.assert_called_with("notionctl.blocks_created_total", 3)

    def test_update_page_title_on_page_parent(self):
        client = make_client()
        client._pages.retrieve = MagicMock(return_value={"parent": {"type": "page_id", "page_id": "x"}})
        client.update_page(PAGE, title="New")
        properties = client._pages.update.call_args.kwargs["properties"]
        assert properties["title"]["title"][0]["text"]["content"] == "New"

    def test_update_page_properties_on_data_source(self):
        client = make_client()
        client._pages.retrieve = MagicMock(return_value={"parent": {"type": "data_source_id", "data_source_id": "d"}})
        client._data_sources.retrieve = MagicMock(return_value={"properties": {"Done": {"type": "checkbox"}}})
        client.update_page(PAGE, properties={"Done": "true"})
        assert client._pages.update.call_args.kwargs["properties"] == {"Done": {"checkbox": True}}

    def test_update_page_needs_changes(self):
        with pytest.raises(ValueError):
            make_client().update_page(PAGE)

    def test_update_block_from_markdown(self):
        client = make_client()
        client._blocks.update = MagicMock(return_value={"id": PAGE_ID})
        result = client.update_block_from_markdown(PAGE, "## New heading")
        assert result.block_type == "heading_2"
        block_id, patch = client._blocks.update.call_args.args
        assert block_id == PAGE_ID
        assert patch["heading_2"]["rich_text"][0]["text"]["content"] == "New heading"

    def test_delete_and_move(self):
        client = make_client()
        client.delete_block(PAGE)
        client._blocks.delete.assert_called_once_with(PAGE_ID)
        client.move_page(PAGE, to_page=OTHER)
        client._pages.move.assert_called_once_with(PAGE_ID, {"type": "page_id", "page_id": OTHER_ID})

    def test_context_manager_closes_transport(self):
        with make_client() as client:
            http = client._transport._client
        assert http.is_closed


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------

class TestAsyncClient:
    @pytest.mark.asyncio
    async def test_export_markdown(self):
        client = make_async_client()
        client._pages.retrieve = AsyncMock(return_value={})
        client._blocks.get_tree = AsyncMock(return_value=[
            {"id": "p", "type": "paragraph", "paragraph": {"rich_text": rt("hi")}},
        ])
        export = await client.export_markdown(PAGE)
        assert export.markdown == "hi\n"
        assert export.title is None
        await client.close()

    @pytest.mark.asyncio
    async def test_create_page_with_overflow(self):
        client = make_async_client()
        client._pages.create = AsyncMock(return_value={"id": "new", "url": "u"})
        markdown = "\n\n".join(f"p{i}" for i in range(101))
        result = await client.create_page_from_markdown("T", markdown, parent_page=PAGE)
        assert result.blocks_created == 101
        client._blocks.append_children.assert_awaited_once()
        await client.close()

    @pytest.mark.asyncio
    async def test_append_and_update_block(self):
        client = make_async_client()
        client._blocks.append_children = AsyncMock(return_value=[])
        client._blocks.update = AsyncMock(return_value={})
        appended = await client.append_markdown(PAGE, "text")
        updated = await client.update_block_from_markdown(PAGE, "> quote")
        assert appended.blocks_appended == 1
        assert updated.block_type == "quote"
        await client.close()

    @pytest.mark.asyncio
    async def test_search_and_move(self):
        client = make_async_client()
        client._search.search = AsyncMock(return_value=[{"object": "data_source", "id": "d", "title": rt("DB")}])
        client._pages.move = AsyncMock(return_value={"id": PAGE_ID})
        hits = await client.search("DB")
        await client.move_page(PAGE, to_data_source=OTHER)
        assert hits[0].title == "DB"
        client._pages.move.assert_awaited_once_with(PAGE_ID, {"type": "data_source_id", "data_source_id": OTHER_ID})
        await client.close()

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with make_async_client() as client:
            http = client._transport._client
        assert http.is_closed


# ---------------------------------------------------------------------------
# Triage
# ---------------------------------------------------------------------------

P1 = "11111111-1111-1111-1111-111111111111"
P3 = "33333333-3333-3333-3333-333333333333"

INBOX_CHILDREN = [
    {"id": P1, "type": "child_page", "child_page": {"title": "Receipt: laptop"}},
    {"id": "p2", "type": "paragraph", "paragraph": {"rich_text": []}},
    {"id": P3, "type": "child_page", "child_page": {"title": "Weekly Meeting notes"}},
    {"id": "p4", "type": "child_page", "child_page": {"title": "Random idea"}},
]

TRIAGE_RULES = [
    {"name": "receipts", "match": {"title_regex": "^Receipt"}, "move_to": {"type": "data_source_id", "id": OTHER}},
    {"name": "meetings", "match": {"contains": "meeting"}, "move_to": {"type": "page_id", "id": PAGE}},
]


class TestTriage:
    def test_plan_only_does_not_move(self):
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=INBOX_CHILDREN)
        result = client.triage(PAGE, TRIAGE_RULES)
        assert result.inbox_page_id == PAGE_ID
        assert result.applied is False
        assert [(p.page_id, p.rule) for p in result.planned] == [(P1, "receipts"), (P3, "meetings")]
        assert result.moved == []
        client._pages.move.assert_not_called()

    def test_rules_from_json_file(self, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps(TRIAGE_RULES), encoding="utf-8")
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=INBOX_CHILDREN)
        result = client.triage(PAGE, str(rules_file))
        assert len(result.planned) == 2

    def test_limit_applies_to_child_pages(self):
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=INBOX_CHILDREN)
        result = client.triage(PAGE, TRIAGE_RULES, limit=1)
        assert [p.page_id for p in result.planned] == [P1]

    def test_apply_records_partial_failure(self):
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=INBOX_CHILDREN)
        client._pages.move = MagicMock(side_effect=[
            NotionctlNotFoundError("target not shared"),
            {"id": P3},
        ])
        result = client.triage(PAGE, TRIAGE_RULES, apply=True)
        assert result.applied is True
        first, second = result.moved
        assert (first.page_id, first.ok, first.error) == (P1, False, "target not shared")
        assert second.ok is True
        assert second.moved_to == {"type": "page_id", "page_id": PAGE_ID}
        assert client._pages.move.call_count == 2

    def test_apply_unknown_target_type_is_recorded(self):
        rules = [{"name": "odd", "match": {"contains": "idea"}, "move_to": {"type": "workspace", "id": PAGE}}]
        client = make_client()
        client._blocks.get_children = MagicMock(return_value=INBOX_CHILDREN)
        result = client.triage(PAGE, rules, apply=True)
        assert result.moved[0].ok is False
        assert "Unknown move_to.type" in result.moved[0].error
        client._pages.move.assert_not_called()

    def test_rules_must_be_array(self):
        client = make_client()
        with pytest.raises(ValueError):
            client.triage(PAGE, {"name": "not a list"})

    @pytest.mark.asyncio
    async def test_async_apply(self):
        client = make_async_client()
        client._blocks.get_children = AsyncMock(return_value=INBOX_CHILDREN)
        client._pages.move = AsyncMock(side_effect=[NotionctlNotFoundError("gone"), {"id": P3}])
        result = await client.triage(PAGE, TRIAGE_RULES, apply=True)
        assert [m.ok for m in result.moved] == [False, True]
        client._pages.move.assert_awaited_with(P3, {"type": "page_id", "page_id": PAGE_ID})
        await client.close()

    @pytest.mark.asyncio
    async def test_async_plan_only(self):
        client = make_async_client()
        client._blocks.get_children = AsyncMock(return_value=INBOX_CHILDREN)
        result = await client.triage(PAGE, TRIAGE_RULES)
        assert len(result.planned) == 2
        client._pages.move.assert_not_called()
        await client.close()
