"""Tests for notionctl/converter/payload.py (block tree <-> Notion dicts)."""

from __future__ import annotations

import pytest

from notionctl.converter.md_parser import parse_document
from notionctl.converter.payload import (
    block_from_payload,
    block_to_payload,
    blocks_from_payload,
    markdown_to_payload,
    payload_to_markdown,
    rich_text_to_spans,
    spans_to_rich_text,
)
from notionctl.errors import NotionctlConversionError, NotionctlUnsupportedBlockError
from notionctl.models import (
    Annotations,
    Callout,
    ChildPage,
    Code,
    Divider,
    Heading,
    Image,
    Paragraph,
    Table,
    TextSpan,
    Todo,
    Toggle,
    Unsupported,
    spans_text,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def rt(text: str, **annotations) -> dict:
    """Build a rich_text item the way the API returns it."""
    return {
        "type": "text",
        "text": {"content": text, "link": None},
        "plain_text": text,
        "href": None,
        "annotations": {"bold": False, "italic": False, "code": False, **annotations},
    }


def record(block_type: str, data: dict, **extra) -> dict:
    return {"object": "block", "id": f"id-{block_type}", "type": block_type, block_type: data, **extra}


# ---------------------------------------------------------------------------
# Rich text
# ---------------------------------------------------------------------------

class TestRichText:
    def test_encode_full_annotations(self):
        (item,) = spans_to_rich_text([TextSpan("x", Annotations(bold=True))])
        assert item["type"] == "text"
        assert item["text"] == {"content": "x"}
        assert item["annotations"] == {
            "bold": True,
            "italic": False,
            "strikethrough": False,
            "underline": False,
            "code": False,
            "color": "default",
        }

    def test_encode_link(self):
        (item,) = spans_to_rich_text([TextSpan("x", link="https://e.com")])
        assert item["text"]["link"] == {"url": "https://e.com"}

    def test_encode_drops_empty_and_splits_long(self):
        items = spans_to_rich_text([TextSpan(""), TextSpan("y" * 2001)])
        assert [len(i["text"]["content"]) for i in items] == [2000, 1]

    def test_decode_prefers_plain_text(self):
        item = {"type": "mention", "plain_text": "@Ada", "annotations": {}}
        (span,) = rich_text_to_spans([item])
        assert span.content == "@Ada"
        assert span.annotations == Annotations()

    def test_decode_link_from_href_or_text(self):
        a = {**rt("a"), "href": "https://a.com"}
        b = {"type": "text", "text": {"content": "b", "link": {"url": "https://b.com"}}}
        assert [s.link for s in rich_text_to_spans([a, b])] == ["https://a.com", "https://b.com"]

    def test_decode_none(self):
        assert rich_text_to_spans(None) == []


# ---------------------------------------------------------------------------
# Block -> payload
# ---------------------------------------------------------------------------

class TestBlockToPayload:
    def test_paragraph(self):
        payload = block_to_payload(Paragraph(text=[TextSpan("hi")]))
        assert payload["object"] == "block"
        assert payload["type"] == "paragraph"
        assert payload["paragraph"]["rich_text"][0]["text"]["content"] == "hi"
        assert "children" not in payload["paragraph"]

    def test_heading_type_name(self):
        assert block_to_payload(Heading(level=3))["type"] == "heading_3"

    def test_todo(self):
        payload = block_to_payload(Todo(text=[TextSpan("t")], checked=True))
        assert payload["type"] == "to_do"
        assert payload["to_do"]["checked"] is True

    def test_nested_children(self):
        (payload,) = markdown_to_payload("- a\n  - b")
        child = payload["bulleted_list_item"]["children"][0]
        assert child["type"] == "bulleted_list_item"

    def test_callout(self):
        payload = block_to_payload(Callout(text=[TextSpan("c")], icon="💡", color="blue_background"))
        assert payload["callout"]["icon"] == {"type": "emoji", "emoji": "💡"}
        assert payload["callout"]["color"] == "blue_background"

    def test_toggle_summary_and_children(self):
        payload = block_to_payload(Toggle(summary=[TextSpan("S")], children=[Divider()]))
        assert payload["toggle"]["rich_text"][0]["text"]["content"] == "S"
        assert payload["toggle"]["children"] == [{"object": "block", "type": "divider", "divider": {}}]

    def test_code_language_normalised(self):
        payload = block_to_payload(Code(text=[TextSpan("x")], language="py"))
        assert payload["code"]["language"] == "python"

    def test_table(self):
        (payload,) = markdown_to_payload("| a | b |\n|---|---|\n| 1 |")
        table = payload["table"]
        assert table["table_width"] == 2
        assert table["has_column_header"] is True
        assert table["has_row_header"] is False
        rows = table["children"]
        assert [r["type"] for r in rows] == ["table_row", "table_row"]
        assert all(len(r["table_row"]["cells"]) == 2 for r in rows)
        assert rows[1]["table_row"]["cells"][1] == []

    def test_image_external(self):
        payload = block_to_payload(Image(url="https://e.com/i.png", caption=[TextSpan("c")]))
        assert payload["image"]["type"] == "external"
        assert payload["image"]["external"] == {"url": "https://e.com/i.png"}
        assert payload["image"]["caption"][0]["text"]["content"] == "c"

    def test_image_without_caption(self):
        assert "caption" not in block_to_payload(Image(url="u"))["image"]

    @pytest.mark.parametrize("block", [ChildPage(title="x"), Unsupported(raw_type="embed")])
    def test_uncreatable_blocks_raise(self, block):
        with pytest.raises(NotionctlConversionError):
            block_to_payload(block)


# ---------------------------------------------------------------------------
# Payload -> block
# ---------------------------------------------------------------------------

class TestBlockFromPayload:
    def test_paragraph_keeps_id(self):
        block = block_from_payload(record("paragraph", {"rich_text": [rt("hello")]}))
        assert isinstance(block, Paragraph)
        assert block.block_id == "id-paragraph"
        assert spans_text(block.text) == "hello"

    def test_heading(self):
        block = block_from_payload(record("heading_2", {"rich_text": [rt("H")]}))
        assert isinstance(block, Heading)
        assert block.level == 2

    def test_children_from_record(self):
        child = record("paragraph", {"rich_text": [rt("c")]})
        parent = record("toggle", {"rich_text": [rt("S")]}, has_children=True, children=[child])
        block = block_from_payload(parent)
        assert isinstance(block, Toggle)
        assert spans_text(block.children[0].text) == "c"

    def test_callout_icon(self):
        block = block_from_payload(record("callout", {
            "rich_text": [rt("x")],
            "icon": {"type": "emoji", "emoji": "⚠️"},
            "color": "yellow_background",
        }))
        assert isinstance(block, Callout)
        assert block.icon == "⚠️"
        assert block.color == "yellow_background"

    def test_callout_non_emoji_icon_falls_back(self):
        block = block_from_payload(record("callout", {"rich_text": [], "icon": {"type": "external"}}))
        assert block.icon == "💭"

    def test_table_rows(self):
        rows = [
            record("table_row", {"cells": [[rt("a")], [rt("b")]]}),
            record("table_row", {"cells": [[rt("1")], []]}),
        ]
        block = block_from_payload(record("table", {"table_width": 2, "has_column_header": True}, children=rows))
        assert isinstance(block, Table)
        assert block.has_header
        assert [[spans_text(c) for c in row] for row in block.rows] == [["a", "b"], ["1", ""]]

    def test_image_file(self):
        block = block_from_payload(record("image", {"type": "file", "file": {"url": "https://s3/x.png"}}))
        assert isinstance(block, Image)
        assert block.url == "https://s3/x.png"

    def test_child_page(self):
        block = block_from_payload(record("child_page", {"title": "Sub"}))
        assert isinstance(block, ChildPage)
        assert block.title == "Sub"

    def test_unknown_type(self):
        block = block_from_payload(record("synced_block", {"rich_text": [rt("x")]}))
        assert isinstance(block, Unsupported)
        assert block.raw_type == "synced_block"


# ---------------------------------------------------------------------------
# Markdown helpers
# ---------------------------------------------------------------------------

class TestMarkdownHelpers:
    def test_markdown_to_payload(self):
        payload = markdown_to_payload("# T\n\ntext")
        assert [p["type"] for p in payload] == ["heading_1", "paragraph"]

    def test_payload_to_markdown(self):
        records = [
            record("heading_1", {"rich_text": [rt("Title")]}),
            record("to_do", {"rich_text": [rt("task")], "checked": True}),
        ]
        assert payload_to_markdown(records) == "# Title\n\n- [x] task\n"

    def test_payload_to_markdown_policy(self):
        records = [record("embed", {})]
        assert payload_to_markdown(records, unsupported_block_policy="skip") == ""
        with pytest.raises(NotionctlUnsupportedBlockError):
            payload_to_markdown(records, unsupported_block_policy="raise")

    def test_tree_equality_through_payload(self):
        md = "# Title\n\n- a\n  - [x] b\n\n> [!TIP] hint\n\n```python\nx = 1\n```"
        parsed = parse_document(md)
        assert blocks_from_payload(markdown_to_payload(md)) == parsed
