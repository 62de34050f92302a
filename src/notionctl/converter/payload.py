"""Block payload codec: :class:`~notionctl.models.Block` <-> Notion API dicts.

Outgoing payloads (:func:`block_to_payload`) use the shape the
``append block children`` and ``create page`` endpoints accept, with
nested children placed inside the type object.  Incoming records
(:func:`block_from_payload`) are the block objects returned by the API;
children fetched by :meth:`~notionctl.notion_api.blocks.BlockAPI.get_tree`
are found under the record's top-level ``"children"`` key.
"""

from __future__ import annotations

from typing import Any

from notionctl.errors import NotionctlConversionError
from notionctl.models import (
    SEGMENT_LIMIT,
    Annotations,
    Block,
    BulletedItem,
    Callout,
    ChildPage,
    Code,
    Divider,
    Heading,
    Image,
    NumberedItem,
    Paragraph,
    Quote,
    Table,
    TextSpan,
    Todo,
    Toggle,
    Unsupported,
)

from .inline import split_spans
from .languages import normalize_language
from .md_parser import DEFAULT_CALLOUT_STYLE, parse_document
from .md_renderer import MarkdownRenderer

# Notion type name -> model class for the blocks that carry only
# ``rich_text`` (plus optional children).
_TEXT_TYPES: dict[str, type[Block]] = {
    "paragraph": Paragraph,
    "bulleted_list_item": BulletedItem,
    "numbered_list_item": NumberedItem,
    "quote": Quote,
}

_HEADING_TYPES: dict[str, int] = {"heading_1": 1, "heading_2": 2, "heading_3": 3}


# ---------------------------------------------------------------------------
# Rich text
# ---------------------------------------------------------------------------

def spans_to_rich_text(spans: list[TextSpan]) -> list[dict[str, Any]]:
    """Encode spans as a Notion ``rich_text`` array.

    Empty spans are dropped and long spans are split at
    :data:`~notionctl.models.SEGMENT_LIMIT`, so every emitted ``content``
    is between 1 and 2000 characters.
    """
    items: list[dict[str, Any]] = []
    for span in split_spans(spans, SEGMENT_LIMIT):
        if not span.content:
            continue
        text: dict[str, Any] = {"content": span.content}
        if span.link:
            text["link"] = {"url": span.link}
        items.append({
            "type": "text",
            "text": text,
            "annotations": span.annotations.to_dict(),
        })
    return items


def rich_text_to_spans(rich_text: list[dict[str, Any]] | None) -> list[TextSpan]:
    """Decode a Notion ``rich_text`` array into spans.

    ``plain_text`` is preferred over ``text.content`` so mentions and
    equations keep their visible text.  Links come from ``href`` or
    ``text.link.url``.
    """
    spans: list[TextSpan] = []
    for item in rich_text or []:
        text = item.get("text") or {}
        content = item.get("plain_text")
        if content is None:
            content = text.get("content", "")
        link = item.get("href") or (text.get("link") or {}).get("url")
        spans.append(TextSpan(
            content=content,
            annotations=Annotations.from_dict(item.get("annotations")),
            link=link,
        ))
    return spans


# ---------------------------------------------------------------------------
# Block -> payload
# ---------------------------------------------------------------------------

def block_to_payload(block: Block) -> dict[str, Any]:
    """Encode one block (and its children) as a Notion block dict.

    Raises
    ------
    NotionctlConversionError
        For :class:`ChildPage` and :class:`Unsupported` blocks, which
        cannot be created through the blocks endpoint.
    """
    if isinstance(block, Heading):
        level = min(max(block.level, 1), 3)
        return _typed(f"heading_{level}", {"rich_text": spans_to_rich_text(block.text)}, block)

    if isinstance(block, Todo):
        return _typed("to_do", {
            "rich_text": spans_to_rich_text(block.text),
            "checked": block.checked,
        }, block)

    if isinstance(block, Callout):
        return _typed("callout", {
            "rich_text": spans_to_rich_text(block.text),
            "icon": {"type": "emoji", "emoji": block.icon},
            "color": block.color,
        }, block)

    if isinstance(block, Toggle):
        return _typed("toggle", {"rich_text": spans_to_rich_text(block.summary)}, block)

    if isinstance(block, Code):
        return _typed("code", {
            "rich_text": spans_to_rich_text(block.text),
            "language": normalize_language(block.language),
        }, block)

    if isinstance(block, Divider):
        return {"object": "block", "type": "divider", "divider": {}}

    if isinstance(block, Table):
        return _table_payload(block)

    if isinstance(block, Image):
        data: dict[str, Any] = {"type": "external", "external": {"url": block.url}}
        caption = spans_to_rich_text(block.caption)
        if caption:
            data["caption"] = caption
        return {"object": "block", "type": "image", "image": data}

    if isinstance(block, (ChildPage, Unsupported)):
        block_type = block.raw_type if isinstance(block, Unsupported) else "child_page"
        raise NotionctlConversionError(
            message=f"Cannot create a {block_type} block from Markdown",
            context={"block_type": block_type, "block_id": block.block_id},
        )

    for notion_type, cls in _TEXT_TYPES.items():
        if type(block) is cls:
            return _typed(notion_type, {"rich_text": spans_to_rich_text(block.text)}, block)  # type: ignore[attr-defined]

    raise NotionctlConversionError(
        message=f"No payload encoding for {type(block).__name__}",
        context={"block_type": block.kind.value},
    )


def blocks_to_payload(blocks: list[Block]) -> list[dict[str, Any]]:
    return [block_to_payload(block) for block in blocks]


def _typed(notion_type: str, data: dict[str, Any], block: Block) -> dict[str, Any]:
    children = getattr(block, "children", None)
    if children:
        data["children"] = blocks_to_payload(children)
    return {"object": "block", "type": notion_type, notion_type: data}


def _table_payload(table: Table) -> dict[str, Any]:
    width = table.width
    rows = []
    for row in table.rows:
        cells = (list(row) + [[]] * width)[:width]
        rows.append({
            "object": "block",
            "type": "table_row",
            "table_row": {"cells": [spans_to_rich_text(cell) for cell in cells]},
        })
    return {
        "object": "block",
        "type": "table",
        "table": {
            "table_width": width,
            "has_column_header": table.has_header,
            "has_row_header": False,
            "children": rows,
        },
    }


# ---------------------------------------------------------------------------
# Payload -> Block
# ---------------------------------------------------------------------------

def block_from_payload(record: dict[str, Any]) -> Block:
    """Decode a Notion block record (with attached children) into a block.

    Unknown types become :class:`Unsupported`, keeping the raw type name
    and any ``rich_text`` the record carries.
    """
    block_type = record.get("type", "unknown") or "unknown"
    data = record.get(block_type) or {}
    block_id = record.get("id")
    children = [block_from_payload(c) for c in _record_children(record, data)]
    text = rich_text_to_spans(data.get("rich_text"))

    if block_type in _TEXT_TYPES:
        return _TEXT_TYPES[block_type](text=text, children=children, block_id=block_id)  # type: ignore[call-arg]

    if block_type in _HEADING_TYPES:
        return Heading(level=_HEADING_TYPES[block_type], text=text, children=children, block_id=block_id)

    if block_type == "to_do":
        return Todo(text=text, checked=bool(data.get("checked")), children=children, block_id=block_id)

    if block_type == "callout":
        icon = record.get("icon") or data.get("icon") or {}
        emoji = icon.get("emoji") if icon.get("type") == "emoji" else None
        return Callout(
            text=text,
            icon=emoji or DEFAULT_CALLOUT_STYLE[0],
            color=data.get("color") or "default",
            children=children,
            block_id=block_id,
        )

    if block_type == "toggle":
        return Toggle(summary=text, children=children, block_id=block_id)

    if block_type == "code":
        return Code(
            text=text,
            language=normalize_language(data.get("language")),
            block_id=block_id,
        )

    if block_type == "divider":
        return Divider(block_id=block_id)

    if block_type == "table":
        rows = [
            [rich_text_to_spans(cell) for cell in (row.get("table_row") or {}).get("cells", [])]
            for row in _record_children(record, data)
            if row.get("type") == "table_row"
        ]
        return Table(rows=rows, has_header=bool(data.get("has_column_header")), block_id=block_id)

    if block_type == "image":
        source = data.get(data.get("type", "external")) or {}
        return Image(
            url=source.get("url", ""),
            caption=rich_text_to_spans(data.get("caption")),
            block_id=block_id,
        )

    if block_type == "child_page":
        return ChildPage(title=data.get("title") or "Untitled", block_id=block_id)

    return Unsupported(raw_type=block_type, text=text, children=children, block_id=block_id)


def blocks_from_payload(records: list[dict[str, Any]]) -> list[Block]:
    return [block_from_payload(record) for record in records]


def _record_children(record: dict[str, Any], data: dict[str, Any]) -> list[dict[str, Any]]:
    children = record.get("children")
    if children is None:
        children = data.get("children")
    return children or []


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------

def markdown_to_payload(markdown: str) -> list[dict[str, Any]]:
    """Parse Markdown and encode the result as Notion block dicts."""
    return blocks_to_payload(parse_document(markdown))


def payload_to_markdown(
    records: list[dict[str, Any]],
    unsupported_block_policy: str = "comment",
) -> str:
    """Decode Notion block records and render them as Markdown."""
    renderer = MarkdownRenderer(unsupported_block_policy)
    return renderer.render_document(blocks_from_payload(records))
