"""Markdown <-> block tree <-> Notion payload conversion.

Public API:

- :func:`parse_document` -- Markdown -> block tree.
- :func:`render_document` / :class:`MarkdownRenderer` -- block tree -> Markdown.
- :func:`parse_inline` / :func:`render_inline` -- inline Markdown <-> spans.
- :func:`block_to_payload` / :func:`block_from_payload` -- block tree <-> API dicts.
- :func:`markdown_to_payload` / :func:`payload_to_markdown` -- both steps at once.
"""

from notionctl.converter.inline import parse_inline
from notionctl.converter.inline_renderer import markdown_escape, render_inline
from notionctl.converter.languages import normalize_language
from notionctl.converter.md_parser import parse_document
from notionctl.converter.md_renderer import MarkdownRenderer, render_block, render_document
from notionctl.converter.payload import (
    block_from_payload,
    block_to_payload,
    markdown_to_payload,
    payload_to_markdown,
    rich_text_to_spans,
    spans_to_rich_text,
)

__all__ = [
    "MarkdownRenderer",
    "block_from_payload",
    "block_to_payload",
    "markdown_escape",
    "markdown_to_payload",
    "normalize_language",
    "parse_document",
    "parse_inline",
    "payload_to_markdown",
    "render_block",
    "render_document",
    "render_inline",
    "rich_text_to_spans",
    "spans_to_rich_text",
]
