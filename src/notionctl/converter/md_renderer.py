"""Block tree to Markdown renderer.

Converts a list of :class:`~notionctl.models.Block` objects into a
Markdown string that :func:`~notionctl.converter.md_parser.parse_document`
reads back into an equivalent tree.

Usage::

    from notionctl.converter.md_renderer import MarkdownRenderer

    renderer = MarkdownRenderer(unsupported_block_policy="skip")
    md = renderer.render_document(blocks)
"""

from __future__ import annotations

from collections.abc import Callable

from notionctl.errors import NotionctlUnsupportedBlockError
from notionctl.models import (
    Block,
    BlockType,
    BulletedItem,
    Callout,
    ChildPage,
    Code,
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
    block_children,
    spans_text,
)

from .inline_renderer import markdown_escape, render_inline
from .md_parser import DEFAULT_TOGGLE_SUMMARY

UNSUPPORTED_POLICIES: frozenset[str] = frozenset({"comment", "skip", "raise"})

# Extra indentation applied to the children of each list-like block.
_CHILD_INDENT: dict[BlockType, int] = {
    BlockType.BULLETED_ITEM: 2,
    BlockType.TODO: 2,
    BlockType.NUMBERED_ITEM: 3,
}


def callout_keyword(color: str) -> str:
    """Map a callout color to the admonition keyword used on export."""
    if "yellow" in color or "orange" in color:
        return "WARNING"
    if "red" in color:
        return "IMPORTANT"
    if "blue" in color:
        return "TIP"
    return "NOTE"


class MarkdownRenderer:
    """Render block trees to Markdown.

    Parameters
    ----------
    unsupported_block_policy:
        What to do with :class:`~notionctl.models.Unsupported` blocks:
        ``"comment"`` writes an HTML placeholder comment, ``"skip"``
        omits the block, ``"raise"`` raises
        :class:`~notionctl.errors.NotionctlUnsupportedBlockError`.
    """

    def __init__(self, unsupported_block_policy: str = "comment") -> None:
        if unsupported_block_policy not in UNSUPPORTED_POLICIES:
            raise ValueError(
                f"unsupported_block_policy must be one of {sorted(UNSUPPORTED_POLICIES)}, "
                f"got {unsupported_block_policy!r}"
            )
        self._policy = unsupported_block_policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render_document(self, blocks: list[Block]) -> str:
        """Render top-level blocks separated by blank lines.

        Returns
        -------
        str
            The Markdown text with a single trailing newline, or ``""``
            for a document with nothing to render.
        """
        parts = [self.render_block(block, 0).strip("\n") for block in blocks]
        body = collapse_blank_lines("\n\n".join(part for part in parts if part)).strip()
        return body + "\n" if body else ""

    def render_block(self, block: Block, indent: int = 0) -> str:
        """Render one block (and its children) at *indent* spaces.

        Returns an empty string for blocks that produce no output.
        """
        renderer = _BLOCK_RENDERERS[block.kind]
        return renderer(self, block, indent)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _with_children(self, head: str, block: Block, indent: int) -> str:
        children = block_children(block)
        if not children:
            return head
        child_indent = indent + _CHILD_INDENT.get(block.kind, 0)
        rendered = [self.render_block(child, child_indent) for child in children]
        joined = "\n".join(part for part in rendered if part)
        return f"{head}\n{joined}" if joined else head

    # ------------------------------------------------------------------
    # Per-type renderers
    # ------------------------------------------------------------------

    def _render_paragraph(self, block: Paragraph, indent: int) -> str:
        text = _pad_lines(render_inline(block.text), indent)
        return self._with_children(text, block, indent)

    def _render_heading(self, block: Heading, indent: int) -> str:
        level = min(max(block.level, 1), 3)
        head = _pad(indent) + ("#" * level + " " + render_inline(block.text)).rstrip()
        return self._with_children(head, block, indent)

    def _render_bulleted(self, block: BulletedItem, indent: int) -> str:
        head = _pad_lines("- " + render_inline(block.text), indent, hang=2)
        return self._with_children(head, block, indent)

    def _render_numbered(self, block: NumberedItem, indent: int) -> str:
        head = _pad_lines("1. " + render_inline(block.text), indent, hang=3)
        return self._with_children(head, block, indent)

    def _render_todo(self, block: Todo, indent: int) -> str:
        mark = "x" if block.checked else " "
        head = _pad_lines(f"- [{mark}] " + render_inline(block.text), indent, hang=2)
        return self._with_children(head, block, indent)

    def _render_quote(self, block: Quote, indent: int) -> str:
        lines = render_inline(block.text).split("\n")
        head = "\n".join(_pad(indent) + ("> " + line).rstrip() for line in lines)
        return self._with_children(head, block, indent)

    def _render_callout(self, block: Callout, indent: int) -> str:
        pad = _pad(indent)
        lines = [f"{pad}> [!{callout_keyword(block.color)}]"]
        text = render_inline(block.text)
        if text:
            lines.extend(pad + ("> " + line).rstrip() for line in text.split("\n"))
        return self._with_children("\n".join(lines), block, indent)

    def _render_toggle(self, block: Toggle, indent: int) -> str:
        pad = _pad(indent)
        summary = render_inline(block.summary) or DEFAULT_TOGGLE_SUMMARY
        rendered = [self.render_block(child, indent).strip("\n") for child in block.children]
        inner = "\n\n".join(part for part in rendered if part)
        parts = [f"{pad}<details>", f"{pad}<summary>{summary}</summary>", ""]
        if inner:
            parts.extend([inner, ""])
        parts.append(f"{pad}</details>")
        return "\n".join(parts)

    def _render_code(self, block: Code, indent: int) -> str:
        pad = _pad(indent)
        language = "" if block.language == "plain text" else block.language
        source = block.source
        if indent:
            source = "\n".join(pad + line if line else line for line in source.split("\n"))
        return f"{pad}```{language}\n{source}\n{pad}```"

    def _render_divider(self, block: Block, indent: int) -> str:
        return _pad(indent) + "---"

    def _render_table(self, block: Table, indent: int) -> str:
        if not block.rows:
            return ""
        pad = _pad(indent)
        width = block.width
        lines: list[str] = []
        for i, row in enumerate(block.rows):
            cells = (list(row) + [[]] * width)[:width]
            lines.append(pad + "| " + " | ".join(_render_cell(cell) for cell in cells) + " |")
            if i == 0 and block.has_header:
                lines.append(pad + "|" + " --- |" * width)
        return "\n".join(lines)

    def _render_image(self, block: Image, indent: int) -> str:
        caption = render_inline(block.caption)
        return f"{_pad(indent)}![{caption}]({markdown_escape(block.url, 'url')})"

    def _render_child_page(self, block: ChildPage, indent: int) -> str:
        page_id = (block.block_id or "").replace("-", "")
        title = markdown_escape(block.title or "Untitled")
        return f"{_pad(indent)}[Page: {title}](https://notion.so/{page_id})"

    def _render_unsupported(self, block: Unsupported, indent: int) -> str:
        if self._policy == "skip":
            return ""
        if self._policy == "raise":
            raise NotionctlUnsupportedBlockError(
                message=f"Unsupported block type: {block.raw_type}",
                context={"block_id": block.block_id, "block_type": block.raw_type},
            )
        head = f"{_pad(indent)}<!-- Unsupported block type: {block.raw_type} ({block.block_id}) -->"
        if spans_text(block.text).strip():
            head += "\n" + _pad_lines(render_inline(block.text), indent)
        return self._with_children(head, block, indent)


_BLOCK_RENDERERS: dict[BlockType, Callable[[MarkdownRenderer, Block, int], str]] = {
    BlockType.PARAGRAPH: MarkdownRenderer._render_paragraph,
    BlockType.HEADING: MarkdownRenderer._render_heading,
    BlockType.BULLETED_ITEM: MarkdownRenderer._render_bulleted,
    BlockType.NUMBERED_ITEM: MarkdownRenderer._render_numbered,
    BlockType.TODO: MarkdownRenderer._render_todo,
    BlockType.QUOTE: MarkdownRenderer._render_quote,
    BlockType.CALLOUT: MarkdownRenderer._render_callout,
    BlockType.TOGGLE: MarkdownRenderer._render_toggle,
    BlockType.CODE: MarkdownRenderer._render_code,
    BlockType.DIVIDER: MarkdownRenderer._render_divider,
    BlockType.TABLE: MarkdownRenderer._render_table,
    BlockType.IMAGE: MarkdownRenderer._render_image,
    BlockType.CHILD_PAGE: MarkdownRenderer._render_child_page,
    BlockType.UNSUPPORTED: MarkdownRenderer._render_unsupported,
}  # type: ignore[dict-item]


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

def render_block(block: Block, indent: int = 0, *, policy: str = "comment") -> str:
    """Render a single block at *indent* spaces."""
    return MarkdownRenderer(policy).render_block(block, indent)


def render_document(blocks: list[Block], *, policy: str = "comment") -> str:
    """Render a block list to a Markdown document."""
    return MarkdownRenderer(policy).render_document(blocks)


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines to one, outside fenced code.

    Lines inside a ```` ``` ```` fence are kept verbatim so code
    blocks keep their blank lines.
    """
    output: list[str] = []
    in_fence = False
    for line in text.split("\n"):
        if line.strip().startswith("```"):
            in_fence = not in_fence
        elif not in_fence and not line.strip() and output and not output[-1].strip():
            continue
        output.append(line)
    return "\n".join(output)


def _pad(indent: int) -> str:
    return " " * indent


def _pad_lines(text: str, indent: int, hang: int = 0) -> str:
    """Indent the first line by *indent* and continuation lines by *indent + hang*."""
    first, *rest = text.split("\n")
    lines = [_pad(indent) + first.rstrip()]
    lines.extend(_pad(indent + hang) + line if line else line for line in rest)
    return "\n".join(lines)


def _render_cell(cell: list[TextSpan]) -> str:
    return markdown_escape(render_inline(cell), "table")
