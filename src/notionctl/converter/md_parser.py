"""Block parser: Markdown documents to a tree of :class:`~notionctl.models.Block`.

The parser is line based and recursive-descent.  Every sub-parser takes
the document's line list plus a start index and returns the parsed
block(s) together with the index of the first line it did not consume;
no cursor state is shared between calls.

Dispatch order at each non-blank line (first match wins):

1. pipe table row               -> :func:`parse_table`
2. ``> [!KEYWORD]`` admonition  -> :func:`parse_callout`
3. ``<details>``                -> :func:`parse_toggle`
4. ```` ``` ```` code fence     -> :func:`parse_code`
5. ``---``                      -> divider
6. ``#`` .. ``###``             -> heading
7. ``![alt](url)``              -> image
8. list item                    -> :func:`parse_list`
9. ``>`` quote                  -> quote
10. anything else               -> :func:`parse_paragraph`

Malformed constructs never raise; at worst they become paragraph text.
Every branch consumes at least one line, so parsing always terminates.
"""

from __future__ import annotations

import re
import textwrap

from notionctl.converter.inline import parse_inline, plain_spans
from notionctl.converter.languages import normalize_language
from notionctl.models import (
    Block,
    BulletedItem,
    Callout,
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
)

# ---------------------------------------------------------------------------
# Admonition styles
# ---------------------------------------------------------------------------

CALLOUT_STYLES: dict[str, tuple[str, str]] = {
    "NOTE": ("📝", "gray_background"),
    "TIP": ("💡", "blue_background"),
    "IMPORTANT": ("❗", "red_background"),
    "WARNING": ("⚠️", "yellow_background"),
    "CAUTION": ("⚠️", "orange_background"),
}
"""Admonition keyword -> ``(emoji, color)`` of the resulting callout."""

DEFAULT_CALLOUT_STYLE: tuple[str, str] = ("💭", "default")

DEFAULT_TOGGLE_SUMMARY = "Toggle"

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

_CALLOUT_RE = re.compile(r"^>\s*\[!(\w+)\]\s*(.*)$")
_QUOTE_PREFIX_RE = re.compile(r"^>\s?")
_DETAILS_OPEN_RE = re.compile(r"<details(?:\s[^>]*)?>", re.IGNORECASE)
_DETAILS_CLOSE_RE = re.compile(r"</details\s*>", re.IGNORECASE)
_SUMMARY_RE = re.compile(r"<summary>(.*?)</summary>", re.IGNORECASE)
_CODE_OPEN_RE = re.compile(r"^\s*```\s*([^`]*)$")
_CODE_CLOSE_RE = re.compile(r"^\s*```+\s*$")
_DIVIDER_RE = re.compile(r"^\s*-{3,}\s*$")
_HEADING_RE = re.compile(r"^(#{1,3})(?:\s+(.*))?$")
_IMAGE_RE = re.compile(r"^!\[(.*?)\]\((.*?)\)$")
_LIST_ITEM_RE = re.compile(r"^(\s*)([-*]|\d+\.)(?:\s+(.*))?$")
_TODO_RE = re.compile(r"^\[([ xX])\](?:\s+(.*))?$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")

_TAB_WIDTH = 4


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_document(markdown: str) -> list[Block]:
    """Parse a Markdown document into a list of top-level blocks.

    Parameters
    ----------
    markdown:
        The document text.  ``\\r\\n`` line endings are normalised.

    Returns
    -------
    list[Block]
        The block tree.  Children are freshly built for every call.
    """
    lines = (markdown or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks, _ = parse_blocks(lines, 0)
    return blocks


def parse_blocks(lines: list[str], start: int) -> tuple[list[Block], int]:
    """Parse *lines* from *start* to the end, returning ``(blocks, len(lines))``."""
    blocks: list[Block] = []
    i = start

    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if not stripped:
            i += 1
            continue

        if stripped.startswith("|"):
            table, end = parse_table(lines, i)
            if table is not None:
                blocks.append(table)
                i = end
                continue

        if _CALLOUT_RE.match(stripped):
            callout, i = parse_callout(lines, i)
            blocks.append(callout)
            continue

        if _DETAILS_OPEN_RE.match(stripped):
            toggle, i = parse_toggle(lines, i)
            blocks.append(toggle)
            continue

        if _CODE_OPEN_RE.match(line):
            code, i = parse_code(lines, i)
            blocks.append(code)
            continue

        if _DIVIDER_RE.match(line):
            blocks.append(Divider())
            i += 1
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            level = len(heading.group(1))
            blocks.append(Heading(level=level, text=parse_inline(heading.group(2) or "")))
            i += 1
            continue

        image = _IMAGE_RE.match(stripped)
        if image:
            alt, url = image.groups()
            blocks.append(Image(url=url.strip(), caption=parse_inline(alt)))
            i += 1
            continue

        item = _LIST_ITEM_RE.match(line)
        if item:
            items, i = parse_list(lines, i, _indent_width(item.group(1)))
            blocks.extend(items)
            continue

        if stripped.startswith(">"):
            text = _QUOTE_PREFIX_RE.sub("", stripped, count=1)
            blocks.append(Quote(text=parse_inline(text)))
            i += 1
            continue

        paragraph, i = parse_paragraph(lines, i)
        blocks.append(paragraph)

    return blocks, i


# ---------------------------------------------------------------------------
# Sub-parsers
# ---------------------------------------------------------------------------

def parse_table(lines: list[str], start: int) -> tuple[Table | None, int]:
    """Parse contiguous pipe rows starting at *start*.

    A ``|---|---|`` separator row marks the table as having a header
    (the first row).  The first row fixes the table width; shorter rows
    are padded with empty cells and longer rows truncated.

    Returns ``(None, start)`` when the rows contain no cells at all.
    """
    raw_rows: list[list[str]] = []
    has_header = False
    i = start

    while i < len(lines) and lines[i].strip().startswith("|"):
        stripped = lines[i].strip()
        i += 1
        if _TABLE_SEPARATOR_RE.match(stripped):
            has_header = True
            continue
        raw_rows.append(_split_row(stripped))

    if not raw_rows:
        return None, start

    width = len(raw_rows[0])
    rows: list[list[list[TextSpan]]] = []
    for raw in raw_rows:
        cells = (raw + [""] * width)[:width]
        rows.append([parse_inline(cell) for cell in cells])

    return Table(rows=rows, has_header=has_header), i


def parse_callout(lines: list[str], start: int) -> tuple[Callout, int]:
    """Parse a GitHub-style admonition (``> [!WARNING] text``).

    Following ``>`` lines are joined to the callout text with spaces,
    up to the next admonition marker or non-quote line.
    """
    match = _CALLOUT_RE.match(lines[start].strip())
    assert match is not None
    keyword, first = match.groups()
    icon, color = CALLOUT_STYLES.get(keyword.upper(), DEFAULT_CALLOUT_STYLE)

    content = [first.strip()] if first.strip() else []
    i = start + 1
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped.startswith(">") or _CALLOUT_RE.match(stripped):
            break
        text = _QUOTE_PREFIX_RE.sub("", stripped, count=1).strip()
        if text:
            content.append(text)
        i += 1

    return Callout(text=parse_inline(" ".join(content)), icon=icon, color=color), i


def parse_toggle(lines: list[str], start: int) -> tuple[Toggle, int]:
    """Parse a ``<details>`` / ``<summary>`` collapsible section.

    Lines up to the matching ``</details>`` are collected (nested
    ``<details>`` sections are tracked by depth and kept), dedented, and
    parsed recursively as the toggle's children.  A missing closing tag
    consumes the rest of the input.
    """
    summary: str | None = None
    interior: list[str] = []

    rest = _DETAILS_OPEN_RE.split(lines[start], maxsplit=1)[-1]
    summary_match = _SUMMARY_RE.search(rest)
    if summary_match:
        summary = summary_match.group(1).strip()
        rest = rest[summary_match.end():]
    close = _DETAILS_CLOSE_RE.search(rest)
    if close:
        # Single-line section: <details><summary>s</summary>text</details>
        body = rest[:close.start()].strip()
        children = parse_document(body) if body else []
        return _make_toggle(summary, children), start + 1
    if rest.strip():
        interior.append(rest.strip())

    depth = 1
    i = start + 1
    while i < len(lines):
        line = lines[i]
        i += 1

        if depth == 1 and summary is None and not interior:
            summary_match = _SUMMARY_RE.search(line)
            if summary_match and not _SUMMARY_RE.sub("", line).strip():
                summary = summary_match.group(1).strip()
                continue

        opens = len(_DETAILS_OPEN_RE.findall(line))
        closes = len(_DETAILS_CLOSE_RE.findall(line))
        if depth + opens - closes <= 0:
            if opens == 0:
                before = _DETAILS_CLOSE_RE.split(line, maxsplit=1)[0]
                if before.strip():
                    interior.append(before)
            break
        depth += opens - closes
        interior.append(line)

    body = textwrap.dedent("\n".join(interior))
    return _make_toggle(summary, parse_document(body)), i


def parse_code(lines: list[str], start: int) -> tuple[Code, int]:
    """Parse a fenced code block; the interior is kept verbatim.

    A missing closing fence consumes the rest of the input.
    """
    match = _CODE_OPEN_RE.match(lines[start])
    assert match is not None
    language = normalize_language(match.group(1))

    body: list[str] = []
    i = start + 1
    while i < len(lines) and not _CODE_CLOSE_RE.match(lines[i]):
        body.append(lines[i])
        i += 1
    if i < len(lines):
        i += 1  # closing fence

    return Code(text=plain_spans("\n".join(body)), language=language), i


def parse_list(lines: list[str], start: int, level: int) -> tuple[list[Block], int]:
    """Parse list items at indentation *level*, nesting deeper items.

    Items indented exactly *level* become siblings.  A deeper item starts
    a recursive parse whose items become children of the preceding
    sibling.  A shallower item or a non-list line ends this level.

    Returns
    -------
    tuple[list[Block], int]
        The items and the index of the first unconsumed line.
    """
    items: list[Block] = []
    i = start

    while i < len(lines):
        match = _LIST_ITEM_RE.match(lines[i])
        if match is None:
            break
        indent = _indent_width(match.group(1))
        if indent < level:
            break
        if indent > level:
            nested, i = parse_list(lines, i, indent)
            if items:
                items[-1].children.extend(nested)  # type: ignore[attr-defined]
            else:
                items.extend(nested)
            continue
        items.append(_make_list_item(match.group(2), (match.group(3) or "").rstrip()))
        i += 1

    return items, i


def parse_paragraph(lines: list[str], start: int) -> tuple[Paragraph, int]:
    """Accumulate lines until a blank line or another block marker."""
    buf = [lines[start].strip()]
    i = start + 1
    while i < len(lines) and lines[i].strip() and not _starts_block(lines[i]):
        buf.append(lines[i].strip())
        i += 1
    return Paragraph(text=parse_inline("\n".join(buf))), i


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _indent_width(whitespace: str) -> int:
    return len(whitespace.expandtabs(_TAB_WIDTH))


def _split_row(stripped: str) -> list[str]:
    """Split a pipe row into raw cell strings (escaped ``\\|`` kept)."""
    inner = stripped[1:]
    if inner.endswith("|") and not inner.endswith("\\|"):
        inner = inner[:-1]
    return [cell.strip() for cell in _CELL_SPLIT_RE.split(inner)]


def _make_list_item(marker: str, text: str) -> Block:
    if marker in ("-", "*"):
        todo = _TODO_RE.match(text)
        if todo:
            return Todo(
                text=parse_inline(todo.group(2) or ""),
                checked=todo.group(1).lower() == "x",
            )
        return BulletedItem(text=parse_inline(text))
    return NumberedItem(text=parse_inline(text))


def _make_toggle(summary: str | None, children: list[Block]) -> Toggle:
    return Toggle(summary=parse_inline(summary or DEFAULT_TOGGLE_SUMMARY), children=children)


def _starts_block(line: str) -> bool:
    """Return True if *line* opens any non-paragraph block."""
    stripped = line.strip()
    return bool(
        stripped.startswith("|")
        or stripped.startswith(">")
        or _DETAILS_OPEN_RE.match(stripped)
        or _CODE_OPEN_RE.match(line)
        or _DIVIDER_RE.match(line)
        or _HEADING_RE.match(stripped)
        or _IMAGE_RE.match(stripped)
        or _LIST_ITEM_RE.match(line)
    )
