"""Inline rendering: :class:`TextSpan` lists to Markdown strings.

The inverse of :func:`notionctl.converter.inline.parse_inline`.
Annotation wrapping order (innermost first)::

    code -> bold -> italic -> strikethrough -> underline -> link

which mirrors the parser's priority so that rendering and re-parsing a
span list is stable.
"""

from __future__ import annotations

import re

from notionctl.models import TextSpan

# Backslash first, then every character that can open an inline construct
# or start a table row.
_INLINE_ESCAPE_RE = re.compile(r"([\\`*_~\[|])")

# A pipe not already escaped by the inline pass.
_BARE_PIPE_RE = re.compile(r"(?<!\\)\|")


def markdown_escape(text: str, context: str = "inline") -> str:
    """Escape text for the given Markdown context.

    Parameters
    ----------
    text:
        The raw text to escape.
    context:
        One of ``"inline"``, ``"code"``, ``"url"`` or ``"table"``.

        * ``"inline"`` -- backslash-escape literal backslashes, the
          characters that open inline constructs (`` ` * _ ~ [ ``) and ``|``.
        * ``"code"`` -- no escaping (content is inside a code span).
        * ``"url"`` -- percent-encode parentheses unless they balance, so
          the link's closing ``)`` stays unambiguous.
        * ``"table"`` -- escape any ``|`` still bare after inline
          rendering (code spans) so a cell cannot split its row.

    Returns
    -------
    str
        The escaped text.
    """
    if context == "code":
        return text
    if context == "url":
        if _parens_balanced(text):
            return text
        return text.replace("(", "%28").replace(")", "%29")
    if context == "table":
        return _BARE_PIPE_RE.sub(r"\\|", text)
    return _INLINE_ESCAPE_RE.sub(r"\\\1", text)


def _parens_balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def render_inline(spans: list[TextSpan]) -> str:
    """Render rich-text spans to a Markdown string.

    Parameters
    ----------
    spans:
        Spans as produced by the inline formatter or decoded from a
        Notion ``rich_text`` array.

    Returns
    -------
    str
        The rendered Markdown; spans are concatenated without separator.
    """
    if not spans:
        return ""

    parts: list[str] = []

    for span in spans:
        annotations = span.annotations
        if not span.content:
            continue

        if annotations.code:
            # Inside code spans, no escaping is applied.
            text = f"`{span.content}`"
        else:
            text = markdown_escape(span.content)

        if annotations.bold:
            text = f"**{text}**"

        if annotations.italic:
            text = f"_{text}_"

        if annotations.strikethrough:
            text = f"~~{text}~~"

        if annotations.underline:
            text = f"<u>{text}</u>"

        # Link (outermost wrapping)
        if span.link:
            text = f"[{text}]({markdown_escape(span.link, 'url')})"

        parts.append(text)

    return "".join(parts)
