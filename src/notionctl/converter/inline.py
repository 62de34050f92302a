"""Inline formatter: Markdown text runs to annotated :class:`TextSpan` lists.

The scanner walks the text left to right and, at each position, tries the
inline constructs in a fixed priority order:

1. inline code ```` `code` ````
2. link ``[label](url)``
3. bold ``**text**`` or ``__text__``
4. strikethrough ``~~text~~``
5. italic ``*text*`` or ``_text_``

Anything else is accumulated as plain text up to the next special
character.  A delimiter without a (non-empty) closing partner is kept as
literal text, so malformed Markdown degrades instead of raising.

Emphasis and link labels are parsed recursively; the enclosing
annotation is OR-merged onto whatever the inner parse produced.  The
final span list is merged (adjacent identical plain runs) and split so
no span exceeds :data:`~notionctl.models.SEGMENT_LIMIT` characters.
"""

from __future__ import annotations

from notionctl.models import PLAIN, SEGMENT_LIMIT, Annotations, TextSpan
from notionctl.utils.text_split import split_string

# Characters that may start an inline construct.
_SPECIAL_CHARS = frozenset("`[*_~\\")

# Characters a backslash makes literal.
_ESCAPABLE_CHARS = frozenset("\\`*_~[]()|")

# (delimiter, annotation flag) pairs, in priority order after code/link.
_PAIRED_DELIMITERS: tuple[tuple[str, str], ...] = (
    ("**", "bold"),
    ("__", "bold"),
    ("~~", "strikethrough"),
    ("*", "italic"),
    ("_", "italic"),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_inline(text: str) -> list[TextSpan]:
    """Parse an inline Markdown run into rich-text spans.

    Parameters
    ----------
    text:
        The raw inline Markdown (a heading title, paragraph body, table
        cell, list item text, ...).

    Returns
    -------
    list[TextSpan]
        Spans with complete annotation records.  Never empty: an empty
        *text* yields a single empty plain span.
    """
    spans = merge_spans(_scan(text or ""))
    spans = split_spans(spans)
    return spans or [TextSpan("")]


def plain_spans(text: str, limit: int = SEGMENT_LIMIT) -> list[TextSpan]:
    """Chunk *text* into unformatted spans of at most *limit* characters.

    Used for code blocks, whose content must not be interpreted.
    """
    return [TextSpan(chunk) for chunk in split_string(text, limit)] or [TextSpan("")]


def merge_spans(spans: list[TextSpan]) -> list[TextSpan]:
    """Join adjacent spans that share annotations and carry no link."""
    merged: list[TextSpan] = []
    for span in spans:
        last = merged[-1] if merged else None
        if (
            last is not None
            and last.link is None
            and span.link is None
            and last.annotations == span.annotations
        ):
            merged[-1] = last.with_content(last.content + span.content)
        else:
            merged.append(span)
    return merged


def split_spans(spans: list[TextSpan], limit: int = SEGMENT_LIMIT) -> list[TextSpan]:
    """Split any span longer than *limit* into consecutive spans.

    Annotations and link are preserved on every piece.
    """
    output: list[TextSpan] = []
    for span in spans:
        if len(span.content) <= limit:
            output.append(span)
            continue
        output.extend(span.with_content(chunk) for chunk in split_string(span.content, limit))
    return output


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

def _scan(s: str) -> list[TextSpan]:
    """Tokenize *s* into raw (unmerged) spans."""
    parts: list[TextSpan] = []
    i = 0
    n = len(s)

    while i < n:
        ch = s[i]

        # Backslash escape
        if ch == "\\" and i + 1 < n and s[i + 1] in _ESCAPABLE_CHARS:
            parts.append(TextSpan(s[i + 1]))
            i += 2
            continue

        # Inline code: content taken verbatim
        if ch == "`":
            end = s.find("`", i + 1)
            if end != -1:
                parts.append(TextSpan(s[i + 1:end], PLAIN.with_flags(code=True)))
                i = end + 1
                continue

        # Link: [label](url)
        if ch == "[":
            label_end = s.find("](", i + 1)
            if label_end != -1:
                url_end = _find_url_end(s, label_end + 2)
                if url_end != -1:
                    url = s[label_end + 2:url_end].strip()
                    for part in _scan(s[i + 1:label_end]):
                        parts.append(TextSpan(part.content, part.annotations, url or part.link))
                    i = url_end + 1
                    continue

        matched = _match_paired(s, i)
        if matched is not None:
            inner, flag, next_i = matched
            outer = Annotations(**{flag: True})
            for part in _scan(inner):
                parts.append(TextSpan(part.content, part.annotations.merged(outer), part.link))
            i = next_i
            continue

        # Plain text up to the next special character
        j = i
        while j < n and s[j] not in _SPECIAL_CHARS:
            j += 1
        if j > i:
            parts.append(TextSpan(s[i:j]))
            i = j
        else:
            # A special character that opened nothing
            parts.append(TextSpan(ch))
            i += 1

    return parts


def _match_paired(s: str, i: int) -> tuple[str, str, int] | None:
    """Try the emphasis delimiters at position *i*.

    Returns ``(inner_text, annotation_flag, next_index)`` for the first
    delimiter that opens here and has a non-empty, unescaped closing
    partner, or ``None``.
    """
    for delim, flag in _PAIRED_DELIMITERS:
        if not s.startswith(delim, i):
            continue
        start = i + len(delim)
        end = _find_closing(s, delim, start)
        if end is None:
            continue
        return s[start:end], flag, end + len(delim)
    return None


def _find_closing(s: str, delim: str, start: int) -> int | None:
    # Escape pairs are consumed whole, so ``\\**`` still closes.
    i = start
    n = len(s)
    while i < n:
        if s[i] == "\\" and i + 1 < n and s[i + 1] in _ESCAPABLE_CHARS:
            i += 2
            continue
        if s.startswith(delim, i):
            return i if i > start else None
        i += 1
    return None


def _find_url_end(s: str, start: int) -> int:
    """Index of the ``)`` closing a link URL that begins at *start*, or -1.

    Parentheses nested inside the URL must balance.
    """
    depth = 0
    for i in range(start, len(s)):
        if s[i] == "(":
            depth += 1
        elif s[i] == ")":
            if depth == 0:
                return i
            depth -= 1
    return -1
