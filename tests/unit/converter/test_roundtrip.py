"""Property-based round-trip tests: render(parse(md)) and parse(render(tree)).

Uses Hypothesis to generate block trees from a restricted alphabet and
checks that rendering then re-parsing reproduces an equivalent tree,
and that a rendered document is a fixed point of parse -> render.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from notionctl.converter.inline import parse_inline
from notionctl.converter.inline_renderer import render_inline
from notionctl.converter.md_parser import parse_document
from notionctl.converter.md_renderer import render_document
from notionctl.models import (
    Annotations,
    BulletedItem,
    Code,
    Divider,
    Heading,
    NumberedItem,
    Paragraph,
    Table,
    TextSpan,
    Todo,
    Toggle,
)

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

# Words only: no leading/trailing whitespace and no block markers.
_words = st.from_regex(r"[A-Za-z0-9]+( [A-Za-z0-9]+){0,4}", fullmatch=True)

# Words, sometimes ending in a literal backslash.
_span_text = st.one_of(_words, _words.map(lambda w: w + "\\"))

_annotations = st.builds(
    Annotations,
    bold=st.booleans(),
    italic=st.booleans(),
    strikethrough=st.booleans(),
)


@st.composite
def inline_spans(draw):
    """Spans separated by plain single spaces, so delimiters never touch."""
    count = draw(st.integers(min_value=1, max_value=3))
    spans: list[TextSpan] = []
    for i in range(count):
        if i:
            spans.append(TextSpan(" "))
        spans.append(TextSpan(draw(_span_text), draw(_annotations)))
    return parse_inline(render_inline(spans))


def _leaf_blocks():
    return st.one_of(
        st.builds(Paragraph, text=inline_spans()),
        st.builds(Heading, level=st.integers(1, 3), text=inline_spans()),
        st.builds(Divider),
        st.builds(Code, text=_words.map(lambda w: [TextSpan(w)]), language=st.sampled_from(["python", "plain text"])),
    )


def _list_items(depth: int):
    children = st.lists(_list_items(depth - 1), max_size=2) if depth > 0 else st.just([])
    return st.one_of(
        st.builds(BulletedItem, text=inline_spans(), children=children),
        st.builds(NumberedItem, text=inline_spans(), children=children),
        st.builds(Todo, text=inline_spans(), checked=st.booleans(), children=children),
    )


_tables = st.integers(1, 3).flatmap(
    lambda width: st.builds(
        Table,
        rows=st.lists(st.lists(_words.map(lambda w: [TextSpan(w)]), min_size=width, max_size=width), min_size=1, max_size=3),
        has_header=st.booleans(),
    )
)

_blocks = st.one_of(_leaf_blocks(), _list_items(2), _tables)
_toggles = st.builds(Toggle, summary=_words.map(lambda w: [TextSpan(w)]), children=st.lists(_blocks, min_size=1, max_size=3))


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestInlineRoundTrip:
    @given(inline_spans())
    def test_render_then_parse(self, spans):
        assert parse_inline(render_inline(spans)) == spans

    @given(st.text(alphabet="ab *_~`[]()|\\", max_size=40))
    @settings(max_examples=300)
    def test_plain_text_survives_escaping(self, text):
        rendered = render_inline([TextSpan(text)])
        assert "".join(s.content for s in parse_inline(rendered)) == text


class TestEscapedRoundTrip:
    def test_escaped_pipe_paragraph_stays_paragraph(self):
        blocks = parse_document("\\| not a table")
        assert blocks == [Paragraph(text=[TextSpan("| not a table")])]
        assert parse_document(render_document(blocks)) == blocks

    def test_bold_path_ending_in_backslash(self):
        spans = [TextSpan("C:\\", Annotations(bold=True))]
        assert parse_inline(render_inline(spans)) == spans

    def test_link_with_parentheses(self):
        for md in ("[a](x(y))", "[a](x(y)"):
            spans = parse_inline(md)
            assert parse_inline(render_inline(spans)) == spans


class TestDocumentRoundTrip:
    @given(st.lists(st.one_of(_blocks, _toggles), min_size=1, max_size=4))
    @settings(max_examples=100, deadline=None)
    def test_parse_of_render_is_identity(self, blocks):
        # Adjacent lists of the same kind would merge; separate them.
        separated = []
        for block in blocks:
            separated.extend([block, Divider()])
        assert parse_document(render_document(separated)) == separated

    @given(st.lists(st.one_of(_blocks, _toggles), min_size=1, max_size=4))
    @settings(max_examples=100, deadline=None)
    def test_render_is_fixed_point(self, blocks):
        once = render_document(blocks)
        assert render_document(parse_document(once)) == once

    def test_reference_document(self):
        md = (
            "# Title\n\n"
            "Some **bold** and _italic_ text with `code`.\n\n"
            "- one\n  - [x] nested done\n    1. deep\n\n"
            "> [!WARNING]\n> careful\n\n"
            "<details>\n<summary>More</summary>\n\nhidden\n\n</details>\n\n"
            "| a | b |\n| --- | --- |\n| 1 | 2 |\n\n"
            "```python\nx = 1\n\n\ny = 2\n```\n\n"
            "![cat](https://e.com/cat.png)\n\n"
            "---\n"
        )
        assert render_document(parse_document(md)) == md
