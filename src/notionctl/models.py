"""Data models for notionctl.

The block tree is a closed sum type: :class:`Block` is the common base
and each Notion block variant the converter understands is a dataclass
subclass carrying only its own payload.  :class:`Unsupported` is the
catch-all arm for block types fetched from Notion that have no model
here yet.

Rich text is a list of :class:`TextSpan` objects, each with a complete
:class:`Annotations` record.

The remaining dataclasses are the result types returned by the clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar

SEGMENT_LIMIT = 2000
"""Maximum characters in a single rich-text ``content`` field."""


# ---------------------------------------------------------------------------
# Rich text
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Annotations:
    """Formatting flags of a :class:`TextSpan`.

    Every flag is always present.  :meth:`merged` combines two records
    with logical OR so an enclosing marker can add but never remove
    formatting.
    """

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"

    def merged(self, other: Annotations) -> Annotations:
        return Annotations(
            bold=self.bold or other.bold,
            italic=self.italic or other.italic,
            strikethrough=self.strikethrough or other.strikethrough,
            underline=self.underline or other.underline,
            code=self.code or other.code,
            color=self.color if self.color != "default" else other.color,
        )

    def with_flags(self, **flags: bool) -> Annotations:
        """Return a copy with the given flags switched on (never off)."""
        return self.merged(Annotations(**flags))

    def to_dict(self) -> dict[str, Any]:
        return {
            "bold": self.bold,
            "italic": self.italic,
            "strikethrough": self.strikethrough,
            "underline": self.underline,
            "code": self.code,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Annotations:
        """Build a complete record from a possibly partial API dict."""
        data = data or {}
        return cls(
            bold=bool(data.get("bold", False)),
            italic=bool(data.get("italic", False)),
            strikethrough=bool(data.get("strikethrough", False)),
            underline=bool(data.get("underline", False)),
            code=bool(data.get("code", False)),
            color=str(data.get("color") or "default"),
        )


PLAIN = Annotations()


@dataclass
class TextSpan:
    """A run of text sharing one annotation state and optional link."""

    content: str
    annotations: Annotations = PLAIN
    link: str | None = None

    def with_content(self, content: str) -> TextSpan:
        return replace(self, content=content)


def spans_text(spans: list[TextSpan]) -> str:
    """Concatenate the raw content of *spans*."""
    return "".join(span.content for span in spans)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Discriminator of every :class:`Block` variant."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLETED_ITEM = "bulleted_item"
    NUMBERED_ITEM = "numbered_item"
    TODO = "todo"
    QUOTE = "quote"
    CALLOUT = "callout"
    TOGGLE = "toggle"
    CODE = "code"
    DIVIDER = "divider"
    TABLE = "table"
    IMAGE = "image"
    CHILD_PAGE = "child_page"
    UNSUPPORTED = "unsupported"


@dataclass
class Block:
    """Base of the block tree.

    ``block_id`` is only set on blocks that were fetched from Notion; it
    is excluded from equality so a fetched tree compares equal to a
    freshly parsed one.
    """

    kind: ClassVar[BlockType]

    block_id: str | None = field(default=None, kw_only=True, compare=False)


@dataclass
class Paragraph(Block):
    kind: ClassVar[BlockType] = BlockType.PARAGRAPH

    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class Heading(Block):
    kind: ClassVar[BlockType] = BlockType.HEADING

    level: int = 1
    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class BulletedItem(Block):
    kind: ClassVar[BlockType] = BlockType.BULLETED_ITEM

    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class NumberedItem(Block):
    kind: ClassVar[BlockType] = BlockType.NUMBERED_ITEM

    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class Todo(Block):
    kind: ClassVar[BlockType] = BlockType.TODO

    text: list[TextSpan] = field(default_factory=list)
    checked: bool = False
    children: list[Block] = field(default_factory=list)


@dataclass
class Quote(Block):
    kind: ClassVar[BlockType] = BlockType.QUOTE

    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class Callout(Block):
    kind: ClassVar[BlockType] = BlockType.CALLOUT

    text: list[TextSpan] = field(default_factory=list)
    icon: str = "💭"
    color: str = "default"
    children: list[Block] = field(default_factory=list)


@dataclass
class Toggle(Block):
    kind: ClassVar[BlockType] = BlockType.TOGGLE

    summary: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class Code(Block):
    kind: ClassVar[BlockType] = BlockType.CODE

    text: list[TextSpan] = field(default_factory=list)
    language: str = "plain text"

    @property
    def source(self) -> str:
        return spans_text(self.text)


@dataclass
class Divider(Block):
    kind: ClassVar[BlockType] = BlockType.DIVIDER


@dataclass
class Table(Block):
    """A table owns its cells directly; ``rows[0]`` is the header row
    when ``has_header`` is set."""

    kind: ClassVar[BlockType] = BlockType.TABLE

    rows: list[list[list[TextSpan]]] = field(default_factory=list)
    has_header: bool = False

    @property
    def width(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def body_rows(self) -> list[list[list[TextSpan]]]:
        return self.rows[1:] if self.has_header else list(self.rows)


@dataclass
class Image(Block):
    kind: ClassVar[BlockType] = BlockType.IMAGE

    url: str = ""
    caption: list[TextSpan] = field(default_factory=list)


@dataclass
class ChildPage(Block):
    kind: ClassVar[BlockType] = BlockType.CHILD_PAGE

    title: str = "Untitled"


@dataclass
class Unsupported(Block):
    """A fetched block whose Notion type has no model in this package."""

    kind: ClassVar[BlockType] = BlockType.UNSUPPORTED

    raw_type: str = "unknown"
    text: list[TextSpan] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


def block_children(block: Block) -> list[Block]:
    """Return the child list of *block* (empty for leaf variants)."""
    return getattr(block, "children", [])


# ---------------------------------------------------------------------------
# Client result types
# ---------------------------------------------------------------------------

@dataclass
class PageCreateResult:
    """Result of :meth:`NotionctlClient.create_page_from_markdown`.

    Attributes
    ----------
    page_id:
        The ID of the newly created page.
    url:
        The URL of the newly created page.
    blocks_created:
        Number of top-level blocks sent with the page.
    page:
        The raw page object returned by Notion.
    """

    page_id: str
    url: str
    blocks_created: int
    page: dict = field(default_factory=dict)


@dataclass
class AppendResult:
    """Result of :meth:`NotionctlClient.append_markdown`."""

    page_id: str
    blocks_appended: int
    responses: list[dict] = field(default_factory=list)


@dataclass
class BlockUpdateResult:
    """Result of :meth:`NotionctlClient.update_block_from_markdown`."""

    block_id: str
    block_type: str
    block: dict = field(default_factory=dict)


@dataclass
class PageExport:
    """A page rendered to Markdown by :meth:`NotionctlClient.export_markdown`."""

    page_id: str
    title: str | None
    markdown: str


@dataclass
class ChildPageRef:
    """A ``child_page`` block listed by :meth:`NotionctlClient.list_child_pages`."""

    id: str
    title: str


@dataclass
class SearchHit:
    """A trimmed search result.

    Attributes
    ----------
    object:
        ``"page"`` or ``"data_source"``.
    id:
        The object's ID.
    title:
        Plain-text title, if the object has one.
    url:
        The object's Notion URL.
    last_edited_time:
        ISO-8601 timestamp string from Notion.
    parent:
        The raw parent object.
    """

    object: str
    id: str
    title: str | None = None
    url: str | None = None
    last_edited_time: str | None = None
    parent: dict | None = None


@dataclass
class TriagePlanItem:
    """One inbox page matched by a triage rule."""

    page_id: str
    title: str
    rule: str | None
    move_to: dict[str, Any]


@dataclass
class TriageMove:
    """Outcome of applying one :class:`TriagePlanItem`.

    Attributes
    ----------
    page_id:
        The page that was (or should have been) moved.
    ok:
        Whether the move succeeded.
    moved_to:
        The parent object sent to Notion, on success.
    error:
        The failure message, when *ok* is false.
    result:
        The raw page object returned by the move endpoint.
    """

    page_id: str
    ok: bool
    moved_to: dict | None = None
    error: str | None = None
    result: dict | None = None


@dataclass
class TriageResult:
    """Result of :meth:`NotionctlClient.triage`.

    ``moved`` stays empty unless the plan was applied.
    """

    inbox_page_id: str
    applied: bool
    planned: list[TriagePlanItem] = field(default_factory=list)
    moved: list[TriageMove] = field(default_factory=list)
