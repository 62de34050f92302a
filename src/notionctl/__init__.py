"""notionctl -- Markdown <-> Notion block conversion and page operations.

Public re-exports
-----------------

* **Clients:** :class:`NotionctlClient`, :class:`AsyncNotionctlClient`
* **Configuration:** :class:`NotionctlConfig`, :func:`resolve_token`
* **Conversion:** :func:`parse_document`, :func:`render_document`,
  :func:`parse_inline`, :func:`render_inline`
* **Errors:** Every :class:`NotionctlError` subclass and :class:`ErrorCode`
* **Models:** The block tree and the client result dataclasses

Usage::

    from notionctl import parse_document, render_document

    blocks = parse_document("# Title\\n\\n- [x] done")
    assert render_document(blocks) == "# Title\\n\\n- [x] done\\n"
"""

from __future__ import annotations

# ── Clients ────────────────────────────────────────────────────────────
from notionctl.async_client import AsyncNotionctlClient
from notionctl.client import NotionctlClient

# ── Configuration ───────────────────────────────────────────────────────
from notionctl.config import NotionctlConfig, resolve_token

# ── Conversion ──────────────────────────────────────────────────────────
from notionctl.converter import (
    MarkdownRenderer,
    parse_document,
    parse_inline,
    render_document,
    render_inline,
)

# ── Errors ──────────────────────────────────────────────────────────────
from notionctl.errors import (
    ErrorCode,
    NotionctlAuthError,
    NotionctlConflictError,
    NotionctlConversionError,
    NotionctlError,
    NotionctlInvalidIdError,
    NotionctlNetworkError,
    NotionctlNotFoundError,
    NotionctlPermissionError,
    NotionctlRateLimitError,
    NotionctlRetryExhaustedError,
    NotionctlSchemaError,
    NotionctlUnsupportedBlockError,
    NotionctlValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from notionctl.models import (
    Annotations,
    AppendResult,
    Block,
    BlockType,
    BlockUpdateResult,
    BulletedItem,
    Callout,
    ChildPage,
    ChildPageRef,
    Code,
    Divider,
    Heading,
    Image,
    NumberedItem,
    PageCreateResult,
    PageExport,
    Paragraph,
    Quote,
    SearchHit,
    Table,
    TextSpan,
    Todo,
    Toggle,
    TriageMove,
    TriagePlanItem,
    TriageResult,
    Unsupported,
)

__version__ = "2.0.0"

__all__ = [
    # Clients
    "NotionctlClient",
    "AsyncNotionctlClient",
    # Configuration
    "NotionctlConfig",
    "resolve_token",
    # Conversion
    "MarkdownRenderer",
    "parse_document",
    "parse_inline",
    "render_document",
    "render_inline",
    # Errors
    "NotionctlError",
    "ErrorCode",
    "NotionctlValidationError",
    "NotionctlAuthError",
    "NotionctlPermissionError",
    "NotionctlNotFoundError",
    "NotionctlConflictError",
    "NotionctlRateLimitError",
    "NotionctlRetryExhaustedError",
    "NotionctlNetworkError",
    "NotionctlConversionError",
    "NotionctlUnsupportedBlockError",
    "NotionctlSchemaError",
    "NotionctlInvalidIdError",
    # Models: block tree
    "Annotations",
    "TextSpan",
    "Block",
    "BlockType",
    "Paragraph",
    "Heading",
    "BulletedItem",
    "NumberedItem",
    "Todo",
    "Quote",
    "Callout",
    "Toggle",
    "Code",
    "Divider",
    "Table",
    "Image",
    "ChildPage",
    "Unsupported",
    # Models: results
    "PageCreateResult",
    "AppendResult",
    "BlockUpdateResult",
    "PageExport",
    "ChildPageRef",
    "SearchHit",
    "TriagePlanItem",
    "TriageMove",
    "TriageResult",
]
