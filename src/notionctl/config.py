"""Configuration for notionctl.

:class:`NotionctlConfig` captures every tuneable knob: API endpoint and
version, request pacing, retry policy, tree-fetch bounds, and export
behaviour.  Instances are passed to :class:`NotionctlClient`,
:class:`AsyncNotionctlClient` and the transports.

:func:`resolve_token` locates an integration token the same way the
command-line tool always has: environment first, then a key file.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from notionctl.errors import NotionctlAuthError

TOKEN_ENV_VARS: tuple[str, ...] = ("NOTION_API_KEY", "NOTION_TOKEN", "NOTION_API_TOKEN")
"""Environment variables consulted, in order, by :func:`resolve_token`."""

TOKEN_FILE: Path = Path("~/.config/notion/api_key")
"""Fallback token file consulted by :func:`resolve_token`."""


@dataclass
class NotionctlConfig:
    """Complete configuration for a notionctl client.

    Every parameter has a sensible default so that the only *required*
    value is ``token``.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    min_request_interval:
        Minimum spacing in seconds between two consecutive requests
        issued through the same throttle.
    retry_max_attempts:
        Maximum number of attempts per request (the initial request plus
        retries) for 429, 5xx and network errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Scale backoff intervals randomly to 50-100 %.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    page_size:
        ``page_size`` sent with paginated list requests (Notion max 100).
    max_tree_depth:
        Recursion cap when fetching nested block children.
    append_batch_size:
        Maximum number of blocks per ``append children`` request (Notion
        max 100).
    unsupported_block_policy:
        On export, how to render block types with no Markdown equivalent.

        * ``"comment"`` -- emit ``<!-- Unsupported block type: ... -->``.
        * ``"skip"`` -- silently omit.
        * ``"raise"`` -- raise :class:`NotionctlUnsupportedBlockError`.
    metrics:
        Optional :class:`~notionctl.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request/response of every API call to
        *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = "2025-09-03"

    base_url: str = "https://api.notion.com/v1"

    # ── Pacing & retry ──────────────────────────────────────────────────
    min_request_interval: float = 0.35

    retry_max_attempts: int = 7

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Blocks ──────────────────────────────────────────────────────────
    page_size: int = 100

    max_tree_depth: int = 50

    append_batch_size: int = 100

    # ── Export ──────────────────────────────────────────────────────────
    unsupported_block_policy: Literal["comment", "skip", "raise"] = "comment"

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.min_request_interval < 0:
            raise ValueError(
                f"min_request_interval must be >= 0, got {self.min_request_interval}"
            )
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 1 <= self.page_size <= 100:
            raise ValueError(f"page_size must be between 1 and 100, got {self.page_size}")
        if not 1 <= self.append_batch_size <= 100:
            raise ValueError(
                f"append_batch_size must be between 1 and 100, got {self.append_batch_size}"
            )
        if self.max_tree_depth < 0:
            raise ValueError(f"max_tree_depth must be >= 0, got {self.max_tree_depth}")
        if self.unsupported_block_policy not in ("comment", "skip", "raise"):
            raise ValueError(
                "unsupported_block_policy must be 'comment', 'skip' or 'raise', "
                f"got {self.unsupported_block_policy!r}"
            )

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionctlConfig({', '.join(parts)})"


def resolve_token(
    environ: dict[str, str] | None = None,
    token_file: Path | None = None,
) -> str:
    """Find a Notion integration token.

    Checks :data:`TOKEN_ENV_VARS` in order, then the first line of
    :data:`TOKEN_FILE`.

    Raises
    ------
    NotionctlAuthError
        If no token is configured anywhere.
    """
    env = os.environ if environ is None else environ
    for name in TOKEN_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value

    path = (token_file or TOKEN_FILE).expanduser()
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError:
        value = ""
    if value:
        return value

    raise NotionctlAuthError(
        message=(
            "Missing Notion token. Set NOTION_API_KEY (recommended) "
            f"or create {TOKEN_FILE}"
        ),
        context={"env_vars": list(TOKEN_ENV_VARS), "token_file": str(path)},
    )
