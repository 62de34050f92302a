"""Shared test fixtures for the notionctl test suite."""

from __future__ import annotations

import pytest

from notionctl.config import NotionctlConfig
from notionctl.converter.md_renderer import MarkdownRenderer


@pytest.fixture
def config() -> NotionctlConfig:
    """Default test configuration with a dummy token."""
    return NotionctlConfig(token="test_token_1234")


@pytest.fixture
def fast_config() -> NotionctlConfig:
    """Configuration with no pacing and no backoff, for transport tests."""
    return NotionctlConfig(
        token="test-token-1234",
        min_request_interval=0.0,
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
    )


@pytest.fixture
def renderer() -> MarkdownRenderer:
    """Markdown renderer with the default ``comment`` policy."""
    return MarkdownRenderer()
