"""Notion ID normalisation.

Pages and blocks can be referenced by a dashed UUID, a bare 32-character
hex ID, or any Notion URL that embeds one.  :func:`normalise_id` reduces
all of these to the lower-case dashed form the API expects.
"""

from __future__ import annotations

import re

from notionctl.errors import NotionctlInvalidIdError

_DASHED_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_HEX32_RE = re.compile(r"[0-9a-fA-F]{32}")


def to_dashed_uuid(hex32: str) -> str:
    """Insert dashes into a 32-character hex ID."""
    s = hex32.lower()
    return f"{s[:8]}-{s[8:12]}-{s[12:16]}-{s[16:20]}-{s[20:]}"


def normalise_id(id_or_url: str) -> str:
    """Extract a dashed, lower-case Notion UUID from an ID or URL.

    >>> normalise_id("https://www.notion.so/My-Page-0123456789abcdef0123456789ABCDEF")
    '01234567-89ab-cdef-0123-456789abcdef'

    Raises
    ------
    NotionctlInvalidIdError
        If *id_or_url* is empty or contains no recognisable UUID.
    """
    if not id_or_url or not isinstance(id_or_url, str):
        raise NotionctlInvalidIdError(
            message="Missing Notion ID or URL",
            context={"value": id_or_url},
        )
    s = id_or_url.strip()
    dashed = _DASHED_RE.search(s)
    if dashed:
        return dashed.group(0).lower()
    hex32 = _HEX32_RE.search(s)
    if hex32:
        return to_dashed_uuid(hex32.group(0))
    raise NotionctlInvalidIdError(
        message=f"Could not extract a Notion UUID from: {id_or_url}",
        context={"value": id_or_url},
    )
