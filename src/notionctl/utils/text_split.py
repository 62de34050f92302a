"""Code-point safe string splitting.

Notion's ``rich_text[].text.content`` field is limited to 2 000 characters.
:func:`split_string` partitions a string into chunks of at most *limit*
characters.  Python ``str`` indexing is code-point based, so slicing never
bisects a multi-byte character and no byte-level logic is needed.
"""

from __future__ import annotations


def split_string(text: str, limit: int = 2000) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    Parameters
    ----------
    text:
        The input string to partition.
    limit:
        Maximum number of characters per chunk.

    Returns
    -------
    list[str]
        Non-empty chunks whose concatenation equals *text*.  An empty
        *text* gives an empty list.

    Raises
    ------
    ValueError
        If *limit* is less than 1.

    Examples
    --------
    >>> split_string("hello world", 5)
    ['hello', ' worl', 'd']

    >>> split_string("", 100)
    []
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    if not text:
        return []

    return [text[i : i + limit] for i in range(0, len(text), limit)]
