"""Error hierarchy for notionctl.

Every public error class inherits from :class:`NotionctlError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and
an optional ``cause`` (chained exception).

Markdown parsing and rendering never raise for malformed input; the
errors below come from the API transport, from schema checks performed
before a request is sent, and from converting blocks that have no
creatable Notion payload.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error notionctl can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    UNSUPPORTED_BLOCK = "UNSUPPORTED_BLOCK"
    SCHEMA_ERROR = "SCHEMA_ERROR"
    INVALID_ID = "INVALID_ID"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionctlError(Exception):
    """Base exception for all notionctl errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class _CodedError(NotionctlError):
    """Intermediate base whose subclasses fix their own error code."""

    default_code: str = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=self.default_code,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class NotionctlValidationError(_CodedError):
    """Notion API returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``notion_code``, ``body``.
    """

    default_code = ErrorCode.VALIDATION_ERROR


class NotionctlAuthError(_CodedError):
    """Notion API returned 401, or no integration token could be found.

    Context keys: ``status_code``, ``notion_code``.
    """

    default_code = ErrorCode.AUTH_ERROR


class NotionctlPermissionError(_CodedError):
    """Notion API returned 403: the integration lacks access.

    Context keys: ``status_code``, ``notion_code``, ``operation``.
    """

    default_code = ErrorCode.PERMISSION_ERROR


class NotionctlNotFoundError(_CodedError):
    """Notion API returned 404.

    Context keys: ``status_code``, ``notion_code``, ``path``.
    """

    default_code = ErrorCode.NOT_FOUND


class NotionctlConflictError(_CodedError):
    """Notion API returned 409: a concurrent edit conflicted with ours.

    Context keys: ``status_code``, ``notion_code``.
    """

    default_code = ErrorCode.CONFLICT


class NotionctlRateLimitError(_CodedError):
    """Notion API returned 429.

    Context keys: ``retry_after_seconds``, ``attempt``.
    """

    default_code = ErrorCode.RATE_LIMITED


class NotionctlRetryExhaustedError(_CodedError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``, ``body`` (the last
    structured error payload returned by the server, if any).
    """

    default_code = ErrorCode.RETRY_EXHAUSTED


class NotionctlNetworkError(_CodedError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    default_code = ErrorCode.NETWORK_ERROR


# ---------------------------------------------------------------------------
# Conversion errors
# ---------------------------------------------------------------------------

class NotionctlConversionError(_CodedError):
    """A block tree could not be turned into a Notion API payload.

    Context keys: ``block_type``.
    """

    default_code = ErrorCode.CONVERSION_ERROR


class NotionctlUnsupportedBlockError(NotionctlConversionError):
    """A fetched block type has no Markdown equivalent and the configured
    policy is ``"raise"``.

    Context keys: ``block_id``, ``block_type``.
    """

    default_code = ErrorCode.UNSUPPORTED_BLOCK


# ---------------------------------------------------------------------------
# Request construction errors (raised before any network call)
# ---------------------------------------------------------------------------

class NotionctlSchemaError(_CodedError):
    """A property value does not fit the data source schema.

    Raised for unknown property names, computed property types (formula,
    rollup, ...) and property types notionctl cannot build.

    Context keys: ``field``, ``type``.
    """

    default_code = ErrorCode.SCHEMA_ERROR


class NotionctlInvalidIdError(_CodedError):
    """No Notion UUID could be extracted from an ID or URL argument.

    Context keys: ``value``.
    """

    default_code = ErrorCode.INVALID_ID
