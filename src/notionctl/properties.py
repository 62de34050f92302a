"""Page property values built from plain strings and a data source schema.

Values arrive as strings (``"Status=Done"`` style arguments, form
fields, ...).  :func:`coerce_value` turns them into Python primitives and
:func:`build_property_value` shapes the result for the property's schema
type.  Everything here runs before a request is sent; schema violations
raise :class:`~notionctl.errors.NotionctlSchemaError`.
"""

from __future__ import annotations

import json
import re
from typing import Any

from notionctl.converter.inline import parse_inline
from notionctl.converter.payload import spans_to_rich_text
from notionctl.errors import NotionctlSchemaError
from notionctl.utils.ids import normalise_id

COMPUTED_PROPERTY_TYPES: frozenset[str] = frozenset({
    "rollup",
    "formula",
    "created_by",
    "created_time",
    "last_edited_by",
    "last_edited_time",
})
"""Property types Notion computes itself; they cannot be written."""

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


def coerce_value(raw: Any) -> Any:
    """Coerce a raw string to ``bool``, ``None``, a number or JSON.

    >>> coerce_value("true"), coerce_value("12"), coerce_value("1.5")
    (True, 12, 1.5)
    >>> coerce_value('["a", "b"]')
    ['a', 'b']
    >>> coerce_value("Done")
    'Done'

    Non-string values are returned unchanged.
    """
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if _NUMBER_RE.match(text):
        return float(text) if "." in text else int(text)
    if (text.startswith("{") and text.endswith("}")) or (text.startswith("[") and text.endswith("]")):
        try:
            return json.loads(text)
        except ValueError:
            pass
    return text


def _split_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if value is None:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _text_or_none(value: Any) -> str | None:
    return str(value) if value not in (None, "", False) else None


def _rich_text(value: Any) -> list[dict[str, Any]]:
    return spans_to_rich_text(parse_inline("" if value is None else str(value)))


def build_property_value(name: str, schema_prop: dict[str, Any], raw: Any) -> dict[str, Any]:
    """Build the API value for one property.

    Parameters
    ----------
    name:
        Property name (used in error context only).
    schema_prop:
        The property's schema entry from the data source, at least
        ``{"type": ...}``.
    raw:
        The raw value, usually a string.

    Returns
    -------
    dict
        ``{type: value}`` ready to go under ``properties[name]``.

    Raises
    ------
    NotionctlSchemaError
        For computed or unsupported property types.
    """
    prop_type = schema_prop.get("type", "")
    if prop_type in COMPUTED_PROPERTY_TYPES:
        raise NotionctlSchemaError(
            message=f"Property {name!r} has computed type {prop_type!r} and cannot be set",
            context={"field": name, "type": prop_type},
        )

    value = coerce_value(raw)

    if prop_type in ("title", "rich_text"):
        return {prop_type: _rich_text(value)}
    if prop_type in ("select", "status"):
        option = _text_or_none(value)
        return {prop_type: {"name": option} if option else None}
    if prop_type == "multi_select":
        return {"multi_select": [{"name": item} for item in _split_list(value)]}
    if prop_type == "date":
        if isinstance(value, dict):
            return {"date": value}
        return {"date": {"start": str(value)} if value not in (None, "") else None}
    if prop_type == "checkbox":
        return {"checkbox": bool(value)}
    if prop_type == "number":
        if value is None:
            return {"number": None}
        try:
            return {"number": float(value) if not isinstance(value, (int, float)) else value}
        except (TypeError, ValueError) as exc:
            raise NotionctlSchemaError(
                message=f"Property {name!r} expects a number, got {raw!r}",
                context={"field": name, "type": prop_type},
                cause=exc,
            ) from exc
    if prop_type in ("url", "email", "phone_number"):
        return {prop_type: _text_or_none(value)}
    if prop_type in ("people", "relation"):
        return {prop_type: [{"id": normalise_id(item)} for item in _split_list(value)]}

    raise NotionctlSchemaError(
        message=f"Unsupported property type {prop_type!r} for {name!r}",
        context={"field": name, "type": prop_type},
    )


def build_properties(schema: dict[str, Any], values: dict[str, Any]) -> dict[str, Any]:
    """Build API values for several properties of a data source.

    Parameters
    ----------
    schema:
        The data source's ``properties`` mapping.
    values:
        Property name -> raw value.

    Raises
    ------
    NotionctlSchemaError
        If a name is not in *schema*, or a value cannot be built.
    """
    out: dict[str, Any] = {}
    for name, raw in values.items():
        schema_prop = schema.get(name)
        if not isinstance(schema_prop, dict):
            raise NotionctlSchemaError(
                message=f"Unknown property {name!r} on data source",
                context={"field": name, "type": None},
            )
        out[name] = build_property_value(name, schema_prop, raw)
    return out


def find_title_property(schema: dict[str, Any] | None) -> str | None:
    """Return the name of the ``title`` property in *schema*, if any."""
    for name, prop in (schema or {}).items():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return name
    return None


def page_title(page: dict[str, Any] | None) -> str | None:
    """Return the plain-text title of a page object, or ``None``."""
    properties = (page or {}).get("properties")
    if not isinstance(properties, dict):
        return None
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title" and isinstance(prop.get("title"), list):
            return "".join(item.get("plain_text", "") for item in prop["title"])
    return None


def title_property(title: str) -> dict[str, Any]:
    """Build a title property value from inline Markdown."""
    return {"title": _rich_text(title)}
