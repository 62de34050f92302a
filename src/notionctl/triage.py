"""Rule-driven triage of an inbox page's child pages.

Rules are a JSON array of objects::

    [
      {
        "name": "receipts",
        "match": {"title_regex": "^Receipt"},
        "move_to": {"type": "data_source_id", "id": "<data source id or url>"}
      },
      {
        "name": "meetings",
        "match": {"contains": "meeting"},
        "move_to": {"type": "page_id", "id": "<page id or url>"}
      }
    ]

The first rule whose ``match`` fits a page title wins.  ``title_regex``
is searched anywhere in the title; ``contains`` is a case-insensitive
substring test.  Rules without a usable ``move_to`` never plan a move.

The helpers here are pure; :meth:`NotionctlClient.triage` and its async
twin do the listing and moving.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Sequence, Union

from notionctl.models import ChildPageRef, TriagePlanItem
from notionctl.utils.ids import normalise_id

RulesSource = Union[str, os.PathLike, Sequence[dict]]

MOVE_TARGETS: frozenset[str] = frozenset({"page_id", "data_source_id"})


def load_rules(rules: RulesSource) -> list[dict[str, Any]]:
    """Return the rule list, reading it from a JSON file when given a path.

    Raises
    ------
    ValueError
        If the rules are not a JSON array.
    """
    if isinstance(rules, (str, os.PathLike)):
        path = Path(rules).expanduser()
        rules = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(rules, (list, tuple)):
        raise ValueError("triage rules must be a JSON array")
    return list(rules)


def rule_matches_title(rule: dict[str, Any], title: str) -> bool:
    """Whether *rule*'s ``match`` clause fits *title*.

    Raises
    ------
    ValueError
        If ``title_regex`` is not a valid regular expression.
    """
    match = rule.get("match")
    if not match or not title:
        return False
    pattern = match.get("title_regex")
    if pattern:
        try:
            return re.search(pattern, title) is not None
        except re.error as exc:
            raise ValueError(f"Invalid title_regex in rule {rule.get('name')!r}: {exc}") from exc
    contains = match.get("contains")
    if contains:
        return str(contains).lower() in title.lower()
    return False


def plan_triage(pages: Sequence[ChildPageRef], rules: Sequence[dict[str, Any]]) -> list[TriagePlanItem]:
    """Match each page against *rules* and list the moves to make."""
    plan: list[TriagePlanItem] = []
    for page in pages:
        rule = next((r for r in rules if rule_matches_title(r, page.title)), None)
        if rule is None:
            continue
        move_to = rule.get("move_to") or {}
        if not move_to.get("type") or not move_to.get("id"):
            continue
        plan.append(TriagePlanItem(page_id=page.id, title=page.title, rule=rule.get("name"), move_to=move_to))
    return plan


def move_parent(move_to: dict[str, Any]) -> dict[str, Any]:
    """Turn a rule's ``move_to`` into a Notion parent object.

    Raises
    ------
    ValueError
        For a ``type`` other than ``page_id`` or ``data_source_id``.
    NotionctlInvalidIdError
        If ``id`` is not a Notion ID or URL.
    """
    target = move_to.get("type")
    if target not in MOVE_TARGETS:
        raise ValueError(f"Unknown move_to.type: {target}")
    return {"type": target, target: normalise_id(str(move_to["id"]))}
