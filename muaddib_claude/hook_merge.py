"""Matcher-aware merging of the ``hooks`` section of settings.json.

A hooks mapping looks like::

    {
        "PreToolUse": [
            {"matcher": "Bash", "hooks": [{"type": "command", "command": "a.sh"}]}
        ],
        "SessionStart": [{"type": "command", "command": "cat context.md"}]
    }

Entries sharing a matcher are merged into one entry whose action list is the
union of both sides, so an upgrade that adds a third validator to ``Bash``
never produces two ``Bash`` entries that would run the first two twice.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from muaddib_claude.models import HookEntryKind, hook_entry_kind
from muaddib_claude.safe_merge import (
    contains_value,
    is_dangerous_key,
    same_value,
    strip_dangerous_keys,
)

logger = logging.getLogger(__name__)


class HookMergeResult(NamedTuple):
    """Merged hooks plus the event types that could not be merged.

    Attributes:
        hooks: The merged event-type mapping.
        skipped: Event types whose new entries were dropped because one side
            was not a list.
    """

    hooks: dict[str, Any]
    skipped: list[str]


def action_identity(action: Any) -> tuple[Any, ...] | None:
    """Identity of a hook action: ``(type, command)``, or None if it has neither."""
    if isinstance(action, dict) and ("type" in action or "command" in action):
        return (action.get("type"), action.get("command"))
    return None


def _same_action(a: Any, b: Any) -> bool:
    key_a, key_b = action_identity(a), action_identity(b)
    if key_a is not None and key_b is not None:
        return same_value(list(key_a), list(key_b))
    return same_value(a, b)


def merge_actions(existing: list[Any], new: list[Any]) -> list[Any]:
    """Union two action lists by identity.

    Existing actions keep their position; new actions not already present
    are appended in order.
    """
    result = strip_dangerous_keys(existing)
    for action in new:
        if any(_same_action(present, action) for present in result):
            continue
        result.append(strip_dangerous_keys(action))
    return result


def _find_matcher(entries: list[Any], matcher: str) -> int | None:
    for index, entry in enumerate(entries):
        if hook_entry_kind(entry) is HookEntryKind.MATCHER and entry["matcher"] == matcher:
            return index
    return None


def _has_simple(entries: list[Any], entry: dict[str, Any]) -> bool:
    identity = (entry["type"], entry["command"])
    return any(
        hook_entry_kind(present) is HookEntryKind.SIMPLE
        and (present["type"], present["command"]) == identity
        for present in entries
    )


def merge_hook_entries(existing: list[Any], new: list[Any]) -> list[Any]:
    """Merge two entry lists for one event type.

    - Matcher entries: union actions into the first entry with the same
      matcher, or append when the matcher is new.
    - Simple entries: append unless an identical ``(type, command)`` exists.
    - Malformed entries: append unless a structurally equal entry exists.

    Args:
        existing: Entries from the user's current settings.
        new: Entries from the freshly rendered settings.

    Returns:
        A new list; neither input is modified.
    """
    result: list[Any] = strip_dangerous_keys(existing)

    for raw_entry in new:
        entry = strip_dangerous_keys(raw_entry)
        kind = hook_entry_kind(entry)

        if kind is HookEntryKind.MATCHER:
            index = _find_matcher(result, entry["matcher"])
            if index is None:
                result.append(entry)
            else:
                merged = dict(result[index])
                merged["hooks"] = merge_actions(merged["hooks"], entry["hooks"])
                result[index] = merged
        elif kind is HookEntryKind.SIMPLE:
            if not _has_simple(result, entry):
                result.append(entry)
        else:
            if not contains_value(result, entry):
                logger.debug("Appending malformed hook entry %r", entry)
                result.append(entry)

    return result


def merge_hooks(existing_hooks: Any, new_hooks: Any) -> HookMergeResult:
    """Merge a new hooks mapping into an existing one.

    Event types only in *existing_hooks* are preserved; event types only in
    *new_hooks* are appended after them. When an event type holds a list on
    both sides the lists are merged with :func:`merge_hook_entries`. When
    either side holds something else the existing value is kept as-is and the
    event type is reported in ``skipped``.

    Args:
        existing_hooks: The user's current ``hooks`` value.
        new_hooks: The rendered ``hooks`` value.

    Returns:
        HookMergeResult. If *existing_hooks* is not a mapping it is returned
        unchanged (sanitized) and every new event type is skipped.
    """
    if existing_hooks is None:
        existing_hooks = {}

    if not isinstance(new_hooks, dict):
        return HookMergeResult(strip_dangerous_keys(existing_hooks), [])

    if not isinstance(existing_hooks, dict):
        skipped = [key for key in new_hooks if not is_dangerous_key(key)]
        return HookMergeResult(strip_dangerous_keys(existing_hooks), skipped)

    merged: dict[str, Any] = strip_dangerous_keys(existing_hooks)
    skipped: list[str] = []

    for event_type, new_entries in new_hooks.items():
        if is_dangerous_key(event_type):
            logger.debug("Skipping dangerous hook event key %r", event_type)
            continue

        current = merged.get(event_type)
        if current is None:
            merged[event_type] = strip_dangerous_keys(new_entries)
        elif isinstance(current, list) and isinstance(new_entries, list):
            merged[event_type] = merge_hook_entries(current, new_entries)
        else:
            logger.debug("Cannot merge hook event %r: existing value kept", event_type)
            skipped.append(event_type)

    return HookMergeResult(merged, skipped)
