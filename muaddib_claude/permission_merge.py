"""Additive merging of permission allow/deny lists.

Each list is treated as an insertion-ordered set: the user's entries stay
where they are and newly shipped rules are appended once. Nothing is ever
removed, so a rule the user added by hand survives every upgrade.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from muaddib_claude.constants import PERMISSION_LIST_KEYS
from muaddib_claude.safe_merge import contains_value, strip_dangerous_keys


class PermissionMergeResult(NamedTuple):
    """Merged permissions plus the list names that could not be merged.

    Attributes:
        permissions: The merged permissions mapping.
        skipped: Names like ``permissions.allow`` whose existing value was not
            a list (or the whole ``permissions`` value was not a mapping).
    """

    permissions: Any
    skipped: list[str]


def union_rules(existing: list[Any], new: list[Any]) -> list[Any]:
    """Existing rules in order, then each new rule not already present.

    Duplicates inside *new* collapse too, so the output never repeats a rule
    that was not already repeated in *existing*.
    """
    result = strip_dangerous_keys(existing)
    for rule in new:
        if not contains_value(result, rule):
            result.append(strip_dangerous_keys(rule))
    return result


def merge_permissions(existing: Any, new: Any) -> PermissionMergeResult:
    """Merge the ``permissions`` section of two settings documents.

    ``allow``, ``deny`` and ``ask`` are merged independently with
    :func:`union_rules`. A list missing on the existing side is treated as
    empty. Other keys of the existing mapping pass through; other keys of
    the new mapping are ignored so user choices like ``defaultMode`` win.

    Args:
        existing: The user's current ``permissions`` value (may be None).
        new: The rendered ``permissions`` value.

    Returns:
        PermissionMergeResult with a fresh mapping.
    """
    if existing is None:
        existing = {}

    if not isinstance(existing, dict):
        return PermissionMergeResult(strip_dangerous_keys(existing), ["permissions"])

    merged: dict[str, Any] = strip_dangerous_keys(existing)
    skipped: list[str] = []

    if not isinstance(new, dict):
        return PermissionMergeResult(merged, skipped)

    for key in PERMISSION_LIST_KEYS:
        new_rules = new.get(key)
        if not isinstance(new_rules, list):
            continue

        current = merged.get(key)
        if current is None:
            current = []
        if not isinstance(current, list):
            skipped.append(f"permissions.{key}")
            continue

        merged[key] = union_rules(current, new_rules)

    return PermissionMergeResult(merged, skipped)
