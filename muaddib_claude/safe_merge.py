"""Structural merge primitive that refuses dangerous key names.

``safe_deep_merge`` combines two JSON-shaped values: mappings merge
recursively with the source winning conflicts, lists concatenate with
scalar de-duplication, and anything else is overwritten by the source.

Keys named ``__proto__``, ``constructor`` or ``prototype`` are dropped at
every depth, on both sides, before they can reach a result. Settings files
are hand-edited and sometimes produced by other tools, so they are treated
as untrusted input; the filter keeps documents portable to consumers whose
object model would treat those names specially.

This module is a base-layer module: it imports only ``constants``.
"""

from __future__ import annotations

import logging
from typing import Any

from muaddib_claude.constants import DANGEROUS_KEYS, MAX_MERGE_DEPTH

logger = logging.getLogger(__name__)


def is_dangerous_key(key: Any) -> bool:
    """Return True if *key* is one of the reserved names to reject."""
    return isinstance(key, str) and key in DANGEROUS_KEYS


def is_scalar(value: Any) -> bool:
    """Return True for JSON scalars (string, number, boolean, null)."""
    return value is None or isinstance(value, (str, int, float, bool))


def same_value(a: Any, b: Any) -> bool:
    """JSON-level equality.

    Unlike ``==`` this keeps booleans and numbers apart, so ``True`` never
    matches ``1`` and ``{"x": False}`` never matches ``{"x": 0}``.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    if isinstance(a, (dict, list)) or isinstance(b, (dict, list)):
        return False
    return a == b


def contains_value(items: list[Any], value: Any) -> bool:
    """Membership test using :func:`same_value`."""
    return any(same_value(item, value) for item in items)


def strip_dangerous_keys(value: Any, _depth: int = 0) -> Any:
    """Return a deep copy of *value* with dangerous keys removed at every level.

    Containers nested deeper than ``MAX_MERGE_DEPTH`` are replaced by an
    empty container of the same kind. Scalars are returned as-is.

    Args:
        value: Any JSON-shaped value.

    Returns:
        A fresh structure sharing no mutable containers with *value*.
    """
    if isinstance(value, dict):
        if _depth >= MAX_MERGE_DEPTH:
            logger.debug("Truncating mapping nested deeper than %d levels", MAX_MERGE_DEPTH)
            return {}
        cleaned: dict[Any, Any] = {}
        for key, item in value.items():
            if is_dangerous_key(key):
                logger.debug("Dropping dangerous key %r", key)
                continue
            cleaned[key] = strip_dangerous_keys(item, _depth + 1)
        return cleaned
    if isinstance(value, (list, tuple)):
        if _depth >= MAX_MERGE_DEPTH:
            logger.debug("Truncating list nested deeper than %d levels", MAX_MERGE_DEPTH)
            return []
        return [strip_dangerous_keys(item, _depth + 1) for item in value]
    return value


def append_unique_scalars(result: list[Any], items: list[Any], _depth: int = 0) -> list[Any]:
    """Append *items* to *result* in place, skipping scalars already present.

    Mappings and lists are always appended (sanitized); semantic
    de-duplication of structured entries belongs to the domain mergers.

    Returns:
        *result*, for chaining.
    """
    for item in items:
        if is_scalar(item):
            if contains_value(result, item):
                continue
            result.append(item)
        else:
            result.append(strip_dangerous_keys(item, _depth + 1))
    return result


def _merge_into(target: Any, source: Any, depth: int) -> Any:
    # target is already sanitized and owned by the caller; source is raw.
    if depth >= MAX_MERGE_DEPTH:
        return strip_dangerous_keys(source, depth)

    if isinstance(target, dict) and isinstance(source, dict):
        for key, value in source.items():
            if is_dangerous_key(key):
                logger.debug("Skipping dangerous key %r during merge", key)
                continue
            if key in target:
                target[key] = _merge_into(target[key], value, depth + 1)
            else:
                target[key] = strip_dangerous_keys(value, depth + 1)
        return target

    if isinstance(target, list) and isinstance(source, (list, tuple)):
        return append_unique_scalars(target, list(source), depth)

    return strip_dangerous_keys(source, depth)


def safe_deep_merge(target: Any, source: Any) -> Any:
    """Deep merge two JSON-shaped values. Source values take precedence.

    Rules:
        - mapping x mapping: merged key by key; dangerous keys skipped.
        - list x list: target elements, then source elements, with scalar
          duplicates dropped.
        - anything else: the source value wins.

    Neither input is modified and the result shares no mutable containers
    with them. Never raises for JSON-shaped input.

    Args:
        target: Base value.
        source: Value merged over the base.

    Returns:
        The merged value.
    """
    return _merge_into(strip_dangerous_keys(target), source, 0)
