"""Reconcile freshly rendered Claude settings with a user's existing settings.

This is the entry point the ``update`` command uses. It composes the hook
and permission mergers over a whole settings document:

1. The result starts as a sanitized copy of the existing document, so every
   customization (including keys this tool knows nothing about) survives.
2. ``hooks`` from the new document are merged matcher-aware.
3. ``permissions`` from the new document are unioned into the existing lists.

SECURITY-CRITICAL: both documents may come from hand-edited or externally
supplied files. Every mapping that reaches the result passes through
``strip_dangerous_keys``.

Pure functions only: no I/O, no global state. Reading and writing
settings.json is the caller's job (see ``muaddib_claude.file_store``).
"""

from __future__ import annotations

from typing import Any, NamedTuple

from muaddib_claude.hook_merge import merge_hooks
from muaddib_claude.permission_merge import merge_permissions
from muaddib_claude.safe_merge import strip_dangerous_keys


class ReconcileResult(NamedTuple):
    """Outcome of reconciling two settings documents.

    Attributes:
        settings: The merged settings document.
        skipped: Locations whose new content could not be merged because the
            existing value has an unexpected shape, e.g. ``hooks.Stop`` or
            ``permissions.allow``. The existing value was kept untouched.
    """

    settings: dict[str, Any]
    skipped: list[str]


def reconcile_settings(new_settings: Any, existing_settings: Any) -> ReconcileResult:
    """Merge *new_settings* into *existing_settings* and report what was skipped.

    Args:
        new_settings: Settings rendered from the current template.
        existing_settings: The user's current settings (may be ``{}``).

    Returns:
        ReconcileResult. Neither input is modified.
    """
    if not isinstance(existing_settings, dict):
        existing_settings = {}
    if not isinstance(new_settings, dict):
        new_settings = {}

    result: dict[str, Any] = strip_dangerous_keys(existing_settings)
    skipped: list[str] = []

    new_hooks = new_settings.get("hooks")
    if new_hooks is not None:
        existing_hooks = result.get("hooks")
        if not isinstance(new_hooks, dict) or (
            existing_hooks is not None and not isinstance(existing_hooks, dict)
        ):
            skipped.append("hooks")
        else:
            hooks_result = merge_hooks(existing_hooks, new_hooks)
            result["hooks"] = hooks_result.hooks
            skipped.extend(f"hooks.{event}" for event in hooks_result.skipped)

    new_permissions = new_settings.get("permissions")
    if new_permissions is not None:
        if not isinstance(new_permissions, dict):
            skipped.append("permissions")
        else:
            perm_result = merge_permissions(result.get("permissions"), new_permissions)
            result["permissions"] = perm_result.permissions
            skipped.extend(perm_result.skipped)

    return ReconcileResult(result, skipped)


def merge_settings(new_settings: Any, existing_settings: Any) -> dict[str, Any]:
    """Merge settings with smart hook and permission handling.

    - New hook event types are added after the existing ones.
    - Entries within an existing event type are merged by matcher; simple
      entries are de-duplicated by ``(type, command)``.
    - Permission lists are unioned, existing order first.
    - Every other existing key passes through untouched.
    - ``__proto__``, ``constructor`` and ``prototype`` keys are dropped at
      every depth.

    Args:
        new_settings: Settings rendered from the current template.
        existing_settings: The user's current settings.

    Returns:
        The merged settings document.
    """
    return reconcile_settings(new_settings, existing_settings).settings
