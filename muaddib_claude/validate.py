"""Validation of installed files for muaddib-claude.

The merge engine is deliberately permissive: it merges what it can and
keeps everything else. This module is where malformed content is reported,
so ``doctor`` can point users at entries the merge had to carry along.

Convention:
- Functions validating documents return a list of error messages; an empty
  list indicates success.
- Functions validating a single path return (is_valid: bool, error_msg: str).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from muaddib_claude.constants import DANGEROUS_KEYS, KNOWN_HOOK_EVENTS
from muaddib_claude.errors import FileStoreError
from muaddib_claude.file_store import is_executable, read_json
from muaddib_claude.models import SettingsDocument


def _format_loc(loc: tuple[Any, ...]) -> str:
    parts: list[str] = []
    for part in loc:
        # Drop pydantic's union tag names from locations
        if part in ("matcher", "simple") and parts and parts[-1].isdigit():
            continue
        parts.append(str(part))
    return ".".join(parts)


def find_dangerous_keys(value: Any, _path: str = "") -> list[str]:
    """Return dotted locations of dangerous keys anywhere in *value*."""
    found: list[str] = []
    if isinstance(value, dict):
        for key, item in value.items():
            location = f"{_path}.{key}" if _path else str(key)
            if key in DANGEROUS_KEYS:
                found.append(location)
                continue
            found.extend(find_dangerous_keys(item, location))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            found.extend(find_dangerous_keys(item, f"{_path}.{index}" if _path else str(index)))
    return found


def validate_settings(data: Any) -> list[str]:
    """Validate a parsed settings.json document.

    Reports hook entries that are neither ``{matcher, hooks}`` nor
    ``{type, command}``, permission lists that are not string lists, and
    keys the merge engine would drop.

    Returns:
        List of error messages.
    """
    if not isinstance(data, dict):
        return ["settings.json must contain a JSON object"]

    errors: list[str] = []
    try:
        SettingsDocument.model_validate(data)
    except PydanticValidationError as exc:
        for err in exc.errors():
            errors.append(f"{_format_loc(err['loc'])}: {err['msg']}")

    for location in find_dangerous_keys(data):
        errors.append(f"{location}: reserved key name is ignored when merging")

    return errors


def unknown_hook_events(data: Any) -> list[str]:
    """Event types in ``hooks`` outside the recognized set (informational)."""
    hooks = data.get("hooks") if isinstance(data, dict) else None
    if not isinstance(hooks, dict):
        return []
    return [name for name in hooks if name not in KNOWN_HOOK_EVENTS and name not in DANGEROUS_KEYS]


def validate_settings_file(path: str | Path) -> list[str]:
    """Read and validate a settings.json file.

    Returns:
        List of error messages, including JSON parse failures.
    """
    try:
        data = read_json(path)
    except FileStoreError as exc:
        return [str(exc)]
    return validate_settings(data)


def validate_script(path: str | Path) -> tuple[bool, str]:
    """Check that a hook script exists and is executable."""
    p = Path(path)
    if not p.exists():
        return False, f"Script not found: {p}"
    if not is_executable(p):
        return False, f"Script is not executable: {p} (run: chmod +x {p})"
    return True, ""
