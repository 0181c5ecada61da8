"""Backup discovery, rotation and cleanup.

Backups are recognized by extension: ``.bak``, ``.backup``, ``.orig`` or a
timestamp suffix such as ``.2024-01-15T10-30-00`` or ``.2024-01-15T10-30-00-1``
(the names ``file_store.write_json`` produces).
"""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import NamedTuple

from muaddib_claude.constants import DEFAULT_BACKUP_MAX_AGE_DAYS, DEFAULT_MAX_BACKUPS
from muaddib_claude.errors import FileStoreError, ValidationError

BACKUP_PATTERN = re.compile(
    r"\.(bak|backup|orig|\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}(?:-\d+)?)$", re.IGNORECASE
)


class RotationResult(NamedTuple):
    kept: list[Path]
    deleted: list[Path]
    errors: list[str]


class CleanupResult(NamedTuple):
    deleted: list[Path]
    retained: list[Path]
    errors: list[str]


def is_backup_name(name: str, pattern: str | None = None) -> bool:
    """True if *name* looks like a backup, optionally of a file containing *pattern*."""
    if not BACKUP_PATTERN.search(name):
        return False
    if pattern:
        return pattern in BACKUP_PATTERN.sub("", name)
    return True


def _backup_entries(backup_dir: Path, pattern: str | None, errors: list[str]) -> list[tuple[Path, float]]:
    # Missing directory: nothing to do
    if not backup_dir.exists():
        return []
    if not backup_dir.is_dir():
        raise FileStoreError(f"Path is not a directory: {backup_dir}")

    try:
        entries = list(backup_dir.iterdir())
    except PermissionError:
        errors.append(f"Permission denied reading directory: {backup_dir}")
        return []

    found = []
    for entry in entries:
        if not entry.is_file() or not is_backup_name(entry.name, pattern):
            continue
        try:
            found.append((entry, entry.stat().st_mtime))
        except OSError:
            errors.append(f"Could not stat file: {entry}")
    return found


def find_backups(dir_path: str | Path, pattern: str | None = None) -> list[Path]:
    """Return backup files in *dir_path* (not recursive), sorted by name."""
    root = Path(dir_path)
    if not root.is_dir():
        return []
    return sorted(
        entry for entry in root.iterdir() if entry.is_file() and is_backup_name(entry.name, pattern)
    )


def rotate_backups(
    backup_dir: str | Path,
    *,
    max_backups: int = DEFAULT_MAX_BACKUPS,
    pattern: str | None = None,
    dry_run: bool = False,
) -> RotationResult:
    """Keep the newest *max_backups* backups (by mtime) and delete the rest.

    Args:
        backup_dir: Directory containing backup files.
        max_backups: Number of backups to retain.
        pattern: Only consider backups of files whose name contains this.
        dry_run: Report what would be deleted without deleting.

    Raises:
        ValidationError: If max_backups is negative.
    """
    if isinstance(max_backups, bool) or not isinstance(max_backups, int) or max_backups < 0:
        raise ValidationError(f"max_backups must be a non-negative number, got: {max_backups!r}")

    kept: list[Path] = []
    deleted: list[Path] = []
    errors: list[str] = []

    backups = _backup_entries(Path(backup_dir), pattern, errors)
    backups.sort(key=lambda item: item[1], reverse=True)

    for index, (path, _mtime) in enumerate(backups):
        if index < max_backups:
            kept.append(path)
        elif dry_run:
            deleted.append(path)
        else:
            try:
                path.unlink()
                deleted.append(path)
            except OSError as exc:
                errors.append(f"Failed to delete: {path} ({exc})")

    return RotationResult(kept, deleted, errors)


def cleanup_backups(
    backup_dir: str | Path,
    *,
    max_age_days: int = DEFAULT_BACKUP_MAX_AGE_DAYS,
    pattern: str | None = None,
    dry_run: bool = False,
) -> CleanupResult:
    """Delete backups older than *max_age_days*; 0 deletes every backup.

    Raises:
        ValidationError: If max_age_days is negative.
    """
    if isinstance(max_age_days, bool) or not isinstance(max_age_days, (int, float)) or max_age_days < 0:
        raise ValidationError(f"max_age_days must be a non-negative number, got: {max_age_days!r}")

    deleted: list[Path] = []
    retained: list[Path] = []
    errors: list[str] = []

    cutoff = time.time() - max_age_days * 24 * 60 * 60

    for path, mtime in _backup_entries(Path(backup_dir), pattern, errors):
        if max_age_days == 0 or mtime < cutoff:
            if dry_run:
                deleted.append(path)
                continue
            try:
                path.unlink()
                deleted.append(path)
            except OSError as exc:
                errors.append(f"Failed to delete: {path} ({exc})")
        else:
            retained.append(path)

    return CleanupResult(deleted, retained, errors)
