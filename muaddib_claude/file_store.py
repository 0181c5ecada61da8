"""JSON file store and file utilities for muaddib-claude.

Provides:
  - Lenient and strict JSON loading
  - Crash-safe JSON writes (file lock + write-to-temp + rename) with an
    optional timestamped backup of the previous content
  - Directory listing with a file-count limit
  - Package asset synchronization into the global install

WARNING: ``fcntl.flock()`` provides only advisory locking and does not
work reliably on NFS or other networked filesystems.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import os
import shutil
import stat
import tempfile
import time
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path
from typing import Any, NamedTuple

from muaddib_claude.constants import DEFAULT_MAX_FILES, LOCK_TIMEOUT_SECONDS
from muaddib_claude.errors import FileStoreError, ValidationError
from muaddib_claude.utils import log_debug

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


# ============================================================================
# JSON loading / serialization
# ============================================================================


def load_json(path: str | Path) -> dict[str, Any]:
    """Load a JSON object, returning empty dict on missing/invalid file.

    Args:
        path: Path to JSON file to load.

    Returns:
        Dictionary containing JSON data, or empty dict if the file is
        missing, unreadable, invalid, or not a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            return data
    except (FileNotFoundError, json.JSONDecodeError, UnicodeDecodeError, OSError):
        pass
    return {}


def read_json(path: str | Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        FileStoreError: If the file cannot be read or is not valid JSON.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise FileStoreError(f"Invalid JSON in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FileStoreError(f"Cannot read {path}: {exc}") from exc


def dump_json(data: Any) -> str:
    """Serialize *data* with 2-space indentation and a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def json_escape(s: str) -> str:
    """Escape a string for safe inclusion inside a JSON string literal.

    Uses json.dumps to handle all control characters as RFC 8259 requires,
    then strips the surrounding quotes.
    """
    return json.dumps(s)[1:-1]


# ============================================================================
# Locking and atomic writes
# ============================================================================


@contextlib.contextmanager
def file_lock(path: Path, *, shared: bool = False) -> Iterator[None]:
    """Acquire a file lock for *path* using a sidecar ``.lock`` file.

    Uses non-blocking attempts with a retry loop so that a stuck lock
    never blocks indefinitely.

    Args:
        path: The file being protected.
        shared: If ``True`` acquire a shared (read) lock; otherwise exclusive.

    Raises:
        FileStoreError: If the lock cannot be acquired within the timeout.
    """
    lock_path = path.with_name(path.name + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR, 0o600)
    acquired = False
    try:
        lock_op = (fcntl.LOCK_SH if shared else fcntl.LOCK_EX) | fcntl.LOCK_NB
        deadline = time.monotonic() + LOCK_TIMEOUT_SECONDS
        while True:
            try:
                fcntl.flock(fd, lock_op)
                acquired = True
                break
            except OSError:
                if time.monotonic() >= deadline:
                    raise FileStoreError(
                        f"Timed out after {LOCK_TIMEOUT_SECONDS}s waiting for lock on {path}. "
                        f"If no other muaddib process is running, remove {lock_path} and retry."
                    )
                time.sleep(0.1)
        yield
    finally:
        if acquired:
            fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


def atomic_write(path: Path, content: str, mode: int | None = None) -> None:
    """Write content atomically, keeping the existing file mode.

    Uses write-to-temp + os.replace() so a crash never leaves a truncated
    file. New files get *mode* (default 0o644). The caller is expected to
    hold ``file_lock(path)`` when other writers may be active.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode is None:
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            mode = 0o644
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def backup_path_for(path: Path, now: datetime | None = None) -> Path:
    """Name of the timestamped backup for *path*, e.g. ``settings.json.2024-01-15T10-30-00``.

    When a backup with that name already exists (two backups within one
    second), a counter is appended: ``settings.json.2024-01-15T10-30-00-1``.
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = path.with_name(f"{path.name}.{stamp}")
    counter = 0
    while candidate.exists():
        counter += 1
        candidate = path.with_name(f"{path.name}.{stamp}-{counter}")
    return candidate


def create_backup(path: Path) -> Path | None:
    """Copy *path* to a timestamped sibling. Returns None if *path* does not exist."""
    if not path.is_file():
        return None
    dest = backup_path_for(path)
    shutil.copyfile(path, dest)
    shutil.copymode(path, dest)
    log_debug(f"Backed up {path} -> {dest}")
    return dest


def write_json(path: str | Path, data: Any, *, backup: bool = False) -> Path | None:
    """Write JSON atomically under an exclusive lock.

    Args:
        path: Destination file. Parent directories are created.
        data: JSON-serializable value.
        backup: Copy the current file to a timestamped backup first.

    Returns:
        The backup path when one was created, otherwise None.

    Raises:
        FileStoreError: If the lock cannot be acquired or the write fails.
    """
    target = Path(path)
    content = dump_json(data)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with file_lock(target):
            backup_file = create_backup(target) if backup else None
            atomic_write(target, content)
    except OSError as exc:
        raise FileStoreError(f"Failed to write {target}: {exc}") from exc
    return backup_file


# ============================================================================
# Directory helpers
# ============================================================================


def make_executable(path: str | Path) -> None:
    """Add execute permission for owner, group and others (chmod +x)."""
    p = Path(path)
    p.chmod(p.stat().st_mode | 0o111)


def is_executable(path: str | Path) -> bool:
    """True if *path* is a file with any execute bit set."""
    try:
        st = Path(path).stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and bool(st.st_mode & 0o111)


def list_files(
    dir_path: str | Path,
    *,
    recursive: bool = False,
    extensions: Iterable[str] = (),
    max_files: int = DEFAULT_MAX_FILES,
) -> tuple[list[Path], bool]:
    """List files in a directory with optional filtering and a size limit.

    Args:
        dir_path: Directory to list.
        recursive: Descend into subdirectories.
        extensions: Lower-case suffixes to keep (e.g. ``[".sh"]``); empty keeps all.
        max_files: Stop after this many files.

    Returns:
        Tuple of (files, limit_reached).

    Raises:
        ValidationError: If max_files is not positive.
        FileStoreError: If dir_path is missing or not a directory.
    """
    if isinstance(max_files, bool) or not isinstance(max_files, int) or max_files < 1:
        raise ValidationError(f"max_files must be a positive number, got: {max_files!r}")

    root = Path(dir_path)
    if not root.exists():
        raise FileStoreError(f"Directory does not exist: {root}")
    if not root.is_dir():
        raise FileStoreError(f"Path is not a directory: {root}")

    wanted = {ext.lower() for ext in extensions}
    files: list[Path] = []
    limit_reached = False
    pending = [root]

    while pending:
        current = pending.pop(0)
        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            continue
        for entry in entries:
            if entry.is_dir():
                if recursive:
                    pending.append(entry)
                continue
            if not entry.is_file():
                continue
            if wanted and entry.suffix.lower() not in wanted:
                continue
            if len(files) >= max_files:
                limit_reached = True
                break
            files.append(entry)
        if limit_reached:
            break

    return files, limit_reached


# ============================================================================
# Package asset synchronization
# ============================================================================


class AssetDir(NamedTuple):
    """One asset directory copied from the package into the global install.

    Attributes:
        name: Human-readable name used in reports (``templates``, ``scripts``...)
        source: Directory shipped with the package
        dest: Directory inside the global install
        executable_scripts: chmod +x every ``.sh`` file after copying
    """

    name: str
    source: Path
    dest: Path
    executable_scripts: bool = False


class SyncResult(NamedTuple):
    synced: list[str]
    skipped: list[str]
    errors: list[str]


def sync_package_assets(assets: Iterable[AssetDir], *, force: bool = False) -> SyncResult:
    """Copy asset directories into the global install.

    A missing source is skipped. An existing destination is skipped unless
    *force* is set, in which case files are overwritten in place. Failures
    are collected rather than raised so one broken asset does not stop the
    others.

    Returns:
        SyncResult listing synced, skipped and failed assets.
    """
    synced: list[str] = []
    skipped: list[str] = []
    errors: list[str] = []

    for asset in assets:
        if not asset.source.is_dir():
            skipped.append(f"{asset.name}: source not found ({asset.source})")
            continue
        if asset.dest.exists() and not force:
            skipped.append(f"{asset.name}: already exists (use force to overwrite)")
            continue

        try:
            shutil.copytree(asset.source, asset.dest, dirs_exist_ok=True)
        except (OSError, shutil.Error) as exc:
            errors.append(f"{asset.name}: copy failed: {exc}")
            continue
        synced.append(f"{asset.name}: {asset.source} -> {asset.dest}")

        if asset.executable_scripts:
            try:
                scripts, _ = list_files(asset.dest, recursive=True, extensions=[".sh"])
                for script in scripts:
                    make_executable(script)
            except (OSError, FileStoreError) as exc:
                errors.append(f"{asset.name}: failed to make scripts executable: {exc}")

    return SyncResult(synced, skipped, errors)
