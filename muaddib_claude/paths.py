"""Path resolution utilities for muaddib-claude.

It provides:
  - ProjectPaths: every file the tool manages inside a project
  - Checks for whether a path belongs to the global install or a project
  - Project-relative display paths
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple

from muaddib_claude.constants import get_muaddib_home


# ============================================================================
# ProjectPaths Data Structure
# ============================================================================


class ProjectPaths(NamedTuple):
    """Container for all paths the tool manages inside a project.

    Attributes:
        root: Project root directory
        claude_dir: ``.claude`` directory read by Claude Code
        muaddib_dir: ``.muaddib`` directory holding tool state
        claude_md: Project instructions file (CLAUDE.md)
        settings_json: Claude Code settings (hooks, permissions)
        context_md: Free-form project context
        critical_context_md: Context preserved across compaction
        checkpoint_md: Session checkpoint notes
        project_config: Project configuration (``.muaddib/config.json``)
        state_dir: Runtime state directory
    """

    root: Path
    claude_dir: Path
    muaddib_dir: Path
    claude_md: Path
    settings_json: Path
    context_md: Path
    critical_context_md: Path
    checkpoint_md: Path
    project_config: Path
    state_dir: Path


def get_project_paths(project_dir: str | Path | None = None) -> ProjectPaths:
    """Derive all managed paths for a project.

    Args:
        project_dir: Project root. Defaults to the current working directory.

    Returns:
        ProjectPaths for the project
    """
    root = Path(project_dir) if project_dir is not None else Path.cwd()
    claude_dir = root / ".claude"
    muaddib_dir = root / ".muaddib"
    return ProjectPaths(
        root=root,
        claude_dir=claude_dir,
        muaddib_dir=muaddib_dir,
        claude_md=root / "CLAUDE.md",
        settings_json=claude_dir / "settings.json",
        context_md=claude_dir / "context.md",
        critical_context_md=claude_dir / "critical-context.md",
        checkpoint_md=claude_dir / "checkpoint.md",
        project_config=muaddib_dir / "config.json",
        state_dir=muaddib_dir / "state",
    )


# ============================================================================
# Path Classification
# ============================================================================


def _is_within(path: Path, parent: Path) -> bool:
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


def is_global_path(path: str | Path) -> bool:
    """Check if *path* lies inside the global muaddib directory."""
    return _is_within(Path(path).resolve(), get_muaddib_home().resolve())


def is_project_path(path: str | Path, project_dir: str | Path | None = None) -> bool:
    """Check if *path* lies inside a project's ``.muaddib`` or ``.claude`` directory."""
    paths = get_project_paths(project_dir)
    resolved = Path(path).resolve()
    return _is_within(resolved, paths.muaddib_dir.resolve()) or _is_within(
        resolved, paths.claude_dir.resolve()
    )


def get_relative_path(full_path: str | Path, project_dir: str | Path | None = None) -> str:
    """Path relative to the project root, or *full_path* unchanged if outside it.

    Args:
        full_path: Path to display.
        project_dir: Project root. Defaults to the current working directory.

    Returns:
        Relative path string
    """
    root = Path(project_dir).resolve() if project_dir is not None else Path.cwd().resolve()
    resolved = Path(full_path).resolve()
    if _is_within(resolved, root) and resolved != root:
        return os.fspath(resolved.relative_to(root))
    return os.fspath(full_path)
