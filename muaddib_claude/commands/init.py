"""Init command: set up a project for Claude Code.

Full mode (default) creates:
  - CLAUDE.md in the project root
  - .claude/settings.json rendered from the installed template
  - .claude/context.md (empty context file loaded at session start)
  - .muaddib/config.json

Minimal mode (``--minimal``) creates only CLAUDE.md.

Existing files are never replaced without ``--force``; with it, the
previous settings.json and config.json are kept as timestamped backups.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click

from muaddib_claude.constants import get_muaddib_home
from muaddib_claude.errors import ConfigError, MuaddibError
from muaddib_claude.file_store import atomic_write, write_json
from muaddib_claude.paths import ProjectPaths, get_project_paths, get_relative_path
from muaddib_claude.project_config import default_project_config
from muaddib_claude.settings_template import default_settings, render_claude_md, render_settings
from muaddib_claude.updater import project_template_data
from muaddib_claude.utils import (
    format_list_item,
    log_debug,
    log_dim,
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warn,
)
from muaddib_claude.validate import validate_settings_file

CONTEXT_MD = "# Project Context\n\nNotes added here are loaded at the start of every session.\n"


def _existing_files(paths: ProjectPaths, minimal: bool) -> list[Path]:
    candidates = [paths.claude_md]
    if not minimal:
        candidates += [paths.settings_json, paths.project_config]
    return [path for path in candidates if path.exists()]


def _write_settings(paths: ProjectPaths, data: dict[str, Any], backup: bool) -> str:
    try:
        settings = render_settings(data)
        label = ""
    except ConfigError as exc:
        log_warn(f"  {exc}")
        log_info("  Using built-in settings...")
        settings = default_settings(data)
        label = " (built-in)"

    write_json(paths.settings_json, settings, backup=backup)
    for problem in validate_settings_file(paths.settings_json):
        log_warn(f"  settings.json: {problem}")
    return label


@click.command()
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--name", default=None, help="Project name (default: directory name)")
@click.option("--minimal", "-m", is_flag=True, help="Create only CLAUDE.md (no .claude directory or settings.json)")
@click.option("--no-hooks", is_flag=True, help="Do not wire hook scripts into settings.json")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
def init(project_dir: Path | None, name: str | None, minimal: bool, no_hooks: bool, force: bool) -> None:
    """Initialize a project with Muad'Dib configuration."""
    paths = get_project_paths(project_dir)
    log_section("Muad'Dib Project Initialization")

    existing = _existing_files(paths, minimal)
    if existing and not force:
        log_warn("Existing files found:")
        for path in existing:
            click.echo(format_list_item(get_relative_path(path, paths.root)))
        log_info("Use --force to overwrite existing files.")
        return

    if not get_muaddib_home().is_dir():
        log_warn("Global components are not installed; hooks will not run until you run: muaddib install")

    project_name = name or paths.root.resolve().name or "project"
    config = default_project_config(projectName=project_name, useHooks=False if no_hooks else None)
    data = project_template_data(config)
    created: list[str] = []

    try:
        log_step("Creating CLAUDE.md...")
        atomic_write(paths.claude_md, render_claude_md(data))
        created.append("CLAUDE.md")

        if not minimal:
            log_step("Creating .claude/settings.json...")
            paths.claude_dir.mkdir(parents=True, exist_ok=True)
            label = _write_settings(paths, data, backup=force)
            created.append(get_relative_path(paths.settings_json, paths.root) + label)

            if not paths.context_md.exists():
                atomic_write(paths.context_md, CONTEXT_MD)
                created.append(get_relative_path(paths.context_md, paths.root))

            log_step("Creating .muaddib/config.json...")
            write_json(paths.project_config, config, backup=force)
            created.append(get_relative_path(paths.project_config, paths.root))
    except (MuaddibError, OSError) as exc:
        log_error(f"Initialization failed: {exc}")
        log_debug(repr(exc))
        sys.exit(1)

    log_success(f"Initialization complete! Created {len(created)} file(s):")
    for item in created:
        click.echo(format_list_item(item))

    if minimal:
        log_dim("Minimal mode: Only CLAUDE.md was created.")
        log_dim("Run without --minimal for full configuration.")
