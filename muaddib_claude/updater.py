"""Update workflows behind ``muaddib update``.

Project update: render the settings the current release would install,
reconcile them with the project's existing ``.claude/settings.json`` and
write the result back (with a timestamped backup), then stamp the project
config.

Global update: back up ``~/.muaddib`` and re-sync the package assets into it.
"""

from __future__ import annotations

import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple

from muaddib_claude.backups import rotate_backups
from muaddib_claude.constants import (
    DEFAULT_MAX_BACKUPS,
    get_global_lib_dir,
    get_global_scripts_dir,
    get_global_skills_dir,
    get_global_templates_dir,
    get_muaddib_home,
    get_package_lib_core_dir,
    get_package_scripts_dir,
    get_package_skills_dir,
    get_package_templates_dir,
)
from muaddib_claude.errors import NotInstalledError
from muaddib_claude.file_store import AssetDir, load_json, read_json, write_json
from muaddib_claude.paths import ProjectPaths
from muaddib_claude.safe_merge import same_value
from muaddib_claude.settings_merge import reconcile_settings
from muaddib_claude.settings_template import default_template_data, render_settings


class SettingsUpdate(NamedTuple):
    """Result of reconciling one settings file.

    Attributes:
        settings: The merged document (what was, or would be, written).
        changed: False when the merge produced the existing content.
        created: True when no settings file existed before.
        backup: Backup of the previous file, if one was written.
        skipped: Locations the merge could not touch (see ReconcileResult).
    """

    settings: dict[str, Any]
    changed: bool
    created: bool
    backup: Path | None
    skipped: list[str]


def require_project(paths: ProjectPaths) -> None:
    """Raise NotInstalledError unless the project has a ``.claude`` directory."""
    if not paths.claude_dir.is_dir():
        raise NotInstalledError(
            f"No Muad'Dib project found in {paths.root} (missing {paths.claude_dir.name}/)"
        )


def project_template_data(project_config: dict[str, Any]) -> dict[str, Any]:
    """Template data for a project: defaults, then project config, then update stamp."""
    data = default_template_data(**project_config)
    settings = project_config.get("settings")
    if isinstance(settings, dict) and "useHooks" in settings:
        data["useHooks"] = settings["useHooks"]
    data["updated"] = datetime.now(timezone.utc).isoformat()
    return data


def update_settings_file(
    settings_path: Path,
    new_settings: dict[str, Any],
    *,
    backup: bool = True,
    dry_run: bool = False,
) -> SettingsUpdate:
    """Reconcile *new_settings* into the settings file at *settings_path*.

    Raises:
        FileStoreError: If the existing file is not valid JSON or the write fails.
    """
    created = not settings_path.exists()
    existing = {} if created else read_json(settings_path)

    result = reconcile_settings(new_settings, existing)
    changed = created or not same_value(result.settings, existing)

    backup_path = None
    if changed and not dry_run:
        backup_path = write_json(settings_path, result.settings, backup=backup and not created)

    return SettingsUpdate(result.settings, changed, created, backup_path, result.skipped)


def update_project_settings(
    paths: ProjectPaths,
    *,
    backup: bool = True,
    dry_run: bool = False,
    templates_dir: Path | None = None,
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> SettingsUpdate:
    """Render and reconcile a project's ``.claude/settings.json``.

    Old settings backups beyond *max_backups* are rotated away after a
    successful write.
    """
    require_project(paths)
    data = project_template_data(load_json(paths.project_config))
    new_settings = render_settings(data, templates_dir)

    update = update_settings_file(paths.settings_json, new_settings, backup=backup, dry_run=dry_run)

    if update.backup is not None:
        rotate_backups(paths.claude_dir, max_backups=max_backups, pattern=paths.settings_json.name)
    return update


def stamp_project_config(paths: ProjectPaths, *, backup: bool = True) -> bool:
    """Set ``updated`` in the project config. Returns False if there is no config.

    Raises:
        FileStoreError: If the config is not valid JSON or cannot be written.
    """
    if not paths.project_config.exists():
        return False
    config = read_json(paths.project_config)
    if not isinstance(config, dict):
        config = {}
    config["updated"] = datetime.now(timezone.utc).isoformat()
    write_json(paths.project_config, config, backup=backup)
    return True


# ============================================================================
# Global install
# ============================================================================


def global_assets(
    *,
    templates: bool = True,
    scripts: bool = True,
    lib: bool = True,
    skills: bool = True,
) -> list[AssetDir]:
    """Asset directories to sync into the global install."""
    assets = []
    if templates:
        assets.append(AssetDir("templates", get_package_templates_dir(), get_global_templates_dir()))
    if scripts:
        assets.append(
            AssetDir("scripts", get_package_scripts_dir(), get_global_scripts_dir(), executable_scripts=True)
        )
    if lib:
        assets.append(AssetDir("lib", get_package_lib_core_dir(), get_global_lib_dir() / "core"))
    if skills:
        assets.append(AssetDir("skills", get_package_skills_dir(), get_global_skills_dir()))
    return assets


def require_global_install() -> Path:
    """Return the global directory, raising NotInstalledError if it is missing."""
    home = get_muaddib_home()
    if not home.is_dir():
        raise NotInstalledError(f"Muad'Dib is not installed ({home} not found). Run: muaddib install")
    return home


def backup_global_dir() -> Path:
    """Copy the global directory to ``<dir>.backup.<epoch>`` and return the copy."""
    home = require_global_install()
    dest = home.with_name(f"{home.name}.backup.{int(time.time())}")
    shutil.copytree(home, dest, symlinks=True)
    return dest
