"""Update command: refresh global assets or a project's settings.

Global mode (default) re-syncs templates, scripts, lib and skills from the
package into ``~/.muaddib``, overwriting what is there, after copying the
global directory aside as a backup.

Project mode reconciles the settings the current release ships with the
project's ``.claude/settings.json``. User customizations are kept; new hook
entries and permission rules are added. Locations that could not be merged
are reported as warnings.

Flags:
  --global/--project: Choose the update target (global is the default)
  --no-backup: Skip backup creation
  --dry-run: Show what would change without writing
  --templates-only/--scripts-only: Limit the global sync
  --yes/-y: Skip the confirmation prompt in project mode
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from muaddib_claude.constants import DEFAULT_MAX_BACKUPS, get_muaddib_home, get_package_root
from muaddib_claude.errors import MuaddibError
from muaddib_claude.file_store import sync_package_assets
from muaddib_claude.paths import get_project_paths, get_relative_path
from muaddib_claude.updater import (
    backup_global_dir,
    global_assets,
    require_global_install,
    require_project,
    stamp_project_config,
    update_project_settings,
)
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


# ---------------------------------------------------------------------------
# Global
# ---------------------------------------------------------------------------


def _update_global(*, backup: bool, dry_run: bool, templates_only: bool, scripts_only: bool) -> None:
    log_section("Muad'Dib Global Update")
    log_info(f"Updating from: {get_package_root()}")
    log_info(f"Destination: {get_muaddib_home()}")

    require_global_install()

    assets = global_assets(
        templates=not scripts_only,
        scripts=not templates_only,
        lib=not (templates_only or scripts_only),
        skills=not (templates_only or scripts_only),
    )

    if dry_run:
        log_warn("Dry run mode - no changes will be made")
        log_info("Would update the following components:")
        for asset in assets:
            log_info(format_list_item(asset.name))
        return

    if backup:
        backup_dir = backup_global_dir()
        log_success(f"Backup created: {backup_dir}")

    log_step("Syncing package assets...")
    result = sync_package_assets(assets, force=True)

    if result.synced:
        log_success(f"Updated {len(result.synced)} component(s):")
        for name in result.synced:
            log_info(format_list_item(name))
    if result.skipped:
        log_dim(f"Skipped {len(result.skipped)} component(s):")
        for name in result.skipped:
            log_info(format_list_item(name))
    if result.errors:
        log_warn(f"Encountered {len(result.errors)} error(s):")
        for message in result.errors:
            log_info(format_list_item(message))

    if result.synced and not result.errors:
        log_success("Global update complete!")
    elif not result.synced and not result.errors:
        log_info("Nothing to update (source files may be missing).")
    else:
        log_warn("Update completed with issues.")


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


def _update_project(project_dir: Path | None, *, backup: bool, dry_run: bool, skip_confirm: bool) -> None:
    paths = get_project_paths(project_dir)
    log_section("Muad'Dib Project Update")
    require_project(paths)
    settings_name = get_relative_path(paths.settings_json, paths.root)

    if not skip_confirm and not dry_run:
        if not click.confirm("This will update project files. Continue?", default=True):
            log_info("Update cancelled.")
            return

    try:
        update = update_project_settings(
            paths, backup=backup, dry_run=dry_run, max_backups=DEFAULT_MAX_BACKUPS
        )
    except MuaddibError as exc:
        log_warn(f"Could not update settings.json: {exc}")
    else:
        for location in update.skipped:
            log_warn(f"Kept existing value at {location} (not mergeable)")

        if dry_run:
            log_warn("Dry run mode - no changes will be made")
            click.echo(json.dumps(update.settings, indent=2))
        elif not update.changed:
            log_dim(f"Unchanged: {settings_name}")
        elif update.created:
            log_success(f"Created: {settings_name}")
        else:
            log_success(f"Updated: {settings_name}")
            if update.backup is not None:
                log_dim(f"Backup: {update.backup.name}")

    if paths.context_md.exists():
        log_dim(f"Skipped: {get_relative_path(paths.context_md, paths.root)} (preserving user content)")

    if not dry_run:
        try:
            if stamp_project_config(paths, backup=backup):
                log_success(f"Updated: {get_relative_path(paths.project_config, paths.root)}")
        except MuaddibError as exc:
            log_warn(f"Could not update config: {exc}")

    log_success("Project update complete!")
    log_info("Note: CLAUDE.md and context files were not modified to preserve your customizations.")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command()
@click.option("--global", "-g", "scope", flag_value="global", default=True, help="Update global components (default)")
@click.option("--project", "-p", "scope", flag_value="project", help="Update the current project's settings")
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--no-backup", is_flag=True, help="Skip backup creation")
@click.option("--dry-run", is_flag=True, help="Show what would be updated without making changes")
@click.option("--templates-only", is_flag=True, help="Update only templates (global)")
@click.option("--scripts-only", is_flag=True, help="Update only scripts (global)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def update(
    ctx: click.Context,
    scope: str,
    project_dir: Path | None,
    no_backup: bool,
    dry_run: bool,
    templates_only: bool,
    scripts_only: bool,
    yes: bool,
) -> None:
    """Update Muad'Dib global components or project settings."""
    if templates_only and scripts_only:
        raise click.UsageError("--templates-only and --scripts-only are mutually exclusive")

    noninteractive = bool(ctx.obj and ctx.obj.get("noninteractive"))

    try:
        if scope == "project" or project_dir is not None:
            _update_project(
                project_dir,
                backup=not no_backup,
                dry_run=dry_run,
                skip_confirm=yes or noninteractive,
            )
        else:
            _update_global(
                backup=not no_backup,
                dry_run=dry_run,
                templates_only=templates_only,
                scripts_only=scripts_only,
            )
    except (MuaddibError, OSError) as exc:
        log_error(f"Update failed: {exc}")
        log_debug(repr(exc))
        sys.exit(1)
