"""Doctor command: health check for the global install and the current project.

Checks:
  1. Global directory, templates, scripts (and that they are executable),
     core library and skills
  2. Project files: .claude/, CLAUDE.md, settings.json (JSON syntax and
     structure), .muaddib/config.json
  3. Leftover backup files

Issues exit with status 1; warnings do not. ``--fix`` repairs what can be
repaired automatically (script permissions). ``--cleanup-backups`` switches
to removing old backup files instead.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, NamedTuple, Optional

import click

from muaddib_claude.backups import cleanup_backups, find_backups
from muaddib_claude.constants import (
    DEFAULT_BACKUP_MAX_AGE_DAYS,
    get_global_lib_dir,
    get_global_scripts_dir,
    get_global_skills_dir,
    get_global_templates_dir,
    get_muaddib_home,
)
from muaddib_claude.errors import MuaddibError
from muaddib_claude.file_store import list_files, make_executable, read_json
from muaddib_claude.paths import ProjectPaths, get_project_paths, is_global_path, is_project_path
from muaddib_claude.project_config import validate_config
from muaddib_claude.utils import (
    format_list_item,
    log_dim,
    log_error,
    log_info,
    log_section,
    log_success,
    log_warn,
)
from muaddib_claude.validate import unknown_hook_events, validate_script, validate_settings


class Finding(NamedTuple):
    name: str
    fix: str
    auto_fix: Optional[Callable[[], None]] = None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_global(issues: list[Finding], warnings: list[Finding], verbose: bool) -> None:
    home = get_muaddib_home()
    log_info("Global Installation:")

    if not home.is_dir():
        log_error("  Global directory: Not found")
        issues.append(Finding("Global directory missing", "Run: muaddib install"))
        return
    log_success(f"  Global directory: {home}")

    templates_dir = get_global_templates_dir()
    if templates_dir.is_dir():
        templates, _ = list_files(templates_dir)
        log_success(f"  Templates: {len(templates)} found")
        if verbose:
            for template in templates:
                log_dim(f"    - {template.name}")
    else:
        log_error("  Templates: Not found")
        issues.append(Finding("Templates missing", "Run: muaddib update --global"))

    scripts_dir = get_global_scripts_dir()
    if scripts_dir.is_dir():
        scripts, _ = list_files(scripts_dir, extensions=[".sh"])
        log_success(f"  Scripts: {len(scripts)} found")
        not_executable = [script for script in scripts if not validate_script(script)[0]]
        for script in not_executable:
            warnings.append(
                Finding(
                    f"Script not executable: {script.name}",
                    f"chmod +x {script}",
                    auto_fix=lambda script=script: make_executable(script),
                )
            )
        if not_executable:
            log_warn("  Scripts executable: Some scripts need chmod +x")
        else:
            log_success("  Scripts executable: All OK")
    else:
        log_warn("  Scripts: Not found (hooks will not work)")
        warnings.append(Finding("Scripts missing", "Run: muaddib update --global"))

    if (get_global_lib_dir() / "core").is_dir():
        log_success("  Core library: OK")
    else:
        log_warn("  Core library: Not found")
        warnings.append(Finding("Core library missing", "Run: muaddib update --global"))

    if get_global_skills_dir().is_dir():
        log_success("  Skills directory: OK")
    else:
        log_warn("  Skills directory: Not found (optional)")


def _check_settings(paths: ProjectPaths, issues: list[Finding], warnings: list[Finding], verbose: bool) -> None:
    if not paths.settings_json.exists():
        log_dim("  settings.json: Not found (hooks disabled)")
        return

    try:
        data = read_json(paths.settings_json)
    except MuaddibError:
        log_error("  settings.json: Invalid JSON")
        issues.append(Finding("settings.json is invalid JSON", "Fix JSON syntax or run: muaddib update --project"))
        return

    problems = validate_settings(data)
    if problems:
        log_warn(f"  settings.json: {len(problems)} structural problem(s)")
        for problem in problems:
            if verbose:
                log_dim(f"    - {problem}")
            warnings.append(Finding(f"settings.json: {problem}", "Edit .claude/settings.json"))
    else:
        log_success("  settings.json: OK")

    unknown = unknown_hook_events(data)
    if unknown and verbose:
        log_dim(f"  Unrecognized hook events (kept as-is): {', '.join(unknown)}")

    _check_hook_scripts(data, paths, warnings)


def _hook_commands(data: Any) -> list[str]:
    hooks = data.get("hooks") if isinstance(data, dict) else None
    if not isinstance(hooks, dict):
        return []
    commands = []
    for entries in hooks.values():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            actions = entry["hooks"] if isinstance(entry.get("hooks"), list) else [entry]
            for action in actions:
                if isinstance(action, dict) and isinstance(action.get("command"), str):
                    commands.append(action["command"])
    return commands


def _check_hook_scripts(data: Any, paths: ProjectPaths, warnings: list[Finding]) -> None:
    """Warn about hook commands pointing at scripts this tool manages that are unusable."""
    seen: set[Path] = set()
    for command in _hook_commands(data):
        words = command.split()
        if not words:
            continue
        script = Path(words[0])
        if not script.is_absolute() or script in seen:
            continue
        seen.add(script)

        if is_global_path(script):
            # Executability of global scripts is covered by the global checks
            if not script.exists():
                log_warn(f"  Hook script missing: {script}")
                warnings.append(Finding(f"Hook script missing: {script.name}", "Run: muaddib install --force"))
        elif is_project_path(script, paths.root):
            ok, message = validate_script(script)
            if not ok:
                log_warn(f"  {message}")
                auto_fix = (lambda script=script: make_executable(script)) if script.exists() else None
                warnings.append(Finding(f"Hook script unusable: {script.name}", f"chmod +x {script}", auto_fix=auto_fix))


def _check_project(paths: ProjectPaths, issues: list[Finding], warnings: list[Finding], verbose: bool) -> None:
    log_info("Project Installation:")

    if paths.claude_md.exists():
        log_success("  CLAUDE.md: OK")
    else:
        log_warn("  CLAUDE.md: Not found")
        warnings.append(Finding("CLAUDE.md missing", "Run: muaddib init"))

    if paths.claude_dir.is_dir():
        log_success("  .claude directory: OK")
    else:
        log_error("  .claude directory: Not found")
        issues.append(Finding(".claude directory missing", "Run: muaddib init"))

    _check_settings(paths, issues, warnings, verbose)

    if paths.context_md.exists():
        log_success("  context.md: OK")
    else:
        log_dim("  context.md: Not found (optional)")

    if paths.project_config.exists():
        try:
            config = read_json(paths.project_config)
        except MuaddibError:
            log_warn("  Project config: Invalid JSON")
            warnings.append(Finding("Project config is invalid JSON", "Fix JSON syntax in .muaddib/config.json"))
        else:
            config_errors = validate_config(config, kind="project")
            if config_errors:
                log_warn(f"  Project config: {len(config_errors)} problem(s)")
                for message in config_errors:
                    warnings.append(Finding(f"Project config: {message}", "Edit .muaddib/config.json"))
            else:
                log_success("  Project config: OK")
    else:
        log_dim("  Project config: Not found (optional)")

    backups = find_backups(paths.root) + find_backups(paths.claude_dir) + find_backups(paths.muaddib_dir)
    if backups:
        log_warn(f"  Backup files: {len(backups)} found")
        if verbose:
            for backup in backups:
                log_dim(f"    - {backup.name}")
        warnings.append(Finding(f"{len(backups)} backup file(s) found", "Run: muaddib doctor --cleanup-backups"))


# ---------------------------------------------------------------------------
# Backup cleanup
# ---------------------------------------------------------------------------


def _run_backup_cleanup(paths: ProjectPaths, max_age_days: int, dry_run: bool, verbose: bool) -> int:
    log_section("Backup File Cleanup")
    if dry_run:
        log_warn("Dry run mode - no files will be deleted")

    total_deleted = 0
    total_retained = 0
    total_errors = 0

    for directory in (paths.root, paths.claude_dir, paths.muaddib_dir):
        if not directory.is_dir():
            continue
        if verbose:
            log_info(f"Checking: {directory}")

        result = cleanup_backups(directory, max_age_days=max_age_days, dry_run=dry_run)

        if result.deleted:
            action = "Would delete" if dry_run else "Deleted"
            log_success(f"{action} {len(result.deleted)} old backup(s) in {directory}")
            if verbose:
                for path in result.deleted:
                    log_dim(f"  - {path.name}")
        if result.retained and verbose:
            log_info(f"Retained {len(result.retained)} recent backup(s)")
        for message in result.errors:
            log_error(f"  {message}")

        total_deleted += len(result.deleted)
        total_retained += len(result.retained)
        total_errors += len(result.errors)

    if total_deleted == 0 and total_retained == 0:
        log_info("No backup files found in project.")
    else:
        action = "Would clean" if dry_run else "Cleaned"
        log_success(f"{action} {total_deleted} backup file(s), retained {total_retained}")
    if total_errors:
        log_warn(f"{total_errors} error(s) occurred during cleanup")
        return 1
    return 0


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command()
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed check results")
@click.option("--fix", is_flag=True, help="Attempt to fix found issues")
@click.option("--cleanup-backups", is_flag=True, help="Remove old backup files from the project")
@click.option(
    "--max-age-days",
    type=click.IntRange(min=0),
    default=DEFAULT_BACKUP_MAX_AGE_DAYS,
    show_default=True,
    help="Maximum age in days for backups to keep",
)
@click.option("--dry-run", is_flag=True, help="Show what would be cleaned up without deleting")
def doctor(
    project_dir: Path | None,
    verbose: bool,
    fix: bool,
    cleanup_backups: bool,
    max_age_days: int,
    dry_run: bool,
) -> None:
    """Check Muad'Dib installation health."""
    paths = get_project_paths(project_dir)

    try:
        if cleanup_backups:
            sys.exit(_run_backup_cleanup(paths, max_age_days, dry_run, verbose))

        issues: list[Finding] = []
        warnings: list[Finding] = []

        log_section("Muad'Dib Health Check")
        _check_global(issues, warnings, verbose)

        click.echo("")
        if paths.claude_md.exists() or paths.claude_dir.is_dir():
            _check_project(paths, issues, warnings, verbose)
        else:
            log_dim("No project detected in current directory.")
    except (MuaddibError, OSError) as exc:
        log_error(f"Health check failed: {exc}")
        sys.exit(1)

    click.echo("")
    if not issues and not warnings:
        log_success("All checks passed! Installation is healthy.")
        return

    if issues:
        log_error(f"{len(issues)} issue(s) found:")
        for issue in issues:
            click.echo(format_list_item(issue.name))
            if verbose:
                log_dim(f"    Fix: {issue.fix}")

    if warnings:
        log_warn(f"{len(warnings)} warning(s):")
        for warning in warnings:
            click.echo(format_list_item(warning.name))
            if verbose:
                log_dim(f"    Fix: {warning.fix}")

    if fix:
        log_info("Attempting fixes...")
        for warning in warnings:
            if warning.auto_fix is None:
                continue
            try:
                warning.auto_fix()
                log_success(f"Fixed: {warning.name}")
            except OSError as exc:
                log_error(f"Could not fix {warning.name}: {exc}")
    elif any(w.auto_fix for w in warnings):
        log_info("Run with --fix to automatically fix some issues.")

    if issues:
        sys.exit(1)
