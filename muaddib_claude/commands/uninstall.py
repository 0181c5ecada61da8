"""Uninstall command: remove the global install and, optionally, project files."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

import click

from muaddib_claude.constants import get_muaddib_home
from muaddib_claude.paths import get_project_paths
from muaddib_claude.utils import log_dim, log_error, log_info, log_section, log_success, log_warn


def _remove(path: Path, label: str) -> bool:
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except OSError as exc:
        log_warn(f"Could not remove {label}: {exc}")
        return False
    log_success(f"Removed: {label}")
    return True


@click.command()
@click.option("--project", "-p", is_flag=True, help="Also remove project files (.claude/, .muaddib/)")
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def uninstall(ctx: click.Context, project: bool, project_dir: Path | None, force: bool) -> None:
    """Uninstall Muad'Dib components."""
    log_section("Muad'Dib Uninstall")

    home = get_muaddib_home()
    paths = get_project_paths(project_dir)

    targets: list[tuple[Path, str]] = []
    if home.is_dir():
        targets.append((home, f"{home} (global components)"))
    if project:
        for directory in (paths.claude_dir, paths.muaddib_dir):
            if directory.exists():
                targets.append((directory, f"{directory.name}/"))

    if not targets:
        log_info("Muad'Dib is not installed.")
        return

    log_info("The following will be removed:")
    for _, label in targets:
        log_dim(f"  - {label}")

    if not force:
        if ctx.obj and ctx.obj.get("noninteractive"):
            log_info("Uninstall cancelled (use --force in non-interactive mode).")
            return
        if not click.confirm("Are you sure you want to uninstall?", default=False):
            log_info("Uninstall cancelled.")
            return

    log_info("Uninstalling...")
    failures = sum(not _remove(path, label) for path, label in targets)

    if failures:
        log_error(f"Uninstall finished with {failures} error(s).")
        sys.exit(1)
    log_success("Uninstall complete!")

    if not project and (paths.claude_dir.exists() or paths.muaddib_dir.exists()):
        log_info("Note: Project files were preserved.")
        log_info("To remove project files, run: muaddib uninstall --project")
