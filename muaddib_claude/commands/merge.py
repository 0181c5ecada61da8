"""Merge command: reconcile a new settings file into an existing one."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from muaddib_claude.errors import MuaddibError
from muaddib_claude.file_store import dump_json, read_json, write_json
from muaddib_claude.settings_merge import reconcile_settings
from muaddib_claude.utils import log_dim, log_error, log_success, log_warn


@click.command()
@click.argument("new_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("existing_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the merged settings to PATH instead of stdout",
)
@click.option("--backup", is_flag=True, help="Back up the output file before overwriting it")
def merge(new_file: Path, existing_file: Path, output: Path | None, backup: bool) -> None:
    """Merge NEW_FILE settings into EXISTING_FILE settings.

    Existing values win; new hook entries and permission rules are added.
    """
    try:
        new = read_json(new_file)
        existing = read_json(existing_file)
        result = reconcile_settings(new, existing)
    except MuaddibError as exc:
        log_error(f"Merge failed: {exc}")
        sys.exit(1)

    for location in result.skipped:
        log_warn(f"Kept existing value at {location} (not mergeable)")

    if output is None:
        click.echo(dump_json(result.settings), nl=False)
        return

    try:
        backup_path = write_json(output, result.settings, backup=backup)
    except MuaddibError as exc:
        log_error(f"Merge failed: {exc}")
        sys.exit(1)

    log_success(f"Wrote merged settings: {output}")
    if backup_path is not None:
        log_dim(f"Backup: {backup_path.name}")
