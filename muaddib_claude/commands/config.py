"""Config command: show the effective configuration for a project."""

from __future__ import annotations

import json
from pathlib import Path

import click

from muaddib_claude.constants import get_global_config_path, get_muaddib_home
from muaddib_claude.paths import get_project_paths
from muaddib_claude.project_config import get_merged_config, load_global_config, load_project_config, validate_config
from muaddib_claude.utils import BOLD, RESET, format_kv, format_list_item, log_warn


def _flatten(data: dict, prefix: str = "") -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            rows.extend(_flatten(value, name))
        else:
            rows.append((name, json.dumps(value)))
    return rows


@click.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
def config(json_output: bool, project_dir: Path | None) -> None:
    """Show the merged global and project configuration."""
    paths = get_project_paths(project_dir)
    global_path = get_global_config_path()

    merged = get_merged_config(paths.root, global_path)
    errors = validate_config(load_global_config(global_path), kind="global")
    project = load_project_config(paths.root)
    if project:
        errors.extend(f"project: {e}" for e in validate_config(project, kind="project"))

    if json_output:
        data = {
            "muaddib_home": str(get_muaddib_home()),
            "global_config": str(global_path),
            "project_config": str(paths.project_config),
            "config": merged,
            "errors": errors,
        }
        click.echo(json.dumps(data))
        return

    click.echo(f"{BOLD}Muad'Dib config{RESET}")
    click.echo(format_kv("MUADDIB_HOME", str(get_muaddib_home())))
    click.echo(format_kv("Global config", str(global_path)))
    click.echo(format_kv("Project config", str(paths.project_config)))
    click.echo("")
    click.echo(f"{BOLD}Effective settings{RESET}")
    for key, value in _flatten(merged):
        click.echo(format_kv(key, value))

    if errors:
        click.echo("")
        log_warn(f"{len(errors)} configuration problem(s):")
        for message in errors:
            click.echo(format_list_item(message))
