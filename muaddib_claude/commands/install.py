"""Install command: copy the bundled assets into ``~/.muaddib``.

Installs templates, hook scripts (made executable), the core library and
skills. Components that are already installed are left alone unless
``--force`` is given; ``muaddib update --global`` is the command for
refreshing an existing install.
"""

from __future__ import annotations

import sys

import click

from muaddib_claude.constants import get_global_config_path, get_muaddib_home, get_package_root
from muaddib_claude.errors import MuaddibError
from muaddib_claude.file_store import sync_package_assets, write_json
from muaddib_claude.project_config import default_global_config
from muaddib_claude.updater import global_assets
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


@click.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite components that are already installed")
@click.option("--templates-only", is_flag=True, help="Install only templates")
@click.option("--scripts-only", is_flag=True, help="Install only scripts")
@click.option("--templates/--no-templates", default=True, help="Install templates")
@click.option("--scripts/--no-scripts", default=True, help="Install hook scripts")
@click.option("--lib/--no-lib", default=True, help="Install core library files")
@click.option("--skills/--no-skills", default=True, help="Install skills")
def install(
    force: bool,
    templates_only: bool,
    scripts_only: bool,
    templates: bool,
    scripts: bool,
    lib: bool,
    skills: bool,
) -> None:
    """Install global Muad'Dib components."""
    if templates_only and scripts_only:
        raise click.UsageError("--templates-only and --scripts-only are mutually exclusive")

    if templates_only:
        templates, scripts, lib, skills = True, False, False, False
    elif scripts_only:
        templates, scripts, lib, skills = False, True, False, False

    home = get_muaddib_home()
    log_section("Muad'Dib Global Installation")
    log_info(f"Installing to: {home}")
    log_info(f"Package root: {get_package_root()}")

    try:
        home.mkdir(parents=True, exist_ok=True)

        config_path = get_global_config_path()
        if not config_path.exists():
            write_json(config_path, default_global_config())
            log_success(f"Created: {config_path}")

        log_step("Syncing package assets...")
        result = sync_package_assets(
            global_assets(templates=templates, scripts=scripts, lib=lib, skills=skills),
            force=force,
        )
    except (MuaddibError, OSError) as exc:
        log_error(f"Installation failed: {exc}")
        log_debug(repr(exc))
        sys.exit(1)

    if result.synced:
        log_success(f"Installed {len(result.synced)} component(s):")
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

    if result.errors:
        log_warn("Installation completed with issues.")
        sys.exit(1)
    if result.synced:
        log_success("Installation complete!")
        log_info('Run "muaddib init" in a project to initialize it.')
    else:
        log_info("Nothing installed (use --force to overwrite existing components).")
