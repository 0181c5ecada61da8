"""Click-based CLI entrypoint for muaddib-claude.

All commands are implemented as Click subcommands with lazy loading.
Unknown commands raise an error.
"""

from __future__ import annotations

import importlib
import os
import sys

import click

from muaddib_claude import __version__
from muaddib_claude.utils import configure_logging, log_debug

# ---------------------------------------------------------------------------
# Custom Click Group
# ---------------------------------------------------------------------------


_LAZY_COMMANDS: dict[str, tuple[str, str]] = {
    "config": ("muaddib_claude.commands.config", "config"),
    "doctor": ("muaddib_claude.commands.doctor", "doctor"),
    "init": ("muaddib_claude.commands.init", "init"),
    "install": ("muaddib_claude.commands.install", "install"),
    "merge": ("muaddib_claude.commands.merge", "merge"),
    "uninstall": ("muaddib_claude.commands.uninstall", "uninstall"),
    "update": ("muaddib_claude.commands.update", "update"),
}


class MuaddibGroup(click.Group):
    """Click group that imports command modules on first access."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return all available command names (eager + lazy)."""
        eager = set(self.commands or {})
        return sorted(eager | _LAZY_COMMANDS.keys())

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Look up a command, importing lazily if needed."""
        cmd = self.commands.get(cmd_name)
        if cmd is not None:
            return cmd

        entry = _LAZY_COMMANDS.get(cmd_name)
        if entry is None:
            return None

        module_path, attr_name = entry
        log_debug(f"Loading command '{cmd_name}' from {module_path}")
        mod = importlib.import_module(module_path)
        loaded_cmd: click.Command = getattr(mod, attr_name)
        # Cache so subsequent lookups skip the import
        self.add_command(loaded_cmd, cmd_name)
        return loaded_cmd

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if not args:
            return super().resolve_command(ctx, args)

        cmd_name = args[0]
        cmd_obj = self.get_command(ctx, cmd_name)
        if cmd_obj is not None:
            return cmd_name, cmd_obj, list(args[1:])

        ctx.fail(f"Unknown command '{cmd_name}'. Run 'muaddib --help' for available commands.")


# ---------------------------------------------------------------------------
# Main CLI Group
# ---------------------------------------------------------------------------


@click.group(cls=MuaddibGroup, invoke_without_command=True)
@click.version_option(__version__, prog_name="muaddib")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Muad'Dib - Claude Code project settings manager."""
    ctx.ensure_object(dict)

    if debug:
        os.environ["MUADDIB_DEBUG"] = "1"
    configure_logging(debug)

    ctx.obj["noninteractive"] = os.environ.get("MUADDIB_NONINTERACTIVE") == "1"

    if ctx.invoked_subcommand is None and not ctx.args:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------


def main() -> None:
    """Entry point for the CLI.

    Uses ``standalone_mode=False`` so exit codes are managed here. Usage
    errors (bad flags, missing arguments) exit with 1 instead of Click's
    default of 2.
    """
    try:
        result = cli(standalone_mode=False)
    except click.UsageError as exc:
        click.echo(f"Error: {exc.format_message()}", err=True)
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as exc:
        exc.show()
        sys.exit(exc.exit_code)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        sys.exit(1 if code == 2 else code)
    if isinstance(result, int):
        sys.exit(result)


if __name__ == "__main__":
    main()
