"""Render the settings.json that the current release would install.

If the global templates directory holds a ``settings.json`` template, its
``${name}`` placeholders are filled from the template data. Every value is
JSON-escaped before substitution, so data containing quotes, backslashes or
placeholder syntax cannot change the structure of the rendered document.
Without a template the built-in default document is used.
"""

from __future__ import annotations

import json
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from muaddib_claude import __version__
from muaddib_claude.constants import get_global_scripts_dir, get_global_templates_dir
from muaddib_claude.errors import ConfigError
from muaddib_claude.file_store import json_escape
from muaddib_claude.utils import log_debug

SETTINGS_TEMPLATE_NAME = "settings.json"
MAX_TEMPLATE_INPUT_LENGTH = 100000

DEFAULT_ALLOW = [
    "Bash(git status:*)",
    "Bash(git diff:*)",
    "Bash(git log:*)",
    "Bash(git add:*)",
    "Bash(git commit:*)",
    "Bash(npm test:*)",
    "Bash(npm run:*)",
    "Bash(pytest:*)",
    "Read(./**)",
    "Edit(./**)",
]

DEFAULT_DENY = [
    "Bash(sudo:*)",
    "Bash(rm -rf /*:*)",
    "Bash(eval:*)",
    "Bash(curl * | sh:*)",
    "Read(.env)",
    "Read(./**/.env*)",
    "Read(./**/secrets/**)",
]


def default_template_data(**overrides: Any) -> dict[str, Any]:
    """Common template values (date, timestamp, year, version, scripts_dir)."""
    now = datetime.now(timezone.utc)
    data: dict[str, Any] = {
        "date": now.date().isoformat(),
        "timestamp": now.isoformat(),
        "year": now.year,
        "version": __version__,
        "scripts_dir": str(get_global_scripts_dir()),
    }
    data.update(overrides)
    return data


def _command(scripts_dir: str, script: str) -> dict[str, str]:
    return {"type": "command", "command": f"{scripts_dir}/{script}"}


def default_settings(data: dict[str, Any]) -> dict[str, Any]:
    """Built-in settings document used when no template file is installed."""
    scripts_dir = str(data.get("scripts_dir") or get_global_scripts_dir())
    settings: dict[str, Any] = {}

    if data.get("useHooks", True) is not False:
        settings["hooks"] = {
            "PreToolUse": [
                {
                    "matcher": "Bash",
                    "hooks": [_command(scripts_dir, "validate-bash-command.sh")],
                },
                {
                    "matcher": "Edit|Write",
                    "hooks": [_command(scripts_dir, "protect-sensitive-files.sh")],
                },
            ],
            "SessionStart": [_command(scripts_dir, "load-context.sh")],
            "PreCompact": [_command(scripts_dir, "save-checkpoint.sh")],
        }

    settings["permissions"] = {
        "allow": list(DEFAULT_ALLOW),
        "deny": list(DEFAULT_DENY),
    }
    return settings


def _escape_value(value: Any) -> str:
    # Strings land inside quotes in the template; everything else is a JSON literal.
    if isinstance(value, str):
        return json_escape(value)
    return json.dumps(value, default=str)


def render_template_text(template: str, data: dict[str, Any]) -> str:
    """Substitute ``${name}`` placeholders with JSON-escaped values.

    Unknown placeholders are left as-is.

    Raises:
        ConfigError: If the serialized data exceeds MAX_TEMPLATE_INPUT_LENGTH.
    """
    try:
        serialized = json.dumps(data, default=str)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Template data is not serializable: {exc}") from exc
    if len(serialized) > MAX_TEMPLATE_INPUT_LENGTH:
        raise ConfigError(
            f"Template data exceeds maximum allowed length. Got {len(serialized):,} characters, "
            f"maximum is {MAX_TEMPLATE_INPUT_LENGTH:,}."
        )

    escaped = {str(key): _escape_value(value) for key, value in data.items()}
    return string.Template(template).safe_substitute(escaped)


def render_settings(
    data: dict[str, Any] | None = None,
    templates_dir: str | Path | None = None,
) -> dict[str, Any]:
    """Render the new settings document.

    Args:
        data: Template data; defaults to :func:`default_template_data`.
        templates_dir: Directory to look for ``settings.json`` in; defaults
            to the global templates directory.

    Returns:
        The rendered settings document.

    Raises:
        ConfigError: If the template renders to invalid JSON or a non-object.
    """
    if data is None:
        data = default_template_data()

    directory = Path(templates_dir) if templates_dir is not None else get_global_templates_dir()
    template_path = directory / SETTINGS_TEMPLATE_NAME

    if not template_path.is_file():
        log_debug(f"No settings template at {template_path}, using built-in defaults")
        return default_settings(data)

    try:
        template = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read settings template {template_path}: {exc}") from exc

    rendered = render_template_text(template, data)
    try:
        settings = json.loads(rendered)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Settings template {template_path} rendered invalid JSON: {exc}") from exc
    if not isinstance(settings, dict):
        raise ConfigError(f"Settings template {template_path} must render a JSON object")
    return settings


# ============================================================================
# CLAUDE.md
# ============================================================================

CLAUDE_MD_TEMPLATE_NAME = "CLAUDE.md.tmpl"


def basic_claude_md(project_name: str) -> str:
    return f"# {project_name}\n\nProject configuration for Claude Code.\n"


def render_claude_md(data: dict[str, Any], templates_dir: str | Path | None = None) -> str:
    """Render the project's CLAUDE.md.

    Markdown needs no escaping, so values are substituted as plain text.
    Falls back to a minimal document when no template is installed.

    Raises:
        ConfigError: If the template exists but cannot be read.
    """
    project_name = str(data.get("projectName") or "project")
    directory = Path(templates_dir) if templates_dir is not None else get_global_templates_dir()
    template_path = directory / CLAUDE_MD_TEMPLATE_NAME

    if not template_path.is_file():
        log_debug(f"No CLAUDE.md template at {template_path}, using basic content")
        return basic_claude_md(project_name)

    try:
        template = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read CLAUDE.md template {template_path}: {exc}") from exc

    values = {str(key): str(value) for key, value in data.items()}
    values.setdefault("projectName", project_name)
    return string.Template(template).safe_substitute(values)
