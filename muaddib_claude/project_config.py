"""Global and project configuration loading.

The effective configuration for a project is the global config
(``~/.muaddib/config.json``) with the project config
(``<project>/.muaddib/config.json``) merged over it via
``safe_deep_merge``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from muaddib_claude.constants import get_global_config_path
from muaddib_claude.file_store import load_json
from muaddib_claude.models import GlobalConfig, PermissionRuleSet, ProjectConfig
from muaddib_claude.paths import get_project_paths
from muaddib_claude.safe_merge import safe_deep_merge, strip_dangerous_keys

logger = logging.getLogger(__name__)


def default_global_config() -> dict[str, Any]:
    """Default global configuration as a plain dict."""
    return GlobalConfig().model_dump()


def default_project_config(**options: Any) -> dict[str, Any]:
    """Default project configuration.

    Keyword options override fields (``projectName``, ``projectType``,
    ``description``, ``orchestrationLevel``, ``useHooks``,
    ``useAgentDelegation``). ``created`` is stamped with the current time.
    """
    settings = {
        key: options.pop(key) for key in ("useHooks", "useAgentDelegation") if options.get(key) is not None
    }
    fields = {key: value for key, value in options.items() if value is not None}
    config = ProjectConfig(
        created=datetime.now(timezone.utc).isoformat(),
        settings=settings,
        **fields,
    )
    return config.model_dump()


def load_global_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load the global config, falling back to defaults when missing or invalid."""
    config_path = Path(path) if path is not None else get_global_config_path()
    data = load_json(config_path)
    if not data:
        logger.debug("No usable global config at %s, using defaults", config_path)
        return default_global_config()
    return strip_dangerous_keys(data)


def load_project_config(project_dir: str | Path | None = None) -> dict[str, Any]:
    """Load the project config, or ``{}`` when missing or invalid."""
    paths = get_project_paths(project_dir)
    data = load_json(paths.project_config)
    if not data:
        logger.debug("No usable project config at %s", paths.project_config)
    return strip_dangerous_keys(data)


def get_merged_config(
    project_dir: str | Path | None = None,
    global_config_path: str | Path | None = None,
) -> dict[str, Any]:
    """Global config with the project config merged over it."""
    return safe_deep_merge(
        load_global_config(global_config_path),
        load_project_config(project_dir),
    )


def validate_config(config: Any, kind: str = "project") -> list[str]:
    """Validate a configuration document.

    Args:
        config: Parsed configuration.
        kind: ``"global"`` or ``"project"``.

    Returns:
        List of error messages; empty when the config is valid.
    """
    if not isinstance(config, dict):
        return ["Configuration must be a JSON object"]

    errors: list[str] = []

    if not config.get("version"):
        errors.append("Missing required field: version")

    if kind == "project" and not config.get("projectName"):
        errors.append("Missing required field: projectName")

    permissions = config.get("permissions")
    if permissions is not None:
        if not isinstance(permissions, dict):
            errors.append("permissions must be an object")
        else:
            for key in ("allow", "deny"):
                if key in permissions and not isinstance(permissions[key], list):
                    errors.append(f"permissions.{key} must be an array")
            if not any(e.startswith("permissions.") for e in errors):
                try:
                    PermissionRuleSet.model_validate(permissions)
                except PydanticValidationError as exc:
                    for err in exc.errors():
                        loc = ".".join(str(part) for part in err["loc"])
                        errors.append(f"permissions.{loc}: {err['msg']}")

    return errors
