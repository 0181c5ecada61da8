"""Configuration defaults for muaddib-claude.

Directory locations are resolved at call time (not module load) so
environment overrides and a patched $HOME are respected.
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_int(key: str, default: int) -> int:
    """Read an integer from an environment variable, returning default on parse failure."""
    try:
        return int(os.environ.get(key, str(default)))
    except (ValueError, TypeError):
        return default


# ============================================================================
# Directory & Path Constants
# ============================================================================


def get_package_root() -> Path:
    """Get the directory holding the bundled package assets.

    Respects MUADDIB_PACKAGE_ROOT environment variable override.
    Defaults to the ``assets`` directory shipped inside the package.

    Returns:
        Path to the package root
    """
    root = os.environ.get("MUADDIB_PACKAGE_ROOT")
    if root:
        return Path(root)
    return Path(__file__).resolve().parent / "assets"


def get_muaddib_home() -> Path:
    """Get the global installation directory.

    Respects MUADDIB_HOME environment variable override.
    Defaults to ~/.muaddib if not set.

    Returns:
        Path to the global muaddib directory
    """
    home_str = os.environ.get("MUADDIB_HOME")
    if home_str:
        return Path(home_str)
    return Path.home() / ".muaddib"


def get_global_templates_dir() -> Path:
    """Templates directory inside the global install ($MUADDIB_HOME/templates)."""
    return get_muaddib_home() / "templates"


def get_global_scripts_dir() -> Path:
    """Hook scripts directory inside the global install ($MUADDIB_HOME/scripts)."""
    return get_muaddib_home() / "scripts"


def get_global_lib_dir() -> Path:
    return get_muaddib_home() / "lib"


def get_global_skills_dir() -> Path:
    return get_muaddib_home() / "skills"


def get_global_config_path() -> Path:
    """Global configuration file ($MUADDIB_HOME/config.json)."""
    return get_muaddib_home() / "config.json"


def get_claude_config_dir() -> Path:
    """Get the user's Claude configuration directory.

    Respects CLAUDE_CONFIG_DIR environment variable override.

    Returns:
        Path to the Claude config directory (~/.claude by default)
    """
    dir_str = os.environ.get("CLAUDE_CONFIG_DIR")
    if dir_str:
        return Path(dir_str)
    return Path.home() / ".claude"


def get_package_templates_dir() -> Path:
    return get_package_root() / "templates"


def get_package_scripts_dir() -> Path:
    return get_package_root() / "scripts"


def get_package_lib_core_dir() -> Path:
    return get_package_root() / "lib" / "core"


def get_package_skills_dir() -> Path:
    return get_package_root() / "lib" / "skills"


# ============================================================================
# Limits
# ============================================================================

DEFAULT_MAX_BACKUPS = _env_int("MUADDIB_MAX_BACKUPS", 5)
DEFAULT_BACKUP_MAX_AGE_DAYS = 30
DEFAULT_MAX_FILES = 10000

# Deepest mapping/list nesting the merge engine will follow.
MAX_MERGE_DEPTH = 64

LOCK_TIMEOUT_SECONDS = _env_int("MUADDIB_LOCK_TIMEOUT", 30)

CONFIG_VERSION = "1.0.0"

# ============================================================================
# Settings Document Vocabulary
# ============================================================================

# Names that would redefine shared object behavior in a naive merge.
DANGEROUS_KEYS = frozenset({"__proto__", "constructor", "prototype"})

# Recognized hook event types. The set is open: unknown names are preserved.
KNOWN_HOOK_EVENTS = (
    "PreToolUse",
    "PostToolUse",
    "SessionStart",
    "Stop",
    "PreCompact",
    "PostCompact",
    "PreSubagent",
    "PostSubagent",
)

# Permission lists merged as order-preserving sets.
PERMISSION_LIST_KEYS = ("allow", "deny", "ask")
