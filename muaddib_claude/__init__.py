"""muaddib-claude - scaffold and update Claude Code configuration for projects."""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from muaddib_claude.safe_merge import safe_deep_merge
from muaddib_claude.settings_merge import ReconcileResult, merge_settings, reconcile_settings

try:
    __version__ = _pkg_version("muaddib-claude")
except PackageNotFoundError:
    __version__ = "1.0.0"  # fallback for editable installs / dev

__all__ = [
    "ReconcileResult",
    "merge_settings",
    "reconcile_settings",
    "safe_deep_merge",
]
