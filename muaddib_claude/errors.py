"""Exception hierarchy for muaddib-claude.

Provides a structured exception tree so callers can catch broad
categories (``MuaddibError``) or specific failure modes.

The settings merge engine never raises; these exceptions belong to the
layers around it (file store, config loading, CLI commands).

This module is a base-layer module: it must NOT import from any
other ``muaddib_claude`` submodule.
"""

from __future__ import annotations


class MuaddibError(Exception):
    """Base exception for all muaddib-claude errors."""


class ValidationError(MuaddibError):
    """Input validation failures (bad limits, malformed documents, etc.)."""


class ConfigError(MuaddibError):
    """Configuration or rendered template content that cannot be used."""


class FileStoreError(MuaddibError):
    """Failures reading or writing files managed by the tool."""


class NotInstalledError(MuaddibError):
    """The global installation or project scaffolding is missing."""
