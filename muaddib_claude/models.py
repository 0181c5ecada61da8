from __future__ import annotations

import enum
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from muaddib_claude.constants import CONFIG_VERSION


class HookEntryKind(str, enum.Enum):
    """Discriminant for the two shapes a hook entry can take."""

    MATCHER = "matcher"
    """``{matcher, hooks}``: tool-use events filtered by a matcher pattern."""

    SIMPLE = "simple"
    """``{type, command}``: lifecycle events with no matcher concept."""

    MALFORMED = "malformed"
    """Neither shape. Tolerated by the merger, reported by validation."""


def hook_entry_kind(entry: Any) -> HookEntryKind:
    """Classify a raw hook entry.

    A matcher entry needs a string ``matcher`` and a list ``hooks``. A simple
    entry needs string ``type`` and ``command``. The matcher shape wins when
    both are present. The empty string is a valid matcher (matches all tools).
    """
    if isinstance(entry, BaseModel):
        entry = entry.model_dump()
    if not isinstance(entry, dict):
        return HookEntryKind.MALFORMED
    if isinstance(entry.get("matcher"), str) and isinstance(entry.get("hooks"), list):
        return HookEntryKind.MATCHER
    if isinstance(entry.get("type"), str) and isinstance(entry.get("command"), str):
        return HookEntryKind.SIMPLE
    return HookEntryKind.MALFORMED


def _hook_entry_tag(entry: Any) -> str | None:
    kind = hook_entry_kind(entry)
    if kind is HookEntryKind.MALFORMED:
        return None
    return kind.value


class HookAction(BaseModel):
    """A single executable step inside a matcher entry.

    Two actions are identical when ``type`` and ``command`` are equal.
    Extra keys (``timeout`` and friends) are kept.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    command: str


class MatcherHookEntry(BaseModel):
    """Hook entry that applies to tool invocations selected by ``matcher``."""

    model_config = ConfigDict(extra="allow")

    matcher: str
    """Tool name pattern, e.g. ``Bash`` or ``Edit|Write``."""

    hooks: list[HookAction] = Field(default_factory=list)
    """Actions run, in order, when the matcher applies."""


class SimpleHookEntry(BaseModel):
    """Hook entry for lifecycle events (SessionStart, Stop, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str
    command: str


HookEntry = Annotated[
    Union[
        Annotated[MatcherHookEntry, Tag(HookEntryKind.MATCHER.value)],
        Annotated[SimpleHookEntry, Tag(HookEntryKind.SIMPLE.value)],
    ],
    Discriminator(
        _hook_entry_tag,
        custom_error_type="malformed_hook_entry",
        custom_error_message="hook entry needs either matcher+hooks or type+command",
    ),
]


class PermissionRuleSet(BaseModel):
    """Allow/deny pattern lists, e.g. ``Bash(npm *)``."""

    model_config = ConfigDict(extra="allow")

    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    ask: list[str] = Field(default_factory=list)


class SettingsDocument(BaseModel):
    """Claude Code ``settings.json``.

    Used for validation only; merging works on plain dicts so unknown
    top-level keys survive untouched.
    """

    model_config = ConfigDict(extra="allow")

    hooks: Optional[dict[str, list[HookEntry]]] = None
    """Event type -> entries. The key set is open."""

    permissions: Optional[PermissionRuleSet] = None


class ModelPreferences(BaseModel):
    model_config = ConfigDict(extra="allow")

    exploration: str = "haiku"
    implementation: str = "sonnet"
    architecture: str = "opus"


class GlobalDefaults(BaseModel):
    model_config = ConfigDict(extra="allow")

    orchestrationLevel: str = "standard"
    useHooks: bool = True
    useAgentDelegation: bool = True
    modelPreferences: ModelPreferences = Field(default_factory=ModelPreferences)


class GlobalConfig(BaseModel):
    """Global configuration stored at ``~/.muaddib/config.json``."""

    model_config = ConfigDict(extra="allow")

    version: str = CONFIG_VERSION
    defaults: GlobalDefaults = Field(default_factory=GlobalDefaults)
    permissions: PermissionRuleSet = Field(default_factory=PermissionRuleSet)
    hooks: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})


class ProjectSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    useHooks: bool = True
    useAgentDelegation: bool = False


class ProjectConfig(BaseModel):
    """Per-project configuration stored at ``<project>/.muaddib/config.json``."""

    model_config = ConfigDict(extra="allow")

    version: str = CONFIG_VERSION
    projectName: str = "untitled"
    projectType: str = "other"
    description: str = ""
    orchestrationLevel: str = "standard"
    created: str = ""
    """ISO timestamp of project initialization."""

    updated: str = ""
    """ISO timestamp of the last ``muaddib update --project``."""

    settings: ProjectSettings = Field(default_factory=ProjectSettings)
