"""Unit tests for muaddib_claude.project_config and muaddib_claude.paths."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from muaddib_claude.paths import get_project_paths, get_relative_path, is_global_path, is_project_path
from muaddib_claude.project_config import (
    default_global_config,
    default_project_config,
    get_merged_config,
    load_global_config,
    load_project_config,
    validate_config,
)


# ============================================================================
# Paths
# ============================================================================


class TestProjectPaths:
    def test_layout(self, tmp_path):
        paths = get_project_paths(tmp_path)
        assert paths.root == tmp_path
        assert paths.settings_json == tmp_path / ".claude" / "settings.json"
        assert paths.project_config == tmp_path / ".muaddib" / "config.json"
        assert paths.claude_md == tmp_path / "CLAUDE.md"
        assert paths.state_dir == tmp_path / ".muaddib" / "state"

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_project_paths().root == Path.cwd()

    def test_is_global_path(self, muaddib_home, tmp_path):
        assert is_global_path(muaddib_home / "templates" / "x") is True
        assert is_global_path(tmp_path / "elsewhere") is False

    def test_is_project_path(self, tmp_path):
        assert is_project_path(tmp_path / ".claude" / "settings.json", tmp_path) is True
        assert is_project_path(tmp_path / ".muaddib" / "config.json", tmp_path) is True
        assert is_project_path(tmp_path / "src" / "main.py", tmp_path) is False

    def test_relative_path(self, tmp_path):
        assert get_relative_path(tmp_path / ".claude" / "settings.json", tmp_path) == ".claude/settings.json"
        assert get_relative_path("/somewhere/else", tmp_path) == "/somewhere/else"


# ============================================================================
# Loading
# ============================================================================


class TestLoadConfig:
    def test_global_defaults_when_missing(self):
        assert load_global_config() == default_global_config()

    def test_global_defaults_when_invalid(self, muaddib_home):
        (muaddib_home / "config.json").write_text("{broken")
        assert load_global_config() == default_global_config()

    def test_global_config_read_and_sanitized(self, muaddib_home):
        (muaddib_home / "config.json").write_text(json.dumps({"version": "2.0.0", "__proto__": {"x": 1}}))
        assert load_global_config() == {"version": "2.0.0"}

    def test_project_missing(self, tmp_path):
        assert load_project_config(tmp_path) == {}

    def test_project_loaded(self, project):
        assert load_project_config(project)["projectName"] == "demo"

    def test_merged_config_project_wins(self, muaddib_home, project):
        (muaddib_home / "config.json").write_text(
            json.dumps({"version": "1.0.0", "defaults": {"useHooks": True}, "permissions": {"allow": ["a"]}})
        )
        config_path = project / ".muaddib" / "config.json"
        config_path.write_text(
            json.dumps({"projectName": "demo", "defaults": {"useHooks": False}, "permissions": {"allow": ["b"]}})
        )
        merged = get_merged_config(project)
        assert merged["projectName"] == "demo"
        assert merged["defaults"]["useHooks"] is False
        assert merged["permissions"]["allow"] == ["a", "b"]


class TestDefaultProjectConfig:
    def test_options_applied(self):
        config = default_project_config(projectName="api", useHooks=False, description=None)
        assert config["projectName"] == "api"
        assert config["description"] == ""
        assert config["settings"]["useHooks"] is False
        assert config["settings"]["useAgentDelegation"] is False
        assert config["created"]

    def test_defaults_are_valid(self):
        assert validate_config(default_project_config(), kind="project") == []
        assert validate_config(default_global_config(), kind="global") == []


class TestValidateConfig:
    def test_not_an_object(self):
        assert validate_config([]) == ["Configuration must be a JSON object"]

    def test_required_fields(self):
        assert validate_config({}, kind="project") == [
            "Missing required field: version",
            "Missing required field: projectName",
        ]
        assert validate_config({}, kind="global") == ["Missing required field: version"]

    def test_permissions_shape(self):
        assert validate_config({"version": "1", "permissions": []}, kind="global") == [
            "permissions must be an object"
        ]
        assert validate_config({"version": "1", "permissions": {"allow": "x"}}, kind="global") == [
            "permissions.allow must be an array"
        ]

    def test_permission_rules_must_be_strings(self):
        errors = validate_config({"version": "1", "permissions": {"deny": [1]}}, kind="global")
        assert len(errors) == 1
        assert errors[0].startswith("permissions.deny.0:")

    @pytest.mark.parametrize("kind", ["global", "project"])
    def test_valid(self, kind):
        config = {"version": "1.0.0", "projectName": "x", "permissions": {"allow": ["a"], "deny": []}}
        assert validate_config(config, kind=kind) == []
