"""Unit tests for the update command and muaddib_claude.updater.

Project mode is exercised end to end against a temporary project; global
mode against a fake package tree and a temporary MUADDIB_HOME.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import click.testing
import pytest

from muaddib_claude.backups import find_backups
from muaddib_claude.cli import cli
from muaddib_claude.constants import DEFAULT_MAX_BACKUPS
from muaddib_claude.errors import FileStoreError, NotInstalledError
from muaddib_claude.file_store import is_executable
from muaddib_claude.paths import get_project_paths
from muaddib_claude.updater import (
    backup_global_dir,
    global_assets,
    project_template_data,
    update_project_settings,
    update_settings_file,
)


@pytest.fixture()
def runner() -> click.testing.CliRunner:
    return click.testing.CliRunner()


def _read(path):
    return json.loads(path.read_text())


def _update_project(runner, project, *extra):
    return runner.invoke(cli, ["update", "--project", "--project-dir", str(project), "--yes", *extra])


# ---------------------------------------------------------------------------
# updater functions
# ---------------------------------------------------------------------------


class TestUpdateSettingsFile:
    def test_creates_missing_file(self, tmp_path):
        path = tmp_path / "settings.json"
        update = update_settings_file(path, {"permissions": {"allow": ["a"]}})
        assert update.created is True
        assert update.changed is True
        assert update.backup is None
        assert _read(path) == {"permissions": {"allow": ["a"]}}

    def test_unchanged_file_not_rewritten(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"permissions": {"allow": ["a"]}}')
        update = update_settings_file(path, {"permissions": {"allow": ["a"]}})
        assert update.changed is False
        assert path.read_text() == '{"permissions": {"allow": ["a"]}}'

    def test_dry_run_does_not_write(self, tmp_path):
        path = tmp_path / "settings.json"
        update = update_settings_file(path, {"permissions": {"allow": ["a"]}}, dry_run=True)
        assert update.changed is True
        assert not path.exists()

    def test_invalid_existing_json_raises(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{oops")
        with pytest.raises(FileStoreError):
            update_settings_file(path, {})


class TestProjectTemplateData:
    def test_use_hooks_flattened_from_settings(self):
        data = project_template_data({"projectName": "x", "settings": {"useHooks": False}})
        assert data["useHooks"] is False
        assert data["projectName"] == "x"
        assert data["updated"]


class TestUpdateProjectSettings:
    def test_requires_claude_dir(self, tmp_path):
        with pytest.raises(NotInstalledError):
            update_project_settings(get_project_paths(tmp_path))

    def test_rotates_settings_backups(self, project, write_settings):
        write_settings(project, {"model": "opus"})
        for day in range(1, DEFAULT_MAX_BACKUPS + 3):
            (project / ".claude" / f"settings.json.2020-01-{day:02d}T00-00-00").write_text("{}")
        (project / ".claude" / "context.md.bak").write_text("keep")

        update_project_settings(get_project_paths(project))

        assert len(find_backups(project / ".claude", "settings.json")) == DEFAULT_MAX_BACKUPS
        assert (project / ".claude" / "context.md.bak").exists()


class TestGlobalHelpers:
    def test_global_assets_selection(self, package_root):
        names = [a.name for a in global_assets(templates=True, scripts=False, lib=False, skills=False)]
        assert names == ["templates"]
        assert [a.name for a in global_assets()] == ["templates", "scripts", "lib", "skills"]

    def test_backup_requires_install(self):
        with pytest.raises(NotInstalledError):
            backup_global_dir()

    def test_backup_copies_directory(self, muaddib_home):
        (muaddib_home / "config.json").write_text("{}")
        backup = backup_global_dir()
        assert backup.parent == muaddib_home.parent
        assert backup.name.startswith(".muaddib.backup.")
        assert (backup / "config.json").exists()


# ---------------------------------------------------------------------------
# update --project
# ---------------------------------------------------------------------------


class TestUpdateProjectCommand:
    def test_creates_settings_when_missing(self, runner, project, isolated_home):
        result = _update_project(runner, project)
        assert result.exit_code == 0, result.output
        settings = _read(project / ".claude" / "settings.json")
        bash = settings["hooks"]["PreToolUse"][0]
        assert bash["hooks"][0]["command"] == f"{isolated_home / '.muaddib' / 'scripts'}/validate-bash-command.sh"
        assert "Created: .claude/settings.json" in result.output

    def test_preserves_customizations(self, runner, project, write_settings):
        path = write_settings(
            project,
            {
                "model": "opus",
                "hooks": {"PreToolUse": [{"matcher": "Bash", "hooks": [{"type": "command", "command": "mine.sh"}]}]},
                "permissions": {"allow": ["Bash(make:*)"], "defaultMode": "plan"},
            },
        )
        result = _update_project(runner, project)
        assert result.exit_code == 0, result.output

        settings = _read(path)
        assert settings["model"] == "opus"
        assert settings["permissions"]["defaultMode"] == "plan"
        assert settings["permissions"]["allow"][0] == "Bash(make:*)"
        bash_entries = [e for e in settings["hooks"]["PreToolUse"] if e["matcher"] == "Bash"]
        assert len(bash_entries) == 1
        assert bash_entries[0]["hooks"][0]["command"] == "mine.sh"
        assert len(bash_entries[0]["hooks"]) == 2
        assert "Updated: .claude/settings.json" in result.output

    def test_backup_written(self, runner, project, write_settings):
        write_settings(project, {"model": "opus"})
        _update_project(runner, project)
        backups = find_backups(project / ".claude", "settings.json")
        assert len(backups) == 1
        assert _read(backups[0]) == {"model": "opus"}

    def test_no_backup_flag(self, runner, project, write_settings):
        write_settings(project, {"model": "opus"})
        result = _update_project(runner, project, "--no-backup")
        assert result.exit_code == 0
        assert find_backups(project / ".claude") == []
        assert find_backups(project / ".muaddib") == []

    def test_second_run_is_unchanged(self, runner, project):
        _update_project(runner, project)
        before = (project / ".claude" / "settings.json").read_text()
        result = _update_project(runner, project)
        assert result.exit_code == 0
        assert "Unchanged: .claude/settings.json" in result.output
        assert (project / ".claude" / "settings.json").read_text() == before

    def test_stamps_project_config(self, runner, project):
        _update_project(runner, project)
        config = _read(project / ".muaddib" / "config.json")
        assert config["projectName"] == "demo"
        assert config["updated"]

    def test_hooks_disabled_in_project_config(self, runner, project):
        (project / ".muaddib" / "config.json").write_text(
            json.dumps({"version": "1.0.0", "projectName": "demo", "settings": {"useHooks": False}})
        )
        _update_project(runner, project)
        assert "hooks" not in _read(project / ".claude" / "settings.json")

    def test_warns_about_unmergeable_locations(self, runner, project, write_settings):
        path = write_settings(project, {"hooks": {"PreToolUse": {"custom": True}}})
        result = _update_project(runner, project)
        assert result.exit_code == 0
        assert "Kept existing value at hooks.PreToolUse" in result.output
        assert _read(path)["hooks"]["PreToolUse"] == {"custom": True}

    def test_invalid_settings_json_left_alone(self, runner, project):
        path = project / ".claude" / "settings.json"
        path.write_text("{broken")
        result = _update_project(runner, project)
        assert result.exit_code == 0
        assert "Could not update settings.json" in result.output
        assert path.read_text() == "{broken"

    def test_dry_run(self, runner, project):
        config_before = (project / ".muaddib" / "config.json").read_text()
        result = _update_project(runner, project, "--dry-run")
        assert result.exit_code == 0
        assert '"PreToolUse"' in result.output
        assert not (project / ".claude" / "settings.json").exists()
        assert (project / ".muaddib" / "config.json").read_text() == config_before

    def test_missing_project_fails(self, runner, tmp_path):
        result = _update_project(runner, tmp_path)
        assert result.exit_code == 1
        assert "Update failed" in result.output

    def test_confirmation_declined(self, runner, project):
        result = runner.invoke(cli, ["update", "--project", "--project-dir", str(project)], input="n\n")
        assert result.exit_code == 0
        assert "Update cancelled." in result.output
        assert not (project / ".claude" / "settings.json").exists()

    def test_noninteractive_skips_prompt(self, runner, project, monkeypatch):
        monkeypatch.setenv("MUADDIB_NONINTERACTIVE", "1")
        result = runner.invoke(cli, ["update", "--project", "--project-dir", str(project)])
        assert result.exit_code == 0
        assert (project / ".claude" / "settings.json").exists()

    def test_uses_installed_template(self, runner, project, muaddib_home):
        templates = muaddib_home / "templates"
        templates.mkdir()
        (templates / "settings.json").write_text('{"permissions": {"allow": ["Bash(${projectName}:*)"]}}')
        _update_project(runner, project)
        assert _read(project / ".claude" / "settings.json") == {"permissions": {"allow": ["Bash(demo:*)"]}}


# ---------------------------------------------------------------------------
# update --global
# ---------------------------------------------------------------------------


class TestUpdateGlobalCommand:
    def test_not_installed(self, runner, package_root):
        result = runner.invoke(cli, ["update", "--global"])
        assert result.exit_code == 1
        assert "Update failed" in result.output
        assert "not installed" in result.output

    def test_syncs_all_assets_with_backup(self, runner, package_root, muaddib_home, isolated_home):
        (muaddib_home / "templates").mkdir()
        (muaddib_home / "templates" / "CLAUDE.md.tmpl").write_text("stale")

        result = runner.invoke(cli, ["update"])
        assert result.exit_code == 0, result.output

        assert (muaddib_home / "templates" / "CLAUDE.md.tmpl").read_text() == "# ${projectName}\n"
        assert is_executable(muaddib_home / "scripts" / "load-context.sh")
        assert (muaddib_home / "lib" / "core" / "orchestrator.md").exists()
        assert (muaddib_home / "skills" / "SKILL.md").exists()
        backups = [p for p in isolated_home.iterdir() if p.name.startswith(".muaddib.backup.")]
        assert len(backups) == 1
        assert (backups[0] / "templates" / "CLAUDE.md.tmpl").read_text() == "stale"
        assert "Global update complete!" in result.output

    def test_no_backup(self, runner, package_root, muaddib_home, isolated_home):
        result = runner.invoke(cli, ["update", "--no-backup"])
        assert result.exit_code == 0
        assert not [p for p in isolated_home.iterdir() if p.name.startswith(".muaddib.backup.")]

    def test_templates_only(self, runner, package_root, muaddib_home):
        result = runner.invoke(cli, ["update", "--templates-only", "--no-backup"])
        assert result.exit_code == 0
        assert (muaddib_home / "templates").is_dir()
        assert not (muaddib_home / "scripts").exists()
        assert not (muaddib_home / "lib").exists()

    def test_scripts_only(self, runner, package_root, muaddib_home):
        result = runner.invoke(cli, ["update", "--scripts-only", "--no-backup"])
        assert result.exit_code == 0
        assert (muaddib_home / "scripts").is_dir()
        assert not (muaddib_home / "templates").exists()

    def test_exclusive_flags(self, runner, muaddib_home):
        result = runner.invoke(cli, ["update", "--templates-only", "--scripts-only"])
        assert result.exit_code != 0
        assert "mutually exclusive" in result.output

    def test_dry_run_changes_nothing(self, runner, package_root, muaddib_home, isolated_home):
        result = runner.invoke(cli, ["update", "--dry-run"])
        assert result.exit_code == 0
        assert "Would update the following components" in result.output
        assert list(muaddib_home.iterdir()) == []
        assert not [p for p in isolated_home.iterdir() if p.name.startswith(".muaddib.backup.")]

    def test_missing_sources_reported(self, runner, muaddib_home):
        result = runner.invoke(cli, ["update", "--no-backup"])
        assert result.exit_code == 0
        assert "Nothing to update" in result.output

    def test_copy_error_reported(self, runner, package_root, muaddib_home):
        with patch("muaddib_claude.file_store.shutil.copytree", side_effect=OSError("disk full")):
            result = runner.invoke(cli, ["update", "--no-backup"])
        assert result.exit_code == 0
        assert "copy failed" in result.output
        assert "Update completed with issues." in result.output
