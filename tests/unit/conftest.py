"""
Pytest configuration for unit tests.

Every test runs against a throwaway global install: MUADDIB_HOME,
CLAUDE_CONFIG_DIR and MUADDIB_PACKAGE_ROOT point into ``tmp_path`` so nothing
touches the real home directory.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point all global directories at temporary locations."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("MUADDIB_HOME", str(home / ".muaddib"))
    monkeypatch.setenv("CLAUDE_CONFIG_DIR", str(home / ".claude"))
    monkeypatch.setenv("MUADDIB_PACKAGE_ROOT", str(tmp_path / "package"))
    monkeypatch.delenv("MUADDIB_DEBUG", raising=False)
    monkeypatch.delenv("MUADDIB_NONINTERACTIVE", raising=False)
    return home


@pytest.fixture
def muaddib_home(isolated_home) -> Path:
    """An existing (empty) global install directory."""
    path = isolated_home / ".muaddib"
    path.mkdir()
    return path


@pytest.fixture
def package_root(tmp_path) -> Path:
    """A fake package tree with one asset of each kind."""
    root = tmp_path / "package"
    (root / "templates").mkdir(parents=True)
    (root / "templates" / "CLAUDE.md.tmpl").write_text("# ${projectName}\n")
    (root / "scripts").mkdir()
    script = root / "scripts" / "load-context.sh"
    script.write_text("#!/bin/sh\ncat .claude/context.md\n")
    script.chmod(0o644)
    (root / "lib" / "core").mkdir(parents=True)
    (root / "lib" / "core" / "orchestrator.md").write_text("core\n")
    (root / "lib" / "skills").mkdir(parents=True)
    (root / "lib" / "skills" / "SKILL.md").write_text("skill\n")
    return root


@pytest.fixture
def project(tmp_path) -> Path:
    """An initialized project with .claude/ and .muaddib/config.json."""
    root = tmp_path / "project"
    (root / ".claude").mkdir(parents=True)
    (root / ".muaddib").mkdir()
    (root / ".muaddib" / "config.json").write_text(
        json.dumps({"version": "1.0.0", "projectName": "demo", "settings": {"useHooks": True}})
    )
    return root


@pytest.fixture
def write_settings():
    """Return a helper that writes a project's .claude/settings.json."""

    def _write(project_root: Path, data) -> Path:
        path = project_root / ".claude" / "settings.json"
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write
