"""Unit tests for muaddib_claude/file_store.py.

Tests JSON loading, locked atomic writes with backups, directory listing
and package asset synchronization.
"""

from __future__ import annotations

import json
import os
import stat
from datetime import datetime
from unittest import mock

import pytest

from muaddib_claude.errors import FileStoreError, ValidationError
from muaddib_claude.file_store import (
    AssetDir,
    atomic_write,
    backup_path_for,
    dump_json,
    file_lock,
    is_executable,
    json_escape,
    list_files,
    load_json,
    make_executable,
    read_json,
    sync_package_assets,
    write_json,
)


# ============================================================================
# JSON loading
# ============================================================================


class TestLoadJson:
    def test_missing_file(self, tmp_path):
        assert load_json(tmp_path / "nope.json") == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        assert load_json(path) == {}

    def test_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert load_json(path) == {}

    def test_object(self, tmp_path):
        path = tmp_path / "ok.json"
        path.write_text('{"a": 1}')
        assert load_json(path) == {"a": 1}


class TestReadJson:
    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        with pytest.raises(FileStoreError, match="Invalid JSON"):
            read_json(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileStoreError, match="Cannot read"):
            read_json(tmp_path / "nope.json")

    def test_any_json_value(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert read_json(path) == [1, 2]


class TestSerialization:
    def test_dump_json_format(self):
        assert dump_json({"a": [1]}) == '{\n  "a": [\n    1\n  ]\n}\n'

    def test_dump_json_keeps_unicode(self):
        assert "ü" in dump_json({"name": "Müad'Dib"})

    def test_json_escape(self):
        assert json_escape('say "hi"\n') == 'say \\"hi\\"\\n'


# ============================================================================
# Writes
# ============================================================================


class TestAtomicWrite:
    def test_creates_file_and_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.txt"
        atomic_write(target, "hello")
        assert target.read_text() == "hello"

    def test_new_file_mode(self, tmp_path):
        target = tmp_path / "file.txt"
        atomic_write(target, "x")
        assert stat.S_IMODE(target.stat().st_mode) == 0o644

    def test_keeps_existing_mode(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("old")
        target.chmod(0o600)
        atomic_write(target, "new")
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_original_kept_and_temp_removed_on_failure(self, tmp_path):
        work = tmp_path / "work"
        work.mkdir()
        target = work / "file.txt"
        target.write_text("original")
        with mock.patch("muaddib_claude.file_store.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError, match="boom"):
                atomic_write(target, "new")
        assert target.read_text() == "original"
        assert [p.name for p in work.iterdir()] == ["file.txt"]


class TestFileLock:
    def test_creates_sidecar_lock(self, tmp_path):
        target = tmp_path / "settings.json"
        with file_lock(target):
            assert (tmp_path / "settings.json.lock").exists()

    def test_timeout_raises(self, tmp_path):
        target = tmp_path / "settings.json"
        with mock.patch("muaddib_claude.file_store.LOCK_TIMEOUT_SECONDS", 0), mock.patch(
            "muaddib_claude.file_store.fcntl.flock", side_effect=BlockingIOError
        ):
            with pytest.raises(FileStoreError, match="Timed out"):
                with file_lock(target):
                    pass


class TestWriteJson:
    def test_writes_formatted_json(self, tmp_path):
        target = tmp_path / "settings.json"
        assert write_json(target, {"a": 1}) is None
        assert target.read_text() == '{\n  "a": 1\n}\n'

    def test_backup_of_previous_content(self, tmp_path):
        target = tmp_path / "settings.json"
        target.write_text('{"old": true}')
        backup = write_json(target, {"new": True}, backup=True)
        assert backup is not None
        assert backup.parent == tmp_path
        assert backup.name.startswith("settings.json.")
        assert json.loads(backup.read_text()) == {"old": True}
        assert json.loads(target.read_text()) == {"new": True}

    def test_no_backup_for_new_file(self, tmp_path):
        assert write_json(tmp_path / "settings.json", {}, backup=True) is None

    def test_os_error_wrapped(self, tmp_path):
        with mock.patch("muaddib_claude.file_store.atomic_write", side_effect=PermissionError("denied")):
            with pytest.raises(FileStoreError, match="Failed to write"):
                write_json(tmp_path / "settings.json", {})

    def test_backup_name_format(self, tmp_path):
        path = backup_path_for(tmp_path / "settings.json", datetime(2024, 1, 15, 10, 30, 0))
        assert path.name == "settings.json.2024-01-15T10-30-00"

    def test_backup_name_gets_counter_when_taken(self, tmp_path):
        stamp = datetime(2024, 1, 15, 10, 30, 0)
        (tmp_path / "settings.json.2024-01-15T10-30-00").write_text("{}")
        (tmp_path / "settings.json.2024-01-15T10-30-00-1").write_text("{}")
        path = backup_path_for(tmp_path / "settings.json", stamp)
        assert path.name == "settings.json.2024-01-15T10-30-00-2"

    def test_two_backups_in_same_second_both_kept(self, tmp_path):
        target = tmp_path / "settings.json"
        target.write_text('{"v": 1}')
        stamp = datetime(2024, 1, 15, 10, 30, 0)
        with mock.patch("muaddib_claude.file_store.datetime") as fake_datetime:
            fake_datetime.now.return_value = stamp
            first = write_json(target, {"v": 2}, backup=True)
            second = write_json(target, {"v": 3}, backup=True)

        assert first != second
        assert json.loads(first.read_text()) == {"v": 1}
        assert json.loads(second.read_text()) == {"v": 2}


# ============================================================================
# Directory helpers
# ============================================================================


class TestExecutable:
    def test_make_executable(self, tmp_path):
        script = tmp_path / "a.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o644)
        assert is_executable(script) is False
        make_executable(script)
        assert is_executable(script) is True
        assert os.access(script, os.X_OK)

    def test_directory_is_not_executable_file(self, tmp_path):
        assert is_executable(tmp_path) is False


class TestListFiles:
    @pytest.fixture
    def tree(self, tmp_path):
        (tmp_path / "a.sh").write_text("")
        (tmp_path / "b.txt").write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.SH").write_text("")
        return tmp_path

    def test_flat(self, tree):
        files, limited = list_files(tree)
        assert [f.name for f in files] == ["a.sh", "b.txt"]
        assert limited is False

    def test_recursive_with_extensions(self, tree):
        files, _ = list_files(tree, recursive=True, extensions=[".sh"])
        assert [f.name for f in files] == ["a.sh", "c.SH"]

    def test_limit(self, tree):
        files, limited = list_files(tree, recursive=True, max_files=2)
        assert len(files) == 2
        assert limited is True

    @pytest.mark.parametrize("bad", [0, -1, True, "10"])
    def test_bad_limit(self, tree, bad):
        with pytest.raises(ValidationError):
            list_files(tree, max_files=bad)

    def test_missing_dir(self, tmp_path):
        with pytest.raises(FileStoreError, match="does not exist"):
            list_files(tmp_path / "nope")

    def test_not_a_dir(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(FileStoreError, match="not a directory"):
            list_files(path)


# ============================================================================
# Asset sync
# ============================================================================


class TestSyncPackageAssets:
    def test_copies_and_marks_scripts_executable(self, tmp_path, package_root):
        dest = tmp_path / "global"
        result = sync_package_assets(
            [
                AssetDir("templates", package_root / "templates", dest / "templates"),
                AssetDir("scripts", package_root / "scripts", dest / "scripts", executable_scripts=True),
            ]
        )
        assert len(result.synced) == 2
        assert result.errors == []
        assert (dest / "templates" / "CLAUDE.md.tmpl").exists()
        assert is_executable(dest / "scripts" / "load-context.sh")

    def test_missing_source_skipped(self, tmp_path):
        result = sync_package_assets([AssetDir("skills", tmp_path / "nope", tmp_path / "dest")])
        assert result.synced == []
        assert result.skipped[0].startswith("skills: source not found")

    def test_existing_destination_needs_force(self, tmp_path, package_root):
        dest = tmp_path / "templates"
        dest.mkdir()
        (dest / "CLAUDE.md.tmpl").write_text("old")
        asset = AssetDir("templates", package_root / "templates", dest)

        result = sync_package_assets([asset])
        assert result.skipped and not result.synced
        assert (dest / "CLAUDE.md.tmpl").read_text() == "old"

        result = sync_package_assets([asset], force=True)
        assert result.synced
        assert (dest / "CLAUDE.md.tmpl").read_text() == "# ${projectName}\n"
