# tests/test_file_browser.py
"""
Tests for directory listing, file walking and opening files.
"""

import subprocess
import sys
from pathlib import Path

import pytest

from fileexp.services import file_browser
from fileexp.services.file_browser import (
    list_directory,
    open_file,
    parse_program_args,
    split_base_name,
    walk_files,
)


class TestSplitBaseName:

    @pytest.mark.parametrize("name,expected", [
        ("写真.jpg", ("写真", ".jpg")),
        ("archive.tar.gz", ("archive.tar", ".gz")),
        ("README", ("README", "")),
        (".env", (".env", "")),
    ])
    def test_split(self, name, expected):
        assert split_base_name(name) == expected


class TestListing:

    def test_list_directory(self, tmp_path: Path):
        (tmp_path / "資料").mkdir()
        (tmp_path / "a.txt").write_text("x", encoding="utf-8")

        listing = list_directory(tmp_path)

        by_name = {entry.name: entry for entry in listing.entries}
        assert listing.directory == str(tmp_path.resolve())
        assert by_name["資料"].is_directory is True
        assert by_name["a.txt"].is_directory is False
        assert by_name["a.txt"].full_path == str(tmp_path.resolve() / "a.txt")
        assert by_name["a.txt"].to_dict() == {
            "name": "a.txt",
            "isDirectory": False,
            "fullPath": str(tmp_path.resolve() / "a.txt"),
        }

    def test_list_missing_directory_raises(self, tmp_path: Path):
        with pytest.raises(OSError):
            list_directory(tmp_path / "missing")

    def test_walk_files_only_regular_files(self, tmp_path: Path):
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "empty").mkdir()
        (tmp_path / "b" / "2.txt").write_text("", encoding="utf-8")
        (tmp_path / "1.txt").write_text("", encoding="utf-8")

        files = walk_files(tmp_path)

        assert files == [tmp_path / "1.txt", tmp_path / "b" / "2.txt"]


class TestParseProgramArgs:

    def test_none(self):
        assert parse_program_args(None) == []

    def test_list_passthrough(self):
        assert parse_program_args(["-a", "b c"]) == ["-a", "b c"]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX quoting")
    def test_quoted_string(self):
        assert parse_program_args('--title "My File" -n') == ["--title", "My File", "-n"]


class TestOpenFile:

    def test_requires_program(self, tmp_path: Path):
        result = open_file(tmp_path / "a.txt", "  ")
        assert result.ok is False
        assert result.message == "Program path is required."

    def test_spawns_detached(self, tmp_path: Path, monkeypatch):
        spawned = {}

        class _FakePopen:
            def __init__(self, command, **kwargs):
                spawned["command"] = command
                spawned["kwargs"] = kwargs

        monkeypatch.setattr(file_browser.subprocess, "Popen", _FakePopen)
        target = tmp_path / "写真.jpg"

        result = open_file(target, "/usr/bin/viewer", ["--fullscreen"])

        assert result.ok is True
        assert spawned["command"] == ["/usr/bin/viewer", "--fullscreen", str(target)]
        assert spawned["kwargs"]["stdout"] is subprocess.DEVNULL
        assert spawned["kwargs"]["stdin"] is subprocess.DEVNULL

    def test_spawn_failure_is_reported(self, tmp_path: Path, monkeypatch):
        def _raise(*_args, **_kwargs):
            raise FileNotFoundError(2, "No such file or directory")

        monkeypatch.setattr(file_browser.subprocess, "Popen", _raise)

        result = open_file(tmp_path / "a.txt", "/missing/program")

        assert result.ok is False
        assert "No such file or directory" in result.message
