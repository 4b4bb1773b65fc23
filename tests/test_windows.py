"""Tests for mdviewer.windows module."""

import sys
from pathlib import Path

import pytest

from mdviewer import windows
from mdviewer.windows import WindowUnavailableError, build_window_command, spawn_window


class TestBuildWindowCommand:
    def test_command(self):
        command = build_window_command("kitty --", Path("/docs/a.md"))
        assert command == ["kitty", "--", sys.executable, "-m", "mdviewer", str(Path("/docs/a.md"))]

    def test_target_and_storage_dir(self):
        command = build_window_command(
            "x-terminal-emulator -e",
            "/docs/a.md",
            "#usage",
            storage_dir=Path("/tmp/store"),
        )
        assert command[2:] == [
            sys.executable,
            "-m",
            "mdviewer",
            "--storage-dir",
            str(Path("/tmp/store")),
            "/docs/a.md",
            "#usage",
        ]

    def test_no_terminal(self):
        with pytest.raises(WindowUnavailableError):
            build_window_command("  ", "/docs/a.md")


class TestSpawnWindow:
    def test_does_not_wait(self, monkeypatch):
        started = []

        class FakePopen:
            def __init__(self, command, **kwargs):
                started.append((command, kwargs))

        monkeypatch.setattr(windows.subprocess, "Popen", FakePopen)

        spawn_window("kitty --", "/docs/a.md", "#usage")

        command, kwargs = started[0]
        assert command[-2:] == ["/docs/a.md", "#usage"]
        assert kwargs["start_new_session"] is True
