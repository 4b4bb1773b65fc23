"""Opening documents in sibling windows."""

import logging
import shlex
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class WindowUnavailableError(Exception):
    """No terminal command is configured for new windows."""


def build_window_command(
    terminal: str,
    file_path: Path | str,
    internal_target: str | None = None,
    storage_dir: Path | None = None,
) -> list[str]:
    """Command line starting a new viewer inside a new terminal window.

    ``terminal`` is the configured prefix, e.g. ``"kitty --"`` or
    ``"gnome-terminal --"``.
    """
    if not terminal.strip():
        raise WindowUnavailableError("No terminal command configured")

    command = shlex.split(terminal) + [sys.executable, "-m", "mdviewer"]
    if storage_dir is not None:
        command += ["--storage-dir", str(storage_dir)]
    command.append(str(file_path))
    if internal_target:
        command.append(internal_target)
    return command


def spawn_window(
    terminal: str,
    file_path: Path | str,
    internal_target: str | None = None,
    storage_dir: Path | None = None,
) -> subprocess.Popen:
    """Start a sibling viewer process and return without waiting for it."""
    command = build_window_command(terminal, file_path, internal_target, storage_dir)
    logger.info("Opening new window: %s", command)
    return subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
