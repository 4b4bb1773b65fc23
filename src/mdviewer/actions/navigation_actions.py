"""Navigation action handlers for ViewerApp."""

from __future__ import annotations

from pathlib import Path

from ..navigation import InvalidPathError
from ..reload import RequestOutcome
from ..widgets import OpenFileModal
from ..windows import WindowUnavailableError, spawn_window


class NavigationActionsMixin:
    """Mixin providing navigation actions (open, back, forward, refresh, new windows)."""

    def _current_path(self) -> Path | None:
        history = self.context.history
        if not history.has_current():
            return None
        return history.current().file_path

    def navigate_to(self, file_path: Path | str, internal_target: str | None = None) -> bool:
        """Navigate to a document; invalid paths are reported, not raised."""
        try:
            self.context.coordinator.navigate(file_path, internal_target)
        except InvalidPathError as e:
            self.notify(str(e), severity="error")
            return False
        return True

    def action_open(self) -> None:
        """Ask for a document to open."""
        current = self._current_path()
        directory = current.parent if current is not None else Path.cwd()

        def handle_result(result: Path | None) -> None:
            if result is not None:
                self.navigate_to(result)

        self.push_screen(OpenFileModal(directory), handle_result)

    def action_back(self) -> None:
        """Go back in navigation history."""
        if self.context.coordinator.back() is RequestOutcome.AT_BOUNDARY:
            self.notify("Already at the first document", timeout=2)

    def action_forward(self) -> None:
        """Go forward in navigation history."""
        if self.context.coordinator.forward() is RequestOutcome.AT_BOUNDARY:
            self.notify("Already at the last document", timeout=2)

    def action_refresh(self) -> None:
        """Reload the current document from disk."""
        self.context.coordinator.refresh()

    # Requests from the document view

    def _on_open_file(self, path: str, internal_target: str | None = None) -> None:
        self.navigate_to(path, internal_target)

    def _on_open_file_in_new_window(self, path: str) -> None:
        self._spawn_window(Path(path))

    def _on_open_internal_in_new_window(self, internal_target: str) -> None:
        current = self._current_path()
        if current is not None:
            self._spawn_window(current, internal_target)

    def _spawn_window(self, file_path: Path, internal_target: str | None = None) -> None:
        try:
            spawn_window(
                self.config.terminal,
                file_path,
                internal_target,
                self.config.storage_dir,
            )
        except WindowUnavailableError:
            self.notify(
                'Set "terminal" in the configuration to open new windows',
                severity="warning",
            )
        except OSError as e:
            self.notify(f"Failed to open new window: {e}", severity="error")
