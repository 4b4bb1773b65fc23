"""Modal dialogs for opening files and choosing encodings."""

from pathlib import Path

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from .. import encoding as encoding_lib


def get_path_completions(partial_path: str, base_directory: Path | None = None) -> list[Path]:
    """Get file and directory completions for a partial path.

    Args:
        partial_path: The partial path to complete
        base_directory: Directory relative paths are completed against

    Returns:
        List of matching paths, directories first
    """
    if not partial_path:
        return []

    expanded = Path(partial_path).expanduser()
    if not expanded.is_absolute() and base_directory is not None:
        expanded = base_directory / expanded

    if partial_path.endswith("/") or partial_path.endswith("\\"):
        parent = expanded
        prefix = ""
    else:
        parent = expanded.parent
        prefix = expanded.name.lower()

    if not parent.is_dir():
        return []

    try:
        matches = [
            p for p in parent.iterdir()
            if p.name.lower().startswith(prefix) and not p.name.startswith(".")
        ]
    except PermissionError:
        return []

    matches.sort(key=lambda p: (not p.is_dir(), p.name.lower()))
    return matches[:20]  # Limit results


class OpenFileModal(ModalScreen[Path | None]):
    """Asks for a document to open, with Tab completion."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = """
    OpenFileModal {
        align: center middle;
    }

    #open-file-container {
        width: 70;
        height: auto;
        max-height: 20;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #open-file-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .input-row {
        height: 3;
    }

    .input-row Input {
        width: 1fr;
    }

    #completion-list {
        height: auto;
        max-height: 8;
        display: none;
        background: $surface-darken-1;
        border: solid $primary-darken-1;
    }

    #completion-list.visible {
        display: block;
    }

    #completion-hint {
        color: $text-muted;
        text-style: italic;
        height: 1;
    }
    """

    def __init__(self, directory: Path | None = None) -> None:
        super().__init__()
        self.directory = directory or Path.cwd()
        self._completion_visible = False

    def compose(self) -> ComposeResult:
        with Vertical(id="open-file-container"):
            yield Static("OPEN FILE", id="open-file-title")
            yield Label("Path (Tab to complete):")
            with Horizontal(classes="input-row"):
                yield Input(
                    value=f"{self.directory}/",
                    id="path-input",
                    placeholder="Enter file path",
                )
            yield Static("Tab: complete, ↑↓: select, Enter: open", id="completion-hint")
            yield OptionList(id="completion-list")

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    def action_cancel(self) -> None:
        if self._completion_visible:
            self._hide_completions()
            self.query_one("#path-input", Input).focus()
        else:
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self._completion_visible:
            self._select_current_completion()
            return
        self._open()

    def on_key(self, event) -> None:
        """Handle key events for tab completion."""
        path_input = self.query_one("#path-input", Input)
        completion_list = self.query_one("#completion-list", OptionList)

        if self.focused not in (path_input, completion_list):
            return

        if event.key == "tab":
            event.stop()
            event.prevent_default()
            if self._completion_visible:
                if completion_list.option_count == 1:
                    self._select_current_completion()
                else:
                    if completion_list.highlighted is not None:
                        next_idx = (completion_list.highlighted + 1) % completion_list.option_count
                        completion_list.highlighted = next_idx
                    completion_list.focus()
            else:
                self._show_completions()

        elif event.key == "down" and self._completion_visible:
            event.stop()
            event.prevent_default()
            completion_list.focus()
            if completion_list.highlighted is None and completion_list.option_count > 0:
                completion_list.highlighted = 0

        elif event.key == "up" and self._completion_visible:
            event.stop()
            event.prevent_default()
            completion_list.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id == "completion-list":
            self._apply_completion(Path(str(event.option.prompt)))

    def _show_completions(self) -> None:
        path_input = self.query_one("#path-input", Input)
        completion_list = self.query_one("#completion-list", OptionList)

        completions = get_path_completions(path_input.value, self.directory)
        completion_list.clear_options()

        if not completions:
            self.app.notify("No matching files", severity="warning")
            return

        if len(completions) == 1:
            self._apply_completion(completions[0])
            return

        for path in completions:
            completion_list.add_option(Option(str(path)))

        completion_list.add_class("visible")
        completion_list.highlighted = 0
        self._completion_visible = True

    def _hide_completions(self) -> None:
        completion_list = self.query_one("#completion-list", OptionList)
        completion_list.remove_class("visible")
        completion_list.clear_options()
        self._completion_visible = False

    def _select_current_completion(self) -> None:
        completion_list = self.query_one("#completion-list", OptionList)
        if completion_list.highlighted is not None:
            option = completion_list.get_option_at_index(completion_list.highlighted)
            self._apply_completion(Path(str(option.prompt)))

    def _apply_completion(self, path: Path) -> None:
        path_input = self.query_one("#path-input", Input)
        value = str(path)
        # Directories get a trailing slash to encourage further completion
        if path.is_dir() and not value.endswith("/"):
            value += "/"
        path_input.value = value
        path_input.cursor_position = len(value)
        self._hide_completions()
        path_input.focus()

    def _open(self) -> None:
        value = self.query_one("#path-input", Input).value.strip()
        if not value:
            self.app.notify("Path cannot be empty", severity="error")
            return

        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.directory / path

        if not path.exists():
            self.app.notify(f"File does not exist: {path}", severity="error")
            return

        if not path.is_file():
            self.app.notify(f"Not a file: {path}", severity="error")
            return

        self.dismiss(path)


class EncodingModal(ModalScreen[str | None]):
    """Lets the user pick the encoding a document is decoded with."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = """
    EncodingModal {
        align: center middle;
    }

    #encoding-container {
        width: 40;
        height: auto;
        max-height: 24;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #encoding-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #encoding-list {
        height: auto;
        max-height: 18;
    }
    """

    def __init__(self, current: str | None = None) -> None:
        super().__init__()
        self.current = encoding_lib.normalize(current) if current else None

    def compose(self) -> ComposeResult:
        with Vertical(id="encoding-container"):
            yield Static("ENCODING", id="encoding-title")
            yield OptionList(
                *[
                    Option(f"● {name}" if name == self.current else f"  {name}", id=name)
                    for name in encoding_lib.ENCODINGS
                ],
                id="encoding-list",
            )

    def on_mount(self) -> None:
        encoding_list = self.query_one("#encoding-list", OptionList)
        if self.current in encoding_lib.ENCODINGS:
            encoding_list.highlighted = encoding_lib.ENCODINGS.index(self.current)
        encoding_list.focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.dismiss(event.option.id)
