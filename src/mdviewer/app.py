"""Main Textual application for mdviewer: the control host."""

import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.timer import Timer
from textual.widgets import Footer

from . import __version__
from .actions import NavigationActionsMixin, ViewActionsMixin
from .channel import Messages
from .config import Config
from .context import ViewerContext
from .navigation import InvalidPathError
from .widgets import DocumentView

logger = logging.getLogger(__name__)


class ViewerApp(NavigationActionsMixin, ViewActionsMixin, App):
    """mdviewer - Markdown document viewer."""

    TITLE = "Markdown Viewer"

    CSS = """
    #document {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("o", "open", "Open"),
        Binding("backspace", "back", "Back"),
        Binding("alt+left", "back", "Back", show=False),
        Binding("alt+right", "forward", "Forward"),
        Binding("f5", "refresh", "Refresh"),
        Binding("e", "choose_encoding", "Encoding"),
        Binding("c", "toggle_toc_document", "TOC"),
        Binding("C", "toggle_toc_all", "TOC (all)", show=False),
        Binding("plus", "zoom_in", "Zoom In", show=False),
        Binding("minus", "zoom_out", "Zoom Out", show=False),
        Binding("0", "zoom_reset", "Reset Zoom", show=False),
        Binding("t", "cycle_theme", "Theme"),
        Binding("l", "toggle_line_breaks", "Line Breaks", show=False),
        Binding("y", "toggle_typography", "Typography", show=False),
        Binding("j", "toggle_emojis", "Emojis", show=False),
        Binding("m", "toggle_render_file_as_markdown", "As Markdown", show=False),
        Binding("M", "toggle_render_file_type_as_markdown", "Type as Markdown", show=False),
    ]

    def __init__(
        self,
        config: Config,
        file_path: Path | None = None,
        internal_target: str | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        self.context = ViewerContext(config, on_file_event=self._on_file_event)
        self._initial_path = file_path
        self._initial_target = internal_target
        self._watch_timer: Timer | None = None
        self._system_theme = self.theme

    def compose(self) -> ComposeResult:
        yield DocumentView(self.context.channel.content, version=__version__, id="document")
        yield Footer()

    def on_mount(self) -> None:
        """Wire the control host to the channel and start watching."""
        self.context.init()
        endpoint = self.context.endpoint
        endpoint.on(Messages.FINISH_LOAD, self._on_finish_load)
        endpoint.on(Messages.OPEN_FILE, self._on_open_file)
        endpoint.on(Messages.OPEN_FILE_IN_NEW_WINDOW, self._on_open_file_in_new_window)
        endpoint.on(Messages.OPEN_INTERNAL_IN_NEW_WINDOW, self._on_open_internal_in_new_window)
        self.run_worker(endpoint.serve(), name="control-channel", group="channel")

        self.apply_theme()
        self._watch_timer = self.set_interval(self.config.watch.interval, self.context.watch_loop.tick)
        self.query_one("#document-scroll").focus()

    async def on_unmount(self) -> None:
        """Clean up on exit."""
        if self._watch_timer is not None:
            self._watch_timer.stop()
        self.context.shutdown()
        try:
            self.config.save()
        except OSError as e:
            logger.error("Cannot save configuration: %s", e)

    def _on_finish_load(self) -> None:
        """The document view is ready: push settings, then open the first document."""
        path = self._initial_path
        self.context.rendering.send_initial(path.resolve() if path is not None else None)
        self.context.endpoint.send(Messages.CHANGE_ZOOM, self.config.zoom)

        if path is None:
            self.notify("No document given, press o to open one", timeout=5)
            return

        try:
            self.context.coordinator.navigate(path, self._initial_target)
        except InvalidPathError as e:
            logger.error("Error: %s", e)
            self.exit(return_code=1, message=f"Error: {e}")

    def _on_file_event(self) -> None:
        """Called from the watchdog thread when the current document's directory changes."""
        self.call_from_thread(self.context.watch_loop.tick)


def run_app(
    config: Config,
    file_path: Path | None = None,
    internal_target: str | None = None,
) -> int:
    """Run the viewer and return its exit code."""
    app = ViewerApp(config, file_path, internal_target)
    app.run()
    return app.return_code or 0
