"""Document view widget: the content host."""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Callable

from markdown_it import MarkdownIt
from rich.syntax import Syntax
from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import Markdown, OptionList, Static
from textual.widgets.option_list import Option

from ..channel import ChannelEndpoint, Messages
from ..content import (
    FileCache,
    LoadedDocument,
    RenderingOptions,
    is_web_url,
    load_document,
    resolve_anchor,
)

logger = logging.getLogger(__name__)

TITLE = "Markdown Viewer"


def build_parser_factory(options: RenderingOptions) -> Callable[[], MarkdownIt]:
    """Markdown parser honouring the line break and typography options."""

    def factory() -> MarkdownIt:
        parser = MarkdownIt(
            "gfm-like",
            options_update={
                "breaks": options.line_breaks_enabled,
                "typographer": options.typography_enabled,
            },
        )
        if options.typography_enabled:
            parser.enable(["replacements", "smartquotes"])
        return parser

    return factory


def split_link(href: str) -> tuple[str, str | None]:
    """Split a link into document part and internal target."""
    path, sep, target = href.partition("#")
    return path, (f"#{target}" if sep else None)


def opening_position(
    file: dict, find_anchor: Callable[[str], float | None]
) -> tuple[float, float | None, bool]:
    """Where a freshly opened file is shown.

    Returns the scroll offset, the anchor offset (if the internal target
    was used) and whether the internal target was found. A stored scroll
    position, including 0, wins over the internal target.
    """
    scroll_position = file.get("scrollPosition")
    internal_target = file.get("internalTarget")
    if scroll_position is not None:
        return scroll_position, None, True
    if internal_target:
        anchor_offset = find_anchor(internal_target)
        if anchor_offset is None:
            return 0, None, False
        return anchor_offset, anchor_offset, True
    return 0, None, True


class DocumentView(Vertical):
    """Renders documents on request of the control host.

    Talks to the rest of the application only through its channel endpoint.
    """

    BINDINGS = [
        Binding("ctrl+u", "toggle_raw_view", "Raw Text"),
        Binding("N", "open_in_new_window", "New Window", show=False),
    ]

    DEFAULT_CSS = """
    DocumentView {
        width: 1fr;
        height: 1fr;
    }

    DocumentView > #document-header {
        background: $primary-background;
        color: $success;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    DocumentView > #document-body {
        height: 1fr;
    }

    DocumentView #document-toc {
        width: 30;
        height: 1fr;
        border: solid $accent;
        display: none;
    }

    DocumentView #document-toc.visible {
        display: block;
    }

    DocumentView #document-scroll {
        height: 1fr;
        width: 1fr;
    }

    DocumentView #document-scroll:focus {
        border: solid $accent;
    }

    DocumentView Markdown {
        padding: 0 1;
    }

    DocumentView #raw-text {
        padding: 0 1;
        display: none;
    }
    """

    def __init__(self, endpoint: ChannelEndpoint, version: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._endpoint = endpoint
        self._version = version
        self._cache = FileCache(max_size=10)
        self._options = RenderingOptions()
        self._document: LoadedDocument | None = None
        self._path: Path | None = None
        self._last_anchor: str | None = None
        self._raw_view_enabled = True
        self._raw_view_visible = False
        self._zoom = 1.0

    def compose(self) -> ComposeResult:
        yield Static(TITLE, id="document-header")
        with Horizontal(id="document-body"):
            yield OptionList(id="document-toc")
            with VerticalScroll(id="document-scroll"):
                yield Markdown(
                    id="document-content",
                    open_links=False,
                    parser_factory=build_parser_factory(self._options),
                )
                yield Static(id="raw-text")

    def on_mount(self) -> None:
        endpoint = self._endpoint
        endpoint.on(Messages.FILE_OPEN, self._on_file_open)
        endpoint.on(Messages.PREPARE_RELOAD, self._on_prepare_reload)
        endpoint.on(Messages.RESTORE_POSITION, self._on_restore_position)
        endpoint.on(Messages.CHANGE_ZOOM, self._on_change_zoom)
        endpoint.on(Messages.CHANGE_RENDERING_OPTIONS, self._on_change_rendering_options)
        endpoint.on(Messages.CHANGE_TOC_VISIBILITY, self._on_change_toc_visibility)
        endpoint.on(Messages.ENABLE_RAW_VIEW, lambda: self._set_raw_view_enabled(True))
        endpoint.on(Messages.DISABLE_RAW_VIEW, lambda: self._set_raw_view_enabled(False))
        self.run_worker(endpoint.serve(), name="content-channel", group="channel")
        endpoint.send(Messages.FINISH_LOAD)

    @property
    def scroll_view(self) -> VerticalScroll:
        return self.query_one("#document-scroll", VerticalScroll)

    @property
    def markdown_widget(self) -> Markdown:
        return self.query_one("#document-content", Markdown)

    @property
    def scroll_offset(self) -> float:
        return self.scroll_view.scroll_y

    def get_current_file(self) -> Path | None:
        return self._path

    async def _refreshed(self) -> None:
        """Wait until pending layout has been applied."""
        future = asyncio.get_running_loop().create_future()
        self.call_after_refresh(lambda: future.done() or future.set_result(None))
        await future

    def _scroll_to(self, position: float) -> None:
        self.scroll_view.scroll_to(y=position, animate=False)

    def _set_title(self, prefix: str) -> None:
        title = Text(prefix, style="bold")
        title.append(f" - {TITLE} {self._version}".rstrip(), style="default")
        if self._zoom != 1.0:
            title.append(f"  [{round(self._zoom * 100)}%]", style="dim")
        self.query_one("#document-header", Static).update(title)

    # Handlers for control host messages

    async def _on_file_open(self, file: dict) -> None:
        path = Path(file["path"])
        internal_target = file.get("internalTarget")
        self._path = path
        self._last_anchor = None

        try:
            document = load_document(path, file.get("encoding"), self._options, self._cache)
        except (OSError, LookupError) as e:
            logger.error("Cannot open %s: %s", path, e)
            self._document = None
            await self.markdown_widget.update(f"*Error reading file: {e}*")
            self._set_title(f"{path} (error)")
            self._endpoint.send(Messages.CONTENT_RENDERED, str(path), None, True)
            return

        if document.detected:
            self._endpoint.send(Messages.CHANGE_ENCODING, str(path), document.encoding)

        self._document = document
        await self.markdown_widget.update(document.markdown)
        self.query_one("#raw-text", Static).update(
            Syntax(document.raw_text, "markdown", word_wrap=True, theme="ansi_dark")
        )
        await self._refreshed()

        position, anchor_offset, anchor_found = opening_position(file, self._anchor_offset)
        self._scroll_to(position)
        title_prefix = str(path)
        if anchor_offset is not None:
            title_prefix += internal_target
        elif not anchor_found:
            title_prefix += f' ("{internal_target}" not found)'
        self._set_title(title_prefix)

        self._endpoint.send(Messages.CONTENT_RENDERED, str(path), anchor_offset, anchor_found)

    def _on_prepare_reload(self, is_file_modification: bool, encoding: str | None) -> None:
        if is_file_modification and self._path is not None:
            self._cache.invalidate(self._path)
        self._endpoint.send(
            Messages.RELOAD_PREPARED, is_file_modification, encoding, self.scroll_offset
        )

    async def _on_change_rendering_options(self, payload: dict) -> None:
        options = RenderingOptions.from_payload(payload)
        parser_changed = (
            options.line_breaks_enabled != self._options.line_breaks_enabled
            or options.typography_enabled != self._options.typography_enabled
        )
        self._options = options
        if parser_changed:
            await self._replace_markdown_widget()
        self._endpoint.send(Messages.RELOAD_PREPARED, False, None, self.scroll_offset)

    async def _replace_markdown_widget(self) -> None:
        old = self.markdown_widget
        await old.remove()
        await self.scroll_view.mount(
            Markdown(
                id="document-content",
                open_links=False,
                parser_factory=build_parser_factory(self._options),
            ),
            before=0,
        )
        self._apply_raw_view()

    def _on_restore_position(self, position: float) -> None:
        self._scroll_to(position)

    def _on_change_zoom(self, zoom_factor: float) -> None:
        self._zoom = zoom_factor
        width = max(30, min(100, round(100 * zoom_factor)))
        self.scroll_view.styles.width = f"{width}%"
        if self._path is not None:
            self._set_title(str(self._path))

    def _on_change_toc_visibility(self, visible: bool) -> None:
        self.query_one("#document-toc", OptionList).set_class(visible, "visible")

    def _set_raw_view_enabled(self, enabled: bool) -> None:
        self._raw_view_enabled = enabled
        if not enabled:
            self._raw_view_visible = False
        self._apply_raw_view()

    def _apply_raw_view(self) -> None:
        self.markdown_widget.display = not self._raw_view_visible
        self.query_one("#raw-text", Static).display = self._raw_view_visible

    # Table of contents

    def _anchor_offset(self, internal_target: str) -> float | None:
        markdown = self.markdown_widget
        table = markdown.table_of_contents or []
        index = resolve_anchor(internal_target, [str(label) for _, label, _ in table])
        if index is None:
            return None
        block_id = table[index][2]
        if block_id is None:
            return None
        try:
            block = markdown.query_one(f"#{block_id}")
        except NoMatches:
            return None
        return float(block.virtual_region.y + markdown.virtual_region.y)

    def on_markdown_table_of_contents_updated(
        self, event: Markdown.TableOfContentsUpdated
    ) -> None:
        toc = self.query_one("#document-toc", OptionList)
        toc.clear_options()
        for level, label, block_id in event.table_of_contents:
            toc.add_option(Option(f"{'  ' * (level - 1)}{label}", id=block_id))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id != "document-toc" or not event.option.id:
            return
        try:
            block = self.markdown_widget.query_one(f"#{event.option.id}")
        except NoMatches:
            return
        self.scroll_view.scroll_to_widget(block, top=True, animate=False)

    # Links

    def on_markdown_link_clicked(self, event: Markdown.LinkClicked) -> None:
        href = event.href
        event.prevent_default()
        event.stop()

        if is_web_url(href):
            webbrowser.open(href)
            return

        link_path, internal_target = split_link(href)
        if not link_path:
            if internal_target is None:
                return
            offset = self._anchor_offset(internal_target)
            if offset is None:
                self.app.notify(f'"{internal_target}" not found', severity="warning")
                return
            self._last_anchor = internal_target
            self._scroll_to(offset)
            return

        if self._path is None:
            return
        target_path = (self._path.parent / link_path).resolve()
        self._endpoint.send(Messages.OPEN_FILE, str(target_path), internal_target)

    # Actions

    def action_toggle_raw_view(self) -> None:
        if not self._raw_view_enabled:
            self.app.notify("Raw text view is not available for this file", severity="warning")
            return
        self._raw_view_visible = not self._raw_view_visible
        self._apply_raw_view()

    def action_open_in_new_window(self) -> None:
        if self._last_anchor is not None:
            self._endpoint.send(Messages.OPEN_INTERNAL_IN_NEW_WINDOW, self._last_anchor)
        elif self._path is not None:
            self._endpoint.send(Messages.OPEN_FILE_IN_NEW_WINDOW, str(self._path))
