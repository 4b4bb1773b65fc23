"""View action handlers for ViewerApp (zoom, theme, render options, encoding)."""

from __future__ import annotations

from ..channel import Messages
from ..config import ZOOM_DEFAULT, ZOOM_MIN, ZOOM_STEP
from ..widgets import EncodingModal

THEMES = {
    "light": "textual-light",
    "dark": "textual-dark",
}

THEME_CYCLE = ["system", "light", "dark"]


def on_off(enabled: bool) -> str:
    return "on" if enabled else "off"


class ViewActionsMixin:
    """Mixin providing actions that change how documents are shown."""

    def _set_zoom(self, zoom: float) -> None:
        self.config.zoom = round(max(ZOOM_MIN, zoom), 2)
        self.context.endpoint.send(Messages.CHANGE_ZOOM, self.config.zoom)

    def action_zoom_in(self) -> None:
        self._set_zoom(self.config.zoom + ZOOM_STEP)

    def action_zoom_out(self) -> None:
        self._set_zoom(self.config.zoom - ZOOM_STEP)

    def action_zoom_reset(self) -> None:
        self._set_zoom(ZOOM_DEFAULT)

    def apply_theme(self) -> None:
        """Apply the configured theme; "system" keeps Textual's default."""
        theme = THEMES.get(self.config.theme)
        if theme is not None:
            self.theme = theme

    def action_cycle_theme(self) -> None:
        index = THEME_CYCLE.index(self.config.theme)
        self.config.theme = THEME_CYCLE[(index + 1) % len(THEME_CYCLE)]
        if self.config.theme == "system":
            self.theme = self._system_theme
        self.apply_theme()
        self.notify(f"Theme: {self.config.theme}", timeout=2)

    def action_toggle_toc_all(self) -> None:
        visible = self.context.toc.switch_for_application()
        self.notify(f"Table of contents for all documents: {on_off(visible)}", timeout=2)

    def action_toggle_toc_document(self) -> None:
        if self._current_path() is None:
            return
        visible = self.context.toc.switch_for_document()
        self.notify(f"Table of contents for this document: {on_off(visible)}", timeout=2)

    def action_toggle_line_breaks(self) -> None:
        enabled = self.context.rendering.switch_line_breaks()
        self.notify(f"Line breaks: {on_off(enabled)}", timeout=2)

    def action_toggle_typography(self) -> None:
        enabled = self.context.rendering.switch_typography()
        self.notify(f"Typography: {on_off(enabled)}", timeout=2)

    def action_toggle_emojis(self) -> None:
        enabled = self.context.rendering.switch_emojis()
        self.notify(f"Emojis: {on_off(enabled)}", timeout=2)

    def action_toggle_render_file_as_markdown(self) -> None:
        path = self._current_path()
        if path is None:
            return
        enabled = self.context.rendering.switch_render_file_as_markdown(path)
        self.notify(f"Render {path.name} as Markdown: {on_off(enabled)}", timeout=2)

    def action_toggle_render_file_type_as_markdown(self) -> None:
        path = self._current_path()
        if path is None:
            return
        enabled = self.context.rendering.switch_render_file_type_as_markdown(path)
        ending = path.suffix or path.name
        self.notify(f"Render {ending} files as Markdown: {on_off(enabled)}", timeout=2)

    def action_choose_encoding(self) -> None:
        """Ask for the encoding of the current document."""
        if not self.context.history.has_current():
            self.notify("No document open", severity="warning")
            return
        current = self.context.history.current().encoding

        def handle_result(result: str | None) -> None:
            if result is not None and result != current:
                self.context.coordinator.change_encoding(result)

        self.push_screen(EncodingModal(current), handle_result)
