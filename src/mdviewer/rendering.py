"""Markdown render options, control host side."""

import logging
from pathlib import Path

from .channel import ChannelEndpoint, Messages
from .config import Config
from .content import RenderingOptions, file_ending
from .navigation import LocationHistory
from .reload import ReloadCoordinator
from .storage import DocumentStore

logger = logging.getLogger(__name__)


class RenderingFeature:
    """Keeps the content host's render options in line with the settings.

    Registered as a state provider: after every navigation the options of
    the new document are compared with those the content host last got,
    and a render-only reload follows if they differ.
    """

    id = "update-file-specific-document-rendering"

    def __init__(
        self,
        config: Config,
        store: DocumentStore,
        coordinator: ReloadCoordinator,
        history: LocationHistory,
        endpoint: ChannelEndpoint,
    ) -> None:
        self.config = config
        self.store = store
        self.coordinator = coordinator
        self.history = history
        self.endpoint = endpoint
        self._sent: RenderingOptions | None = None
        coordinator.set_options_provider(self.payload_for)

    def is_markdown_file_type(self, path: Path) -> bool:
        return file_ending(path) in self.config.md_file_types

    def options_for(self, path: Path) -> RenderingOptions:
        return RenderingOptions(
            line_breaks_enabled=self.config.line_breaks_enabled,
            typography_enabled=self.config.typography_enabled,
            emojis_enabled=self.config.emojis_enabled,
            render_as_markdown=(
                self.store.load(path).render_as_markdown or self.is_markdown_file_type(path)
            ),
        )

    def payload_for(self, path: Path) -> dict:
        """Options for a document, remembered as sent to the content host."""
        options = self.options_for(path)
        self._sent = options
        return options.to_payload()

    def send_initial(self, path: Path | None) -> None:
        """Push options before the first document is opened."""
        options = self.options_for(path) if path is not None else RenderingOptions(
            line_breaks_enabled=self.config.line_breaks_enabled,
            typography_enabled=self.config.typography_enabled,
            emojis_enabled=self.config.emojis_enabled,
        )
        self._sent = options
        self.endpoint.send(Messages.CHANGE_RENDERING_OPTIONS, options.to_payload())

    def _current_path(self) -> Path | None:
        if not self.history.has_current():
            return None
        return self.history.current().file_path

    def _changed(self) -> None:
        if self._current_path() is not None:
            self.coordinator.render_options_changed()

    def switch_line_breaks(self) -> bool:
        self.config.line_breaks_enabled = not self.config.line_breaks_enabled
        self._changed()
        return self.config.line_breaks_enabled

    def switch_typography(self) -> bool:
        self.config.typography_enabled = not self.config.typography_enabled
        self._changed()
        return self.config.typography_enabled

    def switch_emojis(self) -> bool:
        self.config.emojis_enabled = not self.config.emojis_enabled
        self._changed()
        return self.config.emojis_enabled

    def switch_render_file_as_markdown(self, path: Path) -> bool:
        settings = self.store.load(path)
        self.store.update(path, render_as_markdown=not settings.render_as_markdown)
        self._changed()
        return not settings.render_as_markdown

    def switch_render_file_type_as_markdown(self, path: Path) -> bool:
        ending = file_ending(path)
        if self.is_markdown_file_type(path):
            self.config.md_file_types = [t for t in self.config.md_file_types if t != ending]
            enabled = False
        else:
            self.config.md_file_types = [*self.config.md_file_types, ending]
            enabled = True
        self._changed()
        return enabled

    # State provider

    def save(self) -> None:
        return None

    def restore(self, value: object | None) -> None:
        path = self._current_path()
        if path is None:
            return
        options = self.options_for(path)
        self.endpoint.send(
            Messages.ENABLE_RAW_VIEW if options.render_as_markdown else Messages.DISABLE_RAW_VIEW
        )
        if options != self._sent:
            logger.debug("Render options differ for %s", path)
            self.coordinator.render_options_changed()
