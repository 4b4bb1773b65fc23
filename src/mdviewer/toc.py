"""Table of contents visibility, control host side."""

from pathlib import Path

from .channel import ChannelEndpoint, Messages
from .config import Config
from .navigation import LocationHistory
from .storage import DocumentStore


class TocFeature:
    """Shows the table of contents for all documents or for single ones."""

    id = "toc"

    def __init__(
        self,
        config: Config,
        store: DocumentStore,
        endpoint: ChannelEndpoint,
        history: LocationHistory,
    ) -> None:
        self.config = config
        self.store = store
        self.endpoint = endpoint
        self.history = history

    def _current_path(self) -> Path | None:
        if not self.history.has_current():
            return None
        return self.history.current().file_path

    def is_visible(self, path: Path | None = None) -> bool:
        path = path or self._current_path()
        if self.config.toc_visible:
            return True
        return path is not None and self.store.load(path).toc_visible

    def notify(self) -> None:
        self.endpoint.send(Messages.CHANGE_TOC_VISIBILITY, self.is_visible())

    def switch_for_application(self) -> bool:
        self.config.toc_visible = not self.config.toc_visible
        self.notify()
        return self.config.toc_visible

    def switch_for_document(self) -> bool:
        path = self._current_path()
        if path is None:
            return False
        visible = not self.store.load(path).toc_visible
        self.store.update(path, toc_visible=visible)
        self.notify()
        return visible

    # State provider

    def save(self) -> bool:
        return self.is_visible()

    def restore(self, value: object | None) -> None:
        self.notify()
