"""Per-window navigation context."""

import logging
from pathlib import Path
from typing import Callable

from .channel import Channel, ChannelEndpoint, Messages
from .config import Config
from .navigation import LocationHistory
from .reload import ReloadCoordinator
from .rendering import RenderingFeature
from .state_registry import StateRegistry
from .storage import DocumentStore
from .toc import TocFeature
from .watcher import FileWatchLoop, FileWatcher

logger = logging.getLogger(__name__)


class ViewerContext:
    """Everything one window needs to navigate and stay in sync.

    One instance per window; nothing here is process-wide.
    """

    def __init__(
        self,
        config: Config,
        store: DocumentStore | None = None,
        channel: Channel | None = None,
        on_file_event: Callable[[], None] | None = None,
    ) -> None:
        self.config = config
        self.store = store or DocumentStore(config.get_store_path())
        self.channel = channel or Channel()
        self.history = LocationHistory()
        self.registry = StateRegistry()
        self.coordinator = ReloadCoordinator(
            self.history,
            self.registry,
            self.channel.control,
            encodings=self.store,
        )
        self.watch_loop = FileWatchLoop(
            self.history,
            self.coordinator.request,
            interval=config.watch.interval,
        )
        self.rendering = RenderingFeature(
            config, self.store, self.coordinator, self.history, self.channel.control
        )
        self.toc = TocFeature(config, self.store, self.channel.control, self.history)
        self.file_watcher: FileWatcher | None = None
        if config.watch.use_events and on_file_event is not None:
            self.file_watcher = FileWatcher(on_file_event)
        self._running = False

    @property
    def endpoint(self) -> ChannelEndpoint:
        """The control host's end of the channel."""
        return self.channel.control

    @property
    def running(self) -> bool:
        return self._running

    def init(self) -> None:
        """Wire features into the navigation lifecycle."""
        if self._running:
            return
        self.registry.register_provider(self.watch_loop)
        self.registry.register_provider(self.rendering)
        self.registry.register_provider(self.toc)
        if self.file_watcher is not None:
            self.registry.register("file-events", lambda: None, self._follow_current_file)
        self.coordinator.attach()
        self.endpoint.on(Messages.CHANGE_ENCODING, self.on_change_encoding)
        self._running = True

    def shutdown(self) -> None:
        if not self._running:
            return
        self._running = False
        if self.file_watcher is not None:
            self.file_watcher.stop()
        self.coordinator.reset()
        self.channel.reset()

    def on_change_encoding(self, path: str, encoding: str) -> None:
        """Remember the encoding the content host decoded a document with."""
        file_path = Path(path)
        self.store.set_encoding(file_path, encoding)
        if self.history.has_current() and self.history.current().file_path == file_path:
            self.history.reload_current(encoding=encoding)

    def _follow_current_file(self, value: object | None) -> None:
        if self.file_watcher is not None and self.history.has_current():
            self.file_watcher.watch(self.history.current().file_path)
