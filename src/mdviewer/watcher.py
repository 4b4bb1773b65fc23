"""Watching the current document for modification."""

import logging
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .navigation import LocationHistory, NavigationEvent, ReloadFileModified
from .state_registry import StateRegistry

logger = logging.getLogger(__name__)

UPDATE_INTERVAL = 1.0  # seconds


class FileWatchLoop:
    """Polls the current document's modification time.

    The last seen modification time (the watermark) is kept together with
    the file it was read from and is saved and restored with each location,
    so returning to a document that changed meanwhile reloads it on the
    next tick.
    """

    id = "update-file-time"

    def __init__(
        self,
        history: LocationHistory,
        request: Callable[[NavigationEvent], object],
        registry: StateRegistry | None = None,
        interval: float = UPDATE_INTERVAL,
    ) -> None:
        self._history = history
        self._request = request
        self.interval = interval
        self.watermark: tuple[Path, float] | None = None
        if registry is not None:
            registry.register_provider(self)

    def tick(self) -> bool:
        """Check the current document once.

        Returns True if a reload was requested.
        """
        if not self._history.has_current():
            return False
        file_path = self._history.current().file_path
        try:
            mtime = file_path.stat().st_mtime
        except OSError as e:
            logger.error('Updating file "%s" was aborted with error %s', file_path, e)
            return False

        # Another document (or none yet): take it as the new baseline.
        if self.watermark is None or self.watermark[0] != file_path:
            self.watermark = (file_path, mtime)
            return False
        if mtime == self.watermark[1]:
            return False

        logger.debug("Reloading modified %s", file_path)
        self.watermark = (file_path, mtime)
        self._request(ReloadFileModified())
        return True

    def save(self) -> tuple[Path, float] | None:
        return self.watermark

    def restore(self, value: object | None) -> None:
        if value is not None:
            path, mtime = value
            self.watermark = (Path(path), float(mtime))
            return
        # New document: take its current state as the baseline.
        self.watermark = None
        if self._history.has_current():
            try:
                file_path = self._history.current().file_path
                self.watermark = (file_path, file_path.stat().st_mtime)
            except OSError as e:
                logger.error("Cannot read modification time: %s", e)


class CurrentFileEventHandler(FileSystemEventHandler):
    """Reports changes to one file, debounced."""

    def __init__(
        self,
        file_path: Path,
        on_change: Callable[[], None],
        debounce_seconds: float = 0.2,
    ) -> None:
        super().__init__()
        self.file_path = file_path
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _matches(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = path.decode(errors="replace")
        return Path(path) == self.file_path

    def _schedule(self) -> None:
        with self._lock:
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self.on_change()

    def cancel(self) -> None:
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        dest_path = getattr(event, "dest_path", "")
        if self._matches(event.src_path) or (dest_path and self._matches(dest_path)):
            logger.debug("Filesystem event for %s: %s", self.file_path, event.event_type)
            self._schedule()


class FileWatcher:
    """Watches the directory of the current document for filesystem events.

    Events only prompt an early check; the FileWatchLoop still decides
    whether the document changed.
    """

    def __init__(self, on_change: Callable[[], None]) -> None:
        self.on_change = on_change
        self._observer: Observer | None = None
        self._handler: CurrentFileEventHandler | None = None
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path | None:
        return self._file_path

    def watch(self, file_path: Path) -> None:
        """Follow a (new) current document."""
        if file_path == self._file_path and self._observer is not None:
            return
        self.stop()
        self._file_path = file_path
        self.start()

    def start(self) -> None:
        if self._observer is not None or self._file_path is None:
            return

        self._handler = CurrentFileEventHandler(self._file_path, self.on_change)
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self._file_path.parent), recursive=False)
        self._observer.daemon = True
        self._observer.start()
        logger.info("File watcher started: %s", self._file_path)

    def stop(self) -> None:
        if self._handler is not None:
            self._handler.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=1.0)
        self._observer = None
        self._handler = None

    def __enter__(self) -> "FileWatcher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
