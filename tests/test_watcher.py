"""Tests for mdviewer.watcher module."""

import os
import threading

import pytest
from watchdog.events import FileModifiedEvent, FileMovedEvent

from mdviewer.navigation import LocationHistory, ReloadFileModified
from mdviewer.state_registry import StateRegistry
from mdviewer.watcher import CurrentFileEventHandler, FileWatchLoop, FileWatcher


def touch(path, offset=10):
    """Move the modification time of a file forward."""
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + offset))


@pytest.fixture
def watched(docs):
    history = LocationHistory()
    history.navigate((docs / "a.md").resolve())
    requests = []
    loop = FileWatchLoop(history, requests.append)
    return history, loop, requests


class TestFileWatchLoop:
    def test_first_tick_sets_baseline(self, watched, docs):
        _, loop, requests = watched
        assert loop.tick() is False
        assert loop.watermark == ((docs / "a.md").resolve(), (docs / "a.md").stat().st_mtime)
        assert requests == []

    def test_unchanged_file_requests_nothing(self, watched):
        _, loop, requests = watched
        loop.tick()
        assert loop.tick() is False
        assert requests == []

    def test_modification_requests_reload(self, watched, docs):
        _, loop, requests = watched
        loop.tick()
        touch(docs / "a.md")

        assert loop.tick() is True
        assert requests == [ReloadFileModified()]
        assert loop.watermark == ((docs / "a.md").resolve(), (docs / "a.md").stat().st_mtime)

    def test_one_request_per_change(self, watched, docs):
        _, loop, requests = watched
        loop.tick()
        touch(docs / "a.md")
        loop.tick()
        loop.tick()
        assert len(requests) == 1

    def test_missing_file_is_logged(self, watched, docs, caplog):
        _, loop, requests = watched
        loop.tick()
        (docs / "a.md").unlink()

        assert loop.tick() is False
        assert requests == []
        assert "was aborted with error" in caplog.text

    def test_no_document(self):
        requests = []
        loop = FileWatchLoop(LocationHistory(), requests.append)
        assert loop.tick() is False

    def test_save_and_restore(self, watched, docs):
        _, loop, _ = watched
        loop.restore((str(docs / "a.md"), 123))
        assert loop.save() == (docs / "a.md", 123.0)

    def test_restore_stale_watermark_reloads(self, watched, docs):
        _, loop, requests = watched
        loop.restore(((docs / "a.md").resolve(), 1.0))
        assert loop.tick() is True
        assert requests == [ReloadFileModified()]

    def test_restore_none_takes_baseline(self, watched, docs):
        _, loop, requests = watched
        loop.restore(None)
        assert loop.watermark == ((docs / "a.md").resolve(), (docs / "a.md").stat().st_mtime)
        assert loop.tick() is False

    def test_other_document_takes_new_baseline(self, watched, docs):
        history, loop, requests = watched
        touch(docs / "b.md", offset=1000)
        loop.tick()

        history.navigate((docs / "b.md").resolve())

        assert loop.tick() is False
        assert requests == []
        assert loop.watermark == ((docs / "b.md").resolve(), (docs / "b.md").stat().st_mtime)

    def test_watermark_of_other_document_is_not_compared(self, watched, docs):
        _, loop, requests = watched
        loop.restore(((docs / "b.md").resolve(), 1.0))

        assert loop.tick() is False
        assert requests == []

    def test_registers_with_registry(self, docs):
        registry = StateRegistry()
        FileWatchLoop(LocationHistory(), lambda event: None, registry=registry)
        assert "update-file-time" in registry


class TestCurrentFileEventHandler:
    def test_event_for_file_fires(self, docs):
        path = docs / "a.md"
        fired = threading.Event()
        handler = CurrentFileEventHandler(path, fired.set, debounce_seconds=0.01)

        handler.on_any_event(FileModifiedEvent(str(path)))

        assert fired.wait(1.0)

    def test_event_for_other_file_is_ignored(self, docs):
        fired = threading.Event()
        handler = CurrentFileEventHandler(docs / "a.md", fired.set, debounce_seconds=0.01)

        handler.on_any_event(FileModifiedEvent(str(docs / "b.md")))

        assert not fired.wait(0.1)

    def test_move_onto_file_fires(self, docs):
        path = docs / "a.md"
        fired = threading.Event()
        handler = CurrentFileEventHandler(path, fired.set, debounce_seconds=0.01)

        handler.on_any_event(FileMovedEvent(str(docs / "a.md.tmp"), str(path)))

        assert fired.wait(1.0)

    def test_events_are_debounced(self, docs):
        path = docs / "a.md"
        calls = []
        done = threading.Event()

        def on_change():
            calls.append(1)
            done.set()

        handler = CurrentFileEventHandler(path, on_change, debounce_seconds=0.05)
        for _ in range(5):
            handler.on_any_event(FileModifiedEvent(str(path)))

        assert done.wait(1.0)
        assert not threading.Event().wait(0.1)
        assert calls == [1]

    def test_cancel(self, docs):
        path = docs / "a.md"
        fired = threading.Event()
        handler = CurrentFileEventHandler(path, fired.set, debounce_seconds=0.05)

        handler.on_any_event(FileModifiedEvent(str(path)))
        handler.cancel()

        assert not fired.wait(0.2)


class TestFileWatcher:
    def test_watch_starts_and_stops(self, docs):
        watcher = FileWatcher(lambda: None)
        watcher.watch(docs / "a.md")
        try:
            assert watcher.file_path == docs / "a.md"
        finally:
            watcher.stop()

    def test_context_manager_without_file(self):
        with FileWatcher(lambda: None) as watcher:
            assert watcher.file_path is None
