"""Shared fixtures for mdviewer tests."""

import asyncio
import logging

import pytest

from mdviewer.channel import Channel, ChannelEndpoint, Messages
from mdviewer.config import Config
from mdviewer.navigation import LocationHistory
from mdviewer.reload import ReloadCoordinator
from mdviewer.state_registry import StateRegistry
from mdviewer.storage import DocumentStore
from mdviewer.widgets.document_view import opening_position


class FakeContentHost:
    """Scripted content host answering the control host like DocumentView does."""

    def __init__(self, endpoint: ChannelEndpoint, report_encoding: str | None = None) -> None:
        self.endpoint = endpoint
        self.report_encoding = report_encoding
        self.scroll = 0.0
        self.anchors: dict[str, dict[str, float]] = {}
        self.hold = False
        self.held: list[dict] = []
        self.opened: list[dict] = []
        self.rendered_at: list[float] = []
        self.received: list[tuple[str, tuple]] = []

        for message in (
            Messages.FILE_OPEN,
            Messages.PREPARE_RELOAD,
            Messages.CHANGE_RENDERING_OPTIONS,
            Messages.RESTORE_POSITION,
            Messages.CHANGE_ZOOM,
            Messages.CHANGE_TOC_VISIBILITY,
            Messages.ENABLE_RAW_VIEW,
            Messages.DISABLE_RAW_VIEW,
        ):
            endpoint.on(message, self._recorder(message))

    def _recorder(self, message: str):
        handler = getattr(self, f"_on_{message}", None)

        def record(*payload):
            self.received.append((message, payload))
            if handler is not None:
                handler(*payload)

        return record

    def names(self) -> list[str]:
        return [name for name, _ in self.received]

    def _on_fileOpen(self, file: dict) -> None:
        self.opened.append(file)
        if self.hold:
            self.held.append(file)
            return
        self._render(file)

    def _render(self, file: dict) -> None:
        path = file["path"]
        if file["encoding"] is None and self.report_encoding:
            self.endpoint.send(Messages.CHANGE_ENCODING, path, self.report_encoding)

        anchors = self.anchors.get(path, {})
        self.scroll, anchor, found = opening_position(file, anchors.get)
        self.rendered_at.append(self.scroll)
        self.endpoint.send(Messages.CONTENT_RENDERED, path, anchor, found)

    def release(self) -> None:
        """Stop holding fileOpen and render everything held so far."""
        self.hold = False
        held, self.held = self.held, []
        for file in held:
            self._render(file)

    def _on_prepareReload(self, is_file_modification: bool, encoding: str | None) -> None:
        self.endpoint.send(Messages.RELOAD_PREPARED, is_file_modification, encoding, self.scroll)

    def _on_changeRenderingOptions(self, payload: dict) -> None:
        self.endpoint.send(Messages.RELOAD_PREPARED, False, None, self.scroll)

    def _on_restorePosition(self, position: float) -> None:
        self.scroll = position


@pytest.fixture
def docs(tmp_path):
    """Create sample documents in a temp directory."""
    directory = tmp_path / "docs"
    directory.mkdir()

    (directory / "a.md").write_text("# A\n\n## Usage\n\nSee [b](b.md).\n", encoding="utf-8")
    (directory / "b.md").write_text("# B\n\nBack to [a](a.md#usage).\n", encoding="utf-8")
    (directory / "c.md").write_text("# C\n", encoding="utf-8")
    (directory / "notes.txt").write_text("plain text\n", encoding="utf-8")
    (directory / "latin1.md").write_bytes("# Caf\xe9\n".encode("latin-1"))
    (directory / "sub").mkdir()

    return directory


@pytest.fixture
def config(tmp_path):
    """Create a Config writing into the temp directory."""
    return Config(
        data_directory=tmp_path / "data",
        storage_dir=tmp_path / "storage",
    )


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "data" / "documents.json")


@pytest.fixture
def channel():
    return Channel()


@pytest.fixture
def settle(channel):
    """Deliver all messages on the channel fixture."""

    def run() -> int:
        return asyncio.run(channel.settle())

    return run


@pytest.fixture
def host(channel):
    return FakeContentHost(channel.content)


@pytest.fixture
def history():
    return LocationHistory()


@pytest.fixture
def registry():
    return StateRegistry()


@pytest.fixture
def coordinator(history, registry, channel, store):
    return ReloadCoordinator(history, registry, channel.control, encodings=store)


@pytest.fixture
def mdviewer_logger():
    """Restore the package logger after tests that configure it."""
    logger = logging.getLogger("mdviewer")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def make_host():
    """Factory for fake content hosts on other channels."""
    return FakeContentHost
