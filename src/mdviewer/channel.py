"""Ordered asynchronous message channel between the control and content hosts."""

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Messages:
    """Message names exchanged over the channel."""

    # control -> content
    FILE_OPEN = "fileOpen"
    PREPARE_RELOAD = "prepareReload"
    RESTORE_POSITION = "restorePosition"
    CHANGE_ZOOM = "changeZoom"
    CHANGE_RENDERING_OPTIONS = "changeRenderingOptions"
    ENABLE_RAW_VIEW = "enableRawView"
    DISABLE_RAW_VIEW = "disableRawView"
    CHANGE_TOC_VISIBILITY = "changeTocVisibility"

    # content -> control
    FINISH_LOAD = "finishLoad"
    RELOAD_PREPARED = "reloadPrepared"
    CONTENT_RENDERED = "contentRendered"
    CHANGE_ENCODING = "changeEncoding"
    OPEN_FILE = "openFile"
    OPEN_FILE_IN_NEW_WINDOW = "openFileInNewWindow"
    OPEN_INTERNAL_IN_NEW_WINDOW = "openInternalInNewWindow"


Handler = Callable[..., Any]


class ChannelEndpoint:
    """One side of a channel.

    Messages sent here land in the peer's inbox and are handed to the
    peer's handler in send order. Nothing returns a value; request/response
    is a pair of distinct message names.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: dict[str, Handler] = {}
        self._inbox: asyncio.Queue[tuple[str, tuple[Any, ...]]] = asyncio.Queue()
        self._peer: "ChannelEndpoint | None" = None

    def connect(self, peer: "ChannelEndpoint") -> None:
        self._peer = peer
        peer._peer = self

    def on(self, message: str, handler: Handler) -> None:
        """Register the handler for a message name, replacing an earlier one."""
        self._handlers[message] = handler

    def off(self, message: str) -> None:
        self._handlers.pop(message, None)

    def reset(self) -> None:
        """Forget all handlers and undelivered messages."""
        self._handlers.clear()
        while not self._inbox.empty():
            self._inbox.get_nowait()

    def send(self, message: str, *payload: Any) -> None:
        """Queue a message for the peer (fire-and-forget)."""
        if self._peer is None:
            raise RuntimeError(f"Channel endpoint {self.name!r} is not connected")
        logger.debug("%s -> %s: %s %r", self.name, self._peer.name, message, payload)
        self._peer._inbox.put_nowait((message, payload))

    @property
    def pending(self) -> int:
        """Number of messages waiting to be handled on this side."""
        return self._inbox.qsize()

    async def _dispatch(self, message: str, payload: tuple[Any, ...]) -> None:
        handler = self._handlers.get(message)
        if handler is None:
            logger.warning("No handler for %s on %s", message, self.name)
            return
        result = handler(*payload)
        if inspect.isawaitable(result):
            await result

    async def dispatch_pending(self) -> int:
        """Handle every message currently in the inbox; return how many."""
        count = 0
        while not self._inbox.empty():
            message, payload = self._inbox.get_nowait()
            await self._dispatch(message, payload)
            count += 1
        return count

    async def serve(self) -> None:
        """Handle messages forever, one at a time."""
        while True:
            message, payload = await self._inbox.get()
            await self._dispatch(message, payload)


class Channel:
    """A connected pair of endpoints: control host and content host."""

    def __init__(self) -> None:
        self.control = ChannelEndpoint("control")
        self.content = ChannelEndpoint("content")
        self.control.connect(self.content)

    async def settle(self, max_rounds: int = 1000) -> int:
        """Deliver messages in both directions until neither side has any.

        Returns the number of messages delivered.
        """
        delivered = 0
        for _ in range(max_rounds):
            count = await self.control.dispatch_pending()
            count += await self.content.dispatch_pending()
            if not count:
                return delivered
            delivered += count
        raise RuntimeError("Channel did not settle")

    def reset(self) -> None:
        self.control.reset()
        self.content.reset()
