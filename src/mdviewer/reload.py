"""Reload coordination between the control host and the content host.

Every change of what the content host shows goes through one
ReloadCoordinator: user navigation, back/forward, file modification,
encoding change and render option change. The exchange is

    control                               content
    prepareReload / changeRenderingOptions  ->
                                          <- reloadPrepared(.., scroll)
    fileOpen(location)                      ->
                                          <- contentRendered(path, anchor)
    restorePosition(scroll)                 ->

Only one exchange is in flight at a time. Triggers arriving meanwhile
are queued, and reloads of the same kind collapse into one.
"""

import logging
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from .channel import ChannelEndpoint, Messages
from .navigation import (
    AtHistoryBoundary,
    Back,
    Forward,
    InvalidPathError,
    Location,
    LocationHistory,
    NavigationEvent,
    ReloadEncodingChanged,
    ReloadFileModified,
    ReloadRenderOptionsChanged,
    UserNavigate,
    validate_path,
)
from .state_registry import StateRegistry

logger = logging.getLogger(__name__)


class ReloadState(Enum):
    IDLE = "idle"
    RELOAD_REQUESTED = "reload-requested"
    AWAITING_CONTENT_READY = "awaiting-content-ready"


class RequestOutcome(Enum):
    DISPATCHED = "dispatched"
    DEFERRED = "deferred"
    AT_BOUNDARY = "at-boundary"
    IGNORED = "ignored"


class EncodingStore(Protocol):
    def get_encoding(self, path: Path) -> str | None: ...
    def set_encoding(self, path: Path, encoding: str) -> None: ...


OptionsProvider = Callable[[Path], dict]


class ReloadCoordinator:
    """State machine serializing every re-render of the content host."""

    def __init__(
        self,
        history: LocationHistory,
        registry: StateRegistry,
        endpoint: ChannelEndpoint,
        options_provider: OptionsProvider | None = None,
        encodings: EncodingStore | None = None,
    ) -> None:
        self._history = history
        self._registry = registry
        self._endpoint = endpoint
        self._options_provider = options_provider
        self._encodings = encodings

        self._state = ReloadState.IDLE
        self._active: NavigationEvent | None = None
        self._awaiting_ack = False
        self._target: Location | None = None
        self._captured_position: float = 0
        self._queue: deque[NavigationEvent] = deque()
        self.last_anchor_missing = False

        self.attach()

    def attach(self) -> None:
        """Register the acknowledgment handlers on the control endpoint."""
        self._endpoint.on(Messages.RELOAD_PREPARED, self.on_reload_prepared)
        self._endpoint.on(Messages.CONTENT_RENDERED, self.on_content_rendered)

    @property
    def state(self) -> ReloadState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._state is ReloadState.IDLE

    @property
    def pending(self) -> tuple[NavigationEvent, ...]:
        return tuple(self._queue)

    def set_options_provider(self, provider: OptionsProvider) -> None:
        self._options_provider = provider

    # Requests

    def request(self, event: NavigationEvent) -> RequestOutcome:
        """Start a reload for the event, or queue it behind the one in flight.

        Raises:
            InvalidPathError: if a UserNavigate path is missing or not a file.
                Nothing is queued or changed in that case.
        """
        if isinstance(event, UserNavigate):
            path = validate_path(event.file_path)
            event = UserNavigate(path, event.internal_target, event.encoding)

        if self._state is not ReloadState.IDLE:
            self._enqueue(event)
            logger.debug("Deferred %s while %s", event, self._state.value)
            return RequestOutcome.DEFERRED

        return self._dispatch(event)

    def navigate(
        self,
        file_path: Path | str,
        internal_target: str | None = None,
        encoding: str | None = None,
    ) -> RequestOutcome:
        return self.request(UserNavigate(file_path, internal_target, encoding))

    def back(self) -> RequestOutcome:
        return self.request(Back())

    def forward(self) -> RequestOutcome:
        return self.request(Forward())

    def refresh(self) -> RequestOutcome:
        return self.request(ReloadFileModified())

    def change_encoding(self, encoding: str) -> RequestOutcome:
        return self.request(ReloadEncodingChanged(encoding))

    def render_options_changed(self) -> RequestOutcome:
        return self.request(ReloadRenderOptionsChanged())

    def reset(self) -> None:
        """Abandon the reload in flight and everything queued."""
        self._queue.clear()
        self._state = ReloadState.IDLE
        self._active = None
        self._awaiting_ack = False
        self._target = None

    def _enqueue(self, event: NavigationEvent) -> None:
        queue = self._queue
        if event.pushes_history or event.moves_cursor:
            queue.append(event)
            return

        # In-place reloads merge with a queued reload after the last history move.
        tail = 0
        for i, queued in enumerate(queue):
            if queued.pushes_history or queued.moves_cursor:
                tail = i + 1
        for i in range(tail, len(queue)):
            queued = queue[i]
            if type(queued) is type(event):
                if isinstance(event, ReloadEncodingChanged):
                    queue[i] = event
                return
            if isinstance(event, ReloadFileModified) and isinstance(queued, ReloadEncodingChanged):
                return
            if isinstance(event, ReloadEncodingChanged) and isinstance(queued, ReloadFileModified):
                queue[i] = event
                return
        queue.append(event)

    def _dispatch(self, event: NavigationEvent) -> RequestOutcome:
        history = self._history

        if isinstance(event, Back) and not history.can_go_back():
            logger.debug("Back at history boundary")
            return RequestOutcome.AT_BOUNDARY
        if isinstance(event, Forward) and not history.can_go_forward():
            logger.debug("Forward at history boundary")
            return RequestOutcome.AT_BOUNDARY
        if not event.pushes_history and not history.has_current():
            logger.debug("Nothing to reload for %s", event)
            return RequestOutcome.IGNORED

        self._state = ReloadState.RELOAD_REQUESTED
        self._active = event

        if isinstance(event, UserNavigate) and not history.has_current():
            self._open(history.navigate(event.file_path, event.internal_target, self._encoding_for(event)))
            return RequestOutcome.DISPATCHED

        current = history.current()
        current.feature_state = self._registry.snapshot_all(current.key)

        self._awaiting_ack = True
        self._state = ReloadState.AWAITING_CONTENT_READY
        if isinstance(event, ReloadRenderOptionsChanged):
            self._endpoint.send(Messages.CHANGE_RENDERING_OPTIONS, self._options_for(current.file_path))
        elif isinstance(event, ReloadEncodingChanged):
            self._endpoint.send(Messages.PREPARE_RELOAD, False, event.encoding)
        elif isinstance(event, ReloadFileModified):
            self._endpoint.send(Messages.PREPARE_RELOAD, True, current.encoding)
        else:
            self._endpoint.send(Messages.PREPARE_RELOAD, False, None)
        return RequestOutcome.DISPATCHED

    # Acknowledgments from the content host

    def on_reload_prepared(
        self,
        is_file_modification: bool,
        encoding: str | None,
        scroll_position: float,
    ) -> None:
        """The content host captured its scroll offset and may be replaced."""
        if self._state is not ReloadState.AWAITING_CONTENT_READY or not self._awaiting_ack:
            logger.debug("Ignoring unexpected reloadPrepared")
            return
        self._awaiting_ack = False

        event = self._active
        history = self._history
        self._captured_position = scroll_position or 0
        history.reload_current(scroll_position=self._captured_position)

        try:
            if isinstance(event, UserNavigate):
                target = history.navigate(event.file_path, event.internal_target, self._encoding_for(event))
            elif isinstance(event, Back):
                target = history.back()
            elif isinstance(event, Forward):
                target = history.forward()
            elif isinstance(event, ReloadEncodingChanged):
                target = history.reload_current(encoding=event.encoding)
                if self._encodings is not None:
                    self._encodings.set_encoding(target.file_path, event.encoding)
            else:
                target = history.current()
        except AtHistoryBoundary:
            logger.debug("History boundary reached during %s", event)
            self._finish()
            return

        self._open(target)

    def on_content_rendered(
        self,
        path: str,
        anchor_offset: float | None = None,
        anchor_found: bool = True,
    ) -> None:
        """The content host finished rendering; restore features and position."""
        if self._state is not ReloadState.AWAITING_CONTENT_READY or self._awaiting_ack:
            logger.debug("Ignoring unexpected contentRendered for %s", path)
            return
        target = self._target
        if target is None or Path(path) != target.file_path:
            logger.debug("Ignoring contentRendered for stale document %s", path)
            return

        event = self._active
        self.last_anchor_missing = target.internal_target is not None and not anchor_found
        snapshot = {} if isinstance(event, UserNavigate) else target.feature_state
        self._registry.restore_all(target.key, snapshot)

        if isinstance(event, UserNavigate):
            position = anchor_offset if anchor_offset is not None else 0
        elif event is not None and event.moves_cursor:
            position = target.scroll_position
        else:
            position = self._captured_position
        target.scroll_position = position
        self._endpoint.send(Messages.RESTORE_POSITION, position)
        self._finish()

    # Internals

    def _open(self, target: Location) -> None:
        event = self._active
        self._target = target
        self._awaiting_ack = False
        self._state = ReloadState.AWAITING_CONTENT_READY

        scroll_position = None
        if event is not None and event.preserves_scroll:
            scroll_position = self._captured_position
        elif event is not None and event.moves_cursor:
            scroll_position = target.scroll_position

        self._endpoint.send(
            Messages.FILE_OPEN,
            {
                "path": str(target.file_path),
                "encoding": target.encoding,
                "scrollPosition": scroll_position,
                "internalTarget": target.internal_target,
            },
        )

    def _finish(self) -> None:
        self._state = ReloadState.IDLE
        self._active = None
        self._target = None
        self._awaiting_ack = False
        self._captured_position = 0

        while self._queue and self._state is ReloadState.IDLE:
            event = self._queue.popleft()
            try:
                if isinstance(event, UserNavigate):
                    validate_path(event.file_path)
                self._dispatch(event)
            except InvalidPathError as e:
                logger.error("Dropping deferred navigation: %s", e)

    def _encoding_for(self, event: UserNavigate) -> str | None:
        if event.encoding:
            return event.encoding
        if self._encodings is not None:
            return self._encodings.get_encoding(Path(event.file_path))
        return None

    def _options_for(self, path: Path) -> dict:
        if self._options_provider is None:
            return {}
        return self._options_provider(path)
