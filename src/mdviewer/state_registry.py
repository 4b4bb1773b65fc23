"""Registry letting features save and restore per-location state.

Features hook into the navigation lifecycle by registering a pair of
handlers under a stable id. Before a location is left or reloaded every
save handler is asked for its value; once the next document is rendered
every restore handler receives the value stored for that location (or
None). The registry never persists anything itself.
"""

import logging
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

SaveHandler = Callable[[], object]
RestoreHandler = Callable[[object | None], None]


@runtime_checkable
class StateProvider(Protocol):
    """Feature that carries state across navigation."""

    id: str

    def save(self) -> object: ...
    def restore(self, value: object | None) -> None: ...


class StateRegistry:
    """Ordered mapping of feature id to (save, restore) handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, tuple[SaveHandler, RestoreHandler]] = {}

    def register(self, id: str, save: SaveHandler, restore: RestoreHandler) -> None:
        """Register handlers for a feature, replacing any previous pair for the id."""
        if id in self._handlers:
            logger.debug("Replacing state handlers for %s", id)
        self._handlers[id] = (save, restore)

    def register_provider(self, provider: StateProvider) -> None:
        self.register(provider.id, provider.save, provider.restore)

    def unregister(self, id: str) -> None:
        self._handlers.pop(id, None)

    @property
    def ids(self) -> list[str]:
        return list(self._handlers)

    def snapshot_all(self, location_key: str) -> dict[str, object]:
        """Collect every feature's value, in registration order.

        A handler that raises is logged and left out of the snapshot.
        """
        snapshot: dict[str, object] = {}
        for id, (save, _) in list(self._handlers.items()):
            try:
                snapshot[id] = save()
            except Exception:
                logger.exception("Saving state %r for %s failed", id, location_key)
        return snapshot

    def restore_all(self, location_key: str, snapshot: dict[str, object] | None) -> None:
        """Hand each feature its stored value (or None)."""
        snapshot = snapshot or {}
        for id, (_, restore) in list(self._handlers.items()):
            try:
                restore(snapshot.get(id))
            except Exception:
                logger.exception("Restoring state %r for %s failed", id, location_key)

    def __contains__(self, id: object) -> bool:
        return id in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
