"""Location history and navigation events."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar


class NavigationError(Exception):
    """Base class for navigation failures."""


class InvalidPathError(NavigationError):
    """The requested path cannot be navigated to."""


class UnknownFileError(InvalidPathError):
    """The requested path does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f'Unknown file: "{path}"')
        self.path = path


class NotAFileError(InvalidPathError):
    """The requested path exists but is not a regular file."""

    def __init__(self, path: Path) -> None:
        super().__init__(f'Given path does not lead to a file: "{path}"')
        self.path = path


class NoCurrentLocationError(NavigationError):
    """History is empty; nothing has been navigated to yet."""


class AtHistoryBoundary(NavigationError):
    """Back or forward requested with no neighbouring entry."""


def validate_path(file_path: Path | str) -> Path:
    """Resolve a path for navigation.

    Raises:
        UnknownFileError: if nothing exists at the path.
        NotAFileError: if the path is not a regular file.
    """
    path = Path(file_path).expanduser()
    if not path.exists():
        raise UnknownFileError(path)
    if not path.is_file():
        raise NotAFileError(path)
    return path.resolve()


@dataclass
class Location:
    """One navigable document instance."""

    file_path: Path
    internal_target: str | None = None
    encoding: str | None = None
    scroll_position: float = 0
    feature_state: dict[str, object] = field(default_factory=dict, repr=False, compare=False)

    def __setattr__(self, name: str, value: object) -> None:
        if name == "file_path" and "file_path" in self.__dict__:
            raise AttributeError("file_path is immutable")
        super().__setattr__(name, value)

    @property
    def key(self) -> str:
        """Stable key used for feature state snapshots."""
        return str(self.file_path)


# Navigation events. Class attributes carry the reload classification:
# whether history grows, whether the cursor moves, whether scroll survives
# and whether the document bytes are decoded again.


@dataclass(frozen=True)
class NavigationEvent:
    pushes_history: ClassVar[bool] = False
    moves_cursor: ClassVar[bool] = False
    preserves_scroll: ClassVar[bool] = True
    redecodes: ClassVar[bool] = True


@dataclass(frozen=True)
class UserNavigate(NavigationEvent):
    file_path: Path | str
    internal_target: str | None = None
    encoding: str | None = None

    pushes_history: ClassVar[bool] = True
    preserves_scroll: ClassVar[bool] = False


@dataclass(frozen=True)
class Back(NavigationEvent):
    moves_cursor: ClassVar[bool] = True
    preserves_scroll: ClassVar[bool] = False


@dataclass(frozen=True)
class Forward(NavigationEvent):
    moves_cursor: ClassVar[bool] = True
    preserves_scroll: ClassVar[bool] = False


@dataclass(frozen=True)
class ReloadFileModified(NavigationEvent):
    pass


@dataclass(frozen=True)
class ReloadEncodingChanged(NavigationEvent):
    encoding: str


@dataclass(frozen=True)
class ReloadRenderOptionsChanged(NavigationEvent):
    redecodes: ClassVar[bool] = False


class LocationHistory:
    """Back/forward history of visited locations."""

    def __init__(self) -> None:
        self._entries: list[Location] = []
        self._cursor = -1

    def navigate(
        self,
        file_path: Path | str,
        internal_target: str | None = None,
        encoding: str | None = None,
    ) -> Location:
        """Append a new location after the cursor, discarding forward entries."""
        del self._entries[self._cursor + 1 :]
        location = Location(Path(file_path), internal_target, encoding)
        self._entries.append(location)
        self._cursor = len(self._entries) - 1
        return location

    def can_go_back(self) -> bool:
        return self._cursor > 0

    def can_go_forward(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def back(self) -> Location:
        """Move the cursor one entry back.

        Raises:
            AtHistoryBoundary: if the cursor is at the first entry.
        """
        if not self.can_go_back():
            raise AtHistoryBoundary("No earlier location")
        self._cursor -= 1
        return self._entries[self._cursor]

    def forward(self) -> Location:
        """Move the cursor one entry forward.

        Raises:
            AtHistoryBoundary: if the cursor is at the last entry.
        """
        if not self.can_go_forward():
            raise AtHistoryBoundary("No later location")
        self._cursor += 1
        return self._entries[self._cursor]

    def reload_current(
        self,
        scroll_position: float | None = None,
        encoding: str | None = None,
    ) -> Location:
        """Update the current entry in place without touching the cursor."""
        location = self.current()
        if scroll_position is not None:
            location.scroll_position = scroll_position
        if encoding is not None:
            location.encoding = encoding
        return location

    def current(self) -> Location:
        if not self._entries:
            raise NoCurrentLocationError("No location has been opened yet")
        return self._entries[self._cursor]

    def has_current(self) -> bool:
        return bool(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> tuple[Location, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
