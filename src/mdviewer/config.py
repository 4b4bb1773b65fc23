"""Configuration loading and defaults for mdviewer."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

ZOOM_DEFAULT = 1.0
ZOOM_STEP = 0.1
ZOOM_MIN = 0.1

DEFAULT_MD_FILE_TYPES = ["md", "markdown", "mdown", "mkdn", "mkd", "mdwn", "mdtxt", "mdtext"]


def get_config_dir(storage_dir: Path | None = None) -> Path:
    """Get the mdviewer config directory (XDG-style unless overridden)."""
    if storage_dir is not None:
        return storage_dir
    return Path.home() / ".config" / "mdviewer"


def get_config_path(storage_dir: Path | None = None) -> Path:
    """Get the config file path."""
    return get_config_dir(storage_dir) / "config.toml"


def get_default_data_dir(storage_dir: Path | None = None) -> Path:
    """Get the default data directory for document settings and logs."""
    if storage_dir is not None:
        return storage_dir / "data"
    return Path.home() / ".local" / "share" / "mdviewer"


@dataclass
class WatchConfig:
    """File change watching configuration."""

    interval: float = 1.0  # seconds between modification checks
    use_events: bool = False  # also react to filesystem events (watchdog)


@dataclass
class Config:
    """Application-wide settings."""

    zoom: float = ZOOM_DEFAULT
    theme: Literal["system", "light", "dark"] = "system"
    line_breaks_enabled: bool = False
    typography_enabled: bool = True
    emojis_enabled: bool = True
    md_file_types: list[str] = field(default_factory=lambda: list(DEFAULT_MD_FILE_TYPES))
    toc_visible: bool = False
    terminal: str = ""  # empty = opening new windows is unavailable
    data_directory: Path = field(default_factory=get_default_data_dir)
    watch: WatchConfig = field(default_factory=WatchConfig)
    storage_dir: Path | None = None

    def get_store_path(self) -> Path:
        """Get the per-document settings file path."""
        return self.data_directory / "documents.json"

    def get_log_path(self) -> Path:
        return self.data_directory / "mdviewer.log"

    @classmethod
    def load(cls, storage_dir: Path | None = None) -> "Config":
        """Load configuration from file or create defaults."""
        config_path = get_config_path(storage_dir)
        get_config_dir(storage_dir).mkdir(parents=True, exist_ok=True)

        if not config_path.exists():
            default_config = cls(
                data_directory=get_default_data_dir(storage_dir),
                storage_dir=storage_dir,
            )
            default_config.data_directory.mkdir(parents=True, exist_ok=True)
            default_config.save()
            return default_config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        theme = data.get("theme", "system")
        if theme not in ("system", "light", "dark"):
            theme = "system"

        data_dir = data.get("data_directory", str(get_default_data_dir(storage_dir)))

        watch_data = data.get("watch", {})
        watch = WatchConfig(
            interval=float(watch_data.get("interval", 1.0)),
            use_events=watch_data.get("use_events", False),
        )

        config = cls(
            zoom=float(data.get("zoom", ZOOM_DEFAULT)),
            theme=theme,
            line_breaks_enabled=data.get("line_breaks_enabled", False),
            typography_enabled=data.get("typography_enabled", True),
            emojis_enabled=data.get("emojis_enabled", True),
            md_file_types=data.get("md_file_types", list(DEFAULT_MD_FILE_TYPES)),
            toc_visible=data.get("toc_visible", False),
            terminal=data.get("terminal", ""),
            data_directory=Path(data_dir).expanduser(),
            watch=watch,
            storage_dir=storage_dir,
        )

        config.data_directory.mkdir(parents=True, exist_ok=True)

        return config

    def save(self) -> None:
        """Save configuration to file."""
        config_path = get_config_path(self.storage_dir)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        file_types = ", ".join(f'"{t}"' for t in self.md_file_types)

        # tomllib is read-only
        lines = [
            "# mdviewer Configuration",
            "",
            "# Zoom factor of the document view",
            f"zoom = {round(self.zoom, 2)}",
            "",
            '# Theme: "system", "light" or "dark"',
            f'theme = "{self.theme}"',
            "",
            "# Markdown render options",
            f"line_breaks_enabled = {str(self.line_breaks_enabled).lower()}",
            f"typography_enabled = {str(self.typography_enabled).lower()}",
            f"emojis_enabled = {str(self.emojis_enabled).lower()}",
            "",
            "# File endings always rendered as Markdown",
            f"md_file_types = [{file_types}]",
            "",
            "# Show the table of contents for all documents",
            f"toc_visible = {str(self.toc_visible).lower()}",
            "",
            "# Command prefix used to open a new window, e.g. \"x-terminal-emulator -e\"",
            f'terminal = "{self.terminal}"',
            "",
            "# Directory for document settings and logs",
            f'data_directory = "{self.data_directory}"',
            "",
            "[watch]",
            f"interval = {self.watch.interval}  # seconds",
            f"use_events = {str(self.watch.use_events).lower()}  # react to filesystem events",
        ]

        config_path.write_text("\n".join(lines) + "\n")
