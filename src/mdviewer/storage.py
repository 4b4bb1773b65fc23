"""JSON-backed per-document settings."""

import json
import logging
import os
import threading
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class DocumentSettings:
    """Settings remembered for a single document."""

    render_as_markdown: bool = False
    encoding: str | None = None
    toc_visible: bool = False


_FIELD_NAMES = {f.name for f in fields(DocumentSettings)}


class DocumentStore:
    """Per-document settings keyed by absolute file path."""

    def __init__(self, store_path: Path) -> None:
        self._path = store_path
        self._documents: dict[str, dict] = self._load()
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
            documents = data.get("documents", {})
        except (json.JSONDecodeError, AttributeError, OSError) as e:
            logger.warning("Ignoring unreadable document store %s: %s", self._path, e)
            return {}
        if not isinstance(documents, dict):
            return {}
        return documents

    def _save(self) -> None:
        """Write the store atomically."""
        with self._write_lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self._path.with_suffix(".json.tmp")
            temp_path.write_text(json.dumps({"documents": self._documents}, indent=2))
            os.replace(temp_path, self._path)

    @staticmethod
    def _key(path: Path) -> str:
        return str(Path(path).resolve())

    def load(self, path: Path) -> DocumentSettings:
        """Settings for a document; defaults if never stored."""
        entry = self._documents.get(self._key(path), {})
        return DocumentSettings(**{k: v for k, v in entry.items() if k in _FIELD_NAMES})

    def update(self, path: Path, **changes) -> DocumentSettings:
        """Change some settings of a document and persist them."""
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise TypeError(f"Unknown document settings: {', '.join(sorted(unknown))}")
        settings = self.load(path)
        for name, value in changes.items():
            setattr(settings, name, value)
        self._documents[self._key(path)] = asdict(settings)
        self._save()
        return settings

    def get_encoding(self, path: Path) -> str | None:
        return self.load(path).encoding

    def set_encoding(self, path: Path, encoding: str) -> None:
        if self.get_encoding(path) != encoding:
            self.update(path, encoding=encoding)

    def forget(self, path: Path) -> None:
        if self._documents.pop(self._key(path), None) is not None:
            self._save()

    def __len__(self) -> int:
        return len(self._documents)
