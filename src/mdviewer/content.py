"""Document preparation for the content host."""

import re
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path

from . import encoding as encoding_lib


def file_ending(path: Path | str) -> str:
    """File ending without the dot, lower case ("" if none)."""
    return Path(path).suffix.lstrip(".").lower()


def is_web_url(url: str) -> bool:
    return "://" in url or url.startswith("mailto:")


@dataclass(frozen=True)
class RenderingOptions:
    """Options the content host renders with."""

    line_breaks_enabled: bool = False
    typography_enabled: bool = True
    emojis_enabled: bool = True
    render_as_markdown: bool = True

    def to_payload(self) -> dict:
        return {
            "lineBreaksEnabled": self.line_breaks_enabled,
            "typographyEnabled": self.typography_enabled,
            "emojisEnabled": self.emojis_enabled,
            "renderAsMarkdown": self.render_as_markdown,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "RenderingOptions":
        default = cls()
        return cls(
            line_breaks_enabled=payload.get("lineBreaksEnabled", default.line_breaks_enabled),
            typography_enabled=payload.get("typographyEnabled", default.typography_enabled),
            emojis_enabled=payload.get("emojisEnabled", default.emojis_enabled),
            render_as_markdown=payload.get("renderAsMarkdown", default.render_as_markdown),
        )


class FileCache:
    """LRU cache of raw file contents with mtime-based invalidation.

    Decoded text is kept per encoding, so switching encodings re-decodes
    the cached bytes and re-rendering decodes nothing.
    """

    def __init__(self, max_size: int = 10) -> None:
        self._cache: OrderedDict[str, tuple[float, bytes, dict[str, str]]] = OrderedDict()
        self._max_size = max_size
        self.disk_reads = 0

    def _valid_entry(self, path: Path) -> tuple[float, bytes, dict[str, str]] | None:
        key = str(path)
        if key not in self._cache:
            return None

        entry = self._cache[key]

        # Check if file has been modified
        try:
            if path.stat().st_mtime != entry[0]:
                del self._cache[key]
                return None
        except OSError:
            del self._cache[key]
            return None

        self._cache.move_to_end(key)
        return entry

    def raw(self, path: Path) -> bytes:
        """File bytes, from cache if still current.

        Raises:
            OSError: if the file cannot be read.
        """
        entry = self._valid_entry(path)
        if entry is not None:
            return entry[1]

        mtime = path.stat().st_mtime
        raw = path.read_bytes()
        self.disk_reads += 1
        self.put(path, mtime, raw)
        return raw

    def text(self, path: Path, encoding: str) -> str:
        """File content decoded with the given encoding."""
        raw = self.raw(path)
        texts = self._cache[str(path)][2]
        if encoding not in texts:
            texts[encoding] = encoding_lib.decode(raw, encoding)
        return texts[encoding]

    def put(self, path: Path, mtime: float, raw: bytes) -> None:
        key = str(path)

        # Remove oldest entry if at capacity
        if len(self._cache) >= self._max_size and key not in self._cache:
            self._cache.popitem(last=False)

        self._cache[key] = (mtime, raw, {})
        self._cache.move_to_end(key)

    def invalidate(self, path: Path) -> None:
        self._cache.pop(str(path), None)

    def __contains__(self, path: object) -> bool:
        return str(path) in self._cache


@dataclass
class LoadedDocument:
    """A document ready to be handed to the markdown widget."""

    path: Path
    markdown: str
    raw_text: str
    encoding: str
    detected: bool
    is_markdown: bool


def load_document(
    path: Path,
    encoding: str | None,
    options: RenderingOptions,
    cache: FileCache,
) -> LoadedDocument:
    """Read, decode and prepare a document for rendering.

    Raises:
        OSError: if the file cannot be read.
        LookupError: if the encoding is unknown.
    """
    detected = False
    if not encoding:
        encoding = encoding_lib.detect(cache.raw(path))
        detected = True
    text = cache.text(path, encoding)

    content = text
    if not options.render_as_markdown:
        content = wrap_as_code(content, file_ending(path))
    content = alter_style_urls(path.parent.resolve(), content)
    if options.emojis_enabled:
        content = convert_emoticons(content)

    return LoadedDocument(
        path=path,
        markdown=content,
        raw_text=text,
        encoding=encoding,
        detected=detected,
        is_markdown=options.render_as_markdown,
    )


def wrap_as_code(content: str, language: str) -> str:
    return f"```{language}\n{content}\n```"


_STYLE_URL_PATTERN = re.compile(r"""url\(["'](?P<url>.*?)["']\)""")


def alter_style_urls(document_directory: Path, content: str) -> str:
    """Make url(...) references in <style> blocks relative to the document."""
    in_style = False
    in_code = False
    lines = re.split(r"\r?\n", content)
    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if line == "<style>":
            in_style = True
        elif line == "</style>":
            in_style = False
        elif line.startswith("```"):
            in_code = not in_code
        if not in_style or in_code:
            continue
        match = _STYLE_URL_PATTERN.search(line)
        if match is None or is_web_url(match.group("url")):
            continue
        url = (document_directory / match.group("url")).as_posix()
        lines[i] = _STYLE_URL_PATTERN.sub(lambda _: f'url("{url}")', line, count=1)
    return "\n".join(lines)


EMOTICONS = {
    ":-)": "😃",
    ":)": "😃",
    ":-(": "😦",
    ":(": "😦",
    ":-D": "😄",
    ":D": "😄",
    ";-)": "😉",
    ";)": "😉",
    ":-P": "😛",
    ":P": "😛",
    ":-O": "😮",
    ":O": "😮",
    ":'(": "😢",
    ":-|": "😐",
    ":|": "😐",
    "<3": "❤️",
    "</3": "💔",
    "8-)": "😎",
}

_EMOTICON_PATTERN = re.compile(
    r"(?<!\S)("
    + "|".join(re.escape(e) for e in sorted(EMOTICONS, key=len, reverse=True))
    + r")(?!\S)"
)


def convert_emoticons(content: str) -> str:
    """Replace free-standing emoticons with emojis, leaving code alone."""
    in_code = False
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if line.lstrip().startswith("```"):
            in_code = not in_code
            continue
        if in_code or "`" in line:
            continue
        lines[i] = _EMOTICON_PATTERN.sub(lambda m: EMOTICONS[m.group(1)], line)
    return "\n".join(lines)


_SLUG_STRIP = re.compile(r"[^\w\- ]", re.UNICODE)


def slugify(text: str) -> str:
    """GitHub-style heading anchor."""
    return _SLUG_STRIP.sub("", text.strip().lower()).replace(" ", "-")


def anchor_id(internal_target: str) -> str:
    """The element id an internal target points at."""
    return internal_target.replace("#", "").split(".")[0]


def resolve_anchor(internal_target: str, headings: list[str]) -> int | None:
    """Index of the heading an internal target refers to, if any."""
    wanted = anchor_id(internal_target).lower()
    if not wanted:
        return None
    seen: dict[str, int] = {}
    for index, heading in enumerate(headings):
        slug = slugify(heading)
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        if count:
            slug = f"{slug}-{count}"
        if slug == wanted:
            return index
    return None
