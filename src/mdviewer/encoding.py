"""Text encoding detection and decoding."""

import codecs

ENCODINGS = [
    "UTF-8",
    "UTF-16LE",
    "UTF-16BE",
    "ISO-8859-1",
    "ISO-8859-2",
    "ISO-8859-15",
    "Windows-1250",
    "Windows-1251",
    "Windows-1252",
    "KOI8-R",
    "Shift_JIS",
    "EUC-JP",
    "GB18030",
    "Big5",
]

FALLBACK_ENCODING = "ISO-8859-1"

_BOMS = [
    (codecs.BOM_UTF8, "UTF-8"),
    (codecs.BOM_UTF16_LE, "UTF-16LE"),
    (codecs.BOM_UTF16_BE, "UTF-16BE"),
]


def normalize(encoding: str) -> str:
    """Map an encoding alias onto its entry in ENCODINGS (or itself)."""
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        return encoding
    for known in ENCODINGS:
        if codecs.lookup(known).name == name:
            return known
    return encoding


def is_known(encoding: str) -> bool:
    try:
        codecs.lookup(encoding)
    except LookupError:
        return False
    return True


def detect(raw: bytes) -> str:
    """Guess the encoding of raw file content."""
    for bom, name in _BOMS:
        if raw.startswith(bom):
            return name
    try:
        raw.decode("utf-8")
    except UnicodeDecodeError:
        return FALLBACK_ENCODING
    return "UTF-8"


def decode(raw: bytes, encoding: str) -> str:
    """Decode raw content, replacing undecodable bytes.

    A leading byte order mark matching the encoding is dropped.
    """
    for bom, name in _BOMS:
        if name == normalize(encoding) and raw.startswith(bom):
            raw = raw[len(bom):]
            break
    return raw.decode(encoding, errors="replace")
