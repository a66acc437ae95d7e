"""
Last-resort record builder.

Used when the primary encoder fails for any reason. The record is built by
plain string concatenation so that it cannot fail itself:

- every string is passed through safify_for_json()
- numbers are formatted directly
- the original metadata tree is dropped and replaced by two fixed
  diagnostic keys

The result is always a syntactically valid, single-line JSON object.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from constants import (
    FALLBACK_ERROR_KEY,
    FALLBACK_INFO_KEY,
    FALLBACK_INFO_VALUE,
    FALLBACK_REPLACEMENT_CHAR,
    FIELD_FALLBACK_DATE,
    FIELD_FILE,
    FIELD_FUNCTION,
    FIELD_LABEL,
    FIELD_LEVEL,
    FIELD_LINE,
    FIELD_MESSAGE,
    FIELD_METADATA,
    FIELD_SOURCE,
    MANGLED_MESSAGE_PREFIX,
)
from logline.line import LogLine


_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
}


def _is_printable_ascii(ch: str) -> bool:
    return 0x20 <= ord(ch) <= 0x7E


def safify_for_json(text: str) -> str:
    """
    Make `text` safe to embed between double quotes in a JSON document.

    Scalar by scalar:
    - non-ASCII                   → "-"
    - backslash / double quote    → escaped
    - LF / CR                     → \\n / \\r
    - other non-printable ASCII   → "-"
    - everything else             → unchanged
    """
    out: list[str] = []
    for ch in text:
        if not ch.isascii():
            out.append(FALLBACK_REPLACEMENT_CHAR)
        elif ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif not _is_printable_ascii(ch):
            out.append(FALLBACK_REPLACEMENT_CHAR)
        else:
            out.append(ch)
    return "".join(out)


def _describe_error(error: BaseException) -> str:
    name = type(error).__name__
    try:
        text = str(error)
    except Exception:  # pylint: disable=broad-exception-caught
        return name
    return f"{name}: {text}" if text else name


def _string_field(name: str, value: str) -> str:
    return f'"{name}":"{safify_for_json(value)}"'


def _epoch_seconds(date: Optional[datetime]) -> Optional[float]:
    if date is None:
        return None
    try:
        return date.timestamp()
    except (OverflowError, OSError, ValueError):
        return None


def build_fallback_json(line: LogLine, error: BaseException) -> bytes:
    """
    Build the fallback record for `line` after the primary encoder raised `error`.

    Field order:
        level, message, metadata, [date-1970], label, source, file, function, line

    date-1970 (seconds since the epoch) is present only when the line
    carries a date that converts to a timestamp. It replaces "date", whose
    representation depends on the primary encoder settings and therefore
    cannot be trusted here.

    Never raises.
    """
    parts = [
        _string_field(FIELD_LEVEL, line.level.value),
        _string_field(FIELD_MESSAGE, MANGLED_MESSAGE_PREFIX + line.message),
        (
            f'"{FIELD_METADATA}":{{'
            f"{_string_field(FALLBACK_INFO_KEY, FALLBACK_INFO_VALUE)},"
            f"{_string_field(FALLBACK_ERROR_KEY, _describe_error(error))}"
            "}"
        ),
    ]

    timestamp = _epoch_seconds(line.date)
    if timestamp is not None:
        parts.append(f'"{FIELD_FALLBACK_DATE}":{timestamp!r}')

    parts.extend([
        _string_field(FIELD_LABEL, line.label),
        _string_field(FIELD_SOURCE, line.source),
        _string_field(FIELD_FILE, line.file),
        _string_field(FIELD_FUNCTION, line.function),
        f'"{FIELD_LINE}":{int(line.line)}',
    ])

    return ("{" + ",".join(parts) + "}").encode("ascii")
