"""
CONSTANTS
---------
Single source of truth for the wire-level invariants of the JSON log backend.

Rules:
- If changing a value changes the bytes written to a sink, it belongs here.
- No magic strings elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Record schema
# =============================================================================

FIELD_LEVEL: Final[str] = "level"
FIELD_MESSAGE: Final[str] = "message"
FIELD_METADATA: Final[str] = "metadata"
FIELD_DATE: Final[str] = "date"
FIELD_LABEL: Final[str] = "label"
FIELD_SOURCE: Final[str] = "source"
FIELD_FILE: Final[str] = "file"
FIELD_FUNCTION: Final[str] = "function"
FIELD_LINE: Final[str] = "line"

# Reserved for fallback records only. Never co-occurs with FIELD_DATE.
FIELD_FALLBACK_DATE: Final[str] = "date-1970"

# Primary encoder key order
RECORD_FIELDS: Final[Tuple[str, ...]] = (
    FIELD_LEVEL,
    FIELD_MESSAGE,
    FIELD_METADATA,
    FIELD_DATE,
    FIELD_LABEL,
    FIELD_SOURCE,
    FIELD_FILE,
    FIELD_FUNCTION,
    FIELD_LINE,
)

# =============================================================================
# Fallback record
# =============================================================================

MANGLED_MESSAGE_PREFIX: Final[str] = "MANGLED LOG MESSAGE (see JSONLogger doc) -- "

FALLBACK_INFO_KEY: Final[str] = "JSONLogger.LogInfo"
FALLBACK_INFO_VALUE: Final[str] = "Original metadata removed (see JSONLogger doc)"
FALLBACK_ERROR_KEY: Final[str] = "JSONLogger.LogError"

# Replacement for any scalar the fallback builder cannot emit verbatim
FALLBACK_REPLACEMENT_CHAR: Final[str] = "-"

# =============================================================================
# Primary encoder tokens
# =============================================================================

POSITIVE_INFINITY_TOKEN: Final[str] = "+inf"
NEGATIVE_INFINITY_TOKEN: Final[str] = "-inf"
NAN_TOKEN: Final[str] = "nan"

# =============================================================================
# Framing  [RFC 7464 for json-seq]
# =============================================================================

JSON_SEQ_RECORD_SEPARATOR: Final[bytes] = b"\x1e"
NEWLINE: Final[bytes] = b"\n"

# Bytes that never appear in well-formed UTF-8
UTF8_ILLEGAL_SEPARATORS: Final[Tuple[bytes, ...]] = (b"\xff", b"\xfe")

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_LABEL: Final[str] = "root"
DEFAULT_LEVEL_NAME: Final[str] = "info"
STDOUT_FD: Final[int] = 1
