"""
Primary LogLine encoder and the encode-with-fallback entry point.

Encoder settings:
- escape_slashes:  "/" written as "\\/" when enabled (off by default)
- key_casing:      passthrough (keys are written exactly as given)
- date_encoding:   ISO-8601 string (UTC, microseconds) or seconds since epoch
- bytes:           base64 string
- non-finite floats: "+inf" / "-inf" / "nan" string tokens

Usage example:

    encoder = LogLineEncoder(EncoderSettings())
    payload = encode_with_fallback(encoder, line)   # never raises
"""

from __future__ import annotations

import base64
import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from constants import (
    FIELD_DATE,
    FIELD_FILE,
    FIELD_FUNCTION,
    FIELD_LABEL,
    FIELD_LEVEL,
    FIELD_LINE,
    FIELD_MESSAGE,
    FIELD_METADATA,
    FIELD_SOURCE,
    NAN_TOKEN,
    NEGATIVE_INFINITY_TOKEN,
    POSITIVE_INFINITY_TOKEN,
)
from encoding.fallback import build_fallback_json
from logline.line import LogLine


class KeyCasing(str, Enum):
    """
    How object keys are written.

    Only passthrough is supported: keys (record fields and metadata keys)
    are written verbatim.
    """
    PASSTHROUGH = "passthrough"


class DateEncoding(str, Enum):
    """
    Representation of the record date.

    ISO8601:
        "2024-05-01T12:00:00.123456Z" (always UTC)

    NUMERIC:
        Seconds since the Unix epoch, as a float.
    """
    ISO8601 = "iso8601"
    NUMERIC = "numeric"


@dataclass(frozen=True)
class EncoderSettings:
    """
    Immutable settings shared by the primary encoder and the decoder.

    A decoder only reproduces a LogLine exactly when it is given the same
    settings the encoder used.

    key_casing is validated here and otherwise needs no handling: with
    PASSTHROUGH, the only supported value, keys are written and read
    back verbatim.

    Raises:
        ValueError for an unsupported key_casing or date_encoding
    """
    escape_slashes: bool = False
    key_casing: KeyCasing = field(default=KeyCasing.PASSTHROUGH)
    date_encoding: DateEncoding = field(default=DateEncoding.ISO8601)

    def __post_init__(self) -> None:
        # Coerce plain strings ("passthrough", "numeric") to their enums
        object.__setattr__(self, "key_casing", KeyCasing(self.key_casing))
        object.__setattr__(self, "date_encoding", DateEncoding(self.date_encoding))


class LineEncoder(Protocol):
    """
    Anything that can turn a LogLine into JSON bytes.

    May raise; encode_with_fallback() absorbs the failure.
    """

    def encode(self, line: LogLine) -> bytes: ...


def format_iso8601(date: datetime) -> str:
    """
    Format `date` as a UTC ISO-8601 string with a "Z" suffix.

    Naive datetimes are interpreted as local time.
    """
    utc = date.astimezone(timezone.utc)
    return utc.isoformat(timespec="microseconds").replace("+00:00", "Z")


class LogLineEncoder:
    """
    Default primary encoder.

    Produces compact UTF-8 JSON with a fixed key order. Values outside
    the JSON data model are normalized (dates, bytes, non-finite floats);
    anything else raises TypeError so the caller can fall back.
    """

    def __init__(self, settings: EncoderSettings | None = None) -> None:
        self.settings = settings or EncoderSettings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, line: LogLine) -> bytes:
        record: dict[str, Any] = {
            FIELD_LEVEL: line.level.value,
            FIELD_MESSAGE: line.message,
            FIELD_METADATA: self._normalize(line.metadata),
        }

        if line.date is not None:
            record[FIELD_DATE] = self._encode_date(line.date)

        record[FIELD_LABEL] = line.label
        record[FIELD_SOURCE] = line.source
        record[FIELD_FILE] = line.file
        record[FIELD_FUNCTION] = line.function
        record[FIELD_LINE] = line.line

        text = json.dumps(
            record,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )

        # "/" is never structural in JSON, so it only ever occurs inside strings
        if self.settings.escape_slashes:
            text = text.replace("/", "\\/")

        return text.encode("utf-8")

    # ------------------------------------------------------------------
    # Value normalization
    # ------------------------------------------------------------------

    def _encode_date(self, date: datetime) -> Any:
        if self.settings.date_encoding is DateEncoding.NUMERIC:
            return date.timestamp()
        return format_iso8601(date)

    def _encode_float(self, value: float) -> Any:
        if math.isnan(value):
            return NAN_TOKEN
        if math.isinf(value):
            return POSITIVE_INFINITY_TOKEN if value > 0 else NEGATIVE_INFINITY_TOKEN
        return value

    def _normalize(self, value: Any) -> Any:
        if value is None or isinstance(value, (str, bool, int)):
            return value

        if isinstance(value, float):
            return self._encode_float(value)

        if isinstance(value, dict):
            out: dict[str, Any] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise TypeError(
                        f"Metadata keys must be str, got {type(key).__name__}"
                    )
                out[key] = self._normalize(item)
            return out

        if isinstance(value, (list, tuple)):
            return [self._normalize(item) for item in value]

        if isinstance(value, datetime):
            return self._encode_date(value)

        if isinstance(value, (bytes, bytearray)):
            return base64.b64encode(bytes(value)).decode("ascii")

        raise TypeError(
            f"Object of type {type(value).__name__} is not JSON serializable"
        )


def encode_with_fallback(encoder: LineEncoder, line: LogLine) -> bytes:
    """
    Encode `line` with `encoder`, falling back to a hand-built record.

    Never raises.
    """
    try:
        return encoder.encode(line)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return build_fallback_json(line, exc)
