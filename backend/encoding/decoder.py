"""
LogLine decoder.

Inverse of encoding.encoder for consumers and tests. Accepts records from
both the primary encoder ("date") and the fallback builder ("date-1970").
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

from constants import (
    FIELD_DATE,
    FIELD_FALLBACK_DATE,
    FIELD_FILE,
    FIELD_FUNCTION,
    FIELD_LABEL,
    FIELD_LEVEL,
    FIELD_LINE,
    FIELD_MESSAGE,
    FIELD_METADATA,
    FIELD_SOURCE,
)
from encoding.encoder import DateEncoding, EncoderSettings
from errors import MalformedLogLine
from logline.levels import Level
from logline.line import LogLine


def _require_str(record: dict[str, Any], name: str) -> str:
    value = record.get(name)
    if not isinstance(value, str):
        raise MalformedLogLine(f"Field {name!r} must be a string")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _from_epoch(name: str, value: Any) -> datetime:
    if not _is_number(value):
        raise MalformedLogLine(f"Field {name!r} must be a number")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedLogLine(f"Field {name!r} out of range: {value!r}") from exc


def _decode_date(value: Any, settings: EncoderSettings) -> datetime:
    if settings.date_encoding is DateEncoding.NUMERIC:
        return _from_epoch(FIELD_DATE, value)

    if not isinstance(value, str):
        raise MalformedLogLine(f"Field {FIELD_DATE!r} must be an ISO-8601 string")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedLogLine(f"Invalid {FIELD_DATE!r}: {value!r}") from exc


def decode_log_line(
    data: Union[str, bytes],
    settings: Optional[EncoderSettings] = None,
) -> LogLine:
    """
    Decode one JSON payload (without framing) into a LogLine.

    Raises:
        MalformedLogLine if the payload is not a valid record, including
        when it carries both "date" and "date-1970".
    """
    settings = settings or EncoderSettings()

    try:
        record = json.loads(data)
    except ValueError as exc:
        raise MalformedLogLine(f"Invalid JSON: {exc}") from exc

    if not isinstance(record, dict):
        raise MalformedLogLine("Record must be a JSON object")

    if FIELD_DATE in record and FIELD_FALLBACK_DATE in record:
        raise MalformedLogLine(
            f"Record carries both {FIELD_DATE!r} and {FIELD_FALLBACK_DATE!r}"
        )

    try:
        level = Level(_require_str(record, FIELD_LEVEL))
    except ValueError as exc:
        raise MalformedLogLine(f"Invalid {FIELD_LEVEL!r}") from exc

    metadata = record.get(FIELD_METADATA)
    if not isinstance(metadata, dict):
        raise MalformedLogLine(f"Field {FIELD_METADATA!r} must be an object")

    line = record.get(FIELD_LINE)
    if not isinstance(line, int) or isinstance(line, bool) or line < 0:
        raise MalformedLogLine(f"Field {FIELD_LINE!r} must be a non-negative integer")

    date: Optional[datetime] = None
    if FIELD_DATE in record:
        date = _decode_date(record[FIELD_DATE], settings)
    elif FIELD_FALLBACK_DATE in record:
        date = _from_epoch(FIELD_FALLBACK_DATE, record[FIELD_FALLBACK_DATE])

    return LogLine(
        level=level,
        message=_require_str(record, FIELD_MESSAGE),
        metadata=metadata,
        label=_require_str(record, FIELD_LABEL),
        source=_require_str(record, FIELD_SOURCE),
        file=_require_str(record, FIELD_FILE),
        function=_require_str(record, FIELD_FUNCTION),
        line=line,
        date=date,
    )
