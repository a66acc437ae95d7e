# pylint: disable=missing-module-docstring,missing-function-docstring

from datetime import datetime, timezone

import pytest

from encoding.decoder import decode_log_line
from encoding.encoder import DateEncoding, EncoderSettings, LogLineEncoder
from encoding.fallback import build_fallback_json
from errors import MalformedLogLine
from logline.levels import Level
from logline.line import LogLine


def make_line(**overrides) -> LogLine:
    fields = {
        "level": Level.WARNING,
        "message": "disk almost full",
        "metadata": {"mount": "/var", "free": [1, 2.5, None, True]},
        "label": "best-logger",
        "source": "dummy-source",
        "file": "dummy-file",
        "function": "dummy-function",
        "line": 7,
        "date": datetime(2024, 5, 1, 12, 0, 0, 654321, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return LogLine(**fields)


# ---------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------

def test_round_trip_iso8601():
    line = make_line()

    assert decode_log_line(LogLineEncoder().encode(line)) == line


def test_round_trip_without_date():
    line = make_line(date=None)

    assert decode_log_line(LogLineEncoder().encode(line)) == line


def test_round_trip_numeric_date():
    settings = EncoderSettings(date_encoding=DateEncoding.NUMERIC)
    line = make_line()

    decoded = decode_log_line(LogLineEncoder(settings).encode(line), settings)

    assert decoded.date is not None
    assert abs((decoded.date - line.date).total_seconds()) <= 0.001
    assert decoded.metadata == line.metadata


def test_round_trip_escaped_slashes():
    settings = EncoderSettings(escape_slashes=True)
    line = make_line()

    assert decode_log_line(LogLineEncoder(settings).encode(line), settings) == line


def test_fallback_record_decodes_with_fallback_date():
    """
    Contract: fallback records decode, taking the date from "date-1970".
    """
    line = make_line()

    decoded = decode_log_line(build_fallback_json(line, RuntimeError("x")))

    assert decoded.date is not None
    assert abs((decoded.date - line.date).total_seconds()) <= 0.001
    assert decoded.level == Level.WARNING


def test_accepts_str_payload():
    line = make_line()

    assert decode_log_line(LogLineEncoder().encode(line).decode("utf-8")) == line


# ---------------------------------------------------------------------
# Ambiguous dates
# ---------------------------------------------------------------------

def test_rejects_valid_date_and_fallback_date():
    """
    Contract: a record carrying both "date" and "date-1970" is rejected.
    """
    data = (
        b'{"level":"info","message":"","metadata":{},"date":"2023-10-31T23:41:33Z",'
        b'"date-1970":1698795606.2196689,"label":"","source":"","file":"",'
        b'"function":"","line":42}'
    )

    with pytest.raises(MalformedLogLine):
        decode_log_line(data)


def test_rejects_invalid_date_and_fallback_date():
    """
    Contract: the dual-date rejection holds even when "date" is unparseable.
    """
    data = (
        b'{"level":"info","message":"","metadata":{},"date":"this is not a date",'
        b'"date-1970":1698795606.2196689,"label":"","source":"","file":"",'
        b'"function":"","line":42}'
    )

    with pytest.raises(MalformedLogLine):
        decode_log_line(data)


# ---------------------------------------------------------------------
# Malformed records
# ---------------------------------------------------------------------

VALID = (
    '{"level":"info","message":"","metadata":{},"label":"",'
    '"source":"","file":"","function":"","line":42}'
)


def test_valid_minimal_record():
    decoded = decode_log_line(VALID)

    assert decoded.line == 42
    assert decoded.date is None


@pytest.mark.parametrize(
    "data",
    [
        "not json",
        "[1, 2]",
        VALID.replace('"level":"info"', '"level":"INFO"'),
        VALID.replace('"metadata":{}', '"metadata":[]'),
        VALID.replace('"line":42', '"line":-1'),
        VALID.replace('"line":42', '"line":true'),
        VALID.replace('"line":42', '"line":4.2'),
        VALID.replace('"label":"",', ""),
        VALID.replace('"line":42', '"line":42,"date":"yesterday"'),
    ],
)
def test_rejects_malformed(data):
    with pytest.raises(MalformedLogLine):
        decode_log_line(data)
