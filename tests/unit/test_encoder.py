# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from datetime import datetime, timedelta, timezone

import pytest

from constants import (
    FALLBACK_ERROR_KEY,
    FALLBACK_INFO_KEY,
    FALLBACK_INFO_VALUE,
    MANGLED_MESSAGE_PREFIX,
)
from encoding.encoder import (
    DateEncoding,
    EncoderSettings,
    KeyCasing,
    LogLineEncoder,
    encode_with_fallback,
    format_iso8601,
)
from encoding.fallback import build_fallback_json, safify_for_json
from logline.levels import Level
from logline.line import LogLine


DATE = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


def make_line(**overrides) -> LogLine:
    fields = {
        "level": Level.INFO,
        "message": "hello",
        "metadata": {},
        "label": "best-logger",
        "source": "dummy-source",
        "file": "dummy-file",
        "function": "dummy-function",
        "line": 42,
        "date": DATE,
    }
    fields.update(overrides)
    return LogLine(**fields)


class AnError(Exception):
    pass


class FailingDateEncoder(LogLineEncoder):
    def _encode_date(self, date):
        raise AnError()


# ---------------------------------------------------------------------
# Primary encoder
# ---------------------------------------------------------------------

def test_key_order_is_fixed():
    decoded = json.loads(LogLineEncoder().encode(make_line()))

    assert list(decoded) == [
        "level", "message", "metadata", "date",
        "label", "source", "file", "function", "line",
    ]


def test_output_is_compact_single_line():
    payload = LogLineEncoder().encode(make_line(message="a\nb"))

    assert b"\n" not in payload
    assert b", " not in payload


def test_date_omitted_without_timestamp():
    decoded = json.loads(LogLineEncoder().encode(make_line(date=None)))

    assert "date" not in decoded


def test_iso8601_date():
    decoded = json.loads(LogLineEncoder().encode(make_line()))

    assert decoded["date"] == "2024-05-01T12:00:00.123456Z"


def test_numeric_date():
    encoder = LogLineEncoder(EncoderSettings(date_encoding=DateEncoding.NUMERIC))

    decoded = json.loads(encoder.encode(make_line()))

    assert decoded["date"] == pytest.approx(DATE.timestamp())


def test_format_iso8601_converts_to_utc():
    plus_two = datetime(2024, 5, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    assert format_iso8601(plus_two) == "2024-05-01T12:00:00.000000Z"


def test_slashes_not_escaped_by_default():
    payload = LogLineEncoder().encode(make_line(file="/src/app.py"))

    assert b'"file":"/src/app.py"' in payload


def test_slashes_escaped_when_enabled():
    encoder = LogLineEncoder(EncoderSettings(escape_slashes=True))

    payload = encoder.encode(make_line(file="/src/app.py"))

    assert b'"file":"\\/src\\/app.py"' in payload
    assert json.loads(payload)["file"] == "/src/app.py"


def test_non_finite_floats_become_tokens():
    line = make_line(metadata={"values": [float("inf"), float("-inf"), float("nan"), 1.5]})

    decoded = json.loads(LogLineEncoder().encode(line))

    assert decoded["metadata"]["values"] == ["+inf", "-inf", "nan", 1.5]


def test_bytes_become_base64():
    decoded = json.loads(LogLineEncoder().encode(make_line(metadata={"raw": b"\x00\xff"})))

    assert decoded["metadata"]["raw"] == "AP8="


def test_non_ascii_kept_as_utf8():
    payload = LogLineEncoder().encode(make_line(message="héllo 🙃"))

    assert json.loads(payload.decode("utf-8"))["message"] == "héllo 🙃"


def test_unsupported_value_raises():
    with pytest.raises(TypeError):
        LogLineEncoder().encode(make_line(metadata={"obj": object()}))


def test_non_str_key_raises():
    with pytest.raises(TypeError):
        LogLineEncoder().encode(make_line(metadata={1: "one"}))


def test_settings_accept_plain_strings():
    settings = EncoderSettings(key_casing="passthrough", date_encoding="numeric")

    assert settings.key_casing is KeyCasing.PASSTHROUGH
    assert settings.date_encoding is DateEncoding.NUMERIC


@pytest.mark.parametrize(
    "overrides",
    [{"key_casing": "snake_case"}, {"date_encoding": "rfc2822"}],
)
def test_settings_reject_unsupported_values(overrides):
    with pytest.raises(ValueError):
        EncoderSettings(**overrides)


# ---------------------------------------------------------------------
# Fallback string escaping
# ---------------------------------------------------------------------

def test_safify_replaces_non_ascii():
    assert safify_for_json("Not first log message! 🙃") == "Not first log message! -"
    assert safify_for_json("é") == "-"


def test_safify_escapes():
    assert safify_for_json('a\\b"c') == 'a\\\\b\\"c'
    assert safify_for_json("a\nb\rc") == "a\\nb\\rc"


def test_safify_replaces_non_printable_ascii():
    assert safify_for_json("a\tb\x00c\x7f") == "a-b-c-"


def test_safify_keeps_printable_ascii():
    text = "".join(chr(c) for c in range(0x20, 0x7F) if chr(c) not in '\\"')

    assert safify_for_json(text) == text


# ---------------------------------------------------------------------
# Fallback record
# ---------------------------------------------------------------------

def test_fallback_record_shape():
    line = make_line(message='Not first "log" message! 🙃')

    decoded = json.loads(build_fallback_json(line, AnError("boom")))

    assert list(decoded) == [
        "level", "message", "metadata", "date-1970",
        "label", "source", "file", "function", "line",
    ]
    assert decoded["level"] == "info"
    assert decoded["message"] == MANGLED_MESSAGE_PREFIX + 'Not first "log" message! -'
    assert decoded["metadata"] == {
        FALLBACK_INFO_KEY: FALLBACK_INFO_VALUE,
        FALLBACK_ERROR_KEY: "AnError: boom",
    }
    assert decoded["date-1970"] == pytest.approx(DATE.timestamp())
    assert decoded["line"] == 42


def test_fallback_without_timestamp_has_no_date_field():
    decoded = json.loads(build_fallback_json(make_line(date=None), AnError()))

    assert "date-1970" not in decoded
    assert "date" not in decoded
    assert decoded["metadata"][FALLBACK_ERROR_KEY] == "AnError"


def test_fallback_is_single_line_ascii():
    line = make_line(message="line1\nline2", label="lab el")

    payload = build_fallback_json(line, AnError("multi\nline"))

    assert b"\n" not in payload
    payload.decode("ascii")


# ---------------------------------------------------------------------
# Encode with fallback
# ---------------------------------------------------------------------

def test_encode_with_fallback_uses_primary_when_possible():
    line = make_line()

    assert encode_with_fallback(LogLineEncoder(), line) == LogLineEncoder().encode(line)


def test_encode_with_fallback_on_primary_failure():
    payload = encode_with_fallback(FailingDateEncoder(), make_line(metadata={"a": "b"}))

    decoded = json.loads(payload)
    assert decoded["message"].startswith(MANGLED_MESSAGE_PREFIX)
    assert set(decoded["metadata"]) == {FALLBACK_INFO_KEY, FALLBACK_ERROR_KEY}
    assert decoded["metadata"][FALLBACK_ERROR_KEY] == "AnError"


class UnconvertibleDate(datetime):
    def timestamp(self):
        raise OverflowError("timestamp out of range for platform time_t")

    def astimezone(self, tz=None):
        raise OverflowError("date value out of range")


def test_fallback_drops_date_that_cannot_be_converted():
    """
    Contract: the fallback record never fails; a date with no epoch
    representation is left out instead.
    """
    line = make_line(date=UnconvertibleDate(2024, 5, 1, tzinfo=timezone.utc))

    decoded = json.loads(build_fallback_json(line, AnError()))

    assert "date-1970" not in decoded
    assert decoded["line"] == 42


def test_encode_with_fallback_survives_extreme_naive_date():
    """
    Contract: a date that breaks both the primary encoder and the epoch
    conversion still yields one decodable record.
    """
    payload = encode_with_fallback(LogLineEncoder(), make_line(date=datetime(1, 1, 1)))

    decoded = json.loads(payload)
    assert decoded["level"] == "info"
    assert decoded["label"] == "best-logger"
