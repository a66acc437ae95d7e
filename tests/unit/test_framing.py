# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from errors import InvalidFraming
from protocol.framing import Framing, split_frames


J1 = b'{"n":1}'
J2 = b'{"n":2}'


# ---------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------

def test_default_preset():
    framing = Framing.default()

    assert (framing.prefix, framing.suffix, framing.separator) == (b"", b"", b"\n")


def test_json_seq_preset():
    framing = Framing.json_seq()

    assert (framing.prefix, framing.suffix, framing.separator) == (b"\x1e", b"\n", b"")


def test_exotic_preset():
    assert Framing.exotic().separator == b"\xff"
    assert Framing.exotic(b"\xfe").separator == b"\xfe"


def test_exotic_rejects_utf8_legal_separator():
    with pytest.raises(InvalidFraming):
        Framing.exotic(b"\n")


def test_named_presets():
    assert Framing.named("default") == Framing.default()
    assert Framing.named("JSON-SEQ") == Framing.json_seq()
    assert Framing.named("exotic") == Framing.exotic()


def test_named_unknown():
    with pytest.raises(InvalidFraming):
        Framing.named("xml")


# ---------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------

def test_frame_wraps_payload():
    framing = Framing(prefix=b"<", suffix=b">", separator=b"|")

    assert framing.frame(J1) == b"<" + J1 + b">"


def test_first_record_has_no_separator():
    """
    Contract: the first frame on a sink goes out without a separator.
    """
    framing = Framing(prefix=b"<", suffix=b">", separator=b"|")

    assert framing.assemble(J1, first=True) == b"<" + J1 + b">"
    assert framing.assemble(J2, first=False) == b"|<" + J2 + b">"


def test_json_seq_two_records():
    framing = Framing.json_seq()

    stream = framing.assemble(J1, first=True) + framing.assemble(J2, first=False)

    assert stream == b"\x1e" + J1 + b"\n\x1e" + J2 + b"\n"


# ---------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "framing",
    [
        Framing.default(),
        Framing.json_seq(),
        Framing.exotic(),
        Framing(prefix=b"<", suffix=b">", separator=b"|"),
    ],
)
def test_split_recovers_payloads(framing):
    stream = framing.assemble(J1, first=True) + framing.assemble(J2, first=False)

    assert split_frames(stream, framing) == [J1, J2]


def test_exotic_split_tolerates_newlines_in_payload():
    """
    Contract: a UTF-8-illegal separator splits streams whose payloads
    contain newlines.
    """
    framing = Framing.exotic()
    payload = b'{"text":"a\nb"}'

    stream = framing.assemble(payload, first=True) + framing.assemble(J2, first=False)

    assert split_frames(stream, framing) == [payload, J2]


def test_split_empty_stream():
    assert split_frames(b"", Framing.default()) == []
