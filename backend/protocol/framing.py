"""
Framing helpers for the JSON record stream.

Wire layout for three records:

    prefix JSON1 suffix  separator prefix JSON2 suffix  separator prefix JSON3 suffix

- A frame is prefix + payload + suffix.
- The separator goes *between* frames: never before the first frame
  written to a sink.

Presets:
    default    prefix = b""      suffix = b""    separator = b"\\n"
    json-seq   prefix = b"\\x1e"  suffix = b"\\n"  separator = b""    (RFC 7464)
    exotic     prefix = b""      suffix = b""    separator = b"\\xff" or b"\\xfe"

The exotic separators never occur in UTF-8 text, so payloads may contain
raw newlines and the stream still splits unambiguously.

Usage example:

    framing = Framing.json_seq()
    data = framing.assemble(payload, first=sink_was_fresh)
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import (
    JSON_SEQ_RECORD_SEPARATOR,
    NEWLINE,
    UTF8_ILLEGAL_SEPARATORS,
)
from errors import InvalidFraming


@dataclass(frozen=True)
class Framing:
    """
    Bytes wrapped around and placed between encoded records.
    """
    prefix: bytes = b""
    suffix: bytes = b""
    separator: bytes = NEWLINE

    # -------------------------
    # Presets
    # -------------------------

    @staticmethod
    def default() -> Framing:
        """Newline-separated JSON (no trailing newline after the last record)."""
        return Framing(prefix=b"", suffix=b"", separator=NEWLINE)

    @staticmethod
    def json_seq() -> Framing:
        """RFC 7464 JSON text sequence."""
        return Framing(
            prefix=JSON_SEQ_RECORD_SEPARATOR,
            suffix=NEWLINE,
            separator=b"",
        )

    @staticmethod
    def exotic(separator: bytes = UTF8_ILLEGAL_SEPARATORS[0]) -> Framing:
        """
        Records separated by a byte that is illegal in UTF-8.

        Raises:
            InvalidFraming if `separator` is not b"\\xff" or b"\\xfe".
        """
        if separator not in UTF8_ILLEGAL_SEPARATORS:
            raise InvalidFraming(
                f"Exotic separator must be one of {UTF8_ILLEGAL_SEPARATORS!r}, "
                f"got {separator!r}"
            )
        return Framing(prefix=b"", suffix=b"", separator=separator)

    @staticmethod
    def named(name: str) -> Framing:
        """
        Look up a preset by name ("default", "json-seq", "exotic").

        Raises:
            InvalidFraming for unknown names.
        """
        presets = {
            "default": Framing.default,
            "json-seq": Framing.json_seq,
            "exotic": Framing.exotic,
        }
        try:
            return presets[name.strip().lower()]()
        except KeyError:
            raise InvalidFraming(f"Unknown framing preset: {name!r}") from None

    # -------------------------
    # Assembly
    # -------------------------

    def frame(self, payload: bytes) -> bytes:
        """prefix + payload + suffix"""
        return self.prefix + payload + self.suffix

    def assemble(self, payload: bytes, *, first: bool) -> bytes:
        """
        Frame `payload` and prepend the separator unless this is the first record.
        """
        if first:
            return self.frame(payload)
        return self.separator + self.frame(payload)


# -------------------------
# Stream splitting
# -------------------------

def _strip_frame(chunk: bytes, framing: Framing) -> bytes:
    if framing.prefix and chunk.startswith(framing.prefix):
        chunk = chunk[len(framing.prefix):]
    if framing.suffix and chunk.endswith(framing.suffix):
        chunk = chunk[:-len(framing.suffix)]
    return chunk


def split_frames(stream: bytes, framing: Framing) -> list[bytes]:
    """
    Recover the encoded payloads from a complete byte stream.

    Pure function; never raises. Empty chunks are dropped.

    With an empty separator the stream is split on the prefix instead,
    which is what json-seq readers do.
    """
    if framing.separator:
        chunks = stream.split(framing.separator)
    elif framing.prefix:
        chunks = [framing.prefix + c for c in stream.split(framing.prefix) if c]
    elif framing.suffix:
        chunks = [c + framing.suffix for c in stream.split(framing.suffix) if c]
    else:
        chunks = [stream]

    payloads = [_strip_frame(c, framing) for c in chunks]
    return [p for p in payloads if p]
