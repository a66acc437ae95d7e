"""
Metadata → JSON tree conversion.

Responsibilities:
- Map arbitrary metadata values onto JSON-safe trees
- Optionally encode opaque values structurally (value → JSON text → tree)
- Degrade any value that cannot be encoded structurally to its str()

Non-responsibilities:
- No merging (see metadata.merge)
- No full-record encoding (see encoding.encoder)

Value kinds:
    str                  → JSON string, unchanged
    list / tuple         → JSON array, converted element by element
    Mapping              → JSON object, converted value by value
    anything else        → opaque: structured tree if possible, else str(value)
"""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Union, runtime_checkable

import numpy as np


JSONText = Union[str, bytes]


@runtime_checkable
class JSONRepresentable(Protocol):
    """
    Explicit capability: "this value can describe itself as JSON".

    Metadata values implementing this are encoded structurally when the
    logger has structured coders configured. The returned object must be
    serializable by the structured encoder (plain JSON types, or further
    values it knows how to handle).
    """

    def json_representation(self) -> Any: ...


# Values that are structurally encodable without implementing the protocol
_IMPLICIT_STRUCTURED_TYPES = (
    bool,
    int,
    float,
    type(None),
    datetime,
    bytes,
    bytearray,
    np.generic,
    np.ndarray,
)


def has_structured_capability(value: Any) -> bool:
    """
    Return True if `value` may be handed to a structured encoder.
    """
    if isinstance(value, _IMPLICIT_STRUCTURED_TYPES):
        return True
    if isinstance(value, JSONRepresentable):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


# -----------------------------------------------------------------------------
# Structured coders
# -----------------------------------------------------------------------------

def _structured_default(obj: Any) -> Any:
    """
    json.dumps `default=` hook for the default structured encoder.
    """
    if isinstance(obj, JSONRepresentable):
        return obj.json_representation()

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)

    if isinstance(obj, datetime):
        return obj.isoformat()

    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")

    if isinstance(obj, np.generic):
        return obj.item()

    if isinstance(obj, np.ndarray):
        return obj.tolist()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite JSON constant not allowed: {name}")


def _default_encode(value: Any) -> str:
    return json.dumps(
        value,
        default=_structured_default,
        allow_nan=False,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def _default_decode(data: JSONText) -> Any:
    return json.loads(data, parse_constant=_reject_constant)


@dataclass(frozen=True)
class StructuredCoders:
    """
    Encoder/decoder pair used to turn opaque metadata values into JSON trees.

    encode:
        value → JSON text. May raise; a failure degrades that one value
        to its str().

    decode:
        JSON text → generic JSON tree. Always applied to the encoder's
        output so every structured value ends up in the same
        representation, whatever conventions the encoder used.
    """
    encode: Callable[[Any], JSONText]
    decode: Callable[[JSONText], Any]

    @staticmethod
    def default() -> StructuredCoders:
        """
        json.dumps / json.loads based coders.

        Non-finite floats are rejected in both directions, so such values
        fall back to their description.
        """
        return StructuredCoders(encode=_default_encode, decode=_default_decode)


# -----------------------------------------------------------------------------
# Conversion
# -----------------------------------------------------------------------------

def _structured_value(value: Any, coders: StructuredCoders) -> Any:
    """
    Round-trip `value` through the coders.

    Raises whatever the coders raise.
    """
    return coders.decode(coders.encode(value))


def _describe(value: Any) -> str:
    try:
        return str(value)
    except Exception:  # pylint: disable=broad-exception-caught
        return f"<unprintable {type(value).__name__}>"


def to_json_value(value: Any, coders: Optional[StructuredCoders] = None) -> Any:
    """
    Convert one metadata value into a JSON-safe tree.

    Never raises for opaque values: a failed structured encoding
    (encode error, decode error) silently degrades to str(value).
    """
    if isinstance(value, str):
        return value

    if isinstance(value, (list, tuple)):
        return [to_json_value(item, coders) for item in value]

    if isinstance(value, Mapping):
        return {
            str(key): to_json_value(item, coders)
            for key, item in value.items()
        }

    if coders is not None and has_structured_capability(value):
        try:
            return _structured_value(value, coders)
        except Exception:  # pylint: disable=broad-exception-caught
            pass

    return _describe(value)


def json_metadata(
    metadata: Mapping[str, Any],
    coders: Optional[StructuredCoders] = None,
) -> dict[str, Any]:
    """
    Convert a whole metadata map into an object-rooted JSON tree.
    """
    return {
        str(key): to_json_value(value, coders)
        for key, value in metadata.items()
    }
