"""
Log record primitive.

Pure data container only.
No encoding, no I/O, no metadata conversion.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from logline.levels import Level


@dataclass(frozen=True)
class LogLine:
    """
    One log record, exactly as it is handed to the encoder.

    level:
        Severity of the record.

    message:
        Rendered, human-readable message.

    metadata:
        JSON tree rooted at an object. Leaves MUST already be JSON-safe
        (str, int, float, bool, None); containers are lists and str-keyed
        dicts. Conversion from arbitrary values happens before a LogLine
        is built (see metadata.convert).

    date:
        Wall-clock time the record was created, or None when the logger
        is configured without timestamps.

    label:
        Identity of the logger that produced the record.

    source, file, function, line:
        Call-site information captured by the front-end.
    """
    level: Level
    message: str
    metadata: dict[str, Any]
    label: str
    source: str
    file: str
    function: str
    line: int
    date: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.line < 0:
            raise ValueError(f"line must be >= 0, got {self.line}")
