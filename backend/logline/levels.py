"""
Log severity enumeration.

Rules:
- The JSON form of a level is its lowercase name.
- Ordering is by severity, not by name.
"""

from __future__ import annotations

from enum import Enum


class Level(str, Enum):
    """
    Severity of a single log record, lowest first.

    NOTICE sits between INFO and WARNING: a normal but significant
    condition that is worth surfacing without being a problem.
    """

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        """Position of this level in the severity order (TRACE == 0)."""
        return _ORDER.index(self)

    def is_at_least(self, other: Level) -> bool:
        return self.severity >= other.severity

    @classmethod
    def parse(cls, name: str) -> Level:
        """
        Look up a level by name, case-insensitively.

        Raises:
            ValueError if the name is not a known level.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown log level: {name!r}") from None


_ORDER: tuple[Level, ...] = tuple(Level)
