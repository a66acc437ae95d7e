"""
Exceptions raised by the explicit (non-logging) APIs of the backend.

Nothing in this module is ever raised out of JSONLogger.log(); these only
surface from construction-time validation and from the record decoder.
"""

from __future__ import annotations


class JSONLogError(Exception):
    """Base class for JSON log backend errors."""


class MalformedLogLine(JSONLogError):
    """
    Raised when a payload cannot be decoded into a LogLine.

    Covers invalid JSON, missing or mistyped required fields, and records
    carrying both the primary "date" field and the reserved fallback
    "date-1970" field. A record with both is ambiguous and is rejected
    rather than guessed at.
    """


class InvalidFraming(JSONLogError):
    """
    Raised when a framing configuration is unusable.

    For example an exotic-delimiter separator that is not one of the bytes
    illegal in UTF-8, which would make splitting the stream unreliable.
    """
