"""
Standard library `logging` front-end bridge.

Maps logging.LogRecord objects onto JSONLogger.log() calls:

    record.levelno     → Level (TRACE below DEBUG, NOTICE between INFO and WARNING)
    record.getMessage()→ message
    record.metadata    → per-call metadata (logger.info("...", extra={"metadata": {...}}))
    record.exc_info    → per-call metadata key "exception" (formatted traceback)
    record.name        → source
    record.pathname    → file
    record.funcName    → function
    record.lineno      → line

Example:
    >>> import logging
    >>> from observability.handler import bootstrap
    >>> bootstrap()
    >>> logging.getLogger(__name__).info("ready", extra={"metadata": {"port": 8080}})
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from config import LoggerConfig
from logline.levels import Level
from observability.logger import JSONLogger


TRACE_LEVELNO = 5
NOTICE_LEVELNO = 25

_STDLIB_LEVELS: dict[Level, int] = {
    Level.TRACE: TRACE_LEVELNO,
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.NOTICE: NOTICE_LEVELNO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
    Level.CRITICAL: logging.CRITICAL,
}

METADATA_ATTR = "metadata"
EXCEPTION_KEY = "exception"


def level_from_levelno(levelno: int) -> Level:
    """
    Map a stdlib numeric level onto the closest Level at or below it.
    """
    if levelno >= logging.CRITICAL:
        return Level.CRITICAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARNING
    if levelno > logging.INFO:
        return Level.NOTICE
    if levelno >= logging.INFO:
        return Level.INFO
    if levelno >= logging.DEBUG:
        return Level.DEBUG
    return Level.TRACE


def levelno_from_level(level: Level) -> int:
    return _STDLIB_LEVELS[level]


class JSONLogHandler(logging.Handler):
    """
    logging.Handler that forwards records to a JSONLogger.

    The handler takes no lock of its own: records are merged and encoded
    concurrently and serialized only at the JSONLogger's sink.
    """

    def __init__(self, json_logger: JSONLogger) -> None:
        super().__init__(level=logging.NOTSET)
        self.json_logger = json_logger
        self._exception_formatter = logging.Formatter()

    def handle(self, record: logging.LogRecord) -> Any:
        rv = self.filter(record)
        if isinstance(rv, logging.LogRecord):
            record = rv
        if rv:
            self.emit(record)
        return rv

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = level_from_levelno(record.levelno)
            if not self.json_logger.is_enabled_for(level):
                return

            self.json_logger.log(
                level,
                record.getMessage(),
                self._record_metadata(record),
                source=record.name,
                file=record.pathname,
                function=record.funcName or "",
                line=record.lineno or 0,
            )
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)

    def _record_metadata(self, record: logging.LogRecord) -> Optional[dict[str, Any]]:
        metadata = getattr(record, METADATA_ATTR, None)
        explicit: dict[str, Any] = dict(metadata) if metadata else {}

        if record.exc_info:
            explicit[EXCEPTION_KEY] = self._exception_formatter.formatException(
                record.exc_info
            )

        return explicit or None


def bootstrap(
    logger: Optional[logging.Logger] = None,
    *,
    json_logger: Optional[JSONLogger] = None,
    config: Optional[LoggerConfig] = None,
) -> JSONLogger:
    """
    Route a stdlib logger (the root logger by default) to a JSONLogger.

    Existing JSONLogHandlers on that logger are replaced, so calling
    bootstrap() twice does not duplicate records. The stdlib logger's
    level follows the JSONLogger's log_level.

    Args:
        logger: Target stdlib logger (default: root)
        json_logger: Backend to use (default: built from `config`)
        config: Used when `json_logger` is not given
            (default: LoggerConfig.load_from_env())

    Returns:
        The JSONLogger records are routed to.
    """
    target = logger or logging.getLogger()
    backend = json_logger or JSONLogger.from_config(config or LoggerConfig.load_from_env())

    logging.addLevelName(TRACE_LEVELNO, "TRACE")
    logging.addLevelName(NOTICE_LEVELNO, "NOTICE")

    for handler in list(target.handlers):
        if isinstance(handler, JSONLogHandler):
            target.removeHandler(handler)

    target.addHandler(JSONLogHandler(backend))
    target.setLevel(levelno_from_level(backend.log_level))
    return backend
