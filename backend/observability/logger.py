"""
JSON logger.

One log call in, one framed JSON record out, synchronously:

    merge metadata → convert to JSON → build LogLine → encode (with fallback)
        → frame → serialized write

Contract:
- log() never raises and never returns an error
- merge, conversion and encoding run unlocked on the caller's thread
- only the final write is serialized (see sinks.fd_sink)
- a record that cannot be encoded is replaced by a fallback record;
  a record that cannot be written is dropped
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Mapping, Optional

from config import LoggerConfig
from encoding.encoder import LineEncoder, LogLineEncoder, encode_with_fallback
from logline.levels import Level
from logline.line import LogLine
from metadata.convert import StructuredCoders, json_metadata
from metadata.merge import merge_metadata
from protocol.framing import Framing
from sinks.fd_sink import OutputSink, sink_for_fd


MetadataProvider = Callable[[], Mapping[str, Any]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JSONLogger:
    """
    Logging backend writing framed JSON records to an OutputSink.

    Configuration is fixed at construction and exposed through read-only
    properties. Two things can change afterwards: `log_level`, and the base
    metadata through item assignment (logger["key"] = value), item
    deletion, or by assigning the `metadata` property. Each metadata change
    re-renders the cached base metadata JSON immediately.

    Thread Safety:
        log() may be called from any thread. Changing base metadata while
        other threads log must be synchronized by the caller.
    """

    def __init__(
        self,
        *,
        label: str,
        sink: Optional[OutputSink] = None,
        framing: Optional[Framing] = None,
        encoder: Optional[LineEncoder] = None,
        structured_coders: Optional[StructuredCoders] = StructuredCoders.default(),
        metadata: Optional[Mapping[str, Any]] = None,
        metadata_provider: Optional[MetadataProvider] = None,
        log_level: Level = Level.INFO,
        timestamps: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._label = label
        self._sink = sink or OutputSink.stdout()
        self._framing = framing or Framing.default()
        self._encoder: LineEncoder = encoder or LogLineEncoder()
        self._structured_coders = structured_coders
        self._metadata_provider = metadata_provider
        self._timestamps = timestamps
        self._clock = clock
        self.log_level = log_level

        self._metadata: dict[str, Any] = {}
        self._metadata_cache: dict[str, Any] = {}
        self.metadata = metadata or {}

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: LoggerConfig,
        *,
        metadata: Optional[Mapping[str, Any]] = None,
        metadata_provider: Optional[MetadataProvider] = None,
    ) -> JSONLogger:
        return cls(
            label=config.label,
            sink=sink_for_fd(config.fd),
            framing=config.framing,
            encoder=LogLineEncoder(config.encoder_settings),
            structured_coders=(
                StructuredCoders.default() if config.structured_metadata else None
            ),
            metadata=metadata,
            metadata_provider=metadata_provider,
            log_level=config.log_level,
            timestamps=config.timestamps,
        )

    @classmethod
    def for_json_seq(
        cls,
        *,
        label: str,
        sink: Optional[OutputSink] = None,
        **kwargs: Any,
    ) -> JSONLogger:
        """
        Logger emitting an RFC 7464 json-seq stream (0x1E JSON 0x0A ...).
        """
        return cls(label=label, sink=sink, framing=Framing.json_seq(), **kwargs)

    # ------------------------------------------------------------------
    # Read-only configuration
    # ------------------------------------------------------------------

    @property
    def label(self) -> str:
        return self._label

    @property
    def sink(self) -> OutputSink:
        return self._sink

    @property
    def framing(self) -> Framing:
        return self._framing

    @property
    def encoder(self) -> LineEncoder:
        return self._encoder

    @property
    def structured_coders(self) -> Optional[StructuredCoders]:
        return self._structured_coders

    @property
    def metadata_provider(self) -> Optional[MetadataProvider]:
        return self._metadata_provider

    @property
    def timestamps(self) -> bool:
        return self._timestamps

    # ------------------------------------------------------------------
    # Base metadata
    # ------------------------------------------------------------------

    @property
    def metadata(self) -> dict[str, Any]:
        """A copy of the base metadata."""
        return dict(self._metadata)

    @metadata.setter
    def metadata(self, value: Mapping[str, Any]) -> None:
        self._metadata = dict(value)
        self._render_metadata_cache()

    def __getitem__(self, key: str) -> Any:
        return self._metadata[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._metadata[key] = value
        self._render_metadata_cache()

    def __delitem__(self, key: str) -> None:
        del self._metadata[key]
        self._render_metadata_cache()

    def __contains__(self, key: object) -> bool:
        return key in self._metadata

    def __iter__(self) -> Iterator[str]:
        return iter(self._metadata)

    def _render_metadata_cache(self) -> None:
        self._metadata_cache = json_metadata(self._metadata, self._structured_coders)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def is_enabled_for(self, level: Level) -> bool:
        return level.is_at_least(self.log_level)

    def log(
        self,
        level: Level,
        message: str,
        metadata: Optional[Mapping[str, Any]] = None,
        *,
        source: str,
        file: str,
        function: str,
        line: int,
    ) -> None:
        """
        Emit one record. Level filtering is the front-end's job.

        Never raises.
        """
        try:
            payload = encode_with_fallback(
                self._encoder,
                self._build_line(level, message, metadata, source, file, function, line),
            )
            self._sink.write_framed(
                self._framing.frame(payload),
                separator=self._framing.separator,
            )
        except Exception:  # pylint: disable=broad-exception-caught
            # Logging must never destabilize the caller.
            pass

    def _fetch_provided(self) -> Mapping[str, Any]:
        if self._metadata_provider is None:
            return {}
        try:
            return self._metadata_provider() or {}
        except Exception:  # pylint: disable=broad-exception-caught
            return {}

    def _effective_metadata(self, explicit: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        # Provider is called exactly once per log call
        merged = merge_metadata(self._metadata, self._fetch_provided(), explicit)
        if merged is None:
            return self._metadata_cache
        return json_metadata(merged, self._structured_coders)

    def _build_line(
        self,
        level: Level,
        message: str,
        metadata: Optional[Mapping[str, Any]],
        source: str,
        file: str,
        function: str,
        line: int,
    ) -> LogLine:
        return LogLine(
            level=level,
            message=str(message),
            metadata=self._effective_metadata(metadata),
            label=self._label,
            source=source,
            file=file,
            function=function,
            line=line,
            date=self._clock() if self._timestamps else None,
        )


# ------------------------------------------------------------------
# Module-level convenience (patchable in tests)
# ------------------------------------------------------------------

_default_logger: Optional[JSONLogger] = None


def default_logger() -> JSONLogger:
    """
    Lazily build the process default logger from the environment.
    """
    global _default_logger  # pylint: disable=global-statement
    if _default_logger is None:
        _default_logger = JSONLogger.from_config(LoggerConfig.load_from_env())
    return _default_logger


def log_event(
    event: Mapping[str, Any],
    *,
    message: str = "",
    level: Level = Level.INFO,
) -> None:
    """
    Write a single ad-hoc event through the default logger.

    The event mapping becomes the record's per-call metadata; call-site
    fields describe the caller of log_event().

    Never raises.
    """
    try:
        logger = default_logger()
        if not logger.is_enabled_for(level):
            return
        frame = sys._getframe(1)  # pylint: disable=protected-access
        logger.log(
            level,
            message,
            event,
            source=frame.f_globals.get("__name__", ""),
            file=frame.f_code.co_filename,
            function=frame.f_code.co_name,
            line=frame.f_lineno,
        )
    except Exception:  # pylint: disable=broad-exception-caught
        pass
