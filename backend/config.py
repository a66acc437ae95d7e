"""
Logger configuration.

Responsibilities:
- Describe how a JSONLogger is built (sink, framing, encoder, level, ...)
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No logging logic
- No wire constants (see constants.py)
- No runtime mutation (base metadata lives on the logger, not here)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from constants import DEFAULT_LABEL, DEFAULT_LEVEL_NAME, STDOUT_FD
from encoding.encoder import DateEncoding, EncoderSettings
from logline.levels import Level
from protocol.framing import Framing


@dataclass(frozen=True)
class LoggerConfig:
    """
    Immutable logger configuration.

    Constructed once, typically at process startup, and handed to
    JSONLogger.from_config(). Every field has a usable default, so
    LoggerConfig() alone describes "info and above, newline-separated
    JSON on stdout".
    """

    # ------------------------------------------------------------------
    # Identity / filtering
    # ------------------------------------------------------------------

    label: str = DEFAULT_LABEL
    log_level: Level = Level.INFO

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    fd: int = STDOUT_FD
    framing: Framing = field(default_factory=Framing.default)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    # Records carry "date" only when enabled
    timestamps: bool = True
    encoder_settings: EncoderSettings = field(default_factory=EncoderSettings)

    # Opaque metadata values are encoded as JSON trees when enabled,
    # as their str() otherwise
    structured_metadata: bool = True

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> LoggerConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError for unknown level, date encoding or fd values.
            InvalidFraming for unknown framing presets.
        """
        return LoggerConfig(
            label=os.environ.get("JSONLOG_LABEL", DEFAULT_LABEL),
            log_level=Level.parse(os.environ.get("JSONLOG_LEVEL", DEFAULT_LEVEL_NAME)),

            fd=int(os.environ.get("JSONLOG_FD", str(STDOUT_FD))),
            framing=Framing.named(os.environ.get("JSONLOG_FRAMING", "default")),

            timestamps=os.environ.get("JSONLOG_TIMESTAMPS", "1") == "1",
            encoder_settings=EncoderSettings(
                escape_slashes=os.environ.get("JSONLOG_ESCAPE_SLASHES", "0") == "1",
                date_encoding=DateEncoding(
                    os.environ.get("JSONLOG_DATE_ENCODING", DateEncoding.ISO8601.value)
                ),
            ),

            structured_metadata=os.environ.get("JSONLOG_STRUCTURED_METADATA", "1") == "1",
        )
