"""
Logging helpers for caption-sync.

The library itself only creates module loggers; applications (the CLI, an
embedding host) call setup_logging() once at startup.
"""

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any, Literal

PACKAGE_LOGGER = "caption_sync"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LEVEL_ENV_VAR = "CAPTION_LOG_LEVEL"


def resolve_level(level: str | None = None) -> int:
    """
    Turn a level name into a logging constant.

    Falls back to CAPTION_LOG_LEVEL, then LOG_LEVEL, then INFO. Unknown
    names resolve to INFO.
    """
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or os.getenv("LOG_LEVEL") or "INFO"
    value = getattr(logging, level.strip().upper(), None)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    name: str | None = PACKAGE_LOGGER,
    level: LogLevel | str | None = None,
    format: str = DEFAULT_FORMAT,
    stream=None,
) -> logging.Logger:
    """
    Configure logging and return a logger.

    Args:
        name: Logger to configure. Defaults to the package logger; None means root.
        level: Log level. Defaults to CAPTION_LOG_LEVEL / LOG_LEVEL env vars or INFO.
        format: Log format string.
        stream: Output stream for the root handler (stderr by default so that
            transcript output on stdout stays clean).

    Usage:
        from caption_sync.utils import setup_logging
        logger = setup_logging()
        logger.info("Session started")
    """
    log_level = resolve_level(level)

    # Root handler is installed only once
    logging.basicConfig(
        level=log_level,
        format=format,
        stream=stream or sys.stderr,
    )

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name (typically __name__)."""
    return logging.getLogger(name)


def set_log_level(level: LogLevel | str, name: str | None = None) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level name (case insensitive)
        name: Logger to change; None means root
    """
    logging.getLogger(name).setLevel(resolve_level(level))


class SessionLogAdapter(logging.LoggerAdapter):
    """
    Prefixes messages with a short session id.

    Usage:
        log = SessionLogAdapter(logger, session_id)
        log.info("Recognizer started")  # -> "[1a2b3c4d] Recognizer started"
    """

    def __init__(self, logger: logging.Logger, session_id: str):
        super().__init__(logger, {"session_id": session_id})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        session_id = self.extra["session_id"] if self.extra else "-"
        return f"[{str(session_id)[:8]}] {msg}", kwargs
