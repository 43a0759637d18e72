"""Utility helpers."""

from .logging import (
    DEFAULT_FORMAT,
    PACKAGE_LOGGER,
    SessionLogAdapter,
    get_logger,
    resolve_level,
    set_log_level,
    setup_logging,
)

__all__ = [
    "DEFAULT_FORMAT",
    "PACKAGE_LOGGER",
    "SessionLogAdapter",
    "get_logger",
    "resolve_level",
    "set_log_level",
    "setup_logging",
]
