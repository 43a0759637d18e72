"""
Transcription Settings

Single source of truth for session configuration.
Defaults live here; environment variables override them.

Environment:
  CAPTION_LANGUAGE              recognizer language tag        (en-US)
  CAPTION_HISTORY_MAX           committed entries kept         (50)
  CAPTION_EVICTION_BATCH        entries evicted at once        (10)
  CAPTION_DUPLICATE_WINDOW      recent entries checked for dups (4)
  CAPTION_LOUDNESS_THRESHOLD    loud threshold, 0-255          (25)
  CAPTION_LOUDNESS_INTERVAL_MS  loudness sampling period       (100)
  CAPTION_RESTART_DELAY_MS      delay before auto-restart      (100)
  CAPTION_START_TIMEOUT         seconds to await start confirm (5.0)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

logger = logging.getLogger(__name__)

# ============== Languages ==============
SUPPORTED_LANGUAGES: dict[str, str] = {
    "en-US": "English (US)",
    "en-GB": "English (UK)",
    "zh-CN": "Chinese (Simplified)",
    "zh-TW": "Chinese (Traditional)",
    "yue-Hant-HK": "Cantonese",
    "ja-JP": "Japanese",
    "ko-KR": "Korean",
    "fr-FR": "French",
    "de-DE": "German",
    "es-ES": "Spanish",
}

DEFAULT_LANGUAGE = "en-US"

# (env var, field name, type)
_ENV_FIELDS: list[tuple[str, str, type]] = [
    ("CAPTION_LANGUAGE", "language_tag", str),
    ("CAPTION_HISTORY_MAX", "history_max", int),
    ("CAPTION_EVICTION_BATCH", "eviction_batch_size", int),
    ("CAPTION_DUPLICATE_WINDOW", "duplicate_check_window", int),
    ("CAPTION_LOUDNESS_THRESHOLD", "loudness_threshold", int),
    ("CAPTION_LOUDNESS_INTERVAL_MS", "loudness_interval_ms", int),
    ("CAPTION_RESTART_DELAY_MS", "restart_delay_ms", int),
    ("CAPTION_START_TIMEOUT", "start_timeout_s", float),
]


@dataclass(frozen=True)
class TranscriptionSettings:
    """
    Immutable settings for one session.

    Attributes:
        language_tag: BCP-47 tag passed to the recognizer
        history_max: Maximum committed entries kept
        eviction_batch_size: Entries evicted at once when history_max is exceeded
        duplicate_check_window: Recent entries checked for duplicate finals (0 disables)
        loudness_threshold: Level (0-255) above which the input counts as loud
        loudness_interval_ms: Loudness sampling period
        restart_delay_ms: Delay before restarting a recognizer that ended on its own
        start_timeout_s: How long to wait for the recognizer to confirm start
    """

    language_tag: str = DEFAULT_LANGUAGE
    history_max: int = 50
    eviction_batch_size: int = 10
    duplicate_check_window: int = 4
    loudness_threshold: int = 25
    loudness_interval_ms: int = 100
    restart_delay_ms: int = 100
    start_timeout_s: float = 5.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "TranscriptionSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            **overrides: Field values that win over the environment

        Raises:
            ValueError: A variable cannot be parsed or a value is out of range
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for var, field_name, kind in _ENV_FIELDS:
            raw = env.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = kind(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid {var}={raw!r}: {e}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        settings = cls(**values)
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ValueError: Describes the first invalid field
        """
        if not self.language_tag.strip():
            raise ValueError("language_tag must not be empty")
        if self.history_max < 1:
            raise ValueError(f"history_max must be >= 1, got {self.history_max}")
        if not 1 <= self.eviction_batch_size <= self.history_max:
            raise ValueError(
                f"eviction_batch_size must be within 1..history_max ({self.history_max}), "
                f"got {self.eviction_batch_size}"
            )
        if self.duplicate_check_window < 0:
            raise ValueError(f"duplicate_check_window must be >= 0, got {self.duplicate_check_window}")
        if not 0 <= self.loudness_threshold <= 255:
            raise ValueError(f"loudness_threshold must be within 0..255, got {self.loudness_threshold}")
        if self.loudness_interval_ms <= 0:
            raise ValueError(f"loudness_interval_ms must be positive, got {self.loudness_interval_ms}")
        if self.restart_delay_ms < 0:
            raise ValueError(f"restart_delay_ms must be >= 0, got {self.restart_delay_ms}")
        if self.start_timeout_s <= 0:
            raise ValueError(f"start_timeout_s must be positive, got {self.start_timeout_s}")

        if self.language_tag not in SUPPORTED_LANGUAGES:
            logger.warning(f"Language {self.language_tag!r} is not in the known list, passing it through")

    def with_overrides(self, **changes: Any) -> "TranscriptionSettings":
        """Copy with some fields changed (validated)."""
        updated = replace(self, **{k: v for k, v in changes.items() if v is not None})
        updated.validate()
        return updated

    @property
    def restart_delay(self) -> float:
        """Restart delay in seconds."""
        return self.restart_delay_ms / 1000


def get_language_name(language_tag: str) -> str:
    """Display name for a language tag, or the tag itself if unknown."""
    return SUPPORTED_LANGUAGES.get(language_tag, language_tag)


def list_languages() -> dict[str, str]:
    """All known language tags with display names."""
    return dict(SUPPORTED_LANGUAGES)
