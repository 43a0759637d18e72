"""
Configuration Module

Session settings with env-var overrides and validation.
"""

from .settings import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    TranscriptionSettings,
    get_language_name,
    list_languages,
)

__all__ = [
    "DEFAULT_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "TranscriptionSettings",
    "get_language_name",
    "list_languages",
]
