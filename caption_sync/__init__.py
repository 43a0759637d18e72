"""
caption-sync

Reconciles a streaming speech recognizer's interim and final results into one
stable, ordered, de-duplicated live transcript.

Usage:
    from caption_sync import Session, TranscriptView, TranscriptionSettings

    view = TranscriptView()
    session = Session(recognizer, sink=view, settings=TranscriptionSettings.from_env())
    await session.start()
"""

from .config import TranscriptionSettings
from .errors import (
    ErrorCategory,
    PermissionDenied,
    RecognizerUnavailable,
    TranscriptionError,
    UnknownRecognizerError,
)
from .session import Session, SessionController
from .transcript import (
    CallbackSink,
    SinkGroup,
    TranscriptArchive,
    TranscriptEntry,
    TranscriptReconciler,
    TranscriptSink,
    TranscriptView,
)

__version__ = "0.1.0"

__all__ = [
    "CallbackSink",
    "ErrorCategory",
    "PermissionDenied",
    "RecognizerUnavailable",
    "Session",
    "SessionController",
    "SinkGroup",
    "TranscriptArchive",
    "TranscriptEntry",
    "TranscriptReconciler",
    "TranscriptSink",
    "TranscriptView",
    "TranscriptionError",
    "TranscriptionSettings",
    "UnknownRecognizerError",
]
