"""
Transcript Module

Reconciliation of interim/final fragments into a bounded, ordered,
de-duplicated transcript, plus the sinks that consume it.

Usage:
    from caption_sync.transcript import TranscriptReconciler, TranscriptView

    view = TranscriptView()
    reconciler = TranscriptReconciler(sink=view)
    reconciler.start()
"""

from .archive import ArchiveRecord, TranscriptArchive
from .buffer import (
    CharacterTokenizer,
    InterimBuffer,
    InterimUpdate,
    WhitespaceTokenizer,
    tokenizer_for_language,
)
from .history import SpeakerHint, TranscriptEntry, TranscriptHistory
from .reconciler import ReconcilerState, RecoveryAction, TranscriptReconciler
from .sink import CallbackSink, SinkGroup, TranscriptSink
from .view import TranscriptView

__all__ = [
    "ArchiveRecord",
    "CallbackSink",
    "CharacterTokenizer",
    "InterimBuffer",
    "InterimUpdate",
    "ReconcilerState",
    "RecoveryAction",
    "SinkGroup",
    "SpeakerHint",
    "TranscriptArchive",
    "TranscriptEntry",
    "TranscriptHistory",
    "TranscriptReconciler",
    "TranscriptSink",
    "TranscriptView",
    "WhitespaceTokenizer",
    "tokenizer_for_language",
]
