"""
Recognizer Client Module

Recognizer capability interface and the FragmentStream adapter that turns
recognizer result batches into ordered fragment events.

Usage:
    from caption_sync.client import FragmentStreamAdapter, ScriptedRecognizer

    adapter = FragmentStreamAdapter()
    recognizer = ScriptedRecognizer()
    recognizer.on_result = lambda batch: [reconciler.handle(e) for e in adapter.adapt(batch)]
"""

from .adapter import FragmentStreamAdapter
from .fragments import Fragment, FragmentEvent, FragmentKind
from .recognizer import (
    RecognitionAlternative,
    RecognitionBatch,
    RecognitionResult,
    Recognizer,
    ScriptedRecognizer,
    load_script,
)

__all__ = [
    "Fragment",
    "FragmentEvent",
    "FragmentKind",
    "FragmentStreamAdapter",
    "RecognitionAlternative",
    "RecognitionBatch",
    "RecognitionResult",
    "Recognizer",
    "ScriptedRecognizer",
    "load_script",
]
