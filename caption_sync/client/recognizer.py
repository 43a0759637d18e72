"""
Recognizer Capability

Interface for the upstream speech recognizer plus the batch types it delivers.

Shape (Web Speech style):
  - results is the growing list of every result the recognizer instance has
    produced so far; each result is final or non-final and has one or more
    text alternatives
  - result_index marks the first result that changed in this batch

ScriptedRecognizer replays recorded events and is used for the replay CLI and
for tests. Real recognizers live outside this package.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import RecognizerUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionAlternative:
    """One candidate transcript for a result."""

    transcript: str
    confidence: float = 1.0


@dataclass(frozen=True)
class RecognitionResult:
    """
    One entry of the recognizer's results list.

    Attributes:
        alternatives: Candidate transcripts, best first
        is_final: Whether the recognizer will revise this result further
    """

    alternatives: tuple[RecognitionAlternative, ...]
    is_final: bool = False

    @property
    def transcript(self) -> str:
        """Best alternative's text, or "" when there are no alternatives."""
        return self.alternatives[0].transcript if self.alternatives else ""

    @classmethod
    def of(cls, transcript: str, is_final: bool = False, confidence: float = 1.0) -> "RecognitionResult":
        """Create a single-alternative result."""
        return cls(alternatives=(RecognitionAlternative(transcript, confidence),), is_final=is_final)


@dataclass(frozen=True)
class RecognitionBatch:
    """A result event: the full results list and where the new results start."""

    results: tuple[RecognitionResult, ...]
    result_index: int = 0

    def __len__(self) -> int:
        return len(self.results)


class Recognizer(ABC):
    """
    Abstract speech recognizer.

    start() and stop() are fire-and-forget; completion and data arrive through
    the callback attributes, which the session binds before calling start().
    """

    def __init__(self):
        self.on_result: Callable[[RecognitionBatch], None] | None = None
        self.on_start: Callable[[], None] | None = None
        self.on_end: Callable[[], None] | None = None
        self.on_error: Callable[[str, str | None], None] | None = None

    @abstractmethod
    def start(self, language_tag: str) -> None:
        """
        Start recognizing.

        Raises:
            RecognizerUnavailable: The capability is missing.
            PermissionError / TranscriptionError: Start was refused.
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop recognizing. Safe to call when not started."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable recognizer name."""

    def _emit_result(self, batch: RecognitionBatch) -> None:
        if self.on_result:
            self.on_result(batch)

    def _emit_start(self) -> None:
        if self.on_start:
            self.on_start()

    def _emit_end(self) -> None:
        if self.on_end:
            self.on_end()

    def _emit_error(self, code: str, message: str | None = None) -> None:
        if self.on_error:
            self.on_error(code, message)


def parse_script_event(data: dict[str, Any]) -> dict[str, Any]:
    """
    Validate one scripted recognizer event.

    Accepted forms:
        {"type": "result", "result_index": 0, "results": [{"transcript": "hi", "final": false}]}
        {"type": "end"}
        {"type": "error", "error": "network", "message": "optional"}

    Raises:
        ValueError: Unknown type or malformed result list.
    """
    kind = data.get("type")
    if kind == "result":
        results = data.get("results")
        if not isinstance(results, list):
            raise ValueError(f"result event needs a 'results' list: {data}")
        for item in results:
            if not isinstance(item, dict) or "transcript" not in item:
                raise ValueError(f"result entries need a 'transcript': {item}")
    elif kind == "error":
        if not data.get("error"):
            raise ValueError(f"error event needs an 'error' code: {data}")
    elif kind != "end":
        raise ValueError(f"Unknown event type: {kind!r}")
    return data


def load_script(path: str | Path) -> list[dict[str, Any]]:
    """Load a JSON-lines event script, skipping blank lines and # comments."""
    events = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                events.append(parse_script_event(json.loads(line)))
            except (json.JSONDecodeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: {e}") from e
    return events


class ScriptedRecognizer(Recognizer):
    """
    Recognizer that replays recorded events on demand.

    Usage:
        recognizer = ScriptedRecognizer()
        recognizer.start("en-US")
        recognizer.emit_result([("hello", False)])
        recognizer.emit_end()

    Args:
        available: False simulates a missing capability (start raises RecognizerUnavailable)
        start_errors: Exceptions to raise on successive start() calls; None entries succeed
    """

    def __init__(self, available: bool = True, start_errors: Iterable[BaseException | None] = ()):
        super().__init__()
        self.available = available
        self._start_errors = list(start_errors)
        self.start_count = 0
        self.stop_count = 0
        self.running = False
        self.language_tag: str | None = None
        self._results: list[RecognitionResult] = []

    @property
    def name(self) -> str:
        return "scripted"

    def start(self, language_tag: str) -> None:
        if not self.available:
            raise RecognizerUnavailable("Browser does not support speech recognition")
        if self._start_errors:
            error = self._start_errors.pop(0)
            if error is not None:
                raise error

        self.start_count += 1
        self.running = True
        self.language_tag = language_tag
        self._results = []  # New instance, new results list
        logger.debug(f"Scripted recognizer started ({language_tag}), start #{self.start_count}")
        self._emit_start()

    def stop(self) -> None:
        was_running = self.running
        self.running = False
        self.stop_count += 1
        if was_running:
            self._emit_end()

    def fail_next_start(self, error: BaseException) -> None:
        """Make the next start() raise error."""
        self._start_errors.append(error)

    def emit_result(self, results: Iterable[tuple[str, bool]], result_index: int | None = None) -> None:
        """
        Emit a result batch.

        Args:
            results: (transcript, is_final) pairs that replace the tail of the
                results list starting at result_index
            result_index: Where the new results start. Defaults to the index of
                the first non-final result (or the end of the list).
        """
        if result_index is None:
            result_index = next(
                (i for i, r in enumerate(self._results) if not r.is_final), len(self._results)
            )
        new_results = [RecognitionResult.of(text, is_final) for text, is_final in results]
        self._results = self._results[:result_index] + new_results
        self._emit_result(RecognitionBatch(results=tuple(self._results), result_index=result_index))

    def emit_end(self) -> None:
        self.running = False
        self._emit_end()

    def emit_error(self, code: str, message: str | None = None) -> None:
        self._emit_error(code, message)

    def play(self, event: dict[str, Any]) -> None:
        """Replay one parsed script event (see parse_script_event)."""
        kind = event["type"]
        if kind == "result":
            pairs = [(r["transcript"], bool(r.get("final", False))) for r in event["results"]]
            self.emit_result(pairs, event.get("result_index"))
        elif kind == "end":
            self.emit_end()
        else:
            self.emit_error(event["error"], event.get("message"))
