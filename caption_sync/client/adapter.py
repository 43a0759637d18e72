"""
FragmentStream Adapter

Turns recognizer result batches into an ordered stream of FragmentEvents with
no duplicate delivery.

Per batch:
  1. Scan from the batch's result_index (never below the final watermark, so
     results already delivered as final are not re-delivered)
  2. Concatenate every final result in index order into ONE final fragment
  3. Take the highest-index non-final result as ONE interim fragment, only if
     its text differs from the last interim emitted
  4. Deliver final before interim

Usage:
    adapter = FragmentStreamAdapter()
    for event in adapter.adapt(batch):
        reconciler.handle(event)

    # Recognizer instance restarted:
    adapter.reset()
"""

import logging
import time
from collections.abc import Callable

from ..errors import ErrorCategory, normalize_error_code
from .fragments import Fragment, FragmentEvent
from .recognizer import RecognitionBatch

logger = logging.getLogger(__name__)


class FragmentStreamAdapter:
    """Normalizes recognizer batches into fragment events."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize adapter.

        Args:
            clock: Source of logical timestamps for emitted fragments
        """
        self._clock = clock

        # Sequence offset for the current recognizer instance
        self._base_index = 0
        # Highest results-list length seen on the current instance
        self._seen_length = 0
        # First result index not yet delivered as final
        self._final_watermark = 0
        self._last_interim_text: str | None = None

        self.batches_seen = 0

    def adapt(self, batch: RecognitionBatch) -> list[FragmentEvent]:
        """
        Adapt one recognizer batch.

        Args:
            batch: Results list plus the index where new results start

        Returns:
            Zero, one or two events; a final event always precedes an interim one
        """
        self.batches_seen += 1
        results = batch.results
        self._seen_length = max(self._seen_length, len(results))

        start = max(batch.result_index, self._final_watermark, 0)
        events: list[FragmentEvent] = []

        # Finals, joined in index order
        final_parts: list[str] = []
        last_final_index = -1
        for i in range(start, len(results)):
            if results[i].is_final:
                final_parts.append(results[i].transcript)
                last_final_index = i

        if last_final_index >= 0:
            self._final_watermark = last_final_index + 1
            final_text = "".join(final_parts).strip()
            if final_text:
                events.append(FragmentEvent.final(self._fragment(final_text, True, last_final_index)))
                # Interim memory belongs to the committed phrase
                self._last_interim_text = None
            else:
                logger.debug(f"Skipping blank final at index {last_final_index}")

        # Most recent non-final result
        for i in range(len(results) - 1, start - 1, -1):
            if results[i].is_final:
                continue
            interim_text = results[i].transcript.strip()
            if interim_text and interim_text != self._last_interim_text:
                self._last_interim_text = interim_text
                events.append(FragmentEvent.interim(self._fragment(interim_text, False, i)))
            break

        return events

    def ended(self) -> FragmentEvent:
        """Adapt a recognizer end notification."""
        return FragmentEvent.ended()

    def failed(self, code: str | None, message: str | None = None) -> FragmentEvent:
        """
        Adapt a recognizer error notification.

        Args:
            code: Raw recognizer error code (e.g. "not-allowed")
            message: Optional recognizer message

        Returns:
            stream-error event with the normalized category
        """
        category = normalize_error_code(code)
        if message is None and code and category is ErrorCategory.UNKNOWN:
            # Keep unrecognized codes visible in the status text
            message = code
        logger.debug(f"Recognizer error {code!r} -> {category.value}")
        return FragmentEvent.failed(category, message)

    def reset(self) -> None:
        """Begin a fresh scan for a new recognizer instance."""
        self._base_index += self._seen_length
        self._seen_length = 0
        self._final_watermark = 0
        self._last_interim_text = None

    def _fragment(self, text: str, is_final: bool, result_index: int) -> Fragment:
        return Fragment(
            text=text,
            is_final=is_final,
            sequence_index=self._base_index + result_index,
            emitted_at=self._clock(),
        )
