"""
Transcript View

Render-ready read model fed by reconciler notifications.

Keeps committed entries keyed by entry ID in display order, the current
interim words, and the last status message. The view never decides what is
final or duplicated; it only mirrors what the reconciler reports.

Usage:
    view = TranscriptView()
    view.on_change = lambda: window.update_text(view.get_text())
    reconciler = TranscriptReconciler(sink=view)
"""

import html
import logging
from collections import OrderedDict
from collections.abc import Callable

from .history import TranscriptEntry
from .reconciler import ReconcilerState
from .sink import TranscriptSink

logger = logging.getLogger(__name__)


class TranscriptView(TranscriptSink):
    """
    Display state for one session.

    Callbacks:
        view.on_change = lambda: update_ui(view.get_text())
    """

    def __init__(self, separator: str = " "):
        """
        Initialize view.

        Args:
            separator: Joins interim words (use "" for character-tokenized languages)
        """
        # OrderedDict preserves display order
        self._entries: OrderedDict[str, TranscriptEntry] = OrderedDict()
        self._interim_words: list[str] = []
        self.separator = separator

        self.state: ReconcilerState = ReconcilerState.IDLE
        self.status: str = ""
        self.ended = False

        # Callback when anything visible changes
        self.on_change: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Sink notifications
    # ------------------------------------------------------------------

    def interim_changed(self, words: list[str]) -> None:
        self._interim_words = list(words)
        self._changed()

    def entry_committed(self, entry: TranscriptEntry) -> None:
        # The committed entry takes the interim's place
        self._interim_words = []
        self._entries[entry.entry_id] = entry
        self._entries = OrderedDict(
            sorted(self._entries.items(), key=lambda item: _slot_of(item[0]))
        )
        self._changed()

    def entry_evicted(self, entry: TranscriptEntry) -> None:
        if self._entries.pop(entry.entry_id, None) is not None:
            self._changed()

    def status_changed(self, state: ReconcilerState, message: str) -> None:
        self.state = state
        self.status = message
        self._changed()

    def session_ended(self) -> None:
        self.ended = True
        self._interim_words = []
        self._changed()

    def _changed(self) -> None:
        if self.on_change:
            try:
                self.on_change()
            except Exception:
                logger.exception("TranscriptView on_change callback failed")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def interim_text(self) -> str:
        return self.separator.join(self._interim_words)

    @property
    def interim_words(self) -> list[str]:
        return list(self._interim_words)

    def get_text(self, max_words: int | None = 300, include_interim: bool = True) -> str:
        """
        Get full transcript text.

        Args:
            max_words: Maximum words to return (keeps last N words). None for all.
            include_interim: Append the live interim text

        Returns:
            Committed entries then interim text, space-separated
        """
        parts = [entry.text for entry in self._entries.values() if entry.text]
        if include_interim and self._interim_words:
            parts.append(self.interim_text)
        full_text = " ".join(parts)

        if max_words is not None:
            words = full_text.split()
            if len(words) > max_words:
                full_text = " ".join(words[-max_words:])

        return full_text

    def get_segments(self) -> list[tuple[str, str]]:
        """All committed entries as (entry_id, text) tuples in display order."""
        return [(entry_id, entry.text) for entry_id, entry in self._entries.items()]

    def get_entry(self, entry_id: str) -> TranscriptEntry | None:
        return self._entries.get(entry_id)

    def get_last_entry(self) -> TranscriptEntry | None:
        if self._entries:
            return self._entries[next(reversed(self._entries))]
        return None

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries and not self._interim_words

    def to_html(self) -> str:
        """
        Render transcript as HTML.

        Each entry is a span with data-id and data-speaker attributes; the
        interim text, if any, is a trailing span with class "interim".
        """
        parts = []
        for entry_id, entry in self._entries.items():
            if entry.text:
                parts.append(
                    f'<span class="segment" data-id="{html.escape(entry_id)}" '
                    f'data-speaker="{entry.speaker_hint.value}">{html.escape(entry.text)}</span>'
                )
        if self._interim_words:
            parts.append(f'<span class="interim">{html.escape(self.interim_text)}</span>')
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"TranscriptView({self.entry_count} entries, interim={bool(self._interim_words)})"

    def __len__(self) -> int:
        return self.entry_count


def _slot_of(entry_id: str) -> int:
    """Extract slot number from an entry ID like 's5' -> 5."""
    if entry_id.startswith("s") and entry_id[1:].isdigit():
        return int(entry_id[1:])
    return -1
