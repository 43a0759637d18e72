"""
Transcript History

Append-only, bounded history of committed transcript entries.

Invariants:
  - Entries are immutable once committed
  - Insertion order = commit order
  - When the length exceeds max_entries, the oldest entries are evicted in
    whole batches of eviction_batch_size, never one at a time
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class SpeakerHint(str, Enum):
    """Best-effort source of an entry, from the loudness signal at commit time."""

    USER = "user"
    OTHER = "other"

    @classmethod
    def from_loudness(cls, is_loud: bool) -> "SpeakerHint":
        return cls.USER if is_loud else cls.OTHER


@dataclass(frozen=True)
class TranscriptEntry:
    """
    A committed unit of finalized text.

    Attributes:
        entry_id: Stable ID ("s0", "s1", ...) in commit order
        text: Finalized text
        speaker_hint: USER if the input was loud at commit time, else OTHER
        committed_at: Wall-clock commit time (epoch seconds)
        sequence_index: Sequence index of the final fragment that produced it
    """

    entry_id: str
    text: str
    speaker_hint: SpeakerHint = SpeakerHint.OTHER
    committed_at: float = 0.0
    sequence_index: int = 0


def normalize_for_matching(text: str) -> str:
    """Normalize text for duplicate checks: trim and lowercase."""
    return text.strip().lower()


class TranscriptHistory:
    """
    Ordered, bounded list of TranscriptEntry.

    Slots: every commit consumes one absolute slot number (0, 1, 2, ...).
    Slot numbers stay absolute across eviction and become entry ids, so an
    interim buffer allocated at next_slot converts into the entry it displayed.
    """

    def __init__(self, max_entries: int = 50, eviction_batch_size: int = 10):
        """
        Initialize history.

        Args:
            max_entries: Maximum entries kept
            eviction_batch_size: Entries evicted at once when max_entries is exceeded
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        if not 1 <= eviction_batch_size <= max_entries:
            raise ValueError(
                f"eviction_batch_size must be within 1..{max_entries}, got {eviction_batch_size}"
            )

        self.max_entries = max_entries
        self.eviction_batch_size = eviction_batch_size
        self._entries: list[TranscriptEntry] = []
        self._next_slot = 0
        self.evicted_count = 0

    @property
    def next_slot(self) -> int:
        """Slot the next appended entry would take."""
        return self._next_slot

    def is_duplicate(self, text: str, window: int) -> bool:
        """
        Check whether text repeats one of the last `window` entries.

        A candidate is a duplicate if, after trimming and lowercasing, it equals
        a recent entry or is a substring of one.

        Args:
            text: Candidate final text
            window: Number of most recent entries to check (0 disables the check)
        """
        if window <= 0:
            return False
        candidate = normalize_for_matching(text)
        if not candidate:
            return True
        for entry in self._entries[-window:]:
            existing = normalize_for_matching(entry.text)
            if candidate == existing or candidate in existing:
                return True
        return False

    def commit(self, entry: TranscriptEntry) -> list[TranscriptEntry]:
        """
        Append an entry, consuming the next slot.

        Returns:
            Entries evicted by this commit (oldest first), possibly empty
        """
        self._entries.append(entry)
        self._next_slot += 1
        return self._evict_overflow()

    def _evict_overflow(self) -> list[TranscriptEntry]:
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return []

        # Whole batches only
        batches = -(-overflow // self.eviction_batch_size)
        count = min(batches * self.eviction_batch_size, len(self._entries))
        evicted = self._entries[:count]
        del self._entries[:count]
        self.evicted_count += count
        logger.debug(f"[EVICT] {count} entries, {len(self._entries)} remain")
        return evicted

    @property
    def entries(self) -> list[TranscriptEntry]:
        """Snapshot of entries in commit order."""
        return list(self._entries)

    def last(self) -> TranscriptEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"TranscriptHistory({len(self)}/{self.max_entries} entries)"
