"""
Transcript Archive

Sink that archives each committed entry as it commits, keeping only the most
recent records. Records carry the source page/URL and an ISO timestamp so an
external collaborator can store or export them.

Archiving is in-memory only; where the records go afterwards is up to the
caller (see to_json()).
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from .history import TranscriptEntry
from .sink import TranscriptSink

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 50


@dataclass(frozen=True)
class ArchiveRecord:
    """One archived transcript entry."""

    text: str
    url: str
    timestamp: str
    speaker: str
    entry_id: str


class TranscriptArchive(TranscriptSink):
    """
    Keeps the last max_records committed entries.

    Usage:
        archive = TranscriptArchive(source_url="https://meet.example.com/abc")
        session = Session(recognizer, sink=SinkGroup(view, archive))
        ...
        payload = archive.to_json()
    """

    def __init__(self, source_url: str = "", max_records: int = DEFAULT_MAX_RECORDS):
        if max_records < 1:
            raise ValueError(f"max_records must be >= 1, got {max_records}")
        self.source_url = source_url
        self.max_records = max_records
        self._records: list[ArchiveRecord] = []

    def entry_committed(self, entry: TranscriptEntry) -> None:
        if not entry.text:
            return

        timestamp = datetime.fromtimestamp(entry.committed_at, tz=timezone.utc).isoformat()
        self._records.append(
            ArchiveRecord(
                text=entry.text,
                url=self.source_url,
                timestamp=timestamp,
                speaker=entry.speaker_hint.value,
                entry_id=entry.entry_id,
            )
        )

        # Keep only the most recent records
        if len(self._records) > self.max_records:
            del self._records[: len(self._records) - self.max_records]

        logger.debug(f"Archived {entry.entry_id} ({len(self._records)}/{self.max_records})")

    @property
    def records(self) -> list[ArchiveRecord]:
        return list(self._records)

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize the archived records as a JSON list."""
        return json.dumps([asdict(r) for r in self._records], ensure_ascii=False, indent=indent)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
