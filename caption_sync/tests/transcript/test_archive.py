"""
Unit tests for caption_sync.transcript.archive module.
"""

import json

import pytest

from caption_sync.transcript.archive import TranscriptArchive
from caption_sync.transcript.history import SpeakerHint, TranscriptEntry


def entry(n: int, text: str | None = None) -> TranscriptEntry:
    return TranscriptEntry(
        entry_id=f"s{n}",
        text=f"entry {n}" if text is None else text,
        speaker_hint=SpeakerHint.USER,
        committed_at=0.0,
    )


class TestTranscriptArchive:
    """Tests for TranscriptArchive sink."""

    def test_records_committed_entries(self):
        """Test each committed entry becomes a record."""
        archive = TranscriptArchive(source_url="https://meet.example.com/abc")
        archive.entry_committed(entry(0))

        record = archive.records[0]
        assert record.text == "entry 0"
        assert record.url == "https://meet.example.com/abc"
        assert record.speaker == "user"
        assert record.entry_id == "s0"
        assert record.timestamp == "1970-01-01T00:00:00+00:00"

    def test_keeps_most_recent(self):
        """Test only the last max_records are kept."""
        archive = TranscriptArchive(max_records=50)
        for n in range(55):
            archive.entry_committed(entry(n))

        assert len(archive) == 50
        assert archive.records[0].entry_id == "s5"
        assert archive.records[-1].entry_id == "s54"

    def test_skips_empty_text(self):
        """Test empty entries are not archived."""
        archive = TranscriptArchive()
        archive.entry_committed(entry(0, text=""))
        assert len(archive) == 0

    def test_to_json(self):
        """Test JSON export keeps non-ASCII text."""
        archive = TranscriptArchive()
        archive.entry_committed(entry(0, text="你好"))

        data = json.loads(archive.to_json())
        assert data[0]["text"] == "你好"
        assert "你好" in archive.to_json()

    def test_ignores_other_notifications(self):
        """Test evictions do not remove archived records."""
        archive = TranscriptArchive()
        archive.entry_committed(entry(0))
        archive.entry_evicted(entry(0))
        assert len(archive) == 1

    def test_clear(self):
        """Test clear empties the archive."""
        archive = TranscriptArchive()
        archive.entry_committed(entry(0))
        archive.clear()
        assert archive.records == []

    def test_invalid_max_records(self):
        """Test max_records must be positive."""
        with pytest.raises(ValueError):
            TranscriptArchive(max_records=0)
