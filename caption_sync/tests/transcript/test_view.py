"""
Unit tests for caption_sync.transcript.view module.
"""

from unittest.mock import Mock

from caption_sync.transcript.history import SpeakerHint, TranscriptEntry
from caption_sync.transcript.reconciler import ReconcilerState
from caption_sync.transcript.view import TranscriptView


def entry(entry_id: str, text: str, speaker: SpeakerHint = SpeakerHint.OTHER) -> TranscriptEntry:
    return TranscriptEntry(entry_id=entry_id, text=text, speaker_hint=speaker)


class TestTranscriptView:
    """Tests for TranscriptView read model."""

    def test_init_empty(self):
        """Test view initializes empty."""
        view = TranscriptView()
        assert view.is_empty
        assert view.entry_count == 0
        assert view.get_text() == ""
        assert view.get_last_entry() is None

    def test_commit_replaces_interim(self):
        """Test a committed entry takes the interim's place."""
        view = TranscriptView()
        view.interim_changed(["hello"])
        assert view.get_text() == "hello"

        view.entry_committed(entry("s0", "hello there"))

        assert view.interim_text == ""
        assert view.get_text() == "hello there"

    def test_text_includes_interim_after_entries(self):
        """Test interim text follows committed entries."""
        view = TranscriptView()
        view.entry_committed(entry("s0", "first"))
        view.interim_changed(["second", "part"])

        assert view.get_text() == "first second part"
        assert view.get_text(include_interim=False) == "first"

    def test_entries_sorted_by_slot(self):
        """Test entries display in slot order regardless of arrival."""
        view = TranscriptView()
        view.entry_committed(entry("s2", "c"))
        view.entry_committed(entry("s10", "d"))
        view.entry_committed(entry("s0", "a"))

        assert [entry_id for entry_id, _ in view.get_segments()] == ["s0", "s2", "s10"]
        assert view.get_last_entry().entry_id == "s10"

    def test_eviction_removes_entry(self):
        """Test evicted entries leave the view."""
        view = TranscriptView()
        view.entry_committed(entry("s0", "old"))
        view.entry_committed(entry("s1", "new"))
        view.entry_evicted(entry("s0", "old"))

        assert view.get_segments() == [("s1", "new")]
        assert view.get_entry("s0") is None

    def test_max_words_keeps_tail(self):
        """Test max_words keeps the last N words."""
        view = TranscriptView()
        view.entry_committed(entry("s0", "one two three four five"))
        assert view.get_text(max_words=2) == "four five"
        assert view.get_text(max_words=None) == "one two three four five"

    def test_status_and_end(self):
        """Test status and session end are mirrored."""
        view = TranscriptView()
        view.interim_changed(["pending"])
        view.status_changed(ReconcilerState.STOPPED, "Stopped")
        view.session_ended()

        assert view.state is ReconcilerState.STOPPED
        assert view.status == "Stopped"
        assert view.ended
        assert view.interim_words == []

    def test_separator_for_interim(self):
        """Test separator joins interim words."""
        view = TranscriptView(separator="")
        view.interim_changed(["你", "好"])
        assert view.interim_text == "你好"

    def test_on_change_called(self):
        """Test on_change fires on each visible change."""
        view = TranscriptView()
        view.on_change = Mock()
        view.interim_changed(["a"])
        view.entry_committed(entry("s0", "a b"))
        assert view.on_change.call_count == 2

    def test_on_change_error_is_logged(self, caplog):
        """Test a failing callback does not break the view."""
        view = TranscriptView()
        view.on_change = Mock(side_effect=RuntimeError("ui gone"))
        view.entry_committed(entry("s0", "still stored"))

        assert view.entry_count == 1
        assert "on_change callback failed" in caplog.text

    def test_to_html_escapes(self):
        """Test HTML output escapes text and marks speaker and interim."""
        view = TranscriptView()
        view.entry_committed(entry("s0", "<b>hi</b> & bye", SpeakerHint.USER))
        view.interim_changed(["more"])

        html = view.to_html()

        assert "&lt;b&gt;hi&lt;/b&gt; &amp; bye" in html
        assert 'data-id="s0"' in html
        assert 'data-speaker="user"' in html
        assert '<span class="interim">more</span>' in html

    def test_len_and_repr(self):
        """Test len counts committed entries."""
        view = TranscriptView()
        view.entry_committed(entry("s0", "x"))
        assert len(view) == 1
        assert "1 entries" in repr(view)
