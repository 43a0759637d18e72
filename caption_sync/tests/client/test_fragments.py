"""
Unit tests for caption_sync.client.fragments module.
"""

import dataclasses

import pytest

from caption_sync.client.fragments import Fragment, FragmentEvent, FragmentKind
from caption_sync.errors import ErrorCategory


class TestFragment:
    """Tests for Fragment dataclass."""

    def test_fragment_is_frozen(self):
        """Test fragments cannot be mutated."""
        fragment = Fragment(text="hi", is_final=False, sequence_index=0, emitted_at=0.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            fragment.text = "changed"

    def test_str_truncates_long_text(self):
        """Test string form previews long text."""
        fragment = Fragment(text="x" * 80, is_final=True, sequence_index=3, emitted_at=0.0)
        text = str(fragment)
        assert "final #3" in text
        assert text.endswith("...)")


class TestFragmentEvent:
    """Tests for FragmentEvent factories."""

    def test_interim_and_final(self):
        """Test interim/final factories carry the fragment."""
        fragment = Fragment(text="hi", is_final=False, sequence_index=0, emitted_at=0.0)
        assert FragmentEvent.interim(fragment).kind is FragmentKind.INTERIM
        assert FragmentEvent.final(fragment).text == "hi"

    def test_lifecycle_events_have_no_text(self):
        """Test ended/failed events have empty text."""
        assert FragmentEvent.ended().text == ""
        assert FragmentEvent.failed(ErrorCategory.NETWORK).text == ""

    def test_failed_carries_category_and_message(self):
        """Test stream-error events keep the category and raw message."""
        event = FragmentEvent.failed(ErrorCategory.UNKNOWN, "aborted")
        assert event.kind is FragmentKind.ERROR
        assert event.error is ErrorCategory.UNKNOWN
        assert event.message == "aborted"
        assert event.fragment is None

    def test_kind_values(self):
        """Test wire names of event kinds."""
        assert FragmentKind.ENDED.value == "stream-ended"
        assert FragmentKind.ERROR.value == "stream-error"
