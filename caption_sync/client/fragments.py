"""
Fragment Data Classes

Typed output of the FragmentStream adapter: one Fragment per adapted piece of
recognizer output, wrapped in a FragmentEvent together with stream lifecycle
events (ended, error).
"""

from dataclasses import dataclass
from enum import Enum

from ..errors import ErrorCategory


class FragmentKind(str, Enum):
    """Kind of event delivered to the reconciler."""

    INTERIM = "interim"
    FINAL = "final"
    ENDED = "stream-ended"
    ERROR = "stream-error"


@dataclass(frozen=True)
class Fragment:
    """
    One piece of recognizer output.

    Attributes:
        text: Fragment text (never empty or whitespace-only)
        is_final: Whether the recognizer committed this text
        sequence_index: Monotonic position derived from the recognizer result index
        emitted_at: Logical timestamp assigned by the adapter
    """

    text: str
    is_final: bool
    sequence_index: int
    emitted_at: float

    def __str__(self) -> str:
        status = "final" if self.is_final else "interim"
        preview = f"{self.text[:50]}..." if len(self.text) > 50 else self.text
        return f"Fragment({status} #{self.sequence_index}: {preview})"


@dataclass(frozen=True)
class FragmentEvent:
    """
    Event delivered to the reconciler.

    Attributes:
        kind: Event kind
        fragment: The fragment for INTERIM / FINAL events
        error: Normalized category for ERROR events
        message: Raw recognizer message for ERROR events, if any
    """

    kind: FragmentKind
    fragment: Fragment | None = None
    error: ErrorCategory | None = None
    message: str | None = None

    @classmethod
    def interim(cls, fragment: Fragment) -> "FragmentEvent":
        """Create an interim-update event."""
        return cls(kind=FragmentKind.INTERIM, fragment=fragment)

    @classmethod
    def final(cls, fragment: Fragment) -> "FragmentEvent":
        """Create a final-commit event."""
        return cls(kind=FragmentKind.FINAL, fragment=fragment)

    @classmethod
    def ended(cls) -> "FragmentEvent":
        """Create a stream-ended event."""
        return cls(kind=FragmentKind.ENDED)

    @classmethod
    def failed(cls, category: ErrorCategory, message: str | None = None) -> "FragmentEvent":
        """Create a stream-error event."""
        return cls(kind=FragmentKind.ERROR, error=category, message=message)

    @property
    def text(self) -> str:
        """Fragment text, or "" for lifecycle events."""
        return self.fragment.text if self.fragment else ""
