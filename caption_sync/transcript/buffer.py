"""
Interim Buffer

Word-level reconciliation of successive interim fragments.

Update policy (new tokenization vs. current words):
  - strict prefix extension      -> APPENDED  (append trailing words only)
  - last shown word grew in place -> EXTENDED ("hel" -> "hello")
  - prefix of / equal to current -> UNCHANGED (no-op, no notification)
  - anything else                -> REPLACED  (correction, the only case that removes words)

Tokenization is pluggable: whitespace by default, per-character for scripts
written without word-delimiting spaces.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)

# Language subtags written without spaces between words
CHARACTER_LANGUAGES = frozenset({"zh", "ja", "yue", "th", "lo", "my", "km"})


class WhitespaceTokenizer:
    """Split on runs of whitespace; join with single spaces."""

    separator = " "

    def split(self, text: str) -> list[str]:
        return text.split()

    def join(self, words: list[str]) -> str:
        return self.separator.join(words)


class CharacterTokenizer:
    """One token per non-space character; join without separator."""

    separator = ""

    def split(self, text: str) -> list[str]:
        return [ch for ch in text if not ch.isspace()]

    def join(self, words: list[str]) -> str:
        return self.separator.join(words)


Tokenizer = WhitespaceTokenizer | CharacterTokenizer


def tokenizer_for_language(language_tag: str | None) -> Tokenizer:
    """
    Pick a tokenizer for a BCP-47 language tag.

    Examples:
        "en-US" -> WhitespaceTokenizer
        "zh-CN" -> CharacterTokenizer
    """
    primary = (language_tag or "").replace("_", "-").split("-")[0].lower()
    if primary in CHARACTER_LANGUAGES:
        return CharacterTokenizer()
    return WhitespaceTokenizer()


class InterimUpdate(str, Enum):
    """Outcome of applying an interim fragment to the buffer."""

    APPENDED = "appended"
    EXTENDED = "extended"
    REPLACED = "replaced"
    UNCHANGED = "unchanged"

    @property
    def changed(self) -> bool:
        return self is not InterimUpdate.UNCHANGED


class InterimBuffer:
    """
    The single live interim buffer of a recording session.

    Attributes:
        words: Word tokens currently displayed
        raw_text: Last raw interim string received
        slot: Absolute history slot this buffer occupies (see TranscriptHistory.next_slot)
    """

    def __init__(self, slot: int, tokenizer: Tokenizer | None = None):
        self.slot = slot
        self.tokenizer = tokenizer or WhitespaceTokenizer()
        self.words: list[str] = []
        self.raw_text: str = ""
        self.revision = 0

    @property
    def text(self) -> str:
        """Displayed interim text."""
        return self.tokenizer.join(self.words)

    @property
    def is_empty(self) -> bool:
        return not self.words

    def apply(self, text: str) -> InterimUpdate:
        """
        Reconcile a new interim text against the displayed words.

        Args:
            text: Full (not incremental) interim text from the recognizer

        Returns:
            What happened to the displayed words
        """
        if text == self.raw_text and self.words:
            return InterimUpdate.UNCHANGED
        self.raw_text = text

        new_words = self.tokenizer.split(text)
        current = self.words
        k = len(current)

        if len(new_words) > k and new_words[:k] == current:
            self.words = current + new_words[k:]
            result = InterimUpdate.APPENDED
        elif new_words == current[: len(new_words)]:
            # Covers equal and shorter-prefix updates: nothing new to show
            return InterimUpdate.UNCHANGED
        elif self._grows_last_word(new_words):
            self.words = list(new_words)
            result = InterimUpdate.EXTENDED
        else:
            self.words = list(new_words)
            result = InterimUpdate.REPLACED

        self.revision += 1
        logger.debug(f"[INTERIM {result.value.upper()}] rev {self.revision}: '{self.text[:50]}'")
        return result

    def _grows_last_word(self, new_words: list[str]) -> bool:
        """True when only the last shown word changed, by having characters appended."""
        k = len(self.words)
        if k == 0 or len(new_words) < k:
            return False
        if new_words[: k - 1] != self.words[: k - 1]:
            return False
        return new_words[k - 1].startswith(self.words[k - 1])

    def __repr__(self) -> str:
        return f"InterimBuffer(slot={self.slot}, words={len(self.words)})"
