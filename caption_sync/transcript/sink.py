"""
Render / Notify Sinks

The reconciler reports every observable transition to a TranscriptSink:

  interim_changed(words)          interim words changed (empty list = cleared)
  entry_committed(entry)          a final entry was committed
  entry_evicted(entry)            an old entry left the bounded history
  status_changed(state, message)  lifecycle or error status
  session_ended()                 the session reached STOPPED

TranscriptSink methods are no-ops, so subclasses override only what they use.
SinkGroup fans out to several sinks (view, archive, external relay).
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .history import TranscriptEntry
    from .reconciler import ReconcilerState

logger = logging.getLogger(__name__)


class TranscriptSink:
    """Receiver of reconciler notifications."""

    def interim_changed(self, words: list[str]) -> None:
        pass

    def entry_committed(self, entry: "TranscriptEntry") -> None:
        pass

    def entry_evicted(self, entry: "TranscriptEntry") -> None:
        pass

    def status_changed(self, state: "ReconcilerState", message: str) -> None:
        pass

    def session_ended(self) -> None:
        pass


class CallbackSink(TranscriptSink):
    """
    Sink built from plain callables, for wiring an external relay.

    Usage:
        sink = CallbackSink(on_entry=lambda entry: relay.send(entry.text))
    """

    def __init__(
        self,
        on_interim: Callable[[list[str]], None] | None = None,
        on_entry: Callable[["TranscriptEntry"], None] | None = None,
        on_evicted: Callable[["TranscriptEntry"], None] | None = None,
        on_status: Callable[["ReconcilerState", str], None] | None = None,
        on_ended: Callable[[], None] | None = None,
    ):
        self.on_interim = on_interim
        self.on_entry = on_entry
        self.on_evicted = on_evicted
        self.on_status = on_status
        self.on_ended = on_ended

    def interim_changed(self, words: list[str]) -> None:
        if self.on_interim:
            self.on_interim(words)

    def entry_committed(self, entry: "TranscriptEntry") -> None:
        if self.on_entry:
            self.on_entry(entry)

    def entry_evicted(self, entry: "TranscriptEntry") -> None:
        if self.on_evicted:
            self.on_evicted(entry)

    def status_changed(self, state: "ReconcilerState", message: str) -> None:
        if self.on_status:
            self.on_status(state, message)

    def session_ended(self) -> None:
        if self.on_ended:
            self.on_ended()


class SinkGroup(TranscriptSink):
    """
    Fan-out to several sinks in registration order.

    A failing sink is logged and skipped; it never breaks the reconciler or
    the other sinks.
    """

    def __init__(self, *sinks: TranscriptSink):
        self._sinks: list[TranscriptSink] = list(sinks)

    def add(self, sink: TranscriptSink) -> None:
        self._sinks.append(sink)

    def remove(self, sink: TranscriptSink) -> bool:
        if sink in self._sinks:
            self._sinks.remove(sink)
            return True
        return False

    def _call(self, sink: TranscriptSink, method: str, *args) -> None:
        try:
            getattr(sink, method)(*args)
        except Exception:
            logger.exception(f"Sink {type(sink).__name__}.{method} failed")

    def _each(self, method: str, *args) -> None:
        for sink in list(self._sinks):
            self._call(sink, method, *args)

    def interim_changed(self, words: list[str]) -> None:
        # Each sink gets its own copy
        for sink in list(self._sinks):
            self._call(sink, "interim_changed", list(words))

    def entry_committed(self, entry: "TranscriptEntry") -> None:
        self._each("entry_committed", entry)

    def entry_evicted(self, entry: "TranscriptEntry") -> None:
        self._each("entry_evicted", entry)

    def status_changed(self, state: "ReconcilerState", message: str) -> None:
        self._each("status_changed", state, message)

    def session_ended(self) -> None:
        self._each("session_ended")

    def __len__(self) -> int:
        return len(self._sinks)
