"""
Transcript Reconciler

State machine that merges interim and final fragments into one stable,
ordered, de-duplicated transcript.

States:
  IDLE -> RECORDING (NoInterim <-> HasInterim) -> STOPPED

Transitions:
  start()            IDLE -> RECORDING, status "Ready"
  resumed()          status "Ready" again after a recognizer restart
  interim fragment   allocate or update the interim buffer (see buffer.py)
  final fragment     duplicate check, then convert the live buffer in place
                     (or append), evict in batches, clear the buffer
  stream-ended       RESTART while recording
  stream-error       status update; RESTART if recoverable, else stop (TERMINATE)
  stop()             idempotent, any state -> STOPPED, session_ended()

Events arriving outside RECORDING are dropped.
"""

import logging
import time
from collections.abc import Callable
from enum import Enum

from ..client.fragments import Fragment, FragmentEvent, FragmentKind
from ..errors import TranscriptionError, error_for_category
from .buffer import InterimBuffer, Tokenizer, WhitespaceTokenizer
from .history import SpeakerHint, TranscriptEntry, TranscriptHistory
from .sink import TranscriptSink

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class RecoveryAction(str, Enum):
    """What the session should do after an event."""

    NONE = "none"
    RESTART = "restart"
    TERMINATE = "terminate"


STATUS_READY = "Ready"
STATUS_RECONNECTING = "Reconnecting..."
STATUS_STOPPED = "Stopped"


class TranscriptReconciler:
    """
    Reconciles fragment events into transcript state.

    Usage:
        reconciler = TranscriptReconciler(sink=view)
        reconciler.start()
        for event in adapter.adapt(batch):
            action = reconciler.handle(event)
    """

    def __init__(
        self,
        sink: TranscriptSink | None = None,
        history_max: int = 50,
        eviction_batch_size: int = 10,
        duplicate_check_window: int = 4,
        tokenizer: Tokenizer | None = None,
        speaker_hint_source: Callable[[], bool] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize reconciler.

        Args:
            sink: Receiver of notifications (defaults to a no-op sink)
            history_max: Maximum committed entries kept
            eviction_batch_size: Entries evicted at once when history_max is exceeded
            duplicate_check_window: Recent entries checked for duplicates (0 disables)
            tokenizer: Interim word tokenizer (whitespace by default)
            speaker_hint_source: Returns the current "loud" reading, read at commit time
            clock: Commit timestamp source
        """
        self.sink = sink if sink is not None else TranscriptSink()
        self.history = TranscriptHistory(history_max, eviction_batch_size)
        self.duplicate_check_window = duplicate_check_window
        self.tokenizer = tokenizer or WhitespaceTokenizer()
        self._speaker_hint_source = speaker_hint_source
        self._clock = clock

        self.state = ReconcilerState.IDLE
        self.interim: InterimBuffer | None = None
        self.suppressed_count = 0
        self.last_error: TranscriptionError | None = None

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self.state is ReconcilerState.RECORDING

    @property
    def has_interim(self) -> bool:
        return self.interim is not None

    @property
    def interim_words(self) -> list[str]:
        return list(self.interim.words) if self.interim else []

    @property
    def entries(self) -> list[TranscriptEntry]:
        return self.history.entries

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Enter RECORDING from IDLE. No-op while already recording."""
        if self.state is ReconcilerState.RECORDING:
            logger.debug("start() ignored: already recording")
            return
        if self.state is ReconcilerState.STOPPED:
            raise RuntimeError("Reconciler is stopped; create a new session to record again")

        self.state = ReconcilerState.RECORDING
        self.interim = None
        logger.info("Reconciler recording")
        self.sink.status_changed(self.state, STATUS_READY)

    def resumed(self) -> None:
        """Recognizer confirmed a restart; report "Ready" again."""
        if self.state is ReconcilerState.RECORDING:
            self.sink.status_changed(self.state, STATUS_READY)

    def stop(self, message: str = STATUS_STOPPED) -> bool:
        """
        Stop the session. Safe in any state.

        Args:
            message: Status text reported with the STOPPED state

        Returns:
            True if this call performed the transition, False if already stopped
        """
        if self.state is ReconcilerState.STOPPED:
            return False

        if self.interim is not None:
            logger.debug(f"Discarding interim on stop: '{self.interim.text[:50]}'")
            self.interim = None

        self.state = ReconcilerState.STOPPED
        logger.info(f"Reconciler stopped ({message})")
        self.sink.status_changed(self.state, message)
        self.sink.session_ended()
        return True

    def fail(self, error: TranscriptionError) -> bool:
        """Force STOPPED because of a fatal error."""
        self.last_error = error
        logger.error(f"Session failed: {error.user_message}")
        return self.stop(f"Error: {error.user_message}")

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle(self, event: FragmentEvent) -> RecoveryAction:
        """
        Apply one fragment event.

        Returns:
            RESTART when the recognizer should be restarted, TERMINATE when the
            session just stopped because of a fatal error, otherwise NONE
        """
        if self.state is not ReconcilerState.RECORDING:
            logger.debug(f"Dropping {event.kind.value} event in state {self.state.value}")
            return RecoveryAction.NONE

        if event.kind is FragmentKind.INTERIM:
            self._on_interim(event.fragment)
        elif event.kind is FragmentKind.FINAL:
            self._on_final(event.fragment)
        elif event.kind is FragmentKind.ENDED:
            logger.info("Recognizer ended while recording, requesting restart")
            self.sink.status_changed(self.state, STATUS_RECONNECTING)
            return RecoveryAction.RESTART
        elif event.kind is FragmentKind.ERROR:
            return self._on_error(event)
        return RecoveryAction.NONE

    def _on_interim(self, fragment: Fragment) -> None:
        if self.interim is None:
            self.interim = InterimBuffer(slot=self.history.next_slot, tokenizer=self.tokenizer)

        update = self.interim.apply(fragment.text)
        if update.changed:
            self.sink.interim_changed(list(self.interim.words))

    def _on_final(self, fragment: Fragment) -> None:
        text = fragment.text.strip()
        buffer = self.interim
        self.interim = None

        if self.history.is_duplicate(text, self.duplicate_check_window):
            self.suppressed_count += 1
            logger.debug(f"[DUPLICATE] suppressed final '{text[:50]}'")
            if buffer is not None:
                self.sink.interim_changed([])
            return

        # Loudness read at finalize time, not when the words first appeared
        is_loud = bool(self._speaker_hint_source()) if self._speaker_hint_source else False
        slot = self.history.next_slot
        entry = TranscriptEntry(
            entry_id=f"s{slot}",
            text=text,
            speaker_hint=SpeakerHint.from_loudness(is_loud),
            committed_at=self._clock(),
            sequence_index=fragment.sequence_index,
        )
        evicted = self.history.commit(entry)

        action = "CONVERT" if buffer is not None else "APPEND"
        logger.debug(f"[{action}] {entry.entry_id} = '{text[:50]}'")
        self.sink.entry_committed(entry)
        for old in evicted:
            self.sink.entry_evicted(old)

    def _on_error(self, event: FragmentEvent) -> RecoveryAction:
        error = error_for_category(event.error, event.message)
        self.last_error = error

        if not error.recoverable:
            self.fail(error)
            return RecoveryAction.TERMINATE

        logger.warning(f"Recoverable recognizer error: {error.user_message}")
        self.sink.status_changed(self.state, f"Error: {error.user_message}")
        return RecoveryAction.RESTART

    def __repr__(self) -> str:
        return (
            f"TranscriptReconciler(state={self.state.value}, entries={len(self.history)}, "
            f"interim={self.has_interim})"
        )
