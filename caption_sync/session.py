"""
Recording Session

Owns one recognizer handle, one FragmentStreamAdapter, one
TranscriptReconciler and an optional loudness sampler, and drives them from a
single ordered event queue on one asyncio loop.

Recognizer callbacks never touch transcript state directly; they post tagged
events (RecognizerStarted, RecognizerBatch, RecognizerEnded, RecognizerFailed,
RestartDue) that one pump task applies in order. Callbacks from other threads
are marshalled onto the loop with call_soon_threadsafe.

Usage:
    session = Session(recognizer, sink=view, settings=TranscriptionSettings.from_env())
    await session.start()
    ...
    session.stop()
"""

import asyncio
import contextlib
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from .audio.loudness import LoudnessSampler, LoudnessSource
from .client.adapter import FragmentStreamAdapter
from .client.recognizer import RecognitionBatch, Recognizer
from .config.settings import TranscriptionSettings
from .errors import TranscriptionError, UnknownRecognizerError, classify_exception
from .transcript.buffer import tokenizer_for_language
from .transcript.history import TranscriptEntry
from .transcript.reconciler import ReconcilerState, RecoveryAction, TranscriptReconciler
from .transcript.sink import SinkGroup, TranscriptSink
from .utils.logging import SessionLogAdapter

logger = logging.getLogger(__name__)


# ============== Queue events ==============
# generation identifies the recognizer start that produced the event; events
# from an instance that has since been restarted are dropped.


@dataclass(frozen=True)
class RecognizerStarted:
    generation: int


@dataclass(frozen=True)
class RecognizerBatch:
    generation: int
    batch: RecognitionBatch


@dataclass(frozen=True)
class RecognizerEnded:
    generation: int


@dataclass(frozen=True)
class RecognizerFailed:
    generation: int
    code: str | None
    message: str | None = None


@dataclass(frozen=True)
class RestartDue:
    pass


SessionEvent = RecognizerStarted | RecognizerBatch | RecognizerEnded | RecognizerFailed | RestartDue


class Session:
    """One recording lifecycle: Idle -> Recording -> Stopped."""

    def __init__(
        self,
        recognizer: Recognizer,
        sink: TranscriptSink | None = None,
        settings: TranscriptionSettings | None = None,
        loudness: LoudnessSource | None = None,
        session_id: str | None = None,
    ):
        """
        Initialize session.

        Args:
            recognizer: Speech recognizer to drive
            sink: Receiver of transcript notifications, wrapped in a SinkGroup so
                its failures are logged instead of stopping the session
            settings: Session settings (defaults when None)
            loudness: Optional level source for the speaker hint
            session_id: Identifier used in logs (random when None)
        """
        self.id = session_id or uuid.uuid4().hex
        self.settings = settings or TranscriptionSettings()
        self.recognizer = recognizer
        self._log = SessionLogAdapter(logger, self.id)

        self.sampler: LoudnessSampler | None = None
        if loudness is not None:
            self.sampler = LoudnessSampler(
                loudness,
                threshold=self.settings.loudness_threshold,
                interval_ms=self.settings.loudness_interval_ms,
            )

        # Sink failures are logged and isolated, never fatal to the session
        if sink is not None and not isinstance(sink, SinkGroup):
            sink = SinkGroup(sink)

        self.adapter = FragmentStreamAdapter()
        self.reconciler = TranscriptReconciler(
            sink=sink,
            history_max=self.settings.history_max,
            eviction_batch_size=self.settings.eviction_batch_size,
            duplicate_check_window=self.settings.duplicate_check_window,
            tokenizer=tokenizer_for_language(self.settings.language_tag),
            speaker_hint_source=self._is_loud,
        )

        self.restart_count = 0

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue | None = None
        self._pump_task: asyncio.Task | None = None
        self._restart_task: asyncio.Task | None = None
        self._restart_pending = False
        self._start_future: asyncio.Future | None = None
        self._generation = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReconcilerState:
        return self.reconciler.state

    @property
    def is_recording(self) -> bool:
        return self.reconciler.is_recording

    @property
    def entries(self) -> list[TranscriptEntry]:
        return self.reconciler.entries

    @property
    def last_error(self) -> TranscriptionError | None:
        return self.reconciler.last_error

    @property
    def restart_pending(self) -> bool:
        return self._restart_pending

    def _is_loud(self) -> bool:
        return self.sampler.is_active if self.sampler else False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Start recording and wait for the recognizer to confirm.

        Raises:
            RuntimeError: The session was already started.
            TranscriptionError: The recognizer is unavailable, refused to start,
                failed before confirming, or did not confirm within start_timeout_s.
                The session is Stopped in all of these cases.
        """
        if self.reconciler.state is not ReconcilerState.IDLE:
            raise RuntimeError(f"Session already {self.reconciler.state.value}")

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._start_future = self._loop.create_future()
        self._pump_task = self._loop.create_task(self._pump())

        self._log.info(f"Starting {self.recognizer.name} recognizer ({self.settings.language_tag})")
        self.reconciler.start()

        try:
            self._start_recognizer()
        except Exception as e:
            error = classify_exception(e)
            self._fail(error)
            if error is e:
                raise
            raise error from e

        try:
            await asyncio.wait_for(self._start_future, self.settings.start_timeout_s)
        except asyncio.TimeoutError:
            error = UnknownRecognizerError(
                f"Recognizer did not start within {self.settings.start_timeout_s}s"
            )
            self._fail(error)
            raise error from None

        if self._closed:
            # Failed or stopped before confirming
            if self.reconciler.last_error is not None:
                raise self.reconciler.last_error
            return

        if self.sampler:
            self.sampler.start()
        self._log.info("Recording")

    def stop(self) -> bool:
        """
        Stop recording. Idempotent, immediate, safe in any state.

        Cancels a pending restart, releases the recognizer and the sampler,
        and drops queued events.

        Returns:
            True if this call stopped the session
        """
        if self._closed and self.reconciler.state is ReconcilerState.STOPPED:
            return False
        self._log.info("Stop requested")
        self.reconciler.stop()
        self._shutdown(cancel_pump=True)
        return True

    async def wait_idle(self) -> None:
        """Wait until no restart is pending and every queued event has been applied."""
        while True:
            task = self._restart_task
            if task is not None and not task.done():
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            if self._queue is not None and self._pump_task is not None and not self._pump_task.done():
                await self._queue.join()
            if not self._restart_task_running() and (self._queue is None or self._queue.empty()):
                return

    async def aclose(self) -> None:
        """Stop and wait for background tasks to finish."""
        pump, restart = self._pump_task, self._restart_task
        self.stop()
        for task in (pump, restart):
            if task is not None and task is not asyncio.current_task():
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    # ------------------------------------------------------------------
    # Recognizer plumbing
    # ------------------------------------------------------------------

    def _start_recognizer(self) -> None:
        """Bind callbacks for a new generation and start the recognizer."""
        self._generation += 1
        generation = self._generation

        self.recognizer.on_start = lambda: self._post(RecognizerStarted(generation))
        self.recognizer.on_result = lambda batch: self._post(RecognizerBatch(generation, batch))
        self.recognizer.on_end = lambda: self._post(RecognizerEnded(generation))
        self.recognizer.on_error = lambda code, message=None: self._post(
            RecognizerFailed(generation, code, message)
        )
        self.recognizer.start(self.settings.language_tag)

    def _unbind(self) -> None:
        self.recognizer.on_start = None
        self.recognizer.on_result = None
        self.recognizer.on_end = None
        self.recognizer.on_error = None

    def _post(self, event: SessionEvent) -> None:
        """Queue an event from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            on_loop = asyncio.get_running_loop() is loop
        except RuntimeError:
            on_loop = False

        if on_loop:
            self._enqueue(event)
        else:
            loop.call_soon_threadsafe(self._enqueue, event)

    def _enqueue(self, event: SessionEvent) -> None:
        if self._closed or self._queue is None:
            self._log.debug(f"Dropping {type(event).__name__} after stop")
            return
        self._queue.put_nowait(event)

    async def _pump(self) -> None:
        """Apply queued events one at a time, in order."""
        while not self._closed:
            event = await self._queue.get()
            try:
                self._dispatch(event)
            except Exception as e:
                self._log.exception(f"Failed to apply {type(event).__name__}")
                self._fail(classify_exception(e))
            finally:
                self._queue.task_done()

    def _dispatch(self, event: SessionEvent) -> None:
        if self._closed:
            return

        if isinstance(event, RestartDue):
            self._restart()
            return

        if event.generation != self._generation:
            self._log.debug(f"Dropping stale {type(event).__name__} from start #{event.generation}")
            return

        if isinstance(event, RecognizerStarted):
            if self._start_future is not None and not self._start_future.done():
                self._start_future.set_result(None)
            else:
                self._log.info(f"Recognizer restarted (#{self.restart_count})")
                self.reconciler.resumed()
            return

        if isinstance(event, RecognizerBatch):
            for fragment_event in self.adapter.adapt(event.batch):
                self.reconciler.handle(fragment_event)
            return

        if isinstance(event, RecognizerEnded):
            action = self.reconciler.handle(self.adapter.ended())
        else:
            action = self.reconciler.handle(self.adapter.failed(event.code, event.message))
        self._recover(action)

    def _recover(self, action: RecoveryAction) -> None:
        if action is RecoveryAction.RESTART:
            self._schedule_restart()
        elif action is RecoveryAction.TERMINATE:
            self._shutdown(cancel_pump=False)

    # ------------------------------------------------------------------
    # Restart
    # ------------------------------------------------------------------

    def _restart_task_running(self) -> bool:
        return self._restart_task is not None and not self._restart_task.done()

    def _schedule_restart(self) -> None:
        """Schedule one restart after restart_delay_ms; repeated requests coalesce."""
        if self._restart_pending:
            self._log.debug("Restart already pending")
            return
        self._restart_pending = True
        self._restart_task = self._loop.create_task(self._restart_after_delay())
        self._log.debug(f"Restart scheduled in {self.settings.restart_delay_ms}ms")

    async def _restart_after_delay(self) -> None:
        await asyncio.sleep(self.settings.restart_delay)
        self._post(RestartDue())

    def _restart(self) -> None:
        self._restart_pending = False
        if not self.reconciler.is_recording:
            return

        self.adapter.reset()
        self.restart_count += 1
        self._log.info(f"Restarting recognizer (attempt #{self.restart_count})")
        try:
            self._start_recognizer()
        except Exception as e:
            # No retry: a recognizer that cannot start again ends the session
            self._fail(classify_exception(e))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _fail(self, error: TranscriptionError) -> None:
        self.reconciler.fail(error)
        self._shutdown(cancel_pump=True)

    def _shutdown(self, cancel_pump: bool) -> None:
        """Release everything the session holds. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._restart_pending = False

        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()

        self._unbind()
        try:
            self.recognizer.stop()
        except Exception as e:
            self._log.warning(f"Recognizer stop failed: {e}")

        if self.sampler:
            self.sampler.stop()

        dropped = self._drain_queue()
        if dropped:
            self._log.debug(f"Dropped {dropped} queued events")

        if self._start_future is not None and not self._start_future.done():
            self._start_future.set_result(None)

        if cancel_pump and self._pump_task is not None and self._pump_task is not asyncio.current_task():
            self._pump_task.cancel()

    def _drain_queue(self) -> int:
        dropped = 0
        if self._queue is None:
            return dropped
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            self._queue.task_done()
            dropped += 1

    def __repr__(self) -> str:
        return f"Session(id={self.id[:8]}, state={self.state.value}, entries={len(self.entries)})"


class SessionController:
    """
    Keeps at most one active session.

    Starting a new session stops the previous one first.

    Usage:
        controller = SessionController(lambda: MyRecognizer(), sink_factory=lambda: view)
        await controller.start("en-US")
        controller.is_recording  # True
        controller.stop()
    """

    def __init__(
        self,
        recognizer_factory: Callable[[], Recognizer],
        sink_factory: Callable[[], TranscriptSink | None] | None = None,
        settings: TranscriptionSettings | None = None,
        loudness_factory: Callable[[], LoudnessSource | None] | None = None,
    ):
        self.recognizer_factory = recognizer_factory
        self.sink_factory = sink_factory
        self.settings = settings or TranscriptionSettings.from_env()
        self.loudness_factory = loudness_factory
        self.session: Session | None = None

    @property
    def is_recording(self) -> bool:
        return self.session is not None and self.session.is_recording

    async def start(self, language_tag: str | None = None) -> Session:
        """
        Stop any previous session and start a new one.

        Raises:
            TranscriptionError: The new session failed to start
        """
        if self.session is not None:
            logger.info("Stopping previous session")
            await self.session.aclose()

        settings = self.settings.with_overrides(language_tag=language_tag)
        session = Session(
            self.recognizer_factory(),
            sink=self.sink_factory() if self.sink_factory else None,
            settings=settings,
            loudness=self.loudness_factory() if self.loudness_factory else None,
        )
        self.session = session
        await session.start()
        return session

    def stop(self) -> bool:
        """Stop the active session, if any."""
        if self.session is None:
            return False
        return self.session.stop()

    async def aclose(self) -> None:
        if self.session is not None:
            await self.session.aclose()
