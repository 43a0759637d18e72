"""Loudness signal used to derive the speaker hint of committed entries."""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod

import numpy as np

logger = logging.getLogger(__name__)

# Levels are reported on a 0-255 scale
LEVEL_MAX = 255
DEFAULT_THRESHOLD = 25  # ~10% of full scale
DEFAULT_INTERVAL_MS = 100


def pcm_level(audio_data: bytes) -> float:
    """
    Mean absolute amplitude of 16-bit PCM audio, scaled to 0-255.

    Args:
        audio_data: Raw 16-bit PCM audio bytes (mono)

    Returns:
        Level between 0 and 255 (0 for empty input)
    """
    if len(audio_data) < 2:
        return 0.0
    usable = len(audio_data) - (len(audio_data) % 2)
    samples = np.frombuffer(audio_data[:usable], dtype=np.int16).astype(np.float32)
    mean_abs = float(np.mean(np.abs(samples)))
    return min(LEVEL_MAX, mean_abs / 32768.0 * LEVEL_MAX)


class LoudnessSource(ABC):
    """Continuously updated loudness reading from an audio input."""

    @abstractmethod
    def level(self) -> float:
        """Current level on a 0-255 scale."""


class PcmLevelMeter(LoudnessSource):
    """
    Level meter fed with PCM chunks from an audio capture callback.

    Usage:
        meter = PcmLevelMeter()
        capture = MicrophoneCapture(callback=meter.feed)
    """

    def __init__(self):
        self._level = 0.0
        self.chunks_seen = 0

    def feed(self, audio_data: bytes) -> None:
        """Update the level from one chunk of 16-bit PCM audio."""
        self._level = pcm_level(audio_data)
        self.chunks_seen += 1

    def level(self) -> float:
        return self._level


class LoudnessSampler:
    """
    Periodically samples a LoudnessSource and keeps one shared boolean.

    is_active is the only state other components read; it is written only by
    sample(). Runs as an asyncio task on the session's loop.
    """

    def __init__(
        self,
        source: LoudnessSource,
        threshold: float = DEFAULT_THRESHOLD,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ):
        """
        Initialize sampler.

        Args:
            source: Level source to sample
            threshold: Level above which the input counts as loud (0-255)
            interval_ms: Sampling period in milliseconds
        """
        if not 0 <= threshold <= LEVEL_MAX:
            raise ValueError(f"threshold must be within 0..{LEVEL_MAX}, got {threshold}")
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self.source = source
        self.threshold = threshold
        self.interval_ms = interval_ms
        self.is_active = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sample(self) -> bool:
        """Take one sample and update is_active."""
        try:
            level = self.source.level()
        except Exception as e:
            logger.warning(f"Loudness source failed: {e}")
            level = 0.0
        self.is_active = level > self.threshold
        return self.is_active

    def start(self) -> None:
        """Start periodic sampling on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Loudness sampler started (threshold={self.threshold}, every {self.interval_ms}ms)")

    async def _run(self) -> None:
        while True:
            self.sample()
            await asyncio.sleep(self.interval_ms / 1000)

    def stop(self) -> None:
        """Stop sampling. The last reading is reset to quiet."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.is_active = False

    async def aclose(self) -> None:
        """Stop and wait for the sampling task to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
