"""
Unit tests for caption_sync.audio.loudness module.
"""

import asyncio
from unittest.mock import Mock

import numpy as np
import pytest

from caption_sync.audio.loudness import (
    LEVEL_MAX,
    LoudnessSampler,
    LoudnessSource,
    PcmLevelMeter,
    pcm_level,
)


def pcm(value: int, samples: int = 160) -> bytes:
    return np.full(samples, value, dtype=np.int16).tobytes()


class FixedSource(LoudnessSource):
    def __init__(self, value: float):
        self.value = value

    def level(self) -> float:
        return self.value


class TestPcmLevel:
    """Tests for pcm_level function."""

    def test_silence(self):
        """Test silence has level 0."""
        assert pcm_level(pcm(0)) == 0.0

    def test_empty_input(self):
        """Test empty or 1-byte input has level 0."""
        assert pcm_level(b"") == 0.0
        assert pcm_level(b"\x01") == 0.0

    def test_full_scale(self):
        """Test full-scale audio reaches the top of the range."""
        assert pcm_level(pcm(-32768)) == LEVEL_MAX

    def test_half_scale(self):
        """Test level is proportional to mean absolute amplitude."""
        assert pcm_level(pcm(16384)) == pytest.approx(127.5, abs=0.01)

    def test_odd_byte_count(self):
        """Test a trailing odd byte is ignored."""
        assert pcm_level(pcm(16384) + b"\x00") == pytest.approx(127.5, abs=0.01)


class TestPcmLevelMeter:
    """Tests for PcmLevelMeter."""

    def test_feed_updates_level(self):
        """Test feeding audio updates the level."""
        meter = PcmLevelMeter()
        assert meter.level() == 0.0
        meter.feed(pcm(16384))
        assert meter.level() > 100
        assert meter.chunks_seen == 1


class TestLoudnessSampler:
    """Tests for LoudnessSampler."""

    def test_defaults(self):
        """Test default threshold and interval."""
        sampler = LoudnessSampler(FixedSource(0))
        assert sampler.threshold == 25
        assert sampler.interval_ms == 100
        assert sampler.is_active is False
        assert sampler.running is False

    @pytest.mark.parametrize("threshold,interval", [(-1, 100), (256, 100), (25, 0)])
    def test_invalid_args(self, threshold, interval):
        """Test out-of-range settings raise ValueError."""
        with pytest.raises(ValueError):
            LoudnessSampler(FixedSource(0), threshold=threshold, interval_ms=interval)

    def test_sample_above_threshold(self):
        """Test a level above threshold is active."""
        assert LoudnessSampler(FixedSource(40)).sample() is True

    def test_sample_at_threshold_inactive(self):
        """Test the threshold itself is not loud."""
        assert LoudnessSampler(FixedSource(25)).sample() is False

    def test_source_failure_reads_quiet(self):
        """Test a failing source is treated as silence."""
        source = Mock(spec=LoudnessSource)
        source.level.side_effect = OSError("device unplugged")
        sampler = LoudnessSampler(source)
        sampler.is_active = True
        assert sampler.sample() is False

    @pytest.mark.asyncio
    async def test_periodic_sampling(self):
        """Test the background task keeps is_active current."""
        source = FixedSource(0)
        sampler = LoudnessSampler(source, interval_ms=5)
        sampler.start()
        assert sampler.running

        source.value = 200
        await asyncio.sleep(0.05)
        assert sampler.is_active is True

        await sampler.aclose()
        assert sampler.running is False
        assert sampler.is_active is False

    @pytest.mark.asyncio
    async def test_start_twice_single_task(self):
        """Test start is idempotent while running."""
        sampler = LoudnessSampler(FixedSource(0), interval_ms=5)
        sampler.start()
        task = sampler._task
        sampler.start()
        assert sampler._task is task
        await sampler.aclose()
