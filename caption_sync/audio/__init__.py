"""Audio-derived signals."""

from .loudness import (
    DEFAULT_INTERVAL_MS,
    DEFAULT_THRESHOLD,
    LoudnessSampler,
    LoudnessSource,
    PcmLevelMeter,
    pcm_level,
)

__all__ = [
    "DEFAULT_INTERVAL_MS",
    "DEFAULT_THRESHOLD",
    "LoudnessSampler",
    "LoudnessSource",
    "PcmLevelMeter",
    "pcm_level",
]
