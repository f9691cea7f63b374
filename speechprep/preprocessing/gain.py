"""Auto-gain stage with a soft-knee limiter.

Raises post-denoise loudness by up to ``max_gain_db``, never past the
headroom left to a 0.99 peak. Boosted samples above the 0.92 knee are
compressed by a soft-knee curve and finally hard-clipped to [-1, 1].
"""

from __future__ import annotations

import math

import numpy as np

from speechprep._audio_constants import (
    AUTO_GAIN_MIN_APPLIED_DB,
    AUTO_GAIN_PEAK_TARGET,
    DEFAULT_MAX_GAIN_DB,
    LIMITER_KNEE,
    LIMITER_STEEPNESS,
)
from speechprep._dsp import db_to_linear, peak_abs, rms_dbfs
from speechprep.logging import get_logger
from speechprep.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.gain")


def headroom_db(peak: float) -> float:
    """dB available before *peak* reaches 0.99 full scale (0 for silence)."""
    if peak <= 0.0:
        return 0.0
    return max(0.0, 20.0 * math.log10(AUTO_GAIN_PEAK_TARGET / peak))


def compute_auto_gain_db(peak: float, max_gain_db: float = DEFAULT_MAX_GAIN_DB) -> float:
    """Gain to apply, in dB: the smaller of the ceiling and the headroom."""
    return min(max_gain_db, headroom_db(peak))


def soft_limit(
    audio: np.ndarray,
    knee: float = LIMITER_KNEE,
    steepness: float = LIMITER_STEEPNESS,
) -> np.ndarray:
    """Soft-knee limiter followed by a hard clip to [-1, 1].

    For ``|v| > knee``: ``over = (|v| - knee) / (1 - knee)``,
    ``factor = 1 - over / (over + 1/steepness)``, and the magnitude becomes
    ``knee + (1 - knee) * factor`` with the sign preserved.
    """
    magnitude = np.abs(audio).astype(np.float64)
    above = magnitude > knee

    over = (magnitude[above] - knee) / (1.0 - knee)
    factor = 1.0 - over / (over + 1.0 / steepness)

    limited = audio.astype(np.float64)
    limited[above] = np.copysign(knee + (1.0 - knee) * factor, limited[above])
    return np.clip(limited, -1.0, 1.0).astype(np.float32)


def apply_auto_gain(
    audio: np.ndarray,
    max_gain_db: float = DEFAULT_MAX_GAIN_DB,
) -> tuple[np.ndarray, float]:
    """Boost *audio* toward full scale, capped at *max_gain_db*.

    Gains of 0.01 dB or less leave the buffer untouched.

    Returns:
        Tuple (processed float32 audio, applied gain in dB; 0.0 on pass-through).
    """
    if audio.size == 0:
        return audio, 0.0

    peak = peak_abs(audio)
    applied_db = compute_auto_gain_db(peak, max_gain_db)

    if applied_db <= AUTO_GAIN_MIN_APPLIED_DB:
        logger.debug(
            "auto_gain_skipped",
            peak=round(peak, 3),
            headroom_db=round(headroom_db(peak), 2),
        )
        return audio, 0.0

    boosted = soft_limit(audio.astype(np.float64) * db_to_linear(applied_db))

    logger.debug(
        "auto_gain_applied",
        max_gain_db=max_gain_db,
        headroom_db=round(headroom_db(peak), 2),
        applied_db=round(applied_db, 2),
        peak_out=round(peak_abs(boosted), 3),
        rms_out_dbfs=round(rms_dbfs(boosted), 1),
    )
    return boosted, applied_db


class AutoGainStage(AudioStage):
    """Headroom-aware auto-gain stage.

    Args:
        max_gain_db: Gain ceiling in dB (default: +10).
    """

    def __init__(self, max_gain_db: float = DEFAULT_MAX_GAIN_DB) -> None:
        self._max_gain_db = max_gain_db
        self._last_applied_db = 0.0

    @property
    def name(self) -> str:
        """Identifier name for the stage."""
        return "auto_gain"

    @property
    def last_applied_db(self) -> float:
        """Gain applied by the most recent ``process()`` call, in dB."""
        return self._last_applied_db

    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        """Apply headroom-limited gain and the soft limiter.

        Args:
            audio: Numpy float32 array with audio samples (mono).
            sample_rate: Current audio sample rate in Hz.

        Returns:
            Tuple (boosted float32 audio, unchanged sample rate).
        """
        boosted, self._last_applied_db = apply_auto_gain(audio, self._max_gain_db)
        return boosted, sample_rate
