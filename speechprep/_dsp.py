"""Centralized level and framing primitives for speechprep.

Pure signal-measurement functions: peak and RMS levels, dB conversions, and
overlapping frame RMS. Zero imports from speechprep.decode or the pipelines;
this module sits at the bottom of the dependency graph alongside
_audio_constants.
"""

from __future__ import annotations

import math

import numpy as np

from speechprep._audio_constants import RMS_FLOOR

__all__ = [
    "db_to_linear",
    "estimate_snr_db",
    "frame_count",
    "frame_rms",
    "frame_starts",
    "full_frame_count",
    "linear_to_db",
    "peak_abs",
    "rms_dbfs",
]

# ---------------------------------------------------------------------------
# dB conversions
# ---------------------------------------------------------------------------


def db_to_linear(db: float) -> float:
    """Convert a gain in dB to a linear amplitude factor."""
    return float(10.0 ** (db / 20.0))


def linear_to_db(value: float) -> float:
    """Convert a linear amplitude ratio to dB (floored at 1e-12 to avoid -inf)."""
    return float(20.0 * math.log10(max(value, RMS_FLOOR)))


# ---------------------------------------------------------------------------
# Whole-buffer levels
# ---------------------------------------------------------------------------


def peak_abs(audio: np.ndarray) -> float:
    """Peak absolute sample value (0.0 for an empty buffer)."""
    if audio.size == 0:
        return 0.0
    return float(np.max(np.abs(audio)))


def rms_dbfs(audio: np.ndarray) -> float:
    """Whole-buffer RMS level in dBFS (-120.0 for an empty buffer)."""
    if audio.size == 0:
        return -120.0
    rms = math.sqrt(float(np.mean(np.square(audio, dtype=np.float64))))
    return linear_to_db(rms)


# ---------------------------------------------------------------------------
# Overlapping frames
# ---------------------------------------------------------------------------


def frame_count(n_samples: int, frame_length: int, hop_length: int) -> int:
    """Number of analysis frames needed to cover *n_samples*.

    Frames start every *hop_length* samples; the last frame may be partial so
    that every sample is covered by at least one frame.
    """
    if n_samples <= 0:
        return 0
    overhang = max(0, n_samples - frame_length)
    return 1 + -(-overhang // hop_length)


def full_frame_count(n_samples: int, frame_length: int, hop_length: int) -> int:
    """Number of leading frames that hold *frame_length* samples.

    Excludes the partial tail frame counted by ``frame_count``. A buffer shorter
    than one frame still reports one frame.
    """
    if n_samples <= 0:
        return 0
    return 1 + max(0, n_samples - frame_length) // hop_length


def frame_starts(n_samples: int, frame_length: int, hop_length: int) -> np.ndarray:
    """Start index of every analysis frame."""
    return np.arange(frame_count(n_samples, frame_length, hop_length), dtype=np.int64) * hop_length


def frame_rms(audio: np.ndarray, frame_length: int, hop_length: int) -> np.ndarray:
    """RMS energy of each overlapping frame.

    Computed from a cumulative sum of squares so every frame costs O(1).
    The mean square is floored at ``RMS_FLOOR`` before the square root.

    Args:
        audio: 1-D float32 signal.
        frame_length: Frame size in samples.
        hop_length: Hop between successive frame starts, in samples.

    Returns:
        Float64 array with one RMS value per frame (empty for empty input).
    """
    n = int(audio.size)
    if n == 0:
        return np.array([], dtype=np.float64)

    starts = frame_starts(n, frame_length, hop_length)
    ends = np.minimum(starts + frame_length, n)

    csum = np.concatenate(([0.0], np.cumsum(np.square(audio, dtype=np.float64))))
    mean_sq = (csum[ends] - csum[starts]) / (ends - starts)
    # cumsum differences can dip a hair below zero on silent spans
    return np.sqrt(np.maximum(mean_sq, RMS_FLOOR))


def estimate_snr_db(audio: np.ndarray, frame_length: int, hop_length: int) -> float:
    """Crude SNR estimate: loudest frame RMS over quietest frame RMS, in dB.

    Only meaningful as a before/after trend in logs.
    """
    rms = frame_rms(audio, frame_length, hop_length)
    if rms.size == 0:
        return 0.0
    signal = float(np.max(rms))
    noise = max(1e-9, float(np.min(rms)))
    return linear_to_db(signal / noise)
