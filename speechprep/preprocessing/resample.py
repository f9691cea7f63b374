"""Linear-interpolation resampler.

No anti-aliasing filter is applied: good enough for speech-to-text input,
not for playback. Stateless across calls, so resampling a stream chunk by
chunk leaves small discontinuities at chunk boundaries.
"""

from __future__ import annotations

import numpy as np

from speechprep._audio_constants import STT_SAMPLE_RATE
from speechprep.exceptions import UnsupportedSampleRateError
from speechprep.preprocessing.stages import AudioStage


def resampled_length(n_samples: int, source_rate: int, target_rate: int) -> int:
    """Output length for *n_samples* input samples: ``round(n * tr / sr)``, minimum 1.

    Rounds half up, in integer arithmetic so the result is exact.
    """
    return max(1, (2 * n_samples * target_rate + source_rate) // (2 * source_rate))


def linear_resample(audio: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample a mono float32 buffer by linear interpolation.

    For output index ``i`` the source position is ``i / ratio``; the two
    neighbouring input samples (clamped to the buffer) are blended by the
    fractional part of that position.

    Args:
        audio: 1-D float32 signal.
        source_rate: Sample rate of *audio* in Hz.
        target_rate: Desired sample rate in Hz.

    Returns:
        Float32 resampled signal. Same-rate input is returned as is; empty
        input returns an empty array.

    Raises:
        UnsupportedSampleRateError: If either rate is not positive.
    """
    if source_rate <= 0:
        raise UnsupportedSampleRateError(source_rate)
    if target_rate <= 0:
        raise UnsupportedSampleRateError(target_rate)

    n = int(audio.size)
    if n == 0:
        return np.array([], dtype=np.float32)
    if source_rate == target_rate:
        return audio

    ratio = target_rate / source_rate
    out_len = resampled_length(n, source_rate, target_rate)

    pos = np.arange(out_len, dtype=np.float64) / ratio
    i0 = np.clip(np.floor(pos).astype(np.int64), 0, n - 1)
    i1 = np.minimum(i0 + 1, n - 1)
    frac = pos - i0

    source = audio.astype(np.float64, copy=False)
    resampled = source[i0] * (1.0 - frac) + source[i1] * frac
    return resampled.astype(np.float32)


class ResampleStage(AudioStage):
    """Resampling stage for the cleanup pipeline.

    Converts audio from any sample rate to the target sample rate (default 16kHz).
    Expects mono input (pipeline contract).

    Args:
        target_sample_rate: Target sample rate in Hz (default: 16000).
    """

    def __init__(self, target_sample_rate: int = STT_SAMPLE_RATE) -> None:
        self._target_sample_rate = target_sample_rate

    @property
    def name(self) -> str:
        """Identifier name for the stage."""
        return "resample"

    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        """Convert audio to target sample rate.

        If the audio is already at the target sample rate, or empty, returns unchanged.

        Args:
            audio: Numpy array with audio samples.
            sample_rate: Current audio sample rate in Hz.

        Returns:
            Tuple (resampled float32 audio, target sample rate).
        """
        if audio.size == 0:
            return audio, sample_rate

        if sample_rate == self._target_sample_rate:
            return audio, sample_rate

        resampled = linear_resample(audio, sample_rate, self._target_sample_rate)
        return resampled, self._target_sample_rate
