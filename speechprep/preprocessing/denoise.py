"""DenoiseStage — RMS noise gate with overlap-add reconstruction.

Lightweight broadband noise suppression for transcription input:

1. Frame the signal (20ms frames, 10ms hop) and measure RMS per frame.
2. Estimate the noise floor as the mean RMS over the first 400ms of frames.
3. Derive soft (+6 dB) and hard (-3 dB) thresholds around that floor.
4. Gain per frame: 1.0 above soft, 0.15 below hard, quadratic ease-in between.
5. Overlap-add the gained frames, normalize by frame coverage, hard-clip.

The noise floor always comes from the start of the buffer, even when speech
begins inside the first 400ms, and only full-length frames enter it.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from speechprep._audio_constants import (
    DENOISE_FRAME_MS,
    DENOISE_GATE_HARD_DB,
    DENOISE_GATE_SOFT_DB,
    DENOISE_HOP_MS,
    DENOISE_MAX_GAIN,
    DENOISE_MIN_GAIN,
    DENOISE_NOISE_REF_MS,
)
from speechprep._dsp import (
    db_to_linear,
    estimate_snr_db,
    frame_rms,
    frame_starts,
    full_frame_count,
    peak_abs,
    rms_dbfs,
)
from speechprep.logging import get_logger
from speechprep.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.denoise")

# Fallback noise floor when no reference frame is available.
_EMPTY_NOISE_FLOOR = 1e-6


def frame_geometry(sample_rate: int) -> tuple[int, int]:
    """Frame and hop length in samples for *sample_rate* (each at least 1)."""
    frame_length = max(1, DENOISE_FRAME_MS * sample_rate // 1000)
    hop_length = max(1, DENOISE_HOP_MS * sample_rate // 1000)
    return frame_length, hop_length


def estimate_noise_floor(rms: np.ndarray, sample_rate: int, hop_length: int) -> float:
    """Mean frame RMS over the first 400ms worth of frames (or all, if shorter)."""
    reference_frames = max(1, (DENOISE_NOISE_REF_MS * sample_rate // 1000) // hop_length)
    used = min(reference_frames, rms.size)
    if used == 0:
        return _EMPTY_NOISE_FLOOR
    return float(np.mean(rms[:used]))


@dataclass(frozen=True, slots=True)
class NoiseGate:
    """Noise profile for one denoise call: floor plus the two gate thresholds."""

    noise_floor: float
    soft_threshold: float
    hard_threshold: float

    @classmethod
    def from_noise_floor(cls, noise_floor: float) -> NoiseGate:
        return cls(
            noise_floor=noise_floor,
            soft_threshold=noise_floor * db_to_linear(DENOISE_GATE_SOFT_DB),
            hard_threshold=noise_floor * db_to_linear(DENOISE_GATE_HARD_DB),
        )

    def gains(self, rms: np.ndarray) -> np.ndarray:
        """One gain per frame.

        Between the thresholds the gain follows ``0.15 + 0.85 * a**2`` so
        borderline frames are pulled down harder than a linear ramp would.
        """
        span = max(1e-9, self.soft_threshold - self.hard_threshold)
        a = (rms - self.hard_threshold) / span
        eased = DENOISE_MIN_GAIN + (DENOISE_MAX_GAIN - DENOISE_MIN_GAIN) * a * a

        gains = np.where(rms >= self.soft_threshold, DENOISE_MAX_GAIN, eased)
        gains = np.where(rms <= self.hard_threshold, DENOISE_MIN_GAIN, gains)
        return gains.astype(np.float64)


def overlap_add(
    audio: np.ndarray,
    gains: np.ndarray,
    frame_length: int,
    hop_length: int,
) -> np.ndarray:
    """Apply per-frame gains and average over the frames covering each sample.

    Each output sample is ``audio[i] * mean(gain of frames covering i)``,
    hard-clipped to [-1, 1].
    """
    n = int(audio.size)
    starts = frame_starts(n, frame_length, hop_length)[: gains.size]
    ends = np.minimum(starts + frame_length, n)

    # Difference arrays: +g at each frame start, -g one past its end.
    gain_steps = np.zeros(n + 1, dtype=np.float64)
    count_steps = np.zeros(n + 1, dtype=np.int64)
    np.add.at(gain_steps, starts, gains)
    np.add.at(gain_steps, ends, -gains)
    np.add.at(count_steps, starts, 1)
    np.add.at(count_steps, ends, -1)

    gain_sum = np.cumsum(gain_steps)[:n]
    counts = np.cumsum(count_steps)[:n]

    covered = counts > 0
    out = np.zeros(n, dtype=np.float64)
    out[covered] = audio[covered] * gain_sum[covered] / counts[covered]
    return np.clip(out, -1.0, 1.0).astype(np.float32)


def spectral_gate(audio: np.ndarray, sample_rate: int) -> np.ndarray:
    """Denoise a mono float32 buffer with the RMS noise gate.

    Args:
        audio: 1-D float32 signal in [-1, 1].
        sample_rate: Sample rate of *audio* in Hz.

    Returns:
        Denoised float32 signal of the same length. Empty input is returned as is.
    """
    if audio.size == 0:
        return audio

    frame_length, hop_length = frame_geometry(sample_rate)
    rms = frame_rms(audio, frame_length, hop_length)
    # The partial tail frame never contributes to the noise floor.
    reference = rms[: full_frame_count(audio.size, frame_length, hop_length)]
    gate = NoiseGate.from_noise_floor(estimate_noise_floor(reference, sample_rate, hop_length))
    denoised = overlap_add(audio, gate.gains(rms), frame_length, hop_length)

    logger.debug(
        "denoise_complete",
        samples=int(audio.size),
        sample_rate=sample_rate,
        noise_floor=round(gate.noise_floor, 6),
        soft_threshold=round(gate.soft_threshold, 6),
        hard_threshold=round(gate.hard_threshold, 6),
        snr_before_db=round(estimate_snr_db(audio, frame_length, hop_length), 2),
        snr_after_db=round(estimate_snr_db(denoised, frame_length, hop_length), 2),
        peak_in=round(peak_abs(audio), 3),
        peak_out=round(peak_abs(denoised), 3),
        rms_in_dbfs=round(rms_dbfs(audio), 1),
        rms_out_dbfs=round(rms_dbfs(denoised), 1),
    )
    return denoised


class DenoiseStage(AudioStage):
    """RMS noise-gate stage for the cleanup pipeline."""

    @property
    def name(self) -> str:
        """Identifier name for the stage."""
        return "denoise"

    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        """Suppress stationary background noise.

        Args:
            audio: Numpy float32 array with audio samples (mono).
            sample_rate: Current audio sample rate in Hz.

        Returns:
            Tuple (denoised float32 audio, unchanged sample rate).
        """
        return spectral_gate(audio, sample_rate), sample_rate
