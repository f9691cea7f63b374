"""Centralized audio format constants for speechprep.

Single source of truth for PCM format parameters, WAV container layout,
allowed output sample rates, and the tuning constants of the denoiser and
auto-gain stages.
"""

from __future__ import annotations

# --- PCM 16-bit format ---
# Signed 16-bit integer range: [-32768, 32767]
PCM_INT16_MAX: int = 32767
PCM_INT16_MIN: int = -32768
# Scale factor for int16 -> float32 conversion.
# int16 / 32768.0 maps to [-1.0, ~0.99997].
PCM_INT16_SCALE: float = 32768.0
# Scale factor for float32 -> int16 conversion (clamped input, truncating cast).
PCM_INT16_WRITE_SCALE: float = 32767.0

BYTES_PER_SAMPLE_INT16: int = 2
BYTES_PER_SAMPLE_FLOAT32: int = 4

# --- WAV container ---
WAV_HEADER_SIZE: int = 44
WAV_FMT_CHUNK_SIZE: int = 16
WAV_FORMAT_PCM: int = 1
# chunkSize = 36 + dataSize (header bytes after the RIFF size field, minus "data" payload).
WAV_RIFF_OVERHEAD: int = 36

# --- Sample rates ---
STT_SAMPLE_RATE: int = 16000
ALLOWED_TARGET_SAMPLE_RATES: frozenset[int] = frozenset(
    {8000, 16000, 22050, 24000, 32000, 44100, 48000}
)

# --- Decode loop ---
DEFAULT_POLL_TIMEOUT_S: float = 0.010
DEFAULT_READ_BLOCK_MS: int = 100
# Progress log cadence, in seconds of output audio.
PROGRESS_LOG_INTERVAL_S: int = 10

# --- Denoiser (RMS gating) ---
DENOISE_FRAME_MS: int = 20
DENOISE_HOP_MS: int = 10
DENOISE_NOISE_REF_MS: int = 400
DENOISE_GATE_SOFT_DB: float = 6.0
DENOISE_GATE_HARD_DB: float = -3.0
DENOISE_MIN_GAIN: float = 0.15
DENOISE_MAX_GAIN: float = 1.0
RMS_FLOOR: float = 1e-12

# --- Auto-gain / soft limiter ---
DEFAULT_MAX_GAIN_DB: float = 10.0
AUTO_GAIN_PEAK_TARGET: float = 0.99
# Applied gains at or below this are treated as a pass-through.
AUTO_GAIN_MIN_APPLIED_DB: float = 0.01
LIMITER_KNEE: float = 0.92
LIMITER_STEEPNESS: float = 4.0
