"""Sample format normalization and channel mixdown.

Converts decoder-native sample encodings (16-bit signed integer, 32-bit float,
both little-endian) into canonical float32 buffers, and mixes interleaved
multi-channel audio down to mono by averaging.
"""

from __future__ import annotations

import numpy as np

from speechprep._audio_constants import (
    BYTES_PER_SAMPLE_FLOAT32,
    BYTES_PER_SAMPLE_INT16,
    PCM_INT16_SCALE,
    PCM_INT16_WRITE_SCALE,
)
from speechprep._types import SampleEncoding
from speechprep.exceptions import UnsupportedChannelLayoutError, UnsupportedSampleEncodingError

__all__ = [
    "float32_to_pcm16",
    "mix_to_mono",
    "normalize_chunk",
    "pcm_bytes_to_float32",
]

_SAMPLE_WIDTH: dict[SampleEncoding, int] = {
    SampleEncoding.PCM16: BYTES_PER_SAMPLE_INT16,
    SampleEncoding.FLOAT32: BYTES_PER_SAMPLE_FLOAT32,
}


def _coerce_encoding(encoding: SampleEncoding | str) -> SampleEncoding:
    if isinstance(encoding, SampleEncoding):
        return encoding
    try:
        return SampleEncoding(encoding)
    except ValueError:
        raise UnsupportedSampleEncodingError(encoding) from None


def pcm_bytes_to_float32(data: bytes, encoding: SampleEncoding | str) -> np.ndarray:
    """Convert raw little-endian sample bytes to a float32 array.

    PCM16 samples are scaled by 1/32768, which already keeps every value in
    [-1.0, ~0.99997]. FLOAT32 samples are reinterpreted without scaling.

    Args:
        data: Raw sample bytes (interleaved if multi-channel).
        encoding: Sample encoding of *data*.

    Returns:
        Float32 array, one value per interleaved sample.

    Raises:
        UnsupportedSampleEncodingError: If the encoding is unknown or *data* is
            not a whole number of samples.
    """
    resolved = _coerce_encoding(encoding)
    width = _SAMPLE_WIDTH[resolved]
    if len(data) % width != 0:
        raise UnsupportedSampleEncodingError(
            resolved.value, f"chunk of {len(data)} bytes is not a multiple of {width}"
        )

    if resolved is SampleEncoding.PCM16:
        audio = np.frombuffer(data, dtype="<i2").astype(np.float32)
        audio /= PCM_INT16_SCALE
        return audio

    return np.frombuffer(data, dtype="<f4").astype(np.float32)


def mix_to_mono(audio: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved channels into a mono buffer.

    A trailing partial frame (fewer than *channels* samples) is dropped.

    Raises:
        UnsupportedChannelLayoutError: If *channels* < 1.
    """
    if channels < 1:
        raise UnsupportedChannelLayoutError(channels, "at least one channel is required")
    if channels == 1:
        return audio

    n_frames = audio.size // channels
    frames = audio[: n_frames * channels].reshape(n_frames, channels)
    return frames.mean(axis=1, dtype=np.float64).astype(np.float32)


def normalize_chunk(data: bytes, encoding: SampleEncoding | str, channels: int) -> np.ndarray:
    """Decode a raw decoder chunk into a float32 mono buffer."""
    if channels < 1:
        raise UnsupportedChannelLayoutError(channels, "at least one channel is required")
    return mix_to_mono(pcm_bytes_to_float32(data, encoding), channels)


def float32_to_pcm16(audio: np.ndarray) -> np.ndarray:
    """Convert float32 samples to int16, clamping to [-1, 1] first.

    Values are scaled by 32767 and truncated toward zero.
    """
    clamped = np.clip(audio, -1.0, 1.0)
    return (clamped * PCM_INT16_WRITE_SCALE).astype(np.int16)
