"""WAV container writing and reading.

The writer streams PCM16 samples to disk behind a provisional 44-byte header
and patches the two length fields in place on close. The reader assumes the
canonical 44-byte header and does not validate chunk IDs.
"""

from __future__ import annotations

import contextlib
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from speechprep._audio_constants import (
    PCM_INT16_SCALE,
    WAV_FMT_CHUNK_SIZE,
    WAV_FORMAT_PCM,
    WAV_HEADER_SIZE,
    WAV_RIFF_OVERHEAD,
)
from speechprep.exceptions import IOFailureError, TruncatedFileError
from speechprep.logging import get_logger
from speechprep.preprocessing.normalize import float32_to_pcm16

if TYPE_CHECKING:
    import os
    from types import TracebackType

logger = get_logger("preprocessing.wav")

# RIFF size, fmt chunk (format, channels, rate, byte rate, block align, bits), data size.
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")

# Samples converted per write when streaming a float buffer to disk.
_WRITE_BLOCK_SAMPLES = 65536


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Canonical 44-byte PCM WAV header."""

    sample_rate: int
    channels: int = 1
    bits_per_sample: int = 16
    data_size: int = 0
    audio_format: int = WAV_FORMAT_PCM

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align

    @property
    def chunk_size(self) -> int:
        return WAV_RIFF_OVERHEAD + self.data_size

    def pack(self) -> bytes:
        """Serialize to exactly 44 little-endian bytes."""
        return _HEADER_STRUCT.pack(
            b"RIFF",
            self.chunk_size,
            b"WAVE",
            b"fmt ",
            WAV_FMT_CHUNK_SIZE,
            self.audio_format,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
            b"data",
            self.data_size,
        )

    @classmethod
    def unpack(cls, data: bytes) -> WavHeader:
        """Parse the first 44 bytes of *data* (chunk IDs are not checked)."""
        (
            _riff,
            _chunk_size,
            _wave,
            _fmt,
            _fmt_size,
            audio_format,
            channels,
            sample_rate,
            _byte_rate,
            _block_align,
            bits_per_sample,
            _data,
            data_size,
        ) = _HEADER_STRUCT.unpack_from(data)
        return cls(
            sample_rate=sample_rate,
            channels=channels,
            bits_per_sample=bits_per_sample,
            data_size=data_size,
            audio_format=audio_format,
        )


class WavWriter:
    """Streaming PCM16 WAV writer.

    Opens *path* immediately and writes a provisional header with a zero
    ``dataSize``. ``close()`` seeks back to offset 0 and rewrites the header
    with the final sizes. Use as a context manager so the handle is released
    on every exit path. When the block exits with an exception the writer is
    aborted instead: the handle is closed and the header keeps its zero
    ``dataSize``, so a failed write never looks like a complete file.

    Args:
        path: Output file path (created or truncated).
        sample_rate: Sample rate in Hz.
        channels: Channel count recorded in the header.
        bits_per_sample: Bit depth recorded in the header.

    Raises:
        IOFailureError: If the file cannot be opened or the header written.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        sample_rate: int,
        channels: int = 1,
        bits_per_sample: int = 16,
    ) -> None:
        self._path = Path(path)
        self._sample_rate = sample_rate
        self._channels = channels
        self._bits_per_sample = bits_per_sample
        self._data_size = 0
        self._closed = False

        try:
            self._file = self._path.open("wb")
        except OSError as exc:
            raise IOFailureError(str(self._path), "open", str(exc)) from exc

        try:
            self._file.write(self._header().pack())
        except OSError as exc:
            self._file.close()
            self._closed = True
            with contextlib.suppress(FileNotFoundError):
                self._path.unlink()
            raise IOFailureError(str(self._path), "write", str(exc)) from exc

    def __enter__(self) -> WavWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
            return
        self.close()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def data_size(self) -> int:
        """Bytes of sample data written so far."""
        return self._data_size

    @property
    def closed(self) -> bool:
        return self._closed

    def _header(self) -> WavHeader:
        return WavHeader(
            sample_rate=self._sample_rate,
            channels=self._channels,
            bits_per_sample=self._bits_per_sample,
            data_size=self._data_size,
        )

    def write_samples(self, samples: np.ndarray) -> None:
        """Append int16 samples in little-endian order.

        Raises:
            IOFailureError: If the write fails or the writer is closed.
        """
        if self._closed:
            raise IOFailureError(str(self._path), "write", "writer is closed")

        payload = np.asarray(samples, dtype="<i2").tobytes()
        try:
            self._file.write(payload)
        except OSError as exc:
            raise IOFailureError(str(self._path), "write", str(exc)) from exc
        self._data_size += len(payload)

    def abort(self) -> None:
        """Release the file handle without patching the header.

        Idempotent. The file is left on disk with a zero ``dataSize``; callers
        that own the path delete it.
        """
        if self._closed:
            return
        self._closed = True
        self._file.close()

    def close(self) -> WavHeader:
        """Patch the header with the final sizes and release the file handle.

        Idempotent. The handle is released even when patching fails.

        Returns:
            The header as written at close time.

        Raises:
            IOFailureError: If the header cannot be rewritten.
        """
        header = self._header()
        if self._closed:
            return header

        self._closed = True
        try:
            self._file.seek(0)
            self._file.write(header.pack())
        except OSError as exc:
            raise IOFailureError(str(self._path), "finalize", str(exc)) from exc
        finally:
            self._file.close()
        return header


def read_wav_header(path: str | os.PathLike[str]) -> WavHeader:
    """Parse the canonical 44-byte header of a WAV file.

    Raises:
        IOFailureError: If the file cannot be read.
        TruncatedFileError: If the file is shorter than 44 bytes.
    """
    try:
        with Path(path).open("rb") as f:
            raw = f.read(WAV_HEADER_SIZE)
    except OSError as exc:
        raise IOFailureError(str(path), "read", str(exc)) from exc

    if len(raw) < WAV_HEADER_SIZE:
        raise TruncatedFileError(str(path), len(raw))
    return WavHeader.unpack(raw)


def decode_wav_file(path: str | os.PathLike[str]) -> np.ndarray:
    """Load a PCM16 WAV file into normalized float32 samples.

    Reads the whole file, skips the fixed 44-byte header, and scales each
    little-endian int16 sample by 1/32768.

    Raises:
        IOFailureError: If the file cannot be read.
        TruncatedFileError: If the file is shorter than its header or the
            payload is not a whole number of 16-bit samples.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise IOFailureError(str(path), "read", str(exc)) from exc

    payload_size = len(raw) - WAV_HEADER_SIZE
    if payload_size < 0 or payload_size % 2 != 0:
        raise TruncatedFileError(str(path), len(raw))
    if payload_size == 0:
        return np.array([], dtype=np.float32)

    audio = np.frombuffer(raw, dtype="<i2", offset=WAV_HEADER_SIZE).astype(np.float32)
    audio /= PCM_INT16_SCALE

    logger.debug("wav_decoded", path=str(path), samples=len(audio))
    return audio


def write_wav_file(
    path: str | os.PathLike[str],
    audio: np.ndarray,
    sample_rate: int,
) -> WavHeader:
    """Write a float32 mono buffer as a PCM16 WAV file.

    Samples are clamped to [-1, 1] and converted block by block. If any write
    fails the partial file is deleted before the error propagates.

    Returns:
        The final header.

    Raises:
        IOFailureError: If the file cannot be created or written.
    """
    writer = WavWriter(path, sample_rate=sample_rate)
    try:
        for start in range(0, len(audio), _WRITE_BLOCK_SAMPLES):
            block = audio[start : start + _WRITE_BLOCK_SAMPLES]
            writer.write_samples(float32_to_pcm16(block))
        return writer.close()
    except BaseException:
        writer.abort()
        with contextlib.suppress(FileNotFoundError):
            writer.path.unlink()
        raise
