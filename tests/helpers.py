"""Shared test helpers: signal generators and scripted decode fakes.

Usage:
    from tests.helpers import (
        FakeMediaSource,
        ScriptedDecoder,
        interleave,
        pcm16_bytes,
        sine_wave,
    )
"""

from __future__ import annotations

from collections import deque

import numpy as np

from speechprep._types import (
    CompressedSample,
    DecodedChunk,
    PollResult,
    PollStatus,
    SampleEncoding,
    TrackFormat,
)
from speechprep.decode.interface import AudioDecoder, MediaSource


def sine_wave(
    freq: float,
    duration: float,
    sample_rate: int,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Generate a float32 sine wave."""
    t = np.arange(int(round(sample_rate * duration)), dtype=np.float64) / sample_rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def interleave(*channels: np.ndarray) -> np.ndarray:
    """Interleave equal-length mono channels (L0 R0 L1 R1 ...)."""
    return np.stack(channels, axis=1).reshape(-1).astype(np.float32)


def pcm16_bytes(audio: np.ndarray) -> bytes:
    """Float samples in [-1, 1) to little-endian int16 bytes (scale 32768)."""
    scaled = np.clip(np.round(audio * 32768.0), -32768, 32767)
    return scaled.astype("<i2").tobytes()


class FakeMediaSource(MediaSource):
    """In-memory media source that yields pre-built samples for one audio track."""

    def __init__(
        self,
        samples: list[bytes],
        tracks: list[TrackFormat] | None = None,
        name: str = "fake://source",
    ) -> None:
        self._samples = deque(samples)
        self._tracks = tracks or [TrackFormat("audio/raw", sample_rate=16000, channels=1)]
        self._name = name
        self.selected: int | None = None
        self.released = False
        self.read_count = 0

    @property
    def name(self) -> str:
        return self._name

    def tracks(self) -> list[TrackFormat]:
        return list(self._tracks)

    def select_track(self, index: int) -> None:
        self.selected = index

    def read_sample(self) -> CompressedSample | None:
        if not self._samples:
            return None
        data = self._samples.popleft()
        self.read_count += 1
        return CompressedSample(data=data, timestamp_us=self.read_count * 1000)

    def release(self) -> None:
        self.released = True


class ScriptedDecoder(AudioDecoder):
    """Pass-through decoder that answers ``WOULD_BLOCK`` on a fixed cadence.

    Every ``block_every``-th call to ``queue_input`` and ``dequeue_output``
    returns ``WOULD_BLOCK`` without doing anything, to exercise retry paths.
    ``eos_as_status`` ends the output with an ``END_OF_STREAM`` poll instead
    of a flagged chunk.
    """

    def __init__(
        self,
        encoding: SampleEncoding = SampleEncoding.PCM16,
        block_every: int = 0,
        eos_as_status: bool = False,
        fail_on_output: Exception | None = None,
        fail_on_release: Exception | None = None,
    ) -> None:
        self._encoding = encoding
        self._block_every = block_every
        self._eos_as_status = eos_as_status
        self._fail_on_output = fail_on_output
        self._fail_on_release = fail_on_release
        self._pending: deque[DecodedChunk] = deque()
        self._calls = 0
        self.configured: TrackFormat | None = None
        self.started = False
        self.released = False
        self.would_block_count = 0

    def _should_block(self) -> bool:
        self._calls += 1
        if self._block_every and self._calls % self._block_every == 0:
            self.would_block_count += 1
            return True
        return False

    def configure(self, track: TrackFormat) -> None:
        self.configured = track

    def start(self) -> None:
        self.started = True

    def queue_input(
        self,
        data: bytes,
        timestamp_us: int,
        end_of_stream: bool,
        timeout_s: float,
    ) -> PollStatus:
        if self._should_block():
            return PollStatus.WOULD_BLOCK
        self._pending.append(
            DecodedChunk(data=data, encoding=self._encoding, end_of_stream=end_of_stream)
        )
        return PollStatus.READY

    def dequeue_output(self, timeout_s: float) -> PollResult:
        if self._fail_on_output is not None:
            raise self._fail_on_output
        if self._should_block() or not self._pending:
            return PollResult.would_block()
        chunk = self._pending.popleft()
        if chunk.end_of_stream and self._eos_as_status:
            return PollResult.end_of_stream()
        return PollResult.ready(chunk)

    def release(self) -> None:
        self.released = True
        if self._fail_on_release is not None:
            raise self._fail_on_release
