"""libsndfile-backed media source and pass-through decoder.

``SoundFileSource`` exposes any container libsndfile can open (WAV, FLAC,
OGG/Vorbis, AIFF, ...) as a single-track MediaSource whose "compressed"
samples are fixed-duration blocks of interleaved float32 frames.
``PcmPassthroughDecoder`` hands those blocks back as FLOAT32 output through a
bounded queue, so the extractor loop runs unchanged against real files.
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import soundfile as sf

from speechprep._audio_constants import DEFAULT_READ_BLOCK_MS
from speechprep._types import (
    CompressedSample,
    DecodedChunk,
    PollResult,
    PollStatus,
    SampleEncoding,
    TrackFormat,
)
from speechprep.decode.interface import AudioDecoder, MediaSource
from speechprep.exceptions import DecodeError, IOFailureError
from speechprep.logging import get_logger

if TYPE_CHECKING:
    import os

logger = get_logger("decode.soundfile")

_US_PER_SECOND = 1_000_000


class SoundFileSource(MediaSource):
    """Single-track media source backed by ``soundfile.SoundFile``.

    Args:
        path: Audio file to open.
        block_ms: Duration of each sample block handed to the decoder.

    Raises:
        IOFailureError: If libsndfile cannot open the file.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        block_ms: int = DEFAULT_READ_BLOCK_MS,
    ) -> None:
        self._path = Path(path)
        try:
            self._file = sf.SoundFile(str(self._path))
        except (sf.LibsndfileError, RuntimeError, OSError) as exc:
            raise IOFailureError(str(self._path), "open", str(exc)) from exc

        self._block_frames = max(1, self._file.samplerate * block_ms // 1000)
        self._frames_read = 0
        self._selected: int | None = None
        self._released = False

    @property
    def name(self) -> str:
        return str(self._path)

    def tracks(self) -> list[TrackFormat]:
        return [
            TrackFormat(
                mime_type=f"audio/{self._file.format.lower()}",
                sample_rate=self._file.samplerate,
                channels=self._file.channels,
            )
        ]

    def select_track(self, index: int) -> None:
        if index != 0:
            msg = f"{self.name} has a single track; cannot select track {index}"
            raise DecodeError(msg)
        self._selected = index

    def read_sample(self) -> CompressedSample | None:
        if self._selected is None:
            msg = f"No track selected on {self.name}"
            raise DecodeError(msg)
        if self._released:
            return None

        frames = self._file.read(self._block_frames, dtype="float32", always_2d=True)
        if len(frames) == 0:
            return None

        timestamp_us = self._frames_read * _US_PER_SECOND // self._file.samplerate
        self._frames_read += len(frames)
        # C-order rows are already interleaved: L0 R0 L1 R1 ...
        data = np.ascontiguousarray(frames, dtype="<f4").tobytes()
        return CompressedSample(data=data, timestamp_us=timestamp_us)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._file.close()
        logger.debug("source_released", source=self.name, frames_read=self._frames_read)


class PcmPassthroughDecoder(AudioDecoder):
    """Decoder for samples that are already raw PCM.

    Queued input is returned unchanged, tagged with *encoding*. The input
    queue holds at most *max_pending* buffers; beyond that ``queue_input``
    reports ``WOULD_BLOCK`` until output is drained.

    Args:
        encoding: Encoding of the queued bytes.
        max_pending: Input queue capacity in buffers.
    """

    def __init__(
        self,
        encoding: SampleEncoding = SampleEncoding.FLOAT32,
        max_pending: int = 4,
    ) -> None:
        self._encoding = encoding
        self._max_pending = max_pending
        self._queue: deque[DecodedChunk] = deque()
        self._track: TrackFormat | None = None
        self._started = False
        self._eos_delivered = False

    def configure(self, track: TrackFormat) -> None:
        self._track = track

    def start(self) -> None:
        if self._track is None:
            msg = "Decoder must be configured before start()"
            raise DecodeError(msg)
        self._started = True

    def queue_input(
        self,
        data: bytes,
        timestamp_us: int,
        end_of_stream: bool,
        timeout_s: float,
    ) -> PollStatus:
        if not self._started:
            msg = "Decoder is not started"
            raise DecodeError(msg)
        if len(self._queue) >= self._max_pending:
            return PollStatus.WOULD_BLOCK
        self._queue.append(
            DecodedChunk(data=data, encoding=self._encoding, end_of_stream=end_of_stream)
        )
        return PollStatus.READY

    def dequeue_output(self, timeout_s: float) -> PollResult:
        if self._eos_delivered:
            return PollResult.end_of_stream()
        if not self._queue:
            return PollResult.would_block()

        chunk = self._queue.popleft()
        if chunk.end_of_stream:
            self._eos_delivered = True
        return PollResult.ready(chunk)

    def release(self) -> None:
        self._queue.clear()
        self._started = False


def passthrough_decoder_factory(track: TrackFormat) -> AudioDecoder:
    """Decoder factory for ``SoundFileSource`` tracks."""
    return PcmPassthroughDecoder(encoding=SampleEncoding.FLOAT32)
