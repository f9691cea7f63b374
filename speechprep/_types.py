"""Core types for speechprep.

Enums and dataclasses shared by the decode loop, the preprocessing stages,
and the capture pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class SampleEncoding(Enum):
    """Raw sample encoding produced by a decoder (little-endian)."""

    PCM16 = "pcm16"
    FLOAT32 = "float32"


class DecodeState(Enum):
    """State of one extraction run.

    Valid transitions:
        SELECTING_TRACK -> DECODING (audio track found, decoder started)
        DECODING -> DRAINING (input end-of-stream queued)
        DECODING -> FINISHED (decoder signalled output end-of-stream early)
        DRAINING -> FINISHED (decoder signalled output end-of-stream)
        Any non-terminal -> FAILED (error or cancellation)
    """

    SELECTING_TRACK = "selecting_track"
    DECODING = "decoding"
    DRAINING = "draining"
    FINISHED = "finished"
    FAILED = "failed"


class PollStatus(Enum):
    """Outcome of one poll against the decoder.

    WOULD_BLOCK is expected and frequent; the caller retries on the next poll.
    """

    READY = "ready"
    WOULD_BLOCK = "would_block"
    END_OF_STREAM = "end_of_stream"


@dataclass(frozen=True, slots=True)
class TrackFormat:
    """Per-track metadata exposed by a media source."""

    mime_type: str
    sample_rate: int = 0
    channels: int = 0

    @property
    def is_audio(self) -> bool:
        """True when the declared MIME type begins with ``audio/``."""
        return self.mime_type.startswith("audio/")


@dataclass(frozen=True, slots=True)
class CompressedSample:
    """One compressed access unit read from the selected track."""

    data: bytes
    timestamp_us: int


@dataclass(frozen=True, slots=True)
class DecodedChunk:
    """One raw output buffer handed back by a decoder."""

    data: bytes
    encoding: SampleEncoding = SampleEncoding.PCM16
    end_of_stream: bool = False


@dataclass(frozen=True, slots=True)
class PollResult:
    """Tri-state poll result: ``Ready(chunk)``, ``WouldBlock`` or ``EndOfStream``."""

    status: PollStatus
    chunk: DecodedChunk | None = None

    @classmethod
    def ready(cls, chunk: DecodedChunk | None = None) -> PollResult:
        return cls(PollStatus.READY, chunk)

    @classmethod
    def would_block(cls) -> PollResult:
        return cls(PollStatus.WOULD_BLOCK)

    @classmethod
    def end_of_stream(cls) -> PollResult:
        return cls(PollStatus.END_OF_STREAM)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Outcome of a completed extraction run."""

    path: Path
    sample_rate: int
    samples_written: int
    source_sample_rate: int
    source_channels: int

    @property
    def data_size(self) -> int:
        """Byte length of the WAV ``data`` sub-chunk."""
        return self.samples_written * 2

    @property
    def duration_s(self) -> float:
        """Duration of the written audio in seconds."""
        return self.samples_written / self.sample_rate if self.sample_rate else 0.0


@dataclass(frozen=True, slots=True)
class PreparedAudio:
    """Output of the capture pipeline: a cleaned WAV ready for transcription."""

    wav_path: Path
    sample_rate: int
    num_samples: int
    applied_gain_db: float
    text: str | None = None
