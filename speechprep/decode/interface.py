"""Abstract interfaces for media sources and audio decoders.

A platform demuxer implements MediaSource, a platform (hardware or software)
codec implements AudioDecoder. The extractor drives both through these
contracts only, so any backend can be substituted without touching the loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from speechprep._types import CompressedSample, PollResult, PollStatus, TrackFormat


class MediaSource(ABC):
    """Contract for a demuxed media source.

    Exposes track enumeration and sequential reads of compressed samples
    from the selected track.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable identifier used in logs and errors."""
        ...

    @abstractmethod
    def tracks(self) -> list[TrackFormat]:
        """Metadata for every track, in container order."""
        ...

    @abstractmethod
    def select_track(self, index: int) -> None:
        """Select the track that subsequent ``read_sample()`` calls read from."""
        ...

    @abstractmethod
    def read_sample(self) -> CompressedSample | None:
        """Read the next compressed sample and advance.

        Returns:
            The sample, or None once the track is exhausted (and on every
            call after that).
        """
        ...

    @abstractmethod
    def release(self) -> None:
        """Release native handles. Must be idempotent."""
        ...


class AudioDecoder(ABC):
    """Contract for an opaque compressed-in / raw-out audio decoder.

    Both queue operations accept a per-poll timeout and may report
    ``WOULD_BLOCK``; that is a normal outcome, not an error.
    """

    @abstractmethod
    def configure(self, track: TrackFormat) -> None:
        """Configure the decoder for the selected track's format."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Start decoding. Called once, after ``configure()``."""
        ...

    @abstractmethod
    def queue_input(
        self,
        data: bytes,
        timestamp_us: int,
        end_of_stream: bool,
        timeout_s: float,
    ) -> PollStatus:
        """Submit one compressed sample (or the end-of-stream marker).

        Returns:
            ``PollStatus.READY`` if accepted, ``PollStatus.WOULD_BLOCK`` if the
            input queue is full; the caller resubmits the same sample later.
        """
        ...

    @abstractmethod
    def dequeue_output(self, timeout_s: float) -> PollResult:
        """Poll for one decoded output buffer.

        Returns:
            ``Ready(chunk)`` with raw samples (``chunk.end_of_stream`` marks the
            last buffer), ``WouldBlock`` if nothing is ready yet, or
            ``EndOfStream`` once all output has been delivered.
        """
        ...

    @abstractmethod
    def release(self) -> None:
        """Release native handles. Must be idempotent."""
        ...
