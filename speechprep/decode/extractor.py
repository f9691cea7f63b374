"""AudioExtractor — drives a media source and decoder into a mono PCM16 WAV.

Flow per run:
1. SELECTING_TRACK: pick the first track whose MIME type starts with ``audio/``.
2. DECODING: each poll feeds one compressed sample to the decoder, then
   drains at most one output buffer through normalize -> mixdown ->
   resample -> WavWriter.
3. DRAINING: input end-of-stream has been queued; keep draining.
4. FINISHED: the decoder reported output end-of-stream and the WAV header
   has been patched.

``WouldBlock`` from either side is retried on the next poll. Any error moves
the run to FAILED. Decoder and source are released on every exit path, and
a partially written WAV is deleted before the error propagates.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from speechprep._audio_constants import (
    DEFAULT_POLL_TIMEOUT_S,
    PROGRESS_LOG_INTERVAL_S,
    STT_SAMPLE_RATE,
)
from speechprep._types import DecodeState, ExtractionResult, PollStatus
from speechprep.config.preprocessing import validate_target_sample_rate
from speechprep.decode.state_machine import DecodeStateMachine
from speechprep.exceptions import (
    ExtractionCancelledError,
    NoAudioTrackError,
    UnsupportedChannelLayoutError,
)
from speechprep.logging import get_logger
from speechprep.preprocessing.normalize import float32_to_pcm16, normalize_chunk
from speechprep.preprocessing.resample import linear_resample
from speechprep.preprocessing.wav import WavWriter

if TYPE_CHECKING:
    import os
    import threading
    from collections.abc import Callable

    from speechprep._types import CompressedSample, TrackFormat
    from speechprep.decode.interface import AudioDecoder, MediaSource

logger = get_logger("decode.extractor")


@dataclass(slots=True)
class _DecodeSession:
    """Transient state for one extraction run."""

    source: MediaSource
    target_sample_rate: int
    track_index: int = -1
    source_sample_rate: int = 0
    source_channels: int = 0
    decoder: AudioDecoder | None = None
    pending: CompressedSample | None = None
    source_exhausted: bool = False
    input_eos: bool = False
    output_eos: bool = False
    samples_written: int = 0
    next_progress_at: int = 0


def select_audio_track(source: MediaSource) -> tuple[int, TrackFormat]:
    """Return index and format of the first audio track.

    Raises:
        NoAudioTrackError: If no track's MIME type starts with ``audio/``.
    """
    tracks = source.tracks()
    for index, track in enumerate(tracks):
        if track.is_audio:
            return index, track
    raise NoAudioTrackError(source.name, [t.mime_type for t in tracks])


class AudioExtractor:
    """Extracts the audio track of a media source into a mono PCM16 WAV.

    One extractor may serve many runs, sequentially or from several threads:
    every ``extract()`` call owns its own decoder session and buffers.

    Args:
        decoder_factory: Creates a decoder for the selected track's format.
        poll_timeout_s: Timeout handed to each decoder poll (default: 10ms).
    """

    def __init__(
        self,
        decoder_factory: Callable[[TrackFormat], AudioDecoder],
        poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
    ) -> None:
        self._decoder_factory = decoder_factory
        self._poll_timeout_s = poll_timeout_s

    def extract(
        self,
        source: MediaSource,
        output_path: str | os.PathLike[str],
        target_sample_rate: int = STT_SAMPLE_RATE,
        cancel_event: threading.Event | None = None,
    ) -> ExtractionResult:
        """Decode *source* into a 16-bit mono WAV at *target_sample_rate*.

        Args:
            source: Media source to read from. Always released before returning.
            output_path: WAV file to create (overwritten if present).
            target_sample_rate: Output sample rate; must be an allowed rate.
            cancel_event: Checked between polls; when set, the run is cancelled.

        Returns:
            ExtractionResult describing the written file.

        Raises:
            UnsupportedSampleRateError: If *target_sample_rate* is not allowed
                (checked before any track is read).
            NoAudioTrackError: If the source has no audio track.
            UnsupportedSampleEncodingError: If the decoder emits an unknown encoding.
            UnsupportedChannelLayoutError: If the track reports fewer than 1 channel.
            ExtractionCancelledError: If *cancel_event* was set.
            IOFailureError: If the WAV cannot be written.
        """
        path = Path(output_path)
        machine = DecodeStateMachine()
        session = _DecodeSession(source=source, target_sample_rate=target_sample_rate)
        file_created = False

        logger.info(
            "extraction_started",
            source=source.name,
            output=str(path),
            target_sample_rate=target_sample_rate,
        )

        try:
            validate_target_sample_rate(target_sample_rate)
            self._start_session(session)
            machine.transition(DecodeState.DECODING)

            with WavWriter(path, sample_rate=target_sample_rate) as writer:
                file_created = True
                while not session.output_eos:
                    if cancel_event is not None and cancel_event.is_set():
                        raise ExtractionCancelledError(source.name)
                    if not session.input_eos:
                        self._feed_input(session, machine)
                    self._drain_output(session, writer)

            machine.transition(DecodeState.FINISHED)
        except BaseException as exc:
            machine.fail()
            logger.error(
                "extraction_failed",
                source=source.name,
                error=str(exc),
                error_type=type(exc).__name__,
                samples_written=session.samples_written,
            )
            if file_created:
                with contextlib.suppress(FileNotFoundError):
                    path.unlink()
            raise
        finally:
            self._release(session)

        logger.info(
            "extraction_finished",
            source=source.name,
            output=str(path),
            samples_written=session.samples_written,
            duration_s=round(session.samples_written / target_sample_rate, 3),
        )
        return ExtractionResult(
            path=path,
            sample_rate=target_sample_rate,
            samples_written=session.samples_written,
            source_sample_rate=session.source_sample_rate,
            source_channels=session.source_channels,
        )

    def _start_session(self, session: _DecodeSession) -> None:
        """SELECTING_TRACK: select the audio track, create and start the decoder."""
        track_index, track = select_audio_track(session.source)
        if track.channels < 1:
            raise UnsupportedChannelLayoutError(track.channels, f"track {track_index}")

        session.source.select_track(track_index)
        session.track_index = track_index
        session.source_sample_rate = track.sample_rate
        session.source_channels = track.channels
        logger.debug(
            "track_selected",
            track_index=track_index,
            mime_type=track.mime_type,
            sample_rate=track.sample_rate,
            channels=track.channels,
        )

        session.decoder = self._decoder_factory(track)
        session.decoder.configure(track)
        session.decoder.start()
        logger.debug("decoder_started", decoder=type(session.decoder).__name__)

    def _feed_input(self, session: _DecodeSession, machine: DecodeStateMachine) -> None:
        """Queue the next compressed sample, or end-of-stream once the source is dry."""
        decoder = session.decoder
        assert decoder is not None

        sample = session.pending
        if sample is None and not session.source_exhausted:
            sample = session.source.read_sample()
            session.source_exhausted = sample is None

        if sample is None:
            status = decoder.queue_input(b"", 0, True, self._poll_timeout_s)
            if status is PollStatus.READY:
                session.input_eos = True
                machine.transition(DecodeState.DRAINING)
                logger.debug("input_end_of_stream_queued")
            return

        status = decoder.queue_input(sample.data, sample.timestamp_us, False, self._poll_timeout_s)
        session.pending = None if status is PollStatus.READY else sample

    def _drain_output(self, session: _DecodeSession, writer: WavWriter) -> None:
        """Pull at most one decoded buffer and append it to the WAV."""
        decoder = session.decoder
        assert decoder is not None

        result = decoder.dequeue_output(self._poll_timeout_s)
        if result.status is PollStatus.WOULD_BLOCK:
            return
        if result.status is PollStatus.END_OF_STREAM:
            session.output_eos = True
            logger.debug("output_end_of_stream")
            return

        chunk = result.chunk
        if chunk is None:
            return

        if chunk.data:
            mono = normalize_chunk(chunk.data, chunk.encoding, session.source_channels)
            resampled = linear_resample(
                mono, session.source_sample_rate, session.target_sample_rate
            )
            writer.write_samples(float32_to_pcm16(resampled))
            session.samples_written += int(resampled.size)
            self._log_progress(session)

        if chunk.end_of_stream:
            session.output_eos = True
            logger.debug("output_end_of_stream")

    @staticmethod
    def _log_progress(session: _DecodeSession) -> None:
        interval = PROGRESS_LOG_INTERVAL_S * session.target_sample_rate
        if session.samples_written >= session.next_progress_at + interval:
            session.next_progress_at = session.samples_written
            logger.debug("samples_written", samples=session.samples_written)

    @staticmethod
    def _release(session: _DecodeSession) -> None:
        """Release decoder and source; release errors are logged, never raised."""
        if session.decoder is not None:
            try:
                session.decoder.release()
            except Exception:
                logger.warning("decoder_release_failed", source=session.source.name, exc_info=True)
        try:
            session.source.release()
        except Exception:
            logger.warning("source_release_failed", source=session.source.name, exc_info=True)
