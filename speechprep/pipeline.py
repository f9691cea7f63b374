"""SpeechCapturePipeline — media source to transcription-ready WAV.

Pipeline: Extract (decode -> mono -> resample -> raw WAV) -> read back ->
[Denoise] -> [Auto-Gain] -> cleaned PCM16 WAV -> optional TranscriptionEngine.

Intermediate files live in a scratch directory and are deleted when the call
returns, whether it succeeds or fails.
"""

from __future__ import annotations

import contextlib
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from speechprep._types import PreparedAudio
from speechprep.config.preprocessing import PreprocessingConfig
from speechprep.decode.extractor import AudioExtractor
from speechprep.decode.soundfile_source import passthrough_decoder_factory
from speechprep.logging import get_logger
from speechprep.preprocessing.pipeline import CleanupPipeline
from speechprep.preprocessing.wav import decode_wav_file, write_wav_file

if TYPE_CHECKING:
    import os
    import threading
    from collections.abc import Callable, Iterator

    from speechprep._types import TrackFormat
    from speechprep.decode.interface import AudioDecoder, MediaSource

logger = get_logger("pipeline")


class TranscriptionEngine(ABC):
    """Contract for the speech-to-text engine fed by this pipeline.

    The engine receives a 16-bit mono WAV at the configured sample rate and
    returns plain text. It is owned by the caller; the pipeline never loads
    or releases it.
    """

    @abstractmethod
    def transcribe(self, wav_path: Path) -> str:
        """Transcribe a prepared WAV file."""
        ...


class SpeechCapturePipeline:
    """End-to-end preparation of a media source for transcription.

    Args:
        config: Output rate and cleanup toggles. Defaults to ``SPEECHPREP_*`` settings.
        decoder_factory: Decoder for the source's audio track. Defaults to the
            pass-through decoder used with ``SoundFileSource``.
        poll_timeout_s: Per-poll decoder timeout. Defaults to settings.
    """

    def __init__(
        self,
        config: PreprocessingConfig | None = None,
        decoder_factory: Callable[[TrackFormat], AudioDecoder] | None = None,
        poll_timeout_s: float | None = None,
    ) -> None:
        if poll_timeout_s is None:
            from speechprep.config.settings import get_settings

            poll_timeout_s = get_settings().decode.poll_timeout_s

        self._config = config or PreprocessingConfig.from_settings()
        self._extractor = AudioExtractor(
            decoder_factory or passthrough_decoder_factory,
            poll_timeout_s=poll_timeout_s,
        )

    @property
    def config(self) -> PreprocessingConfig:
        return self._config

    def prepare(
        self,
        source: MediaSource,
        output_path: str | os.PathLike[str],
        *,
        work_dir: str | os.PathLike[str] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PreparedAudio:
        """Extract, clean and write *source* as a transcription-ready WAV.

        Args:
            source: Media source; released before returning.
            output_path: Destination of the cleaned WAV.
            work_dir: Directory for the raw intermediate WAV. A temporary
                directory is used when omitted.
            cancel_event: Cooperative cancellation flag for the decode loop.

        Returns:
            PreparedAudio describing the cleaned WAV.
        """
        output = Path(output_path)
        with self._scratch_dir(work_dir) as scratch:
            raw_path = scratch / f"{output.stem}_raw.wav"
            try:
                extraction = self._extractor.extract(
                    source,
                    raw_path,
                    target_sample_rate=self._config.target_sample_rate,
                    cancel_event=cancel_event,
                )
                audio = decode_wav_file(raw_path)
            finally:
                with contextlib.suppress(FileNotFoundError):
                    raw_path.unlink()

            cleanup = CleanupPipeline(self._config)
            cleaned, sample_rate = cleanup.process(audio, extraction.sample_rate)
            write_wav_file(output, cleaned, sample_rate)

        logger.info(
            "audio_prepared",
            source=source.name,
            output=str(output),
            samples=len(cleaned),
            sample_rate=sample_rate,
            applied_gain_db=round(cleanup.applied_gain_db, 2),
        )
        return PreparedAudio(
            wav_path=output,
            sample_rate=sample_rate,
            num_samples=len(cleaned),
            applied_gain_db=cleanup.applied_gain_db,
        )

    def transcribe(
        self,
        source: MediaSource,
        engine: TranscriptionEngine,
        *,
        output_path: str | os.PathLike[str] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PreparedAudio:
        """Prepare *source* and hand the cleaned WAV to *engine*.

        When *output_path* is omitted the cleaned WAV is written to a
        temporary directory and deleted after transcription.

        Returns:
            PreparedAudio with ``text`` set to the engine's result.
        """
        with self._scratch_dir(None) as scratch:
            target = Path(output_path) if output_path is not None else scratch / "prepared.wav"
            prepared = self.prepare(source, target, work_dir=scratch, cancel_event=cancel_event)
            text = engine.transcribe(prepared.wav_path)

        logger.info("transcription_complete", source=source.name, characters=len(text))
        return PreparedAudio(
            wav_path=prepared.wav_path,
            sample_rate=prepared.sample_rate,
            num_samples=prepared.num_samples,
            applied_gain_db=prepared.applied_gain_db,
            text=text,
        )

    @staticmethod
    @contextlib.contextmanager
    def _scratch_dir(work_dir: str | os.PathLike[str] | None) -> Iterator[Path]:
        if work_dir is not None:
            path = Path(work_dir)
            path.mkdir(parents=True, exist_ok=True)
            yield path
            return
        with tempfile.TemporaryDirectory(prefix="speechprep-") as tmp:
            yield Path(tmp)
