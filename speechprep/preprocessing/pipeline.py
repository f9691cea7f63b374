"""Cleanup pipeline.

Runs whole-buffer stages in sequence over a decoded WAV.
Each stage is toggleable via PreprocessingConfig.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from speechprep.logging import get_logger
from speechprep.preprocessing.denoise import DenoiseStage
from speechprep.preprocessing.gain import AutoGainStage
from speechprep.preprocessing.resample import ResampleStage
from speechprep.preprocessing.wav import decode_wav_file, read_wav_header, write_wav_file

if TYPE_CHECKING:
    import os

    import numpy as np

    from speechprep.config.preprocessing import PreprocessingConfig
    from speechprep.preprocessing.stages import AudioStage
    from speechprep.preprocessing.wav import WavHeader

logger = get_logger("preprocessing.pipeline")


def build_stages(config: PreprocessingConfig) -> list[AudioStage]:
    """Default stage list for *config*: resample, then denoise, then auto-gain."""
    stages: list[AudioStage] = [ResampleStage(target_sample_rate=config.target_sample_rate)]
    if config.denoise:
        stages.append(DenoiseStage())
    if config.enable_auto_gain:
        stages.append(AutoGainStage(max_gain_db=config.max_gain_db))
    return stages


class CleanupPipeline:
    """Whole-buffer cleanup pipeline.

    Receives a float32 mono buffer (or a PCM16 WAV path), applies the stages
    in sequence, and returns the cleaned buffer (or writes a PCM16 WAV).

    Args:
        config: Pipeline configuration (enabled stages, parameters).
        stages: Stages to execute. If None, built from *config*.
    """

    def __init__(
        self,
        config: PreprocessingConfig,
        stages: list[AudioStage] | None = None,
    ) -> None:
        self._config = config
        self._stages = stages if stages is not None else build_stages(config)

    @property
    def config(self) -> PreprocessingConfig:
        """Pipeline configuration."""
        return self._config

    @property
    def stages(self) -> list[AudioStage]:
        """List of pipeline stages."""
        return list(self._stages)

    @property
    def applied_gain_db(self) -> float:
        """Gain applied by the auto-gain stage on the last run (0.0 if absent)."""
        for stage in self._stages:
            if isinstance(stage, AutoGainStage):
                return stage.last_applied_db
        return 0.0

    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        """Process a buffer through all pipeline stages.

        Args:
            audio: Float32 mono samples.
            sample_rate: Sample rate of *audio* in Hz.

        Returns:
            Tuple (cleaned float32 audio, output sample rate).
        """
        for stage in self._stages:
            logger.debug("stage_start", stage=stage.name, sample_rate=sample_rate)
            audio, sample_rate = stage.process(audio, sample_rate)
            logger.debug(
                "stage_complete",
                stage=stage.name,
                sample_rate=sample_rate,
                samples=len(audio),
            )
        return audio, sample_rate

    def process_file(
        self,
        input_path: str | os.PathLike[str],
        output_path: str | os.PathLike[str],
    ) -> WavHeader:
        """Clean a PCM16 WAV file into a new PCM16 WAV file.

        Raises:
            IOFailureError: If either file cannot be read or written.
            TruncatedFileError: If the input payload is malformed.
        """
        sample_rate = read_wav_header(input_path).sample_rate
        audio = decode_wav_file(input_path)
        cleaned, out_rate = self.process(audio, sample_rate)
        header = write_wav_file(output_path, cleaned, out_rate)
        logger.info(
            "cleanup_complete",
            input=str(input_path),
            output=str(output_path),
            samples=len(cleaned),
            sample_rate=out_rate,
            applied_gain_db=round(self.applied_gain_db, 2),
        )
        return header
