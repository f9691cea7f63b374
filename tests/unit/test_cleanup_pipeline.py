"""Tests for the whole-buffer cleanup pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from speechprep.config.preprocessing import PreprocessingConfig
from speechprep.preprocessing.denoise import DenoiseStage
from speechprep.preprocessing.gain import AutoGainStage
from speechprep.preprocessing.pipeline import CleanupPipeline, build_stages
from speechprep.preprocessing.resample import ResampleStage
from speechprep.preprocessing.stages import AudioStage
from speechprep.preprocessing.wav import read_wav_header, write_wav_file
from tests.helpers import sine_wave

if TYPE_CHECKING:
    from pathlib import Path


class _DoubleStage(AudioStage):
    @property
    def name(self) -> str:
        return "double"

    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        return audio * 2, sample_rate


class TestBuildStages:
    def test_default_order(self) -> None:
        stages = build_stages(PreprocessingConfig())
        assert [type(s) for s in stages] == [ResampleStage, DenoiseStage, AutoGainStage]

    def test_toggles(self) -> None:
        stages = build_stages(PreprocessingConfig(denoise=False, enable_auto_gain=False))
        assert [s.name for s in stages] == ["resample"]


class TestCleanupPipeline:
    def test_custom_stages_run_in_order(self) -> None:
        pipeline = CleanupPipeline(PreprocessingConfig(), stages=[_DoubleStage(), _DoubleStage()])

        out, sr = pipeline.process(np.ones(4, dtype=np.float32), 16000)

        assert sr == 16000
        assert np.all(out == 4.0)

    def test_resamples_to_target(self) -> None:
        pipeline = CleanupPipeline(PreprocessingConfig(target_sample_rate=16000))
        audio = sine_wave(440.0, duration=1.0, sample_rate=48000, amplitude=0.3)

        out, sr = pipeline.process(audio, 48000)

        assert sr == 16000
        assert len(out) == 16000

    def test_applied_gain_reported(self) -> None:
        pipeline = CleanupPipeline(PreprocessingConfig(max_gain_db=6.0))
        audio = sine_wave(440.0, duration=1.0, sample_rate=16000, amplitude=0.05)

        pipeline.process(audio, 16000)

        assert pipeline.applied_gain_db == pytest.approx(6.0)

    def test_applied_gain_zero_without_stage(self) -> None:
        pipeline = CleanupPipeline(PreprocessingConfig(enable_auto_gain=False))
        pipeline.process(np.full(1600, 0.01, dtype=np.float32), 16000)
        assert pipeline.applied_gain_db == 0.0

    def test_process_file(self, wav_16khz: Path, tmp_path: Path) -> None:
        # Arrange
        output = tmp_path / "clean.wav"
        pipeline = CleanupPipeline(PreprocessingConfig())

        # Act
        header = pipeline.process_file(wav_16khz, output)

        # Assert
        assert header.sample_rate == 16000
        assert header.data_size == 2 * 16000
        assert read_wav_header(output) == header

    def test_process_file_converts_rate(self, tmp_path: Path) -> None:
        source = tmp_path / "in_8k.wav"
        write_wav_file(source, sine_wave(300.0, duration=0.5, sample_rate=8000), 8000)
        output = tmp_path / "out.wav"

        header = CleanupPipeline(PreprocessingConfig(target_sample_rate=16000)).process_file(
            source, output
        )

        assert header.sample_rate == 16000
        assert header.data_size == 2 * 8000
