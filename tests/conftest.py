"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `speechprep` package
# when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from speechprep.config.settings import get_settings  # noqa: E402
from speechprep.preprocessing.wav import write_wav_file  # noqa: E402
from tests.helpers import sine_wave  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings():
    """Drop the cached settings so env overrides in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def tone_16khz() -> np.ndarray:
    """One second of a 440 Hz tone at 16 kHz, amplitude 0.5."""
    return sine_wave(440.0, duration=1.0, sample_rate=16000, amplitude=0.5)


@pytest.fixture
def wav_16khz(tmp_path: Path, tone_16khz: np.ndarray) -> Path:
    """PCM16 mono WAV at 16 kHz holding ``tone_16khz``."""
    path = tmp_path / "tone_16k.wav"
    write_wav_file(path, tone_16khz, 16000)
    return path
