"""Base interface for cleanup pipeline stages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np


class AudioStage(ABC):
    """Individual whole-buffer processing stage.

    Each stage receives a numpy float32 array and sample rate,
    processes the audio, and returns the result with the new sample rate.
    Stages never mutate their input array.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier name for the stage (e.g. 'resample', 'denoise')."""
        ...

    @abstractmethod
    def process(self, audio: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
        """Process an audio buffer.

        Args:
            audio: Numpy float32 array with audio samples (mono).
            sample_rate: Current audio sample rate in Hz.

        Returns:
            Tuple (processed audio, new sample rate).
        """
        ...
