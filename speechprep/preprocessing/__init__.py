"""Audio preprocessing for transcription.

Per-chunk conversion: Raw bytes -> [Normalize + Mixdown] -> [Resample] -> PCM16 WAV.
Whole-buffer cleanup: WAV -> [Resample] -> [Denoise] -> [Auto-Gain] -> PCM16 WAV.
"""

from __future__ import annotations

from speechprep.preprocessing.pipeline import CleanupPipeline
from speechprep.preprocessing.stages import AudioStage

__all__ = ["AudioStage", "CleanupPipeline"]
