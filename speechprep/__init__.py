"""speechprep — speech-capture preprocessing for transcription engines.

Media source -> decode loop -> mono/resample -> WAV, then
WAV -> RMS-gated denoise -> auto-gain/soft limiter -> clean PCM16 WAV.
"""

from __future__ import annotations

__version__ = "0.1.0"
