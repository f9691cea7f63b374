"""Decode orchestration: media source + opaque decoder -> mono PCM16 WAV."""

from __future__ import annotations

from speechprep.decode.extractor import AudioExtractor, select_audio_track
from speechprep.decode.interface import AudioDecoder, MediaSource
from speechprep.decode.state_machine import DecodeStateMachine

__all__ = [
    "AudioDecoder",
    "AudioExtractor",
    "DecodeStateMachine",
    "MediaSource",
    "select_audio_track",
]
