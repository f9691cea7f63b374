"""Typed exceptions for speechprep.

Hierarchy:
    SpeechPrepError (base)
    +-- ConfigError
    |   +-- UnsupportedSampleRateError
    +-- AudioError
    |   +-- NoAudioTrackError
    |   +-- UnsupportedSampleEncodingError
    |   +-- UnsupportedChannelLayoutError
    |   +-- TruncatedFileError
    +-- IOFailureError
    +-- DecodeError
        +-- InvalidTransitionError
        +-- ExtractionCancelledError
"""

from __future__ import annotations


class SpeechPrepError(Exception):
    """Base for all speechprep exceptions."""


# --- Configuration ---


class ConfigError(SpeechPrepError):
    """Invalid pipeline configuration."""


class UnsupportedSampleRateError(ConfigError):
    """Requested target sample rate is outside the allowed set."""

    def __init__(self, sample_rate: int, allowed: frozenset[int] | None = None) -> None:
        self.sample_rate = sample_rate
        self.allowed = allowed
        msg = f"Unsupported target sample rate: {sample_rate} Hz"
        if allowed:
            msg += f" (allowed: {', '.join(str(r) for r in sorted(allowed))})"
        super().__init__(msg)


# --- Audio ---


class AudioError(SpeechPrepError):
    """Audio processing error."""


class NoAudioTrackError(AudioError):
    """The media source has no track whose MIME type starts with ``audio/``."""

    def __init__(self, source: str, mime_types: list[str] | None = None) -> None:
        self.source = source
        self.mime_types = mime_types or []
        msg = f"No audio track found in '{source}'"
        if self.mime_types:
            msg += f" (tracks: {', '.join(self.mime_types)})"
        super().__init__(msg)


class UnsupportedSampleEncodingError(AudioError):
    """The decoder produced a sample encoding the normalizer cannot handle."""

    def __init__(self, encoding: object, detail: str | None = None) -> None:
        self.encoding = encoding
        self.detail = detail
        msg = f"Unsupported sample encoding: {encoding!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class UnsupportedChannelLayoutError(AudioError):
    """Channel count is not usable for mixdown (must be >= 1)."""

    def __init__(self, channels: int, detail: str | None = None) -> None:
        self.channels = channels
        self.detail = detail
        msg = f"Unsupported channel layout: {channels} channel(s)"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class TruncatedFileError(AudioError):
    """WAV payload is not a whole number of 16-bit samples."""

    def __init__(self, path: str, size_bytes: int) -> None:
        self.path = path
        self.size_bytes = size_bytes
        super().__init__(f"Truncated WAV file '{path}': {size_bytes} bytes")


# --- IO ---


class IOFailureError(SpeechPrepError):
    """File system error while opening, writing, or reading a file."""

    def __init__(self, path: str, operation: str, reason: str) -> None:
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation} '{path}': {reason}")


# --- Decode ---


class DecodeError(SpeechPrepError):
    """Decode orchestration error."""


class InvalidTransitionError(DecodeError):
    """Invalid state transition in the decode state machine."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")


class ExtractionCancelledError(DecodeError):
    """Extraction was cancelled between polls."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"Extraction of '{source}' was cancelled")
