"""Centralized configuration via pydantic-settings.

All ``SPEECHPREP_*`` environment variables are read, validated, and exposed here.
Logging env vars (``SPEECHPREP_LOG_FORMAT``, ``SPEECHPREP_LOG_LEVEL``) are
excluded; they stay in ``speechprep.logging`` for bootstrap-safety.

Usage::

    from speechprep.config.settings import get_settings

    settings = get_settings()
    print(settings.preprocessing.target_sample_rate)  # int, validated

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from speechprep._audio_constants import (
    ALLOWED_TARGET_SAMPLE_RATES,
    DEFAULT_MAX_GAIN_DB,
    DEFAULT_READ_BLOCK_MS,
    STT_SAMPLE_RATE,
)


class PreprocessingSettings(BaseSettings):
    """Output format and post-denoise loudness settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    target_sample_rate: int = Field(
        default=STT_SAMPLE_RATE,
        validation_alias="SPEECHPREP_TARGET_SAMPLE_RATE",
    )
    enable_auto_gain: bool = Field(
        default=True,
        validation_alias="SPEECHPREP_ENABLE_AUTO_GAIN",
    )
    max_gain_db: float = Field(
        default=DEFAULT_MAX_GAIN_DB,
        ge=0.0,
        le=40.0,
        validation_alias="SPEECHPREP_MAX_GAIN_DB",
    )

    @field_validator("target_sample_rate")
    @classmethod
    def _rate_allowed(cls, value: int) -> int:
        if value not in ALLOWED_TARGET_SAMPLE_RATES:
            msg = f"target_sample_rate must be one of {sorted(ALLOWED_TARGET_SAMPLE_RATES)}"
            raise ValueError(msg)
        return value


class DecodeSettings(BaseSettings):
    """Decode loop tuning."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    poll_timeout_ms: int = Field(
        default=10,
        ge=1,
        le=1000,
        validation_alias="SPEECHPREP_POLL_TIMEOUT_MS",
    )
    read_block_ms: int = Field(
        default=DEFAULT_READ_BLOCK_MS,
        ge=10,
        le=5000,
        validation_alias="SPEECHPREP_READ_BLOCK_MS",
    )

    @property
    def poll_timeout_s(self) -> float:
        """Per-poll timeout in seconds (derived from ms setting)."""
        return self.poll_timeout_ms / 1000.0


class SpeechPrepSettings(BaseSettings):
    """Root settings — aggregates all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    preprocessing: PreprocessingSettings = Field(default_factory=PreprocessingSettings)
    decode: DecodeSettings = Field(default_factory=DecodeSettings)


@lru_cache(maxsize=1)
def get_settings() -> SpeechPrepSettings:
    """Return the singleton ``SpeechPrepSettings`` instance.

    The result is cached: subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return SpeechPrepSettings()
