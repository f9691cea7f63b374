"""Preprocessing configuration passed explicitly into pipelines."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from speechprep._audio_constants import (
    ALLOWED_TARGET_SAMPLE_RATES,
    DEFAULT_MAX_GAIN_DB,
    STT_SAMPLE_RATE,
)
from speechprep.exceptions import UnsupportedSampleRateError


def validate_target_sample_rate(sample_rate: int) -> int:
    """Check that *sample_rate* belongs to the allowed output rates.

    Raises:
        UnsupportedSampleRateError: If the rate is not allowed.
    """
    if sample_rate not in ALLOWED_TARGET_SAMPLE_RATES:
        raise UnsupportedSampleRateError(sample_rate, ALLOWED_TARGET_SAMPLE_RATES)
    return sample_rate


class PreprocessingConfig(BaseModel):
    """Capture pipeline configuration.

    Immutable value object; each pipeline invocation receives its own copy.
    Defaults are imported from ``_audio_constants`` (single source of truth
    shared with ``PreprocessingSettings``).
    """

    model_config = ConfigDict(frozen=True)

    target_sample_rate: int = STT_SAMPLE_RATE
    denoise: bool = True
    enable_auto_gain: bool = True
    max_gain_db: float = Field(default=DEFAULT_MAX_GAIN_DB, ge=0.0)

    @field_validator("target_sample_rate")
    @classmethod
    def _rate_allowed(cls, value: int) -> int:
        if value not in ALLOWED_TARGET_SAMPLE_RATES:
            msg = f"target_sample_rate must be one of {sorted(ALLOWED_TARGET_SAMPLE_RATES)}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_settings(cls) -> PreprocessingConfig:
        """Build a config from ``SPEECHPREP_*`` environment settings."""
        from speechprep.config.settings import get_settings

        s = get_settings().preprocessing
        return cls(
            target_sample_rate=s.target_sample_rate,
            enable_auto_gain=s.enable_auto_gain,
            max_gain_db=s.max_gain_db,
        )
