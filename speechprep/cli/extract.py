"""`speechprep extract` and `speechprep prepare` commands."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from speechprep._audio_constants import ALLOWED_TARGET_SAMPLE_RATES
from speechprep.cli.main import cli, log_format_option, log_level_option
from speechprep.config.preprocessing import PreprocessingConfig
from speechprep.config.settings import get_settings
from speechprep.decode.extractor import AudioExtractor
from speechprep.decode.soundfile_source import SoundFileSource, passthrough_decoder_factory
from speechprep.exceptions import SpeechPrepError
from speechprep.logging import configure_logging
from speechprep.pipeline import SpeechCapturePipeline

_s = get_settings()
DEFAULT_TARGET_RATE = _s.preprocessing.target_sample_rate
DEFAULT_MAX_GAIN_DB = _s.preprocessing.max_gain_db

_RATE_CHOICES = [str(r) for r in sorted(ALLOWED_TARGET_SAMPLE_RATES)]


def _open_source(path: Path) -> SoundFileSource:
    return SoundFileSource(path, block_ms=get_settings().decode.read_block_ms)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--rate",
    type=click.Choice(_RATE_CHOICES),
    default=str(DEFAULT_TARGET_RATE),
    show_default=True,
    help="Output sample rate (Hz).",
)
@log_format_option
@log_level_option
def extract(source: Path, output: Path, rate: str, log_format: str, log_level: str) -> None:
    """Decode SOURCE into a mono 16-bit WAV at OUTPUT (no cleanup)."""
    configure_logging(log_format=log_format, level=log_level, force=True)
    extractor = AudioExtractor(
        passthrough_decoder_factory,
        poll_timeout_s=get_settings().decode.poll_timeout_s,
    )
    try:
        result = extractor.extract(_open_source(source), output, target_sample_rate=int(rate))
    except SpeechPrepError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(
        f"{result.path}: {result.samples_written} samples @ {result.sample_rate} Hz "
        f"({result.duration_s:.2f}s, from {result.source_channels}ch "
        f"@ {result.source_sample_rate} Hz)"
    )


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--rate",
    type=click.Choice(_RATE_CHOICES),
    default=str(DEFAULT_TARGET_RATE),
    show_default=True,
    help="Output sample rate (Hz).",
)
@click.option("--no-denoise", is_flag=True, help="Skip the noise gate.")
@click.option("--no-auto-gain", is_flag=True, help="Skip the post-denoise auto-gain.")
@click.option(
    "--max-gain-db",
    type=click.FloatRange(min=0.0),
    default=DEFAULT_MAX_GAIN_DB,
    show_default=True,
    help="Auto-gain ceiling in dB.",
)
@log_format_option
@log_level_option
def prepare(
    source: Path,
    output: Path,
    rate: str,
    no_denoise: bool,
    no_auto_gain: bool,
    max_gain_db: float,
    log_format: str,
    log_level: str,
) -> None:
    """Decode, denoise and level SOURCE into a transcription-ready WAV at OUTPUT."""
    configure_logging(log_format=log_format, level=log_level, force=True)
    config = PreprocessingConfig(
        target_sample_rate=int(rate),
        denoise=not no_denoise,
        enable_auto_gain=not no_auto_gain,
        max_gain_db=max_gain_db,
    )
    try:
        prepared = SpeechCapturePipeline(config).prepare(_open_source(source), output)
    except SpeechPrepError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(
        f"{prepared.wav_path}: {prepared.num_samples} samples @ {prepared.sample_rate} Hz, "
        f"gain +{prepared.applied_gain_db:.1f} dB"
    )
