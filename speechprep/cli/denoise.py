"""`speechprep denoise` and `speechprep info` commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from speechprep.cli.main import cli, log_format_option, log_level_option
from speechprep.config.preprocessing import PreprocessingConfig
from speechprep.config.settings import get_settings
from speechprep.exceptions import SpeechPrepError
from speechprep.logging import configure_logging
from speechprep.preprocessing.denoise import DenoiseStage
from speechprep.preprocessing.gain import AutoGainStage
from speechprep.preprocessing.pipeline import CleanupPipeline
from speechprep.preprocessing.wav import read_wav_header

if TYPE_CHECKING:
    from speechprep.preprocessing.stages import AudioStage

DEFAULT_MAX_GAIN_DB = get_settings().preprocessing.max_gain_db


@cli.command()
@click.argument("input_wav", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_wav", type=click.Path(dir_okay=False, path_type=Path))
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
def denoise(
    input_wav: Path,
    output_wav: Path,
    no_auto_gain: bool,
    max_gain_db: float,
    log_format: str,
    log_level: str,
) -> None:
    """Denoise and level a 16-bit mono WAV, keeping its sample rate.

    No resample stage runs, so any input rate is accepted.
    """
    configure_logging(log_format=log_format, level=log_level, force=True)
    stages: list[AudioStage] = [DenoiseStage()]
    if not no_auto_gain:
        stages.append(AutoGainStage(max_gain_db=max_gain_db))
    pipeline = CleanupPipeline(PreprocessingConfig(), stages=stages)
    try:
        header = pipeline.process_file(input_wav, output_wav)
    except SpeechPrepError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(
        f"{output_wav}: {header.data_size // 2} samples @ {header.sample_rate} Hz, "
        f"gain +{pipeline.applied_gain_db:.1f} dB"
    )


@cli.command()
@click.argument("wav", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@log_format_option
@log_level_option
def info(wav: Path, log_format: str, log_level: str) -> None:
    """Print the 44-byte header fields of a WAV file."""
    configure_logging(log_format=log_format, level=log_level, force=True)
    try:
        header = read_wav_header(wav)
    except SpeechPrepError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"sample_rate: {header.sample_rate}")
    click.echo(f"channels: {header.channels}")
    click.echo(f"bits_per_sample: {header.bits_per_sample}")
    click.echo(f"byte_rate: {header.byte_rate}")
    click.echo(f"block_align: {header.block_align}")
    click.echo(f"data_size: {header.data_size}")
    click.echo(f"chunk_size: {header.chunk_size}")
