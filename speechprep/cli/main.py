"""Main CLI command group for speechprep."""

from __future__ import annotations

import click

import speechprep


@click.group()
@click.version_option(version=speechprep.__version__, prog_name="speechprep")
def cli() -> None:
    """speechprep — turn recordings into clean mono WAV for speech-to-text."""


log_format_option = click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Log format.",
)
log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    show_default=True,
    help="Log level.",
)
