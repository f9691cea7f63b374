"""speechprep CLI.

Registers all commands on the main group.
"""

from speechprep.cli.denoise import denoise, info
from speechprep.cli.extract import extract, prepare
from speechprep.cli.main import cli

__all__ = ["cli", "denoise", "extract", "info", "prepare"]
