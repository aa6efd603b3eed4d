"""Command-line interface for gator."""

from gator.cli.commands import COMMANDS, State, run_command
from gator.cli.main import main

__all__ = ["COMMANDS", "State", "main", "run_command"]
