"""Allow ``python -m gator``."""

from gator.cli.main import run

run()
