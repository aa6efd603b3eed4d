"""
Loguru setup for gator.

Diagnostics go to stderr (and optionally a rotating file); command output is
printed to stdout by the CLI and never passes through the logger.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

from gator.config import get_config


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    format: Optional[str] = None,
) -> None:
    """Replace loguru's default sink with the configured ones.

    Arguments override the matching ``LOG_*`` settings. Passing ``log_file``
    turns file logging on even when ``LOG_FILE_ENABLED`` is false.
    """
    log_config = get_config().logging
    debug = get_config().debug

    level = level or log_config.level
    format = format or log_config.format
    write_file = log_config.file_enabled or log_file is not None

    _logger.remove()

    if log_config.console_enabled:
        _logger.add(
            sys.stderr,
            level=level,
            format=format,
            colorize=True,
            backtrace=True,
            diagnose=debug,
        )

    if write_file:
        path = Path(log_file or log_config.file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        # enqueue: aggregator workers log from several threads
        _logger.add(
            str(path),
            level=level,
            format=format,
            rotation=rotation or log_config.rotation,
            retention=retention or log_config.retention,
            compression="zip",
            encoding="utf-8",
            enqueue=True,
            backtrace=True,
            diagnose=debug,
        )


def get_logger(name: Optional[str] = None):
    """Return the shared logger, bound to ``name`` when given."""
    return _logger.bind(name=name) if name else _logger
