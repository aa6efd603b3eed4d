"""
Command-line entry point: ``gator <command> [args...]``.
"""

import argparse
import sys
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from gator import __version__
from gator.cli.commands import COMMANDS, State, run_command
from gator.config import Config, SessionConfig, reload_config
from gator.exceptions import ConfigError, GatorError
from gator.logger import get_logger, setup_logger
from gator.storage.database import DatabaseManager

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gator",
        description="RSS feed aggregator",
        epilog=f"commands: {', '.join(COMMANDS)}",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs="?", help="command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="command arguments")
    return parser


def build_state(config: Config) -> State:
    """Read the session file and open the database.

    Raises:
        ConfigError: If the session file or database settings are invalid
    """
    session_config = SessionConfig.read(config.get_session_path())

    try:
        db = DatabaseManager(session_config.db_url, config.database)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    db.init_db()
    return State(config=config, session_config=session_config, db=db)


def main(argv: Optional[list[str]] = None) -> int:
    """Run one command.

    Returns:
        Process exit status: 0 on success, 1 on any gator or database error
    """
    parser = build_parser()
    namespace = parser.parse_args(argv)

    if not namespace.command:
        parser.print_usage(sys.stderr)
        print("error: a command is required", file=sys.stderr)
        return 1

    try:
        config = reload_config()
        setup_logger()

        state = build_state(config)
        try:
            run_command(state, namespace.command, namespace.args)
        finally:
            state.db.close()

    except GatorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    except SQLAlchemyError as e:
        logger.debug(f"Database error: {e!r}")
        print(f"error: database error: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
