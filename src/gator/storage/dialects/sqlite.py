"""SQLite dialect implementation."""

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import Engine, event
from sqlalchemy.pool import QueuePool, StaticPool

from gator.storage.dialects.base import BaseDialect

if TYPE_CHECKING:
    from gator.config import DatabaseConfig


class SQLiteDialect(BaseDialect):
    """SQLite database dialect.

    Default backend. Uses WAL mode so the aggregator's claim writes and the
    CLI's reads do not block each other, and enables foreign keys so deletes
    cascade like they do on PostgreSQL.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def url_schemes(self) -> tuple[str, ...]:
        return ("sqlite", "sqlite+pysqlite")

    def build_url(self, config: "DatabaseConfig") -> str:
        """Build SQLite database URL.

        - path: "~/.local/share/gator/gator.db" -> "sqlite:////home/me/.local/share/gator/gator.db"
        - path: "data/gator.db" -> "sqlite:///data/gator.db"
        - path: ":memory:" -> "sqlite://"
        - path: "sqlite:///data/gator.db" -> unchanged
        """
        db_path = config.path

        if db_path.startswith("sqlite://"):
            return db_path

        if db_path == ":memory:":
            return "sqlite://"

        file_path = Path(db_path).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)

        return f"sqlite:///{file_path}"

    def get_engine_kwargs(self, url: str, config: "DatabaseConfig") -> dict:
        """Get SQLite-specific engine kwargs.

        An in-memory database lives in a single connection, so it gets a
        StaticPool; file databases use a QueuePool shared by worker threads.
        """
        kwargs = {
            "echo": config.echo,
            "connect_args": {
                "check_same_thread": False,  # Needed for SQLite
                "timeout": 30,  # 30 second timeout for locks
            },
        }

        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["poolclass"] = QueuePool
            kwargs["pool_size"] = config.pool_size
            kwargs["max_overflow"] = config.max_overflow

        return kwargs

    def setup_engine_events(self, engine: Engine) -> None:
        """Set up SQLite PRAGMA statements."""

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    def validate_config(self, config: "DatabaseConfig") -> list[str]:
        errors = []

        db_path = Path(config.path).expanduser()
        if config.path != ":memory:" and db_path.exists() and not db_path.is_file():
            errors.append(f"Database path exists but is not a file: {config.path}")

        return errors
