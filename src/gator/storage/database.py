"""
Database connection and session management.
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from gator.config import get_config
from gator.logger import get_logger
from gator.models import Base
from gator.storage.dialects import get_dialect, get_dialect_for_url

if TYPE_CHECKING:
    from gator.config import DatabaseConfig

logger = get_logger(__name__)


def resolve_database_url(
    db_url: Optional[str] = None, db_config: Optional["DatabaseConfig"] = None
) -> str:
    """Work out which database URL to connect to.

    Priority: explicit ``db_url`` (from the session file), then
    ``database.url`` from settings, then a URL built by the configured dialect.

    Args:
        db_url: Explicit URL, or a bare SQLite file path
        db_config: Database configuration (defaults to global config)

    Returns:
        SQLAlchemy database URL
    """
    db_config = db_config or get_config().database

    url = db_url or db_config.url
    if url:
        # A bare path is treated as a SQLite file
        if "://" not in url:
            return get_dialect("sqlite").build_url(db_config.model_copy(update={"path": url}))
        return url

    dialect = get_dialect(db_config.type)
    errors = dialect.validate_config(db_config)
    if errors:
        raise ValueError(f"Invalid {dialect.name} configuration: {'; '.join(errors)}")
    return dialect.build_url(db_config)


class DatabaseManager:
    """Database manager for context-managed database operations.

    One manager owns one engine (and its connection pool). Sessions handed out
    by :meth:`session` commit on success and roll back on error.
    """

    def __init__(self, url: Optional[str] = None, db_config: Optional["DatabaseConfig"] = None):
        """Initialize database manager.

        Args:
            url: Database URL or SQLite file path (":memory:" for in-memory).
            db_config: Optional custom database configuration.

        Note:
            If neither url nor db_config is provided, uses the global config.
        """
        self._db_config = db_config or get_config().database
        self.url = resolve_database_url(url, self._db_config)
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """Get the database engine, creating it on first use."""
        if self._engine is None:
            dialect = get_dialect_for_url(self.url)
            url = dialect.normalize_url(self.url)

            self._engine = create_engine(url, **dialect.get_engine_kwargs(url, self._db_config))
            dialect.setup_engine_events(self._engine)

            logger.debug(f"Created {dialect.name} engine")

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get the session factory bound to this manager's engine."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
            )
        return self._session_factory

    def init_db(self, drop_all: bool = False) -> None:
        """Create database tables that do not exist yet.

        Args:
            drop_all: If True, drop existing tables first
        """
        if drop_all:
            logger.warning("Dropping all tables - data will be lost!")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Yields:
            SQLAlchemy Session instance

        Example:
            >>> with manager.session() as session:
            ...     users = UserRepository(session).list()
        """
        session = self.session_factory()

        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._session_factory = None

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
