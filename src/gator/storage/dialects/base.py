"""Abstract base dialect for database backends."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from sqlalchemy import Engine

if TYPE_CHECKING:
    from gator.config import DatabaseConfig


class BaseDialect(ABC):
    """Abstract base class for database dialects.

    Each dialect implements database-specific URL construction and engine
    configuration, allowing gator to run on SQLite or PostgreSQL.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the dialect name (e.g., "sqlite", "postgresql")."""
        ...

    @property
    @abstractmethod
    def url_schemes(self) -> tuple[str, ...]:
        """URL schemes (the part before ``://``) handled by this dialect."""
        ...

    @abstractmethod
    def build_url(self, config: "DatabaseConfig") -> str:
        """Build database URL from configuration.

        Args:
            config: Database configuration object

        Returns:
            SQLAlchemy database URL string
        """
        ...

    @abstractmethod
    def get_engine_kwargs(self, url: str, config: "DatabaseConfig") -> dict:
        """Get engine-specific keyword arguments for create_engine().

        Args:
            url: Database URL the engine is created for
            config: Database configuration object
        """
        ...

    def setup_engine_events(self, engine: Engine) -> None:
        """Set up dialect-specific engine event listeners.

        Base implementation does nothing.
        """
        pass

    def validate_config(self, config: "DatabaseConfig") -> list[str]:
        """Validate dialect-specific configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        return []

    def normalize_url(self, url: str) -> str:
        """Rewrite a configured URL into the form SQLAlchemy expects."""
        return url

    def handles_url(self, url: str) -> bool:
        """Check whether a URL belongs to this dialect."""
        scheme = url.split("://", 1)[0].lower()
        return scheme in self.url_schemes
