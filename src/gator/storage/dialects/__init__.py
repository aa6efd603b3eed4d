"""Database dialect system for gator.

Provides a dialect abstraction so gator can run on SQLite or PostgreSQL.
"""

from gator.storage.dialects.base import BaseDialect
from gator.storage.dialects.postgresql import PostgreSQLDialect
from gator.storage.dialects.sqlite import SQLiteDialect

# Dialect registry
_DIALECT_REGISTRY: dict[str, type[BaseDialect]] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,  # Alias
}


def get_dialect(name: str) -> BaseDialect:
    """Get a dialect instance by name.

    Args:
        name: Dialect name (sqlite, postgresql).
              "postgres" is accepted as an alias for "postgresql".

    Raises:
        ValueError: If dialect name is not supported
    """
    name_lower = name.lower()
    if name_lower not in _DIALECT_REGISTRY:
        supported = ", ".join(get_supported_dialects())
        raise ValueError(
            f"Unsupported database dialect: {name!r}. "
            f"Supported dialects: {supported}"
        )

    return _DIALECT_REGISTRY[name_lower]()


def get_dialect_for_url(url: str) -> BaseDialect:
    """Get the dialect that handles a database URL.

    Raises:
        ValueError: If no registered dialect handles the URL scheme
    """
    for dialect_class in set(_DIALECT_REGISTRY.values()):
        dialect = dialect_class()
        if dialect.handles_url(url):
            return dialect

    scheme = url.split("://", 1)[0]
    raise ValueError(f"Unsupported database URL scheme: {scheme!r}")


def get_supported_dialects() -> list[str]:
    """Get list of supported dialect names."""
    return sorted(_DIALECT_REGISTRY.keys())


__all__ = [
    "BaseDialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "get_dialect_for_url",
    "get_supported_dialects",
]
