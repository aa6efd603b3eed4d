"""Storage layer modules for gator."""

from gator.storage.database import DatabaseManager, resolve_database_url

__all__ = [
    "DatabaseManager",
    "resolve_database_url",
]
