"""Database factory functions for creating database instances."""

from typing import Optional

from coopledger.config import Settings
from coopledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_database(settings: Optional[Settings] = None) -> SQLAlchemyDatabase:
    """Create a database instance from settings.

    Args:
        settings: Resolved settings. If None, they are read from the environment.

    Returns:
        SQLAlchemyDatabase instance with the schema created
    """
    if settings is None:
        settings = Settings.from_env()
    return SQLAlchemyDatabase(
        settings.database_url,
        pool_size=settings.pool_size,
        pool_timeout=settings.pool_timeout,
    )


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks
            COOPLEDGER_DB_PATH, then defaults to ~/.coopledger/ledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    return create_database(Settings.from_env(database_path=database_path))
