"""Database layer for coopledger."""

from coopledger.database.base import Database
from coopledger.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
