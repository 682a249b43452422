"""Database adapters -- one interface for SQLite and PostgreSQL.

Architecture::

    DatabaseAdapter (base.py)        Abstract base: pool lifecycle, transaction(), execute_script()
        |-- SQLiteAdapter            stdlib sqlite3 (tests, local development)
        |-- PostgreSQLAdapter        psycopg2 ThreadedConnectionPool

    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Build adapters from a URL with ``moneyflow.core.connection.create_adapter``.
"""

from moneyflow.core.dialect import Dialect, get_dialect

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseType",
    "DatabaseConfig",
    "Dialect",
    "get_dialect",
    "DatabaseAdapter",
    "SQLiteAdapter",
    "PostgreSQLAdapter",
]
