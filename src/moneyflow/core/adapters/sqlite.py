"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from moneyflow.core.errors import ErrorContext, StoreUnavailable

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module with a single shared connection.
    Suitable for:
    - Development and testing
    - Single-process deployments

    ``executescript`` commits any pending transaction before it runs, so
    the changeset body is prefixed with ``BEGIN;`` to open the transaction
    inside the script. The ledger insert that follows joins it and
    ``transaction()`` commits or rolls back both together.
    """

    driver_errors = (sqlite3.Error,)

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            pool_size=1,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        if self._conn is not None:
            return

        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            if path != ":memory:" and not uri:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._connected = True

        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(
                f"Failed to connect to SQLite: {e}",
                context=ErrorContext(backend="sqlite", path=path),
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    @contextmanager
    def acquire(self) -> Iterator[sqlite3.Connection]:
        """Yield the shared connection, connecting lazily."""
        if self._conn is None:
            self.connect()
        if self._conn is None:
            raise StoreUnavailable(
                "SQLite connection is not open",
                context=ErrorContext(backend="sqlite", path=self._config.path),
            )
        yield self._conn

    def execute_script(self, conn: Any, sql: str) -> None:
        conn.executescript(f"BEGIN;\n{sql}\n")


__all__ = [
    "SQLiteAdapter",
]
