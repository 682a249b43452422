"""Database adapter base class.

An adapter owns the connection pool for one run. Consumers never touch
driver modules: they borrow a connection with ``acquire()``, open a scoped
transaction with ``transaction()``, and run changeset bodies through
``execute_script()``. Leaving the adapter's ``with`` block releases the
pool on every exit path.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``acquire()``, ``execute_script()``
    - ``transaction()`` commits on success and rolls back on any exception
    - ``driver_errors`` so callers can catch driver failures narrowly
    - Context-manager protocol for pool lifecycle

Tags:
    database, abstract-base, adapter-pattern, transactions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from moneyflow.core.dialect import Dialect, get_dialect
from moneyflow.core.logging import get_logger

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    #: Exception types raised by the underlying driver.
    driver_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish the connection pool. Raises ``StoreUnavailable``."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Release the connection pool. Safe to call when not connected."""
        ...

    @abstractmethod
    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Borrow a connection from the pool for the duration of the block."""
        ...

    @abstractmethod
    def execute_script(self, conn: Any, sql: str) -> None:
        """Run a multi-statement SQL body inside the open transaction on ``conn``."""
        ...

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Scoped transaction: commit on normal exit, roll back on any exception."""
        with self.acquire() as conn:
            try:
                yield conn
            except BaseException:
                self._rollback(conn)
                raise
            else:
                conn.commit()

    def execute(self, conn: Any, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute one statement on ``conn`` and return the cursor."""
        cursor = conn.cursor()
        if params:
            cursor.execute(sql, tuple(params))
        else:
            cursor.execute(sql)
        return cursor

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Execute a read query in its own transaction and return rows as dicts."""
        with self.transaction() as conn:
            cursor = self.execute(conn, sql, params)
            try:
                columns = [desc[0] for desc in cursor.description]
                return [dict(zip(columns, tuple(row), strict=False)) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def _rollback(self, conn: Any) -> None:
        try:
            conn.rollback()
        except self.driver_errors as exc:
            # the triggering exception propagates, not this one
            logger.warning("transaction.rollback_failed", error=str(exc))

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
