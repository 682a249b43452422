"""PostgreSQL database adapter."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.pool

from moneyflow.core.errors import ErrorContext, StoreUnavailable

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Uses a psycopg2 ``ThreadedConnectionPool`` created once per run. psycopg2
    opens a transaction implicitly on the first statement, so a changeset
    body and its ledger insert share one transaction until ``commit()``.
    """

    driver_errors = (psycopg2.Error,)

    def __init__(
        self,
        dsn: str,
        *,
        pool_size: int = 5,
        ssl_mode: str = "disable",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            dsn=dsn,
            pool_size=pool_size,
            ssl_mode=ssl_mode,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=self._config.pool_size,
                dsn=self._config.dsn,
                sslmode=self._config.ssl_mode,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
            self._connected = True
        except psycopg2.Error as e:
            raise StoreUnavailable(
                f"Failed to connect to PostgreSQL: {e}",
                context=ErrorContext(backend="postgresql", path=self._config.describe()),
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            self._connected = False

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Borrow a pooled connection; it is returned even if the block raises."""
        if self._pool is None:
            self.connect()
        try:
            conn = self._pool.getconn()
        except psycopg2.Error as e:
            raise StoreUnavailable(
                f"Failed to acquire PostgreSQL connection: {e}",
                context=ErrorContext(backend="postgresql"),
                cause=e,
            ) from e
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    def execute_script(self, conn: Any, sql: str) -> None:
        with conn.cursor() as cursor:
            cursor.execute(sql)


__all__ = [
    "PostgreSQLAdapter",
]
