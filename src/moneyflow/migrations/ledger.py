"""Ledger store: the table recording which changesets have been applied.

One row per applied changeset, inserted in the same transaction that ran
the changeset body, never updated or deleted. ``name`` is unique, so a
changeset can be recorded at most once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from moneyflow.core.adapters import DatabaseAdapter
from moneyflow.core.errors import ConfigError, ErrorContext, StoreUnavailable
from moneyflow.core.logging import get_logger

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

DEFAULT_LEDGER_TABLE = "migrations"


@dataclass(frozen=True)
class LedgerEntry:
    """Record of a single applied changeset."""

    id: int
    name: str
    applied_at: Any


class LedgerStore:
    """Durable record of applied changesets, created lazily.

    Parameters
    ----------
    adapter
        Adapter owning the connection pool for this run.
    table
        Ledger table name; must be a plain SQL identifier.
    """

    def __init__(self, adapter: DatabaseAdapter, table: str = DEFAULT_LEDGER_TABLE) -> None:
        if not _IDENTIFIER.match(table):
            raise ConfigError(
                f"Invalid ledger table name: {table!r}",
                context=ErrorContext(table=table),
            )
        self._adapter = adapter
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def ensure_table(self) -> None:
        """Create the ledger table if it does not exist (idempotent).

        A table left by an older runner may lack the unique constraint on
        ``name``; the unique index is added to it here. Existing duplicate
        names make that fail with ``StoreUnavailable``.
        """
        dialect = self._adapter.dialect
        try:
            with self._adapter.transaction() as conn:
                self._adapter.execute(conn, dialect.ledger_table_ddl(self._table)).close()
                self._adapter.execute(conn, dialect.ledger_unique_index_ddl(self._table)).close()
        except self._adapter.driver_errors as e:
            raise self._unavailable("create", e) from e
        logger.debug("ledger.ensured", table=self._table)

    def entries(self) -> list[LedgerEntry]:
        """Return all ledger entries ordered by insertion id."""
        try:
            rows = self._adapter.query(
                f"SELECT id, name, applied_at FROM {self._table} ORDER BY id"
            )
        except self._adapter.driver_errors as e:
            raise self._unavailable("read", e) from e
        return [LedgerEntry(id=row["id"], name=row["name"], applied_at=row["applied_at"]) for row in rows]

    def list_applied(self) -> list[str]:
        """Return applied changeset names ordered by insertion id."""
        return [entry.name for entry in self.entries()]

    def record_applied(self, conn: Any, name: str) -> None:
        """Insert the ledger entry for ``name`` on an open transaction.

        Must run on the same connection/transaction as the changeset body,
        so the entry exists if and only if the changeset committed.
        """
        placeholder = self._adapter.dialect.placeholder(0)
        try:
            self._adapter.execute(
                conn,
                f"INSERT INTO {self._table} (name) VALUES ({placeholder})",
                (name,),
            ).close()
        except self._adapter.driver_errors as e:
            raise self._unavailable("record", e).with_context(changeset=name) from e

    def _unavailable(self, action: str, cause: BaseException) -> StoreUnavailable:
        return StoreUnavailable(
            f"Ledger table {self._table} {action} failed: {cause}",
            context=ErrorContext(table=self._table, backend=self._adapter.db_type.value),
            cause=cause,
        )


__all__ = ["DEFAULT_LEDGER_TABLE", "LedgerEntry", "LedgerStore"]
