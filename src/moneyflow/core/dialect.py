"""SQL dialect abstraction for the ledger table.

The ledger store speaks to both SQLite (tests, local development) and
PostgreSQL (deployments). The few fragments that differ between them
live here so ``moneyflow.migrations.ledger`` never branches on backend.

::

    ┌──────────────┐ ┌──────────────────────┐
    │ SQLite       │ │ PostgreSQL           │
    │ ?            │ │ %s                   │
    │ INTEGER PK   │ │ SERIAL PRIMARY KEY   │
    │ AUTOINCREMENT│ │                      │
    │ TEXT         │ │ TIMESTAMPTZ          │
    └──────────────┘ └──────────────────────┘

Examples:
    >>> d = get_dialect("sqlite")
    >>> d.placeholder(0)
    '?'
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL fragments a backend must supply."""

    @property
    def name(self) -> str: ...

    def placeholder(self, index: int) -> str:
        """Return a parameter placeholder for position ``index`` (0-based)."""
        ...

    def auto_increment(self) -> str:
        """Column definition for an auto-incrementing integer primary key."""
        ...

    def timestamp_default_now(self) -> str:
        """Column definition for a timestamp defaulting to insertion time."""
        ...

    def ledger_table_ddl(self, table: str) -> str: ...

    def ledger_unique_index_ddl(self, table: str) -> str:
        """Unique index on ``name``, for ledger tables created without the constraint."""
        ...


class _BaseDialect:
    def ledger_unique_index_ddl(self, table: str) -> str:
        return f"CREATE UNIQUE INDEX IF NOT EXISTS {table}_name_key ON {table} (name)"

    def ledger_table_ddl(self, table: str) -> str:
        return (
            f"CREATE TABLE IF NOT EXISTS {table} (\n"
            f"    id {self.auto_increment()},\n"  # type: ignore[attr-defined]
            f"    name VARCHAR(255) NOT NULL UNIQUE,\n"
            f"    applied_at {self.timestamp_default_now()}\n"  # type: ignore[attr-defined]
            f")"
        )


class SQLiteDialect(_BaseDialect):
    """SQLite: ``?`` placeholders, ISO text timestamps."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def timestamp_default_now(self) -> str:
        return "TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"


class PostgreSQLDialect(_BaseDialect):
    """PostgreSQL (psycopg2): ``%s`` placeholders, timezone-aware timestamps."""

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def timestamp_default_now(self) -> str:
        return "TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP"


_DIALECTS: dict[str, type[_BaseDialect]] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return the dialect for a backend name (``sqlite``, ``postgresql``)."""
    try:
        return _DIALECTS[name.lower()]()  # type: ignore[return-value]
    except KeyError:
        raise ValueError(f"Unsupported SQL dialect: {name}") from None


__all__ = ["Dialect", "SQLiteDialect", "PostgreSQLDialect", "get_dialect"]
