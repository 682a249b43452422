"""
Shared pytest fixtures for the migration runner tests.

This module provides:
- Environment isolation (no DATABASE_URL/MIGRATIONS_DIR leaking in)
- structlog reset between tests
- A temporary migrations directory and a file-backed SQLite database
- Helpers to write changesets and read the ledger back
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
import structlog

from moneyflow.core.settings import MigrateSettings

_ENV_VARS = [
    "DATABASE_URL",
    "DATABASE_SSL_MODE",
    "MIGRATIONS_DIR",
    "SEED_FILE",
    "APP_ENV",
    "NODE_ENV",
    "LOG_LEVEL",
    "MONEYFLOW_DATABASE_URL",
    "MONEYFLOW_DATABASE_SSL_MODE",
    "MONEYFLOW_MIGRATIONS_DIR",
    "MONEYFLOW_SEED_FILE",
    "MONEYFLOW_LEDGER_TABLE",
    "MONEYFLOW_POOL_SIZE",
    "MONEYFLOW_CONNECT_TIMEOUT",
    "MONEYFLOW_ALLOW_EMPTY_CHANGESETS",
    "MONEYFLOW_LOG_LEVEL",
    "MONEYFLOW_LOG_JSON",
]


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Strip runner env vars and run from an empty directory (no stray .env)."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


# =============================================================================
# Filesystem / database fixtures
# =============================================================================


@pytest.fixture()
def migrations_dir(tmp_path: Path) -> Path:
    """Empty migrations directory."""
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "money_flow.db"


@pytest.fixture()
def settings(db_path: Path, migrations_dir: Path) -> MigrateSettings:
    """Settings pointing at the temp SQLite file and migrations dir."""
    return MigrateSettings(
        database_url=f"sqlite:///{db_path}",
        migrations_dir=migrations_dir,
        log_level="DEBUG",
        log_json=True,
    )


@pytest.fixture()
def write_changeset(migrations_dir: Path):
    """Write ``name`` with ``body`` into the migrations directory."""

    def _write(name: str, body: str) -> Path:
        path = migrations_dir / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def read_ledger(db_path: Path):
    """Return ``[(id, name), ...]`` from the ledger table, ordered by id."""

    def _read(table: str = "migrations") -> list[tuple[int, str]]:
        conn = sqlite3.connect(db_path)
        try:
            return conn.execute(f"SELECT id, name FROM {table} ORDER BY id").fetchall()
        finally:
            conn.close()

    return _read


@pytest.fixture()
def table_names(db_path: Path):
    """Return the set of user tables in the SQLite database."""

    def _tables() -> set[str]:
        conn = sqlite3.connect(db_path)
        try:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
            return {row[0] for row in rows}
        finally:
            conn.close()

    return _tables

