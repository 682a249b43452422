"""Tests for ``moneyflow.core.connection`` — URL parsing, adapter factory, create_database."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from moneyflow.core.adapters import PostgreSQLAdapter, SQLiteAdapter
from moneyflow.core.connection import (
    _parse_url,
    _split_database_name,
    adapter_from_settings,
    create_adapter,
    create_database,
)
from moneyflow.core.errors import ConfigError
from moneyflow.core.settings import MigrateSettings


class TestParseUrl:
    @pytest.mark.parametrize("db", [None, "", "memory", ":memory:", "sqlite://", "sqlite:///:memory:"])
    def test_memory(self, db):
        assert _parse_url(db) == ("memory", ":memory:")

    def test_sqlite_relative(self):
        assert _parse_url("sqlite:///data/app.db") == ("sqlite", "data/app.db")

    def test_sqlite_absolute(self):
        assert _parse_url("sqlite:////var/lib/app.db") == ("sqlite", "/var/lib/app.db")

    def test_bare_path(self):
        assert _parse_url("./money_flow.db") == ("file", "./money_flow.db")

    @pytest.mark.parametrize("url", ["postgresql://u:p@h/db", "postgres://u:p@h/db"])
    def test_postgres(self, url):
        assert _parse_url(url) == ("postgresql", url)

    def test_postgres_driver_suffix_stripped(self):
        assert _parse_url("postgresql+psycopg2://u:p@h/db") == ("postgresql", "postgresql://u:p@h/db")

    def test_unknown_scheme(self):
        with pytest.raises(ConfigError, match="mysql"):
            _parse_url("mysql://u:p@h/db")


class TestCreateAdapter:
    def test_memory(self):
        assert isinstance(create_adapter("memory"), SQLiteAdapter)

    def test_sqlite_file(self, tmp_path):
        adapter = create_adapter(f"sqlite:///{tmp_path}/x.db")
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.config.path == f"{tmp_path}/x.db"

    def test_postgres_does_not_connect(self):
        adapter = create_adapter("postgresql://u:p@h/db", ssl_mode="require", pool_size=2)
        assert isinstance(adapter, PostgreSQLAdapter)
        assert adapter.is_connected is False
        assert adapter.config.ssl_mode == "require"
        assert adapter.config.pool_size == 2

    def test_from_settings_uses_effective_ssl_mode(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        adapter = adapter_from_settings(MigrateSettings(database_url="postgres://u:p@h/db"))
        assert adapter.config.ssl_mode == "require"


class TestCreateDatabase:
    def test_split_database_name(self):
        name, maintenance = _split_database_name("postgresql://u:p@h:5432/money_flow?sslmode=require")
        assert name == "money_flow"
        assert maintenance == "postgresql://u:p@h:5432/postgres?sslmode=require"

    def test_split_requires_name(self):
        with pytest.raises(ConfigError):
            _split_database_name("postgresql://u:p@h:5432")

    def test_sqlite_creates_parent_dir(self, tmp_path):
        target = tmp_path / "deep" / "app.db"
        assert create_database(MigrateSettings(database_url=f"sqlite:///{target}")) is True
        assert target.parent.is_dir()

    def test_memory_is_noop(self):
        assert create_database(MigrateSettings(database_url="memory")) is False

    @patch("psycopg2.connect")
    def test_postgres_creates_missing_database(self, mock_connect):
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = None
        mock_connect.return_value = conn

        created = create_database(MigrateSettings(database_url="postgresql://u:p@h/money_flow"))

        assert created is True
        assert conn.autocommit is True
        assert cursor.execute.call_count == 2
        conn.close.assert_called_once()

    @patch("psycopg2.connect")
    def test_postgres_existing_database(self, mock_connect):
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = (1,)
        mock_connect.return_value = conn

        created = create_database(MigrateSettings(database_url="postgresql://u:p@h/money_flow"))

        assert created is False
        cursor.execute.assert_called_once_with(
            "SELECT 1 FROM pg_database WHERE datname = %s", ("money_flow",)
        )
        conn.close.assert_called_once()
