"""Tests for changeset discovery and creation."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from moneyflow.core.errors import SourceReadError
from moneyflow.migrations.source import Changeset, MigrationSource, changeset_sort_key


class TestListAvailable:
    def test_sorted_by_name(self, migrations_dir: Path, write_changeset):
        for name in ["002_add_col.sql", "010_late.sql", "001_init.sql"]:
            write_changeset(name, "SELECT 1;")
        names = [c.name for c in MigrationSource(migrations_dir).list_available()]
        assert names == ["001_init.sql", "002_add_col.sql", "010_late.sql"]

    def test_lexicographic_not_numeric(self, migrations_dir: Path, write_changeset):
        write_changeset("9_a.sql", "SELECT 1;")
        write_changeset("10_b.sql", "SELECT 1;")
        names = [c.name for c in MigrationSource(migrations_dir).list_available()]
        assert names == ["10_b.sql", "9_a.sql"]

    def test_ignores_other_files_and_directories(self, migrations_dir: Path, write_changeset):
        write_changeset("001_init.sql", "SELECT 1;")
        write_changeset("README.md", "# notes")
        write_changeset("002_draft.sql.bak", "SELECT 1;")
        (migrations_dir / "003_dir.sql").mkdir()
        names = [c.name for c in MigrationSource(migrations_dir).list_available()]
        assert names == ["001_init.sql"]

    def test_empty_directory(self, migrations_dir: Path):
        assert MigrationSource(migrations_dir).list_available() == []

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(SourceReadError, match="not found") as exc_info:
            MigrationSource(tmp_path / "nope").list_available()
        assert exc_info.value.context.path == str(tmp_path / "nope")

    def test_rereads_directory(self, migrations_dir: Path, write_changeset):
        source = MigrationSource(migrations_dir)
        assert source.list_available() == []
        write_changeset("001_init.sql", "SELECT 1;")
        assert [c.name for c in source.list_available()] == ["001_init.sql"]

    def test_sort_key_is_name(self):
        assert changeset_sort_key("001_init.sql") == "001_init.sql"


class TestReadBody:
    def test_reads_utf8(self, write_changeset):
        path = write_changeset("001_init.sql", "INSERT INTO categorias (nome) VALUES ('Alimentação');")
        assert "Alimentação" in Changeset("001_init.sql", path).read_body()

    def test_missing_file(self, migrations_dir: Path):
        changeset = Changeset("001_gone.sql", migrations_dir / "001_gone.sql")
        with pytest.raises(SourceReadError) as exc_info:
            changeset.read_body()
        assert exc_info.value.context.changeset == "001_gone.sql"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_invalid_encoding(self, migrations_dir: Path):
        path = migrations_dir / "001_latin1.sql"
        path.write_bytes(b"SELECT '\xe7\xe3o';")
        with pytest.raises(SourceReadError):
            Changeset(path.name, path).read_body()


class TestCreate:
    NOW = datetime(2025, 3, 1, 12, 30, 45, tzinfo=timezone.utc)

    def test_timestamped_slug_name(self, migrations_dir: Path):
        changeset = MigrationSource(migrations_dir).create("Add categorias table!", now=self.NOW)
        assert changeset.name == "20250301123045_add_categorias_table.sql"
        assert changeset.path.read_text(encoding="utf-8") == "-- Add categorias table!\n"

    def test_creates_directory(self, tmp_path: Path):
        changeset = MigrationSource(tmp_path / "new_dir").create("init", now=self.NOW)
        assert changeset.path.exists()

    def test_sorts_after_existing_numbered(self, migrations_dir: Path, write_changeset):
        write_changeset("001_initial_schema.sql", "SELECT 1;")
        source = MigrationSource(migrations_dir)
        source.create("next", now=self.NOW)
        names = [c.name for c in source.list_available()]
        assert names[-1] == "20250301123045_next.sql"

    def test_refuses_to_overwrite(self, migrations_dir: Path):
        source = MigrationSource(migrations_dir)
        source.create("init", now=self.NOW)
        with pytest.raises(SourceReadError, match="already exists"):
            source.create("init", now=self.NOW)

    def test_rejects_empty_slug(self, migrations_dir: Path):
        with pytest.raises(SourceReadError):
            MigrationSource(migrations_dir).create("!!!", now=self.NOW)
