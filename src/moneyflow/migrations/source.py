"""Migration source: discovers ``.sql`` changesets in a directory.

Changesets are applied in ascending ``changeset_sort_key`` order, which is
plain lexicographic order of the file name. File names must therefore
encode sequence: zero-padded numbers (``001_init.sql``) or sortable UTC
timestamps (``20250301120000_add_categories.sql``, what ``create()``
writes). ``10_x.sql`` sorts before ``9_x.sql``; pad your numbers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from moneyflow.core.errors import ErrorContext, SourceReadError
from moneyflow.core.logging import get_logger

logger = get_logger(__name__)

CHANGESET_EXTENSION = ".sql"


def changeset_sort_key(name: str) -> str:
    """Sort key for changeset names: the name itself, compared lexicographically."""
    return name


@dataclass(frozen=True)
class Changeset:
    """A versioned SQL file. The ledger key is ``name`` (base name with extension)."""

    name: str
    path: Path

    def read_body(self) -> str:
        """Read the SQL body from disk. Raises ``SourceReadError``."""
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(
                f"Cannot read changeset {self.name}: {e}",
                context=ErrorContext(changeset=self.name, path=str(self.path)),
                cause=e,
            ) from e


class MigrationSource:
    """Enumerates available changesets. Re-reads the directory on every call."""

    def __init__(self, directory: Path | str, extension: str = CHANGESET_EXTENSION) -> None:
        self._directory = Path(directory)
        self._extension = extension

    @property
    def directory(self) -> Path:
        return self._directory

    def list_available(self) -> list[Changeset]:
        """Return changesets in the directory, sorted ascending by name."""
        if not self._directory.is_dir():
            raise SourceReadError(
                f"Migrations directory not found: {self._directory}",
                context=ErrorContext(path=str(self._directory)),
            )
        try:
            entries = list(self._directory.iterdir())
        except OSError as e:
            raise SourceReadError(
                f"Cannot list migrations directory {self._directory}: {e}",
                context=ErrorContext(path=str(self._directory)),
                cause=e,
            ) from e

        changesets = [
            Changeset(name=entry.name, path=entry)
            for entry in entries
            if entry.suffix == self._extension and entry.is_file()
        ]
        changesets.sort(key=lambda c: changeset_sort_key(c.name))
        return changesets

    def create(self, description: str, *, now: datetime | None = None) -> Changeset:
        """Write a new empty changeset named ``<UTC timestamp>_<slug>.sql``."""
        slug = re.sub(r"[^a-z0-9]+", "_", description.lower()).strip("_")
        if not slug:
            raise SourceReadError(f"Invalid changeset description: {description!r}")

        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
        name = f"{stamp}_{slug}{self._extension}"
        path = self._directory / name

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with path.open("x", encoding="utf-8") as fh:
                fh.write(f"-- {description}\n")
        except FileExistsError as e:
            raise SourceReadError(
                f"Changeset already exists: {name}",
                context=ErrorContext(changeset=name, path=str(path)),
                cause=e,
            ) from e
        except OSError as e:
            raise SourceReadError(
                f"Cannot create changeset {name}: {e}",
                context=ErrorContext(changeset=name, path=str(path)),
                cause=e,
            ) from e

        logger.info("changeset.created", changeset=name, path=str(path))
        return Changeset(name=name, path=path)


__all__ = ["CHANGESET_EXTENSION", "Changeset", "MigrationSource", "changeset_sort_key"]
