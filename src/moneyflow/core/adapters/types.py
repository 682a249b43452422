"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


@dataclass
class DatabaseConfig:
    """
    Configuration for a database connection.

    Different fields are used by different database types.
    """

    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # PostgreSQL
    dsn: str | None = None

    # Connection pool
    pool_size: int = 5

    # SSL (libpq sslmode): disable, allow, prefer, require, verify-ca, verify-full
    ssl_mode: str = "disable"

    connect_timeout: int = 10

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        """Connection target with any password masked, for logs."""
        if self.db_type is DatabaseType.SQLITE:
            return self.path or ":memory:"
        return _mask_password(self.dsn or "")


def _mask_password(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, _, location = rest.rpartition("@")
    user, has_password, _ = credentials.partition(":")
    if not has_password:
        return url
    return f"{scheme}://{user}:***@{location}"


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
