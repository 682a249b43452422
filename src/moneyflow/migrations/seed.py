"""Seed data: one SQL file run in a single transaction, never recorded.

Seeds load reference or demo rows after the schema is current. Unlike
changesets they are not tracked in the ledger; running the same file twice
runs it twice, so seed SQL should guard its own inserts. The file must not
carry its own ``BEGIN``/``COMMIT``: the adapter opens and closes the
transaction around it.
"""

from __future__ import annotations

import time
from pathlib import Path

from moneyflow.core.adapters import DatabaseAdapter
from moneyflow.core.errors import ChangesetExecutionError, ErrorContext, SourceReadError
from moneyflow.core.logging import get_logger
from moneyflow.migrations.engine import is_blank_sql
from moneyflow.migrations.source import Changeset

logger = get_logger(__name__)


def apply_seed(adapter: DatabaseAdapter, path: Path) -> bool:
    """Run the seed file at ``path``; return False when it holds no statements.

    Raises ``SourceReadError`` when the file is missing or unreadable and
    ``ChangesetExecutionError`` when its SQL fails, after rolling back.
    """
    if not path.is_file():
        raise SourceReadError(
            f"Seed file not found: {path}",
            context=ErrorContext(path=str(path)),
        )
    seed = Changeset(name=path.name, path=path)
    body = seed.read_body()
    if is_blank_sql(body):
        logger.warning("seed.empty_body", file=seed.name)
        return False

    started = time.perf_counter()
    try:
        with adapter.transaction() as conn:
            adapter.execute_script(conn, body)
    except adapter.driver_errors as e:
        logger.error("seed.failed", file=seed.name, error=str(e))
        raise ChangesetExecutionError(
            seed.name,
            f"Seed {seed.name} failed: {e}",
            context=ErrorContext(path=str(path)),
            cause=e,
        ) from e

    elapsed = (time.perf_counter() - started) * 1000
    logger.info("seed.applied", file=seed.name, duration_ms=round(elapsed, 2))
    return True


__all__ = ["apply_seed"]
