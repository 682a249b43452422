"""Runner: one migration run from connect to release.

::

    settings ─► adapter (pool) ─► ledger.ensure_table()
                    │
                    ├─► engine.apply_pending()  (sequential, fail-fast)
                    │
                    └─► pool released on every exit path

Migrations are an all-or-nothing preflight step for the application:
``run_migrations`` returns exit code 0 only when the database is at the
latest migration state, and 1 for any failure. The caller turns that into
the process exit status.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from moneyflow.core.adapters import DatabaseAdapter
from moneyflow.core.connection import adapter_from_settings
from moneyflow.core.errors import MoneyFlowError, categorize_error
from moneyflow.core.logging import LogContext, get_logger
from moneyflow.core.settings import MigrateSettings
from moneyflow.migrations.engine import ApplyEngine, MigrationResult
from moneyflow.migrations.ledger import LedgerEntry, LedgerStore
from moneyflow.migrations.seed import apply_seed
from moneyflow.migrations.source import MigrationSource

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

AdapterFactory = Callable[[MigrateSettings], DatabaseAdapter]


@dataclass
class MigrationStatus:
    """Applied ledger entries and the names still pending."""

    applied: list[LedgerEntry] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)


class MigrationRunner:
    """Orchestrates one run against the database described by ``settings``.

    The adapter is created per call and closed before the call returns,
    whether it succeeds or raises.
    """

    def __init__(
        self,
        settings: MigrateSettings,
        *,
        adapter_factory: AdapterFactory = adapter_from_settings,
    ) -> None:
        self._settings = settings
        self._adapter_factory = adapter_factory

    def _components(self, adapter: DatabaseAdapter) -> tuple[LedgerStore, ApplyEngine]:
        ledger = LedgerStore(adapter, self._settings.ledger_table)
        source = MigrationSource(self._settings.migrations_dir)
        engine = ApplyEngine(
            adapter,
            ledger,
            source,
            allow_empty=self._settings.allow_empty_changesets,
        )
        return ledger, engine

    def run(self, *, dry_run: bool = False, result: MigrationResult | None = None) -> MigrationResult:
        """Ensure the ledger exists and apply every pending changeset.

        With ``dry_run`` the pending set is computed and logged but nothing
        is executed. Raises the first ``MoneyFlowError`` encountered.
        """
        result = result if result is not None else MigrationResult()
        adapter = self._adapter_factory(self._settings)
        logger.info(
            "runner.connecting",
            backend=adapter.db_type.value,
            target=adapter.config.describe(),
            migrations_dir=str(self._settings.migrations_dir),
        )
        with adapter:
            ledger, engine = self._components(adapter)
            ledger.ensure_table()
            if dry_run:
                pending, skipped = engine.plan()
                result.skipped.extend(skipped)
                result.pending.extend(c.name for c in pending)
                logger.info("runner.dry_run", pending=result.pending)
                return result
            return engine.apply_pending(result)

    def seed(self, path: Path | None = None) -> bool:
        """Run the seed file (default ``settings.seed_file``) in one transaction.

        Returns False when the file holds no statements. Raises the first
        ``MoneyFlowError`` encountered.
        """
        path = Path(path) if path is not None else self._settings.seed_file
        with self._adapter_factory(self._settings) as adapter:
            return apply_seed(adapter, path)

    def status(self) -> MigrationStatus:
        """Return applied entries and pending changeset names."""
        with self._adapter_factory(self._settings) as adapter:
            ledger, engine = self._components(adapter)
            ledger.ensure_table()
            pending, _ = engine.plan()
            return MigrationStatus(
                applied=ledger.entries(),
                pending=[c.name for c in pending],
            )


def run_migrations(
    settings: MigrateSettings,
    *,
    dry_run: bool = False,
    adapter_factory: AdapterFactory = adapter_from_settings,
) -> tuple[int, MigrationResult]:
    """Run migrations and return ``(exit_code, result)``; never raises.

    Failures are logged with the changeset name and underlying cause.
    """
    result = MigrationResult()
    runner = MigrationRunner(settings, adapter_factory=adapter_factory)

    with LogContext(run_id=uuid.uuid4().hex[:12]):
        try:
            runner.run(dry_run=dry_run, result=result)
        except MoneyFlowError as exc:
            if result.error is None:
                result.error = str(exc)
            result.error_category = categorize_error(exc).value
            logger.error("runner.failed", **exc.to_dict())
            return EXIT_FAILURE, result
        except Exception as exc:
            result.error = f"{type(exc).__name__}: {exc}"
            result.error_category = categorize_error(exc).value
            logger.exception("runner.crashed", error=result.error, category=result.error_category)
            return EXIT_FAILURE, result

        logger.info(
            "runner.finished",
            applied=result.applied,
            skipped=len(result.skipped),
            dry_run=dry_run,
        )
        return EXIT_OK, result


__all__ = [
    "EXIT_FAILURE",
    "EXIT_OK",
    "MigrationRunner",
    "MigrationStatus",
    "run_migrations",
]
