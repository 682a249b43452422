"""Apply engine: computes the pending set and applies it, one transaction each.

Semantics:

- ``pending = available − applied`` by name, keeping the source's ascending
  order.
- Changesets run strictly one after another. For each: read the body, open
  a transaction, run the body as one batch, insert the ledger entry,
  commit.
- The first failure rolls back that changeset's transaction and aborts the
  run; later changesets are not attempted. Already-committed changesets
  stay recorded, so re-running resumes at the failed one.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum

from moneyflow.core.adapters import DatabaseAdapter
from moneyflow.core.errors import (
    ChangesetExecutionError,
    EmptyChangesetError,
    ErrorContext,
    MoneyFlowError,
)
from moneyflow.core.logging import get_logger
from moneyflow.migrations.ledger import LedgerStore
from moneyflow.migrations.source import Changeset, MigrationSource

logger = get_logger(__name__)

_COMMENTS = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)


def is_blank_sql(body: str) -> bool:
    """True when ``body`` holds nothing but whitespace and SQL comments."""
    return not _COMMENTS.sub("", body).strip()


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class ChangesetOutcome:
    """What happened to one attempted changeset."""

    name: str
    status: OutcomeStatus
    duration_ms: float = 0.0
    error: str | None = None


@dataclass
class MigrationResult:
    """Result of a migration run.

    ``pending`` is only filled by a dry run: the changesets that a real run
    would apply, in order.
    """

    outcomes: list[ChangesetOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    error: str | None = None
    error_category: str | None = None

    @property
    def applied(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status is OutcomeStatus.APPLIED]

    @property
    def failed(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def success(self) -> bool:
        return self.error is None and not self.failed


class ApplyEngine:
    """Applies pending changesets from ``source`` and records them in ``ledger``.

    Parameters
    ----------
    adapter
        Adapter owning the pool; supplies ``transaction()`` and ``execute_script()``.
    ledger
        Ledger store on the same adapter.
    source
        Where changesets come from.
    allow_empty
        Record whitespace/comment-only changesets as applied (default). When
        False they raise ``EmptyChangesetError`` before a transaction opens.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        ledger: LedgerStore,
        source: MigrationSource,
        *,
        allow_empty: bool = True,
    ) -> None:
        self._adapter = adapter
        self._ledger = ledger
        self._source = source
        self._allow_empty = allow_empty

    def plan(self) -> tuple[list[Changeset], list[str]]:
        """Return ``(pending, skipped)``: changesets to apply and names already applied."""
        applied = set(self._ledger.list_applied())
        pending: list[Changeset] = []
        skipped: list[str] = []
        for changeset in self._source.list_available():
            if changeset.name in applied:
                skipped.append(changeset.name)
            else:
                pending.append(changeset)
        return pending, skipped

    def apply_pending(self, result: MigrationResult | None = None) -> MigrationResult:
        """Apply every pending changeset in order, stopping at the first failure.

        ``result`` is filled in as the run progresses, so a caller that passes
        its own instance keeps the per-changeset report when this raises.
        The triggering ``MoneyFlowError`` propagates unchanged.
        """
        result = result if result is not None else MigrationResult()
        pending, skipped = self.plan()
        result.skipped.extend(skipped)

        if not pending:
            logger.info("migration.up_to_date", skipped=len(skipped))
            return result

        logger.info("migration.pending", count=len(pending), names=[c.name for c in pending])
        for changeset in pending:
            started = time.perf_counter()
            try:
                self.apply(changeset)
            except MoneyFlowError as exc:
                elapsed = (time.perf_counter() - started) * 1000
                result.outcomes.append(
                    ChangesetOutcome(changeset.name, OutcomeStatus.FAILED, elapsed, str(exc))
                )
                result.error = str(exc)
                logger.error("migration.failed", changeset=changeset.name, **exc.to_dict())
                raise
            elapsed = (time.perf_counter() - started) * 1000
            result.outcomes.append(ChangesetOutcome(changeset.name, OutcomeStatus.APPLIED, elapsed))
            logger.info("migration.applied", changeset=changeset.name, duration_ms=round(elapsed, 2))

        return result

    def apply(self, changeset: Changeset) -> None:
        """Run one changeset and its ledger insert in a single transaction."""
        body = changeset.read_body()
        blank = is_blank_sql(body)
        if blank and not self._allow_empty:
            raise EmptyChangesetError(
                changeset.name,
                context=ErrorContext(changeset=changeset.name, path=str(changeset.path)),
            )
        if blank:
            logger.warning("migration.empty_body", changeset=changeset.name)

        # Driver errors from the body or the commit; ledger failures arrive
        # already wrapped as StoreUnavailable.
        try:
            with self._adapter.transaction() as conn:
                if not blank:
                    self._adapter.execute_script(conn, body)
                self._ledger.record_applied(conn, changeset.name)
        except self._adapter.driver_errors as e:
            raise ChangesetExecutionError(
                changeset.name,
                context=ErrorContext(path=str(changeset.path)),
                cause=e,
            ) from e


__all__ = [
    "ApplyEngine",
    "ChangesetOutcome",
    "MigrationResult",
    "OutcomeStatus",
    "is_blank_sql",
]
