"""SQL migration runner.

Reads ``.sql`` changesets from the migrations directory, tracks applied
ones in the ledger table, and applies pending ones in filename order, one
transaction per changeset.

Modules
-------
ledger    LedgerStore: ensure_table() / list_applied() / record_applied()
source    MigrationSource: list_available() / create()
engine    ApplyEngine: plan() / apply_pending()
runner    MigrationRunner (run / status / seed) and run_migrations() (exit code)
seed      apply_seed(): one seed file, one transaction, not recorded
"""

from moneyflow.migrations.engine import ApplyEngine, ChangesetOutcome, MigrationResult
from moneyflow.migrations.ledger import LedgerEntry, LedgerStore
from moneyflow.migrations.runner import MigrationRunner, MigrationStatus, run_migrations
from moneyflow.migrations.source import Changeset, MigrationSource, changeset_sort_key

__all__ = [
    "ApplyEngine",
    "Changeset",
    "ChangesetOutcome",
    "LedgerEntry",
    "LedgerStore",
    "MigrationResult",
    "MigrationRunner",
    "MigrationSource",
    "MigrationStatus",
    "changeset_sort_key",
    "run_migrations",
]
