"""
CLI layer for the migration runner.

Argument parsing and terminal output only; the work happens in
``moneyflow.migrations``.

Entry point::

    moneyflow-migrate --help
"""

from moneyflow.cli.app import app

__all__ = ["app"]
