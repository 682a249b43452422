"""
Core primitives for the migration runner: errors, logging, settings,
SQL dialects and database adapters.
"""

from moneyflow.core.errors import (
    ChangesetExecutionError,
    ConfigError,
    EmptyChangesetError,
    ErrorCategory,
    ErrorContext,
    MoneyFlowError,
    SourceReadError,
    StoreUnavailable,
)

__all__ = [
    "ChangesetExecutionError",
    "ConfigError",
    "EmptyChangesetError",
    "ErrorCategory",
    "ErrorContext",
    "MoneyFlowError",
    "SourceReadError",
    "StoreUnavailable",
]
