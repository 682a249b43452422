"""
Structured error types for the migration runner.

Every failure the runner can report is a ``MoneyFlowError`` carrying a
category, structured context (which changeset, which file, which table)
and the chained driver/OS exception that caused it. The runner logs
``error.to_dict()`` and exits non-zero; nothing here is retried.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       MoneyFlowError                          │
        │            (category, context, cause)                         │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  StoreUnavailable     SourceReadError     ChangesetExecution- │
        │  (DATABASE)           (SOURCE)            Error (EXECUTION)   │
        │                            │                                  │
        │                       EmptyChangesetError                     │
        │                                                               │
        │  ConfigError (CONFIG)                                         │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Chaining a driver error:

    >>> try:
    ...     raise RuntimeError("syntax error at or near 'CREAT'")
    ... except RuntimeError as e:
    ...     err = ChangesetExecutionError("002_add_col.sql", cause=e)
    >>> err.context.changeset
    '002_add_col.sql'
    >>> err.to_dict()["category"]
    'EXECUTION'

Tags:
    error-handling, exception-hierarchy, error-context, migrations

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    DATABASE = "DATABASE"      # Connection, ledger table, privileges
    SOURCE = "SOURCE"          # Migrations directory, changeset files
    EXECUTION = "EXECUTION"    # Changeset SQL failed
    CONFIG = "CONFIG"          # Invalid settings, missing driver
    INTERNAL = "INTERNAL"      # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields end up in ``to_dict()``; anything without a
    dedicated field goes into ``metadata``.
    """

    changeset: str | None = None
    path: str | None = None
    table: str | None = None
    backend: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["changeset", "path", "table", "backend"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MoneyFlowError(Exception):
    """
    Base exception for all migration runner errors.

    Subclasses set ``default_category``. When ``cause`` is given it is also
    set as ``__cause__`` so tracebacks show the original driver error.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MoneyFlowError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceReadError("unreadable").with_context(path=str(p))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# LEDGER / CONNECTION ERRORS
# =============================================================================


class StoreUnavailable(MoneyFlowError):
    """Connection or ledger-table operation failed (network, auth, permissions)."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceReadError(MoneyFlowError):
    """Migrations directory missing or a changeset file unreadable."""

    default_category = ErrorCategory.SOURCE


class EmptyChangesetError(SourceReadError):
    """Changeset body is empty or whitespace-only and empty bodies are disallowed."""

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(f"Changeset {name} has an empty body", **kwargs)
        self.context.changeset = name


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class ChangesetExecutionError(MoneyFlowError):
    """A changeset's SQL failed; its transaction was rolled back."""

    default_category = ErrorCategory.EXECUTION

    def __init__(self, name: str, message: str | None = None, **kwargs: Any):
        cause = kwargs.get("cause")
        if message is None:
            message = f"Changeset {name} failed" + (f": {cause}" if cause is not None else "")
        super().__init__(message, **kwargs)
        self.changeset = name
        self.context.changeset = name


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(MoneyFlowError):
    """Configuration error. Must be fixed before re-running."""

    default_category = ErrorCategory.CONFIG


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, MoneyFlowError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.SOURCE
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MoneyFlowError",
    "StoreUnavailable",
    "SourceReadError",
    "EmptyChangesetError",
    "ChangesetExecutionError",
    "ConfigError",
    "categorize_error",
]
