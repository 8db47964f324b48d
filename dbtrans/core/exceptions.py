"""
Failure taxonomy for registry and executor calls.

Every error carries the driver identifier it concerns and, for executor
failures, the statement. The driver exception (if any) is chained as
``__cause__``.
"""

from __future__ import annotations


class DBTransError(Exception):
    """Base class for all dbtrans failures."""

    def __init__(
        self,
        message: str,
        *,
        driver_id: str | None = None,
        statement: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.driver_id = driver_id
        self.statement = statement

    def __str__(self) -> str:
        if self.driver_id:
            return f"[{self.driver_id}] {self.message}"
        return self.message


class DBConnectionError(DBTransError, ConnectionError):
    """The driver could not open a connection or the liveness ping failed."""


class NotRegisteredError(DBTransError, LookupError):
    """Operation attempted on a driver identifier that was never opened."""


class InvalidOperationError(DBTransError):
    """Statement classification does not match the entry point used."""


class BeginError(DBTransError):
    """Starting a transaction failed."""


class CommitError(DBTransError):
    """Committing a transaction failed."""


class ExecutionError(DBTransError):
    """The statement failed at the driver; the transaction was rolled back."""


class MetadataError(DBTransError):
    """Column names could not be read from the result."""


class ScanError(DBTransError):
    """A row value could not be converted to text."""


class IterationError(DBTransError):
    """Fetching rows or closing the result cursor failed."""


class RowCountError(DBTransError):
    """The driver could not report the affected row count."""


__all__ = [
    "DBTransError",
    "DBConnectionError",
    "NotRegisteredError",
    "InvalidOperationError",
    "BeginError",
    "CommitError",
    "ExecutionError",
    "MetadataError",
    "ScanError",
    "IterationError",
    "RowCountError",
]
