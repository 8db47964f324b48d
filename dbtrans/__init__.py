"""
dbtrans: named connection pools with transaction-wrapped exec/query.

    db = dbtrans.open("sqlite3", ":memory:", 5)
    db.exec("CREATE TABLE t(a INT)")
    db.exec("INSERT INTO t VALUES (?)", 1)
    db.query_fetch("SELECT a FROM t")  # [ResultColumn(name='a', values=['1'])]
"""

from dbtrans.core.exceptions import (
    BeginError,
    CommitError,
    DBConnectionError,
    DBTransError,
    ExecutionError,
    InvalidOperationError,
    IterationError,
    MetadataError,
    NotRegisteredError,
    RowCountError,
    ScanError,
)
from dbtrans.core.registry import ConnectionRegistry, get_registry, open_database
from dbtrans.engines.sql import Database, classify_statement
from dbtrans.models import DBInterface, DriverEnum, ResultColumn, StatementKind

open = open_database

__version__ = "0.1.0"

__all__ = [
    "open_database",
    "get_registry",
    "ConnectionRegistry",
    "Database",
    "DBInterface",
    "classify_statement",
    "DriverEnum",
    "ResultColumn",
    "StatementKind",
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
