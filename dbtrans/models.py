"""
Shared types: supported drivers, statement kinds, and the column-oriented
result shape returned by ``query_fetch``.
"""

from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field


class DriverEnum(str, Enum):
    """Supported driver identifiers (sqlite3, postgres, mysql, trino)."""

    SQLITE = "sqlite3"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"


class StatementKind(str, Enum):
    """Lexical classification of a statement by its leading keyword."""

    READ = "read"
    WRITE = "write"
    UNKNOWN = "unknown"


class ResultColumn(BaseModel):
    """One column of a read result; every value is already text."""

    name: str
    values: list[str] = Field(default_factory=list)


class DBInterface(Protocol):
    """What callers of an opened database rely on."""

    def exec(self, statement: str, *params: Any) -> int: ...

    def query_fetch(self, statement: str, *params: Any) -> list[ResultColumn]: ...
