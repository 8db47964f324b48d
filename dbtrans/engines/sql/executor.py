"""
Transaction-wrapped statement execution against a registered driver id.

- query_fetch: reads (SELECT/SEL) -> list[ResultColumn], every value as text
- exec: everything else -> affected row count

Each call classifies the statement first, then begins its own transaction,
runs the statement, and commits. Any failure before commit rolls back; a
caller gets either the full result or a typed error, never partial rows.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from dbtrans.core.config import settings
from dbtrans.core.exceptions import (
    ExecutionError,
    InvalidOperationError,
    IterationError,
    MetadataError,
    RowCountError,
    ScanError,
)
from dbtrans.core.pool import close_quiet
from dbtrans.engines.sql.classify import classify_statement
from dbtrans.engines.sql.transaction import Transaction
from dbtrans.models import ResultColumn, StatementKind

if TYPE_CHECKING:
    from dbtrans.core.registry import ConnectionRegistry

_log = logging.getLogger(__name__)


def to_text(value: Any) -> str:
    """
    Text form of a column value. SQL NULL has no text form and raises
    ValueError; so do bytes that are not valid UTF-8.
    """
    if value is None:
        raise ValueError("NULL cannot be represented as text")
    if isinstance(value, str):
        return value
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).decode("utf-8")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float | Decimal):
        return str(value)
    if isinstance(value, datetime.datetime | datetime.date | datetime.time):
        return value.isoformat()
    return str(value)


def _column_names(cursor: Any) -> list[str]:
    desc = cursor.description
    if not desc:
        raise ValueError("statement returned no result columns")
    return [str(d[0]) for d in desc]


class Database:
    """
    Handle to a registered driver id, returned by ``ConnectionRegistry.open``.

    Holds no connection itself: every call looks the pool up in the registry
    and runs in a fresh transaction.
    """

    def __init__(self, registry: ConnectionRegistry, driver_id: str) -> None:
        self._registry = registry
        self.driver_id = driver_id

    def __repr__(self) -> str:
        return f"Database(driver_id={self.driver_id!r})"

    def query_fetch(self, statement: str, *params: Any) -> list[ResultColumn]:
        """
        Run a read statement and return one ResultColumn per result column.

        ``params`` bind positionally in the driver's paramstyle; none means the
        statement is executed without a parameter list.
        """
        pool = self._registry.get(self.driver_id)
        self._require_kind(statement, StatementKind.READ, "use exec for statements that are not reads")

        with Transaction.begin(pool, statement) as tx:
            cur = self._execute(tx, statement, params)
            try:
                columns = self._fetch_columns(cur, statement)
            except Exception:
                close_quiet(cur)
                raise
            try:
                cur.close()
            except Exception as e:
                _log.error("Error closing the result set: %s", e, exc_info=True)
                raise IterationError(
                    f"cannot close result set: {e}",
                    driver_id=self.driver_id,
                    statement=statement,
                ) from e
            tx.commit()
        return columns

    def exec(self, statement: str, *params: Any) -> int:
        """Run a write statement and return the number of affected rows."""
        pool = self._registry.get(self.driver_id)
        self._require_kind(statement, StatementKind.WRITE, "use query_fetch for reads")

        with Transaction.begin(pool, statement) as tx:
            cur = self._execute(tx, statement, params)
            try:
                rc = cur.rowcount
                if rc is not None and not isinstance(rc, int):
                    raise TypeError(f"driver reported rowcount {rc!r}")
            except Exception as e:
                _log.error("Error in fetching rows affected: %s", e, exc_info=True)
                raise RowCountError(
                    f"cannot read affected row count: {e}",
                    driver_id=self.driver_id,
                    statement=statement,
                ) from e
            finally:
                close_quiet(cur)
            tx.commit()
        # DB-API reports -1 (or None) when there is no count, e.g. DDL.
        return rc if rc is not None and rc >= 0 else 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_kind(self, statement: str, expected: StatementKind, hint: str) -> None:
        kind = classify_statement(statement)
        if kind == expected:
            return
        if kind == StatementKind.UNKNOWN:
            msg = "empty statement cannot be classified"
        else:
            msg = f"invalid call for a {kind.value} statement, {hint}"
        _log.warning("%s: %r", msg, statement)
        raise InvalidOperationError(msg, driver_id=self.driver_id, statement=statement)

    def _execute(self, tx: Transaction, statement: str, params: tuple[Any, ...]) -> Any:
        try:
            return tx.execute(statement, params)
        except Exception as e:
            _log.error("Error executing the statement: %s. SQL: %s", e, statement, exc_info=True)
            raise ExecutionError(
                f"statement failed: {e}",
                driver_id=self.driver_id,
                statement=statement,
            ) from e

    def _fetch_columns(self, cur: Any, statement: str) -> list[ResultColumn]:
        try:
            names = _column_names(cur)
        except Exception as e:
            _log.error("Error returning query metadata: %s", e, exc_info=True)
            raise MetadataError(
                f"cannot read result columns: {e}",
                driver_id=self.driver_id,
                statement=statement,
            ) from e
        columns = [ResultColumn(name=n) for n in names]

        row_no = 0
        while True:
            try:
                batch = cur.fetchmany(settings.FETCH_BATCH_SIZE)
            except Exception as e:
                _log.error("Error iterating the rows: %s", e, exc_info=True)
                raise IterationError(
                    f"cannot fetch rows: {e}",
                    driver_id=self.driver_id,
                    statement=statement,
                ) from e
            if not batch:
                break
            for row in batch:
                try:
                    vals = [to_text(v) for v in row]
                    if len(vals) != len(columns):
                        raise ValueError(f"row has {len(vals)} values for {len(columns)} columns")
                except (ValueError, TypeError) as e:
                    _log.error("Error scanning row %d: %s", row_no, e)
                    raise ScanError(
                        f"cannot scan row {row_no}: {e}",
                        driver_id=self.driver_id,
                        statement=statement,
                    ) from e
                for col, val in zip(columns, vals, strict=True):
                    col.values.append(val)
                row_no += 1
        return columns
