"""
Transaction handle: one transaction on one pooled connection, scoped to a
single executor call.

Used as a context manager. Leaving the block without a commit rolls back, so
every exit path ends committed or rolled back, and the connection goes back
to the pool (or is discarded when its state is unknown).
"""

import logging
from enum import Enum
from types import TracebackType
from typing import Any

from dbtrans.core.exceptions import BeginError, CommitError
from dbtrans.core.pool import ConnectionPool, begin, execute, rollback

_log = logging.getLogger(__name__)


class TxState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    def __init__(self, pool: ConnectionPool, conn: Any, statement: str | None = None) -> None:
        self._pool = pool
        self._conn = conn
        self._statement = statement
        self.state = TxState.ACTIVE

    @classmethod
    def begin(cls, pool: ConnectionPool, statement: str | None = None) -> "Transaction":
        """Check out a connection and open a transaction on it (BeginError on failure)."""
        try:
            conn = pool.acquire()
        except Exception as e:
            _log.error("Error in Begin Transaction (no connection): %s", e, exc_info=True)
            raise BeginError(
                f"cannot check out a connection: {e}",
                driver_id=pool.driver_id,
                statement=statement,
            ) from e
        try:
            begin(conn, pool.driver)
        except Exception as e:
            _log.error("Error in Begin Transaction: %s", e, exc_info=True)
            pool.release(conn, discard=True)
            raise BeginError(
                f"cannot begin transaction: {e}",
                driver_id=pool.driver_id,
                statement=statement,
            ) from e
        return cls(pool, conn, statement)

    @property
    def active(self) -> bool:
        return self.state == TxState.ACTIVE

    def execute(self, sql: str, params: list | tuple | None = None) -> Any:
        """Run *sql* inside this transaction and return the cursor."""
        self._require_active()
        return execute(self._conn, sql, params)

    def commit(self) -> None:
        """Commit and hand the connection back; CommitError on failure."""
        self._require_active()
        try:
            self._conn.commit()
        except Exception as e:
            _log.error("Error committing transaction: %s", e, exc_info=True)
            self._finish(TxState.ROLLED_BACK, try_rollback=True, discard=True)
            raise CommitError(
                f"commit failed: {e}",
                driver_id=self._pool.driver_id,
                statement=self._statement,
            ) from e
        self._finish(TxState.COMMITTED)

    def rollback(self) -> None:
        """Roll back and hand the connection back. Never raises; failures are logged."""
        if not self.active:
            return
        self._finish(TxState.ROLLED_BACK, try_rollback=True)

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.active:
            self.rollback()

    def _finish(
        self, state: TxState, *, try_rollback: bool = False, discard: bool = False
    ) -> None:
        if try_rollback:
            try:
                rollback(self._conn, self._pool.driver)
            except Exception as e:
                _log.error("Rollback failed on %s: %s", self._pool.driver_id, e, exc_info=True)
                discard = True
        self.state = state
        self._pool.release(self._conn, discard=discard)
        self._conn = None

    def _require_active(self) -> None:
        if not self.active:
            raise RuntimeError(f"transaction already {self.state.value}")
