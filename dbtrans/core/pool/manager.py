"""
Connection pool behind one registered driver identifier.

Reuses connections instead of opening one per call. Caps how many
connections may be open at once (acquire blocks at the cap), keeps a bounded
number idle, and checks idle connections on checkout: max-age eviction and a
ping for connections that sat idle longer than the ping threshold.
"""

import logging
import threading
import time
from typing import Any, NamedTuple

from dbtrans.core.config import settings
from dbtrans.core.exceptions import DBConnectionError
from dbtrans.models import DriverEnum

from .connect import (
    MEMORY_DSN,
    close_quiet,
    connect,
    resolve_driver,
    shared_memory_uri,
)
from .health import health_check

_log = logging.getLogger(__name__)

_DEFAULT_MAX_IDLE = 2


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float  # time.monotonic() when last returned to pool


class ConnectionPool:
    """
    Pooled connections for one driver id.

    ``max_open <= 0`` means no limit on open connections; ``max_idle <= 0``
    means nothing is kept idle (every release closes the connection).

    A sqlite ``:memory:`` pool is always limited to one open connection:
    shared-cache table locks fail with SQLITE_LOCKED instead of waiting, so
    concurrent callers queue in ``acquire`` instead.
    """

    def __init__(self, driver_id: str | DriverEnum, dsn: str) -> None:
        self.driver = resolve_driver(driver_id)
        self._anchor: Any = None
        self._single_conn = False
        if self.driver == DriverEnum.SQLITE and dsn == MEMORY_DSN:
            # A plain :memory: db is private to one connection; share one
            # named db across the pool and keep it alive with an anchor.
            dsn = shared_memory_uri()
            self._anchor = connect(self.driver, dsn)
            self._single_conn = True
        self._dsn = dsn
        self._idle: list[_PoolEntry] = []
        self._in_use: dict[int, float] = {}  # id(conn) -> created_at
        self._num_open = 0
        self._max_open = 1 if self._single_conn else 0
        self._max_idle = 1 if self._single_conn else _DEFAULT_MAX_IDLE
        self._closed = False
        self._cond = threading.Condition(threading.Lock())
        self._max_age = float(settings.POOL_MAX_AGE_SEC)
        self._ping_idle = float(settings.POOL_PING_IDLE_SEC)

    @property
    def driver_id(self) -> str:
        return self.driver.value

    def set_limits(self, max_open: int, max_idle: int) -> None:
        """Apply pool limits; idle is capped by open when open is limited."""
        with self._cond:
            self._max_open = 1 if self._single_conn else max(0, max_open)
            self._max_idle = max(0, max_idle)
            if self._max_open > 0 and self._max_idle > self._max_open:
                self._max_idle = self._max_open
            excess = self._idle[self._max_idle :]
            del self._idle[self._max_idle :]
            self._num_open -= len(excess)
            self._cond.notify_all()
        for e in excess:
            close_quiet(e.conn)

    def acquire(self) -> Any:
        """Check out a healthy connection (idle or freshly opened)."""
        while True:
            entry: _PoolEntry | None = None
            with self._cond:
                while True:
                    if self._closed:
                        raise DBConnectionError(
                            "connection pool is closed", driver_id=self.driver_id
                        )
                    if self._idle:
                        entry = self._idle.pop()
                        break
                    if self._max_open <= 0 or self._num_open < self._max_open:
                        self._num_open += 1  # reserve the slot before connecting
                        break
                    self._cond.wait()

            if entry is None:
                try:
                    conn = connect(self.driver, self._dsn)
                except Exception:
                    self._forget()
                    raise
                with self._cond:
                    self._in_use[id(conn)] = time.monotonic()
                return conn

            if self._usable(entry):
                with self._cond:
                    self._in_use[id(entry.conn)] = entry.created_at
                return entry.conn
            close_quiet(entry.conn)
            self._forget()

    def release(self, conn: Any, *, discard: bool = False) -> None:
        """Return a connection to the pool, or close it (discard, pool full, expired)."""
        now = time.monotonic()
        with self._cond:
            created_at = self._in_use.pop(id(conn), None)
            if created_at is None:
                _log.warning("release of a connection not checked out from %s pool", self.driver_id)
                keep = False
            else:
                keep = (
                    not discard
                    and not self._closed
                    and len(self._idle) < self._max_idle
                    and (now - created_at) <= self._max_age
                )
                if keep:
                    self._idle.append(_PoolEntry(conn=conn, created_at=created_at, last_used=now))
                else:
                    self._num_open -= 1
                self._cond.notify()
        if not keep:
            close_quiet(conn)

    def ping(self) -> None:
        """Check out a connection, run SELECT 1, and raise DBConnectionError if unreachable."""
        try:
            conn = self.acquire()
        except DBConnectionError:
            raise
        except Exception as e:
            _log.error("Cannot open connection to %s: %s", self.driver_id, e, exc_info=True)
            raise DBConnectionError(
                f"cannot open connection: {e}", driver_id=self.driver_id
            ) from e
        ok = health_check(conn, self.driver)
        self.release(conn, discard=not ok)
        if not ok:
            _log.error("Ping failed for %s", self.driver_id)
            raise DBConnectionError("database is unreachable (ping failed)", driver_id=self.driver_id)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._cond:
            return {
                "open_connections": self._num_open,
                "idle_connections": len(self._idle),
                "in_use": len(self._in_use),
                "max_open": self._max_open,
                "max_idle": self._max_idle,
            }

    def close(self) -> None:
        """Close idle connections; in-use ones are closed when released."""
        with self._cond:
            self._closed = True
            entries = list(self._idle)
            self._idle.clear()
            self._num_open -= len(entries)
            self._cond.notify_all()
        for e in entries:
            close_quiet(e.conn)
        if self._anchor is not None:
            close_quiet(self._anchor)
            self._anchor = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _forget(self) -> None:
        """Give back an open-connection slot that no longer holds a connection."""
        with self._cond:
            self._num_open -= 1
            self._cond.notify()

    def _usable(self, entry: _PoolEntry) -> bool:
        now = time.monotonic()
        if (now - entry.created_at) > self._max_age:
            return False
        if (now - entry.last_used) > self._ping_idle and not health_check(entry.conn, self.driver):
            _log.info("Dropping dead idle connection from %s pool", self.driver_id)
            return False
        return True
