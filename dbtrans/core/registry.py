"""
Connection registry: one pooled connection handle per driver identifier.

Lookups take the read side of a reader/writer lock and may run together;
registration takes the write side. Entries are never removed.

Applications normally build one ``ConnectionRegistry`` at startup and pass it
around; ``get_registry()`` / ``open_database()`` offer a process-wide default
for callers that don't.
"""

import logging
import threading

from dbtrans.core.exceptions import DBConnectionError, NotRegisteredError
from dbtrans.core.pool import ConnectionPool
from dbtrans.core.rwlock import RWLock
from dbtrans.engines.sql.executor import Database
from dbtrans.models import DriverEnum

_log = logging.getLogger(__name__)


def _key(driver_id: str | DriverEnum) -> str:
    return driver_id.value if isinstance(driver_id, DriverEnum) else driver_id


class ConnectionRegistry:
    """driver_id -> ConnectionPool, safe for concurrent open/lookup."""

    def __init__(self) -> None:
        self._pools: dict[str, ConnectionPool] = {}
        self._lock = RWLock()

    def open(
        self, driver_id: str | DriverEnum, dsn: str, max_pool_size: int
    ) -> Database:
        """
        Register (or reuse) the pool for *driver_id* and return a Database handle.

        - Already registered: ping the existing pool; *dsn* and *max_pool_size*
          are ignored.
        - Otherwise: open a pool on *dsn*, set max open = max idle =
          *max_pool_size* (0 = unlimited open, nothing kept idle), ping it,
          then register it. If another thread registered the id meanwhile,
          that pool is kept and ours is closed.

        Raises DBConnectionError when the driver is unsupported, the
        connection cannot be opened, or the ping fails. A failed open never
        registers anything.
        """
        if max_pool_size < 0:
            raise ValueError("max_pool_size must be >= 0")
        key = _key(driver_id)

        with self._lock.read():
            existing = self._pools.get(key)
        if existing is not None:
            existing.ping()
            return Database(self, key)

        try:
            pool = ConnectionPool(key, dsn)
        except Exception as e:
            _log.error("Cannot open connection to the database (%s): %s", key, e)
            raise DBConnectionError(f"cannot open connection: {e}", driver_id=key) from e
        pool.set_limits(max_pool_size, max_pool_size)
        try:
            pool.ping()
        except DBConnectionError:
            pool.close()
            raise

        with self._lock.write():
            registered = self._pools.setdefault(key, pool)
        if registered is not pool:
            _log.info("%s was registered concurrently; keeping the existing pool", key)
            pool.close()
        else:
            _log.info("Registered %s connection pool (max_pool_size=%d)", key, max_pool_size)
        return Database(self, key)

    def get(self, driver_id: str | DriverEnum) -> ConnectionPool:
        """Return the registered pool; NotRegisteredError if never opened."""
        key = _key(driver_id)
        with self._lock.read():
            pool = self._pools.get(key)
        if pool is None:
            _log.error("Connection not open: %s", key)
            raise NotRegisteredError("connection not open", driver_id=key)
        return pool

    def drivers(self) -> list[str]:
        with self._lock.read():
            return sorted(self._pools)

    def __contains__(self, driver_id: object) -> bool:
        if not isinstance(driver_id, str):
            return False
        with self._lock.read():
            return _key(driver_id) in self._pools

    def stats(self) -> dict[str, dict[str, int]]:
        """Pool statistics per registered driver id."""
        with self._lock.read():
            pools = dict(self._pools)
        return {k: p.stats() for k, p in sorted(pools.items())}

    def health_check(self) -> tuple[bool, list[str]]:
        """
        Ping every registered pool.
        Returns (ok, failed driver ids); ok is False if any ping fails.
        """
        with self._lock.read():
            pools = dict(self._pools)
        failures: list[str] = []
        for key, pool in sorted(pools.items()):
            try:
                pool.ping()
            except DBConnectionError:
                failures.append(key)
        return (len(failures) == 0, failures)


_registry: ConnectionRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ConnectionRegistry:
    """Return the default ConnectionRegistry (thread-safe double-checked locking)."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ConnectionRegistry()
    return _registry


def open_database(
    driver_id: str | DriverEnum, dsn: str, max_pool_size: int
) -> Database:
    """``ConnectionRegistry.open`` on the default registry."""
    return get_registry().open(driver_id, dsn, max_pool_size)
