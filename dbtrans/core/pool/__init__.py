"""
DB connections and the connection pool behind each registered driver id.

No driver layer: sqlite3 is stdlib; psycopg, pymysql and trino are installed via pip.
"""

from .connect import begin, close_quiet, connect, execute, resolve_driver, rollback
from .health import health_check
from .manager import ConnectionPool

__all__ = [
    "connect",
    "begin",
    "rollback",
    "execute",
    "close_quiet",
    "resolve_driver",
    "health_check",
    "ConnectionPool",
]
