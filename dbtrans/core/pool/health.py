"""
Connection liveness check.
"""

from typing import Any

from dbtrans.models import DriverEnum

from .connect import close_quiet, execute, rollback


def health_check(conn: Any, driver_id: str | DriverEnum) -> bool:
    """
    Run SELECT 1 and return True if no exception. Every supported driver accepts SELECT 1.
    """
    cur = None
    try:
        cur = execute(conn, "SELECT 1")
        cur.fetchone()
        # psycopg/pymysql opened an implicit transaction for the SELECT
        rollback(conn, driver_id)
        return True
    except Exception:
        return False
    finally:
        if cur is not None:
            close_quiet(cur)
