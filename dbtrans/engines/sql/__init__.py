"""
Statement classification, transaction handle, and the transactional executor.

Exports: classify_statement, Transaction, Database.
"""

from dbtrans.engines.sql.classify import classify_statement
from dbtrans.engines.sql.executor import Database
from dbtrans.engines.sql.transaction import Transaction

__all__ = [
    "classify_statement",
    "Transaction",
    "Database",
]
