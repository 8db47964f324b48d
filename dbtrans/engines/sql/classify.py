"""
Lexical statement classification: the first whitespace-delimited token
decides whether a statement is a read or a write. The body is never parsed.
"""

from collections.abc import Iterable

from dbtrans.core.config import settings
from dbtrans.models import StatementKind


def leading_keyword(sql: str) -> str:
    """First whitespace-delimited token, lowercased ('' when there is none)."""
    parts = sql.split(None, 1)
    return parts[0].lower() if parts else ""


def classify_statement(
    sql: str, read_keywords: Iterable[str] | None = None
) -> StatementKind:
    """
    READ if the leading keyword is a read keyword (``select``/``sel`` unless
    configured otherwise), WRITE for any other keyword, UNKNOWN for an empty
    or whitespace-only statement.
    """
    first = leading_keyword(sql)
    if not first:
        return StatementKind.UNKNOWN
    keywords = read_keywords if read_keywords is not None else settings.READ_KEYWORDS
    if first in {k.lower() for k in keywords}:
        return StatementKind.READ
    return StatementKind.WRITE
