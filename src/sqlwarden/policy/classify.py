"""Classify SQL statements by their leading keyword."""

from __future__ import annotations

from sqlwarden.policy._types import OperationKind
from sqlwarden.policy.lexer import DEFAULT_DIALECT, Dialect, TokenKind, tokenize

KEYWORDS: dict[str, OperationKind] = {
    "SELECT": OperationKind.SELECT,
    "INSERT": OperationKind.INSERT,
    "UPDATE": OperationKind.UPDATE,
    "DELETE": OperationKind.DELETE,
    "REPLACE": OperationKind.REPLACE,
    "CREATE": OperationKind.CREATE,
    "ALTER": OperationKind.ALTER,
    "DROP": OperationKind.DROP,
    "TRUNCATE": OperationKind.TRUNCATE,
    # START TRANSACTION / BEGIN [WORK]
    "START": OperationKind.BEGIN_TRANSACTION,
    "BEGIN": OperationKind.BEGIN_TRANSACTION,
    "COMMIT": OperationKind.COMMIT,
    "ROLLBACK": OperationKind.ROLLBACK,
    "SAVEPOINT": OperationKind.SAVEPOINT,
    "GRANT": OperationKind.GRANT,
    "REVOKE": OperationKind.REVOKE,
    "FLUSH": OperationKind.FLUSH,
    "KILL": OperationKind.KILL,
    # LOAD DATA [LOCAL] INFILE
    "LOAD": OperationKind.LOAD_DATA,
    "SHOW": OperationKind.SHOW,
    "DESCRIBE": OperationKind.DESCRIBE,
    "DESC": OperationKind.DESCRIBE,
    "EXPLAIN": OperationKind.EXPLAIN,
    "USE": OperationKind.USE,
    "SET": OperationKind.SET,
}

CTE_INTRODUCER = "WITH"
_CTE_WRITE_KEYWORDS = frozenset({"INSERT", "UPDATE", "DELETE"})
_CTE_READ_KEYWORD = "SELECT"


def _leading_keyword(statement: str, *, dialect: Dialect) -> tuple[str, list[str]]:
    """Return the uppercased first token and the bare words that follow it.

    The first token only counts as a keyword when it is a bare word; a
    statement opening with ``(`` or a quoted name has no keyword.
    """
    first = ""
    rest: list[str] = []
    for token in tokenize(statement, dialect=dialect):
        if token.kind in (TokenKind.WHITESPACE, TokenKind.COMMENT):
            continue
        if not first and not rest:
            if token.kind is not TokenKind.WORD:
                return "", []
            first = token.text.upper()
            continue
        if token.kind is TokenKind.WORD:
            rest.append(token.text.upper())
    return first, rest


def _resolve_cte(following: list[str]) -> str:
    """Pick the keyword that decides a WITH statement.

    A write keyword anywhere after WITH wins (writable CTEs such as
    ``WITH d AS (DELETE ... RETURNING *) SELECT ...``); otherwise the
    statement reads.
    """
    for word in following:
        if word in _CTE_WRITE_KEYWORDS:
            return word
    if _CTE_READ_KEYWORD in following:
        return _CTE_READ_KEYWORD
    return CTE_INTRODUCER


def classify(statement: str, *, dialect: Dialect = DEFAULT_DIALECT) -> OperationKind:
    """Classify one statement unit. Total: unrecognized input is UNKNOWN."""
    keyword, following = _leading_keyword(statement, dialect=dialect)
    if keyword == CTE_INTRODUCER:
        keyword = _resolve_cte(following)
    return KEYWORDS.get(keyword, OperationKind.UNKNOWN)
