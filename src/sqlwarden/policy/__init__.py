"""Policy engine: normalize, split, classify, authorize."""

from __future__ import annotations

import logging

from sqlwarden.diagnostics import codes
from sqlwarden.policy._types import (
    AuthorizationVerdict,
    ModePolicy,
    OperationKind,
    PolicyResult,
    QueryValidationError,
)
from sqlwarden.policy.classify import classify
from sqlwarden.policy.lexer import get_dialect, normalize, split_statements
from sqlwarden.policy.rules import evaluate
from sqlwarden.policy.tables import extract_tables

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 10_000
LOG_STATEMENT_LENGTH = 200

__all__ = [
    "AuthorizationVerdict",
    "ModePolicy",
    "OperationKind",
    "PolicyResult",
    "QueryValidationError",
    "preview_statement",
    "run_policy",
    "validate_query",
]


def preview_statement(statement: str) -> str:
    if len(statement) <= LOG_STATEMENT_LENGTH:
        return statement
    return statement[:LOG_STATEMENT_LENGTH] + "..."


def validate_query(sql: object, *, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Check raw input before any lexing. Returns the query unchanged."""
    if not isinstance(sql, str):
        raise QueryValidationError("query must be a string", codes.INVALID_REQUEST)
    if not sql.strip():
        raise QueryValidationError("query must not be empty", codes.EMPTY_QUERY)
    if len(sql) > max_length:
        raise QueryValidationError(
            f"query is {len(sql)} characters long; the maximum is {max_length}",
            codes.QUERY_TOO_LONG,
        )
    return sql


def run_policy(
    sql: str,
    *,
    mode: ModePolicy = ModePolicy.READ_ONLY,
    dialect: str | None = None,
) -> PolicyResult:
    """Run the authorization pipeline on a SQL string.

    Steps:
        1. Normalize (strip comments, collapse whitespace)
        2. Split into statement units
        3. Classify and authorize each unit in source order,
           stopping at the first rejection
        4. Extract referenced tables (audit only)

    Args:
        sql: The raw SQL string from the caller.
        mode: Active operating mode.
        dialect: Target engine (mysql, postgres, duckdb). Decides quoting and
            comment rules, and the sqlglot dialect for table extraction.
            None lexes with MySQL rules.

    Returns:
        PolicyResult with per-unit verdicts and the overall verdict.

    Raises:
        QueryValidationError: if nothing but comments and whitespace remains.
        ValueError: for an unknown dialect.
    """
    rules = get_dialect(dialect)
    normalized = normalize(sql, dialect=rules)
    statements = split_statements(normalized, dialect=rules)
    if not statements:
        raise QueryValidationError(
            "query contains no statements (only comments or terminators)",
            codes.EMPTY_QUERY,
        )

    verdicts: list[AuthorizationVerdict] = []
    overall: AuthorizationVerdict | None = None
    for statement in statements:
        kind = classify(statement, dialect=rules)
        verdict = evaluate(kind, mode)
        verdicts.append(verdict)
        logger.info(
            "Query %s [%s] (%s): %s",
            "ALLOWED" if verdict.allowed else "BLOCKED",
            mode.value,
            kind.value,
            preview_statement(statement),
        )
        if not verdict.allowed:
            overall = verdict
            break

    if overall is None:
        overall = AuthorizationVerdict(operation_kind=verdicts[0].operation_kind, allowed=True)

    return PolicyResult(
        original_sql=sql,
        statements=statements,
        verdicts=verdicts,
        verdict=overall,
        tables=extract_tables(statements, dialect=dialect),
    )
