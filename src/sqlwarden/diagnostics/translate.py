"""Translate rejections and failures into Diagnostics.

Every failure that reaches the pipeline boundary goes through one of the two
entry points here, so the caller always gets a categorized, remediation
oriented message. Driver text is scrubbed of credentials before it is used.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from sqlwarden.adapters._base import AdapterError, QueryTimeout
from sqlwarden.diagnostics import codes
from sqlwarden.diagnostics.codes import DiagnosticCode
from sqlwarden.diagnostics.types import Diagnostic, ErrorCategory
from sqlwarden.policy._types import AuthorizationVerdict, QueryValidationError

MASK = "****"

_URL_CREDENTIALS = re.compile(r"(://[^:/@\s]+:)[^@\s]+(@)")
_PASSWORD_PAIR = re.compile(r"(?i)\b(password|passwd|pwd)(\s*[=:]\s*)('[^']*'|\"[^\"]*\"|\S+)")


@dataclass(frozen=True)
class _Translation:
    code: DiagnosticCode
    title: str
    suggestions: tuple[str, ...] = ()


_DATABASE_TRANSLATIONS: dict[ErrorCategory, _Translation] = {
    ErrorCategory.NOT_FOUND: _Translation(
        codes.OBJECT_NOT_FOUND,
        "Table or database does not exist",
        (
            "Verify the table name is spelled correctly",
            "Use fully qualified names (database.table format)",
            "Use SHOW TABLES or SHOW DATABASES to see what is available",
            "Check that you have permissions to access this object",
        ),
    ),
    ErrorCategory.ACCESS_DENIED: _Translation(
        codes.ACCESS_DENIED,
        "Access denied",
        (
            "Contact your database administrator to grant appropriate permissions",
            "Verify you're connecting with the correct database user account",
            "Check that your user has been granted access to the specific database/table",
        ),
    ),
    ErrorCategory.SYNTAX: _Translation(
        codes.SYNTAX_ERROR,
        "SQL syntax error",
        (
            "Check your query syntax carefully",
            "Verify column names and keywords are spelled correctly",
            "Make sure quotes and parentheses are balanced",
        ),
    ),
    ErrorCategory.CONSTRAINT_VIOLATION: _Translation(
        codes.CONSTRAINT_VIOLATION,
        "Constraint violation",
        (
            "Check for existing records before inserting (unique or primary key)",
            "Ensure referenced rows exist in the parent table (foreign key)",
            "Delete or update dependent child records first",
        ),
    ),
    ErrorCategory.LOCK_TIMEOUT: _Translation(
        codes.LOCK_TIMEOUT,
        "Lock wait timeout exceeded",
        (
            "Try the query again; another transaction may be holding the lock",
            "Check for long-running queries that might be blocking this operation",
            "Consider using smaller transactions",
        ),
    ),
    ErrorCategory.DEADLOCK: _Translation(
        codes.DEADLOCK,
        "Deadlock detected",
        (
            "Retry the operation; deadlocks are typically transient",
            "Consider reordering operations to avoid deadlocks",
            "Keep transactions small and quick",
        ),
    ),
    ErrorCategory.CONNECTION_LOST: _Translation(
        codes.CONNECTION_LOST,
        "Connection lost",
        (
            "Check your network connection",
            "Verify the database server is running",
            "Try the query again",
        ),
    ),
    ErrorCategory.CONNECTION_REFUSED: _Translation(
        codes.CONNECTION_REFUSED,
        "Connection refused",
        (
            "Verify the database server is running",
            "Check that the configured host and port are correct",
            "Ensure no firewall rules are blocking the connection",
        ),
    ),
    ErrorCategory.TOO_MANY_CONNECTIONS: _Translation(
        codes.TOO_MANY_CONNECTIONS,
        "Too many connections",
        (
            "Wait a moment and try again",
            "Ask your database administrator to raise the connection limit",
        ),
    ),
    ErrorCategory.DATABASE_OTHER: _Translation(
        codes.DATABASE_ERROR,
        "Database error",
        (
            "If this error persists, consult the database documentation "
            "or contact your database administrator",
        ),
    ),
}

_TIMEOUT_SUGGESTIONS = (
    "Add a LIMIT clause to reduce the result set size (e.g., LIMIT 100)",
    "Add WHERE clauses to filter data more specifically",
    "Select only necessary columns instead of using SELECT *",
    "Add indexes on columns used in WHERE and JOIN clauses",
    "Use EXPLAIN to analyze query performance",
    "Increase --query-timeout (SQLWARDEN_QUERY_TIMEOUT) if necessary",
)


def scrub(message: str, secrets: Iterable[str] = ()) -> str:
    """Mask credentials in free-form driver text."""
    for secret in sorted((s for s in secrets if s), key=len, reverse=True):
        message = message.replace(secret, MASK)
    message = _URL_CREDENTIALS.sub(rf"\g<1>{MASK}\g<2>", message)
    return _PASSWORD_PAIR.sub(rf"\g<1>\g<2>{MASK}", message)


def rejection_diagnostic(verdict: AuthorizationVerdict) -> Diagnostic:
    """Diagnostic for a statement the policy engine refused."""
    if verdict.allowed:
        raise ValueError("cannot build a rejection for an allowed verdict")
    diag = Diagnostic.error(
        verdict.code or codes.UNKNOWN_BLOCKED,
        verdict.reason or "The statement is not allowed.",
        ErrorCategory.REJECTED_BY_POLICY,
    )
    diag.note(f"Operation: {verdict.operation_kind.label}")
    if verdict.suggestion:
        diag.suggest(verdict.suggestion)
    return diag


def translate_error(
    exc: BaseException,
    *,
    query_timeout_ms: int,
    secrets: Iterable[str] = (),
) -> Diagnostic:
    """Map any failure to exactly one category, code and message."""
    secrets = tuple(secrets)

    if isinstance(exc, QueryValidationError):
        return Diagnostic.error(
            exc.code, f"Invalid query: {exc}", ErrorCategory.VALIDATION
        )

    if isinstance(exc, QueryTimeout):
        return (
            Diagnostic.error(
                codes.QUERY_TIMEOUT,
                "Query execution timeout",
                ErrorCategory.TIMEOUT,
            )
            .note(f"The query exceeded the timeout limit of {query_timeout_ms}ms.")
            .suggest(*_TIMEOUT_SUGGESTIONS)
        )

    if isinstance(exc, AdapterError):
        # A driver can only report database-side categories.
        category = exc.category if exc.category.is_database_error else ErrorCategory.DATABASE_OTHER
        translation = _DATABASE_TRANSLATIONS[category]
        diag = Diagnostic.error(translation.code, translation.title, category)
        detail = scrub(str(exc), secrets)
        if detail:
            diag.note(detail)
        if exc.driver_code:
            diag.note(f"Driver code: {exc.driver_code}")
        return diag.suggest(*translation.suggestions)

    detail = scrub(str(exc), secrets) or type(exc).__name__
    return Diagnostic.error(
        codes.UNEXPECTED_ERROR,
        f"Unexpected error ({type(exc).__name__})",
        ErrorCategory.UNKNOWN,
    ).note(detail)
