"""Mode-based authorization rules.

Decision order, per statement:
    1. NEVER_ALLOWED      → reject, whatever the mode
    2. ALWAYS_ALLOWED     → allow
    3. WRITE_MODE_ALLOWED → allow only when the mode is WRITE_ENABLED
    4. anything else      → reject (default deny, covers UNKNOWN)
"""

from __future__ import annotations

from sqlwarden.diagnostics import DiagnosticCode, codes
from sqlwarden.policy._types import (
    MUTATION_KINDS,
    TRANSACTION_KINDS,
    AuthorizationVerdict,
    ModePolicy,
    OperationKind,
)

ALWAYS_ALLOWED = frozenset({
    OperationKind.SELECT,
    OperationKind.SHOW,
    OperationKind.DESCRIBE,
    OperationKind.EXPLAIN,
})

NEVER_ALLOWED = frozenset({
    OperationKind.DROP,
    OperationKind.TRUNCATE,
    OperationKind.GRANT,
    OperationKind.REVOKE,
    OperationKind.FLUSH,
    OperationKind.KILL,
    OperationKind.LOAD_DATA,
})

WRITE_MODE_ALLOWED = frozenset({
    OperationKind.INSERT,
    OperationKind.UPDATE,
    OperationKind.DELETE,
    OperationKind.REPLACE,
    OperationKind.BEGIN_TRANSACTION,
    OperationKind.COMMIT,
    OperationKind.ROLLBACK,
    OperationKind.SAVEPOINT,
})

ENABLE_WRITE_HINT = (
    "To enable write operations, pass --allow-write or set SQLWARDEN_ALLOW_WRITE=true"
)

_DESTRUCTIVE_DDL = frozenset({OperationKind.DROP, OperationKind.TRUNCATE})
_SCHEMA_CHANGE = frozenset({OperationKind.CREATE, OperationKind.ALTER})
_SESSION = frozenset({OperationKind.SET, OperationKind.USE})


def is_allowed(kind: OperationKind, mode: ModePolicy) -> bool:
    if kind in NEVER_ALLOWED:
        return False
    if kind in ALWAYS_ALLOWED:
        return True
    return mode is ModePolicy.WRITE_ENABLED and kind in WRITE_MODE_ALLOWED


def _rejection(kind: OperationKind, mode: ModePolicy) -> tuple[str, str, DiagnosticCode]:
    """Reason, suggestion and code for a rejected (kind, mode) pair."""
    label = kind.label
    read_only = mode is ModePolicy.READ_ONLY

    if kind in _DESTRUCTIVE_DDL:
        where = "never allowed" if read_only else "blocked even in WRITE mode"
        return (
            f"{label} operations are destructive and {where} for safety.",
            "Destructive DDL must be performed directly with the database's own "
            "client, not through sqlwarden.",
            codes.DESTRUCTIVE_DDL_BLOCKED,
        )

    if kind in NEVER_ALLOWED:
        return (
            f"Administrative commands ({label}) are never allowed for security reasons: "
            "they change privileges, server state or read server-side files.",
            "Administrative commands are permanently blocked in every mode; "
            "ask a database administrator to run them.",
            codes.ADMIN_BLOCKED,
        )

    if kind in MUTATION_KINDS and read_only:
        return (
            f"{label} operations are not allowed in READ-ONLY mode.",
            ENABLE_WRITE_HINT,
            codes.WRITE_BLOCKED,
        )

    if kind in TRANSACTION_KINDS and read_only:
        return (
            f"Transaction control ({label}) is not allowed in READ-ONLY mode.",
            ENABLE_WRITE_HINT,
            codes.WRITE_BLOCKED,
        )

    if kind in _SCHEMA_CHANGE:
        if read_only:
            reason = f"DDL operations ({label}) are not allowed in READ-ONLY mode."
        else:
            reason = f"DDL operations ({label}) are not allowed even in WRITE mode."
        return (
            reason,
            "Use the database's own client or a migration tool for schema changes.",
            codes.DDL_BLOCKED,
        )

    if kind in _SESSION:
        return (
            f"{label} statements are not allowed: they change session state "
            "shared by pooled connections.",
            "Use fully qualified names (database.table) instead of USE, and "
            "configure session variables on the connection.",
            codes.SESSION_BLOCKED,
        )

    return (
        "The statement type is not recognized or not allowed.",
        "Only SELECT, SHOW, DESCRIBE and EXPLAIN (and, in WRITE mode, "
        "INSERT, UPDATE, DELETE, REPLACE and transaction control) can be executed.",
        codes.UNKNOWN_BLOCKED,
    )


def evaluate(kind: OperationKind, mode: ModePolicy) -> AuthorizationVerdict:
    """Authorize one operation kind under a mode. Pure and total."""
    if is_allowed(kind, mode):
        return AuthorizationVerdict(operation_kind=kind, allowed=True)
    reason, suggestion, code = _rejection(kind, mode)
    return AuthorizationVerdict(
        operation_kind=kind,
        allowed=False,
        reason=reason,
        suggestion=suggestion,
        code=code,
    )
