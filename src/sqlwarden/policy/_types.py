"""Internal types for the policy engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from sqlwarden.diagnostics import DiagnosticCode


class OperationKind(enum.Enum):
    # Read
    SELECT = "SELECT"
    SHOW = "SHOW"
    DESCRIBE = "DESCRIBE"
    EXPLAIN = "EXPLAIN"
    # Mutation (DML)
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REPLACE = "REPLACE"
    # Schema (DDL)
    CREATE = "CREATE"
    ALTER = "ALTER"
    DROP = "DROP"
    TRUNCATE = "TRUNCATE"
    # Transaction control
    BEGIN_TRANSACTION = "BEGIN_TRANSACTION"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"
    SAVEPOINT = "SAVEPOINT"
    # Administrative
    GRANT = "GRANT"
    REVOKE = "REVOKE"
    FLUSH = "FLUSH"
    KILL = "KILL"
    LOAD_DATA = "LOAD_DATA"
    SET = "SET"
    # Utility
    USE = "USE"
    UNKNOWN = "UNKNOWN"  # Anything we can't classify → blocked

    @property
    def label(self) -> str:
        """Keyword-style label for messages (LOAD_DATA → LOAD DATA)."""
        return self.value.replace("_", " ")


READ_KINDS = frozenset({
    OperationKind.SELECT, OperationKind.SHOW, OperationKind.DESCRIBE, OperationKind.EXPLAIN,
})
MUTATION_KINDS = frozenset({
    OperationKind.INSERT, OperationKind.UPDATE, OperationKind.DELETE, OperationKind.REPLACE,
})
SCHEMA_KINDS = frozenset({
    OperationKind.CREATE, OperationKind.ALTER, OperationKind.DROP, OperationKind.TRUNCATE,
})
TRANSACTION_KINDS = frozenset({
    OperationKind.BEGIN_TRANSACTION, OperationKind.COMMIT,
    OperationKind.ROLLBACK, OperationKind.SAVEPOINT,
})
ADMIN_KINDS = frozenset({
    OperationKind.GRANT, OperationKind.REVOKE, OperationKind.FLUSH,
    OperationKind.KILL, OperationKind.LOAD_DATA, OperationKind.SET,
})


class ModePolicy(enum.Enum):
    READ_ONLY = "READ_ONLY"
    WRITE_ENABLED = "WRITE_ENABLED"

    @classmethod
    def from_flag(cls, allow_write: bool) -> ModePolicy:
        return cls.WRITE_ENABLED if allow_write else cls.READ_ONLY

    @property
    def label(self) -> str:
        return "READ-ONLY" if self is ModePolicy.READ_ONLY else "WRITE"


class QueryValidationError(ValueError):
    """Raised for malformed or oversized input, before classification."""

    def __init__(self, message: str, code: DiagnosticCode) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class AuthorizationVerdict:
    operation_kind: OperationKind
    allowed: bool
    reason: str | None = None
    suggestion: str | None = None
    code: DiagnosticCode | None = None


@dataclass
class PolicyResult:
    """Outcome of the policy pipeline for one request."""

    original_sql: str
    statements: list[str]
    verdicts: list[AuthorizationVerdict]
    verdict: AuthorizationVerdict
    tables: list[str] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return not self.verdict.allowed

    @property
    def operation_kind(self) -> OperationKind:
        return self.verdict.operation_kind
