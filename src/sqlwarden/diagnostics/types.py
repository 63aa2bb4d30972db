"""Diagnostic values returned to the caller for every rejection or failure.

A Diagnostic is the single shape every failure takes before it is rendered:
policy rejections, input validation errors, timeouts and database errors all
become one, so callers read the same structure whatever went wrong.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from sqlwarden.diagnostics.codes import DiagnosticCode


class Level(enum.IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


class ErrorCategory(enum.Enum):
    """Closed failure taxonomy. Every failure maps to exactly one member."""

    REJECTED_BY_POLICY = "rejected_by_policy"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    SYNTAX = "syntax"
    CONSTRAINT_VIOLATION = "constraint_violation"
    LOCK_TIMEOUT = "lock_timeout"
    DEADLOCK = "deadlock"
    CONNECTION_LOST = "connection_lost"
    CONNECTION_REFUSED = "connection_refused"
    TOO_MANY_CONNECTIONS = "too_many_connections"
    DATABASE_OTHER = "database_other"
    UNKNOWN = "unknown"

    @property
    def is_database_error(self) -> bool:
        return self not in _NON_DATABASE


_NON_DATABASE = frozenset({
    ErrorCategory.REJECTED_BY_POLICY,
    ErrorCategory.VALIDATION,
    ErrorCategory.TIMEOUT,
    ErrorCategory.UNKNOWN,
})


@dataclass
class Diagnostic:
    level: Level
    code: DiagnosticCode
    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN
    notes: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    # -- Builder classmethods ---------------------------------------------------

    @classmethod
    def error(
        cls,
        code: DiagnosticCode,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
    ) -> Diagnostic:
        return cls(level=Level.ERROR, code=code, message=message, category=category)

    # -- Builder chain methods --------------------------------------------------

    def note(self, note: str) -> Diagnostic:
        self.notes.append(note)
        return self

    def suggest(self, *suggestions: str) -> Diagnostic:
        self.suggestions.extend(s for s in suggestions if s)
        return self
