"""Stable, searchable error code registry.

Ranges:
- Q00xx      — Request validation (empty, oversized, malformed input)
- Q03xx      — Operation authorization (policy rejections)
- Q07xx      — Execution limits (timeouts)
- Q08xx      — Database errors
- Q09xx      — Uncategorized failures
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiagnosticCode:
    value: int

    def __str__(self) -> str:
        return f"Q{self.value:04d}"


# Request validation (Q00xx)
INVALID_REQUEST = DiagnosticCode(1)
QUERY_TOO_LONG = DiagnosticCode(2)
EMPTY_QUERY = DiagnosticCode(3)

# Operation authorization (Q03xx)
WRITE_BLOCKED = DiagnosticCode(301)
DDL_BLOCKED = DiagnosticCode(302)
DESTRUCTIVE_DDL_BLOCKED = DiagnosticCode(303)
ADMIN_BLOCKED = DiagnosticCode(304)
SESSION_BLOCKED = DiagnosticCode(305)
UNKNOWN_BLOCKED = DiagnosticCode(306)

# Execution limits (Q07xx)
QUERY_TIMEOUT = DiagnosticCode(701)

# Database errors (Q08xx)
OBJECT_NOT_FOUND = DiagnosticCode(801)
ACCESS_DENIED = DiagnosticCode(802)
SYNTAX_ERROR = DiagnosticCode(803)
CONSTRAINT_VIOLATION = DiagnosticCode(804)
LOCK_TIMEOUT = DiagnosticCode(805)
DEADLOCK = DiagnosticCode(806)
CONNECTION_LOST = DiagnosticCode(807)
CONNECTION_REFUSED = DiagnosticCode(808)
TOO_MANY_CONNECTIONS = DiagnosticCode(809)
DATABASE_ERROR = DiagnosticCode(810)

# Uncategorized (Q09xx)
UNEXPECTED_ERROR = DiagnosticCode(901)
