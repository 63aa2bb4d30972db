"""Database adapter protocol — the abstraction boundary between engines and drivers."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from sqlwarden.diagnostics import ErrorCategory

SECRET_PARAMS = frozenset({"password", "dsn"})


class DatabaseType(enum.Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    DUCKDB = "duckdb"


@dataclass
class ConnectionConfig:
    name: str
    db_type: DatabaseType
    params: dict[str, str] = field(default_factory=dict)

    def secret_values(self) -> list[str]:
        """Values that must never appear in output text."""
        return [v for k, v in self.params.items() if k in SECRET_PARAMS and v]


@dataclass
class NativeResult:
    """What a driver handed back for the last statement of a batch.

    ``description`` is None when the statement produced no result set.
    """

    description: list[tuple[str, str]] | None
    rows: list[tuple] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: int | None = None
    changed_rows: int | None = None


class AdapterError(Exception):
    """Raised by adapters for connection/execution failures."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.DATABASE_OTHER,
        driver_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.driver_code = driver_code


class QueryTimeout(AdapterError):
    """The statement did not finish before the configured deadline."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(
            f"query exceeded the {timeout_ms}ms timeout",
            category=ErrorCategory.TIMEOUT,
        )
        self.timeout_ms = timeout_ms


@runtime_checkable
class DatabaseAdapter(Protocol):
    async def connect(self, config: ConnectionConfig) -> None: ...
    async def close(self) -> None: ...
    async def execute(self, statements: Sequence[str]) -> NativeResult:
        """Run statements in order on one connection; return the last result."""
        ...
    def db_type(self) -> DatabaseType: ...
    def dialect(self) -> str:
        """Engine name: selects the lexer rules and the sqlglot dialect."""
        ...
