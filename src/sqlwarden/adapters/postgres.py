"""PostgreSQL adapter — async psycopg, errors categorized by SQLSTATE."""

from __future__ import annotations

from collections.abc import Sequence

import psycopg

from sqlwarden.adapters._base import (
    AdapterError,
    ConnectionConfig,
    DatabaseType,
    NativeResult,
)
from sqlwarden.diagnostics import ErrorCategory

_SQLSTATE_CATEGORIES: dict[str, ErrorCategory] = {
    "42P01": ErrorCategory.NOT_FOUND,  # undefined_table
    "3F000": ErrorCategory.NOT_FOUND,  # invalid_schema_name
    "3D000": ErrorCategory.NOT_FOUND,  # invalid_catalog_name
    "42501": ErrorCategory.ACCESS_DENIED,  # insufficient_privilege
    "28P01": ErrorCategory.ACCESS_DENIED,  # invalid_password
    "42601": ErrorCategory.SYNTAX,  # syntax_error
    "55P03": ErrorCategory.LOCK_TIMEOUT,  # lock_not_available
    "40P01": ErrorCategory.DEADLOCK,  # deadlock_detected
    "53300": ErrorCategory.TOO_MANY_CONNECTIONS,  # too_many_connections
    "57P01": ErrorCategory.CONNECTION_LOST,  # admin_shutdown
}

# Two-character SQLSTATE classes.
_SQLSTATE_CLASS_CATEGORIES: dict[str, ErrorCategory] = {
    "23": ErrorCategory.CONSTRAINT_VIOLATION,
    "08": ErrorCategory.CONNECTION_LOST,
}


def categorize(sqlstate: str | None) -> ErrorCategory:
    if not sqlstate:
        return ErrorCategory.DATABASE_OTHER
    if sqlstate in _SQLSTATE_CATEGORIES:
        return _SQLSTATE_CATEGORIES[sqlstate]
    return _SQLSTATE_CLASS_CATEGORIES.get(sqlstate[:2], ErrorCategory.DATABASE_OTHER)


class PostgresAdapter:
    """PostgreSQL adapter using psycopg (async)."""

    def __init__(self) -> None:
        self._conn: psycopg.AsyncConnection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        dsn = config.params.get("dsn")
        if not dsn:
            raise AdapterError(
                "PostgreSQL requires 'dsn' in connection params",
                category=ErrorCategory.CONNECTION_REFUSED,
            )
        try:
            self._conn = await psycopg.AsyncConnection.connect(
                dsn, autocommit=True, application_name="sqlwarden"
            )
        except psycopg.Error as e:
            category = categorize(e.sqlstate)
            if category is ErrorCategory.DATABASE_OTHER or category is ErrorCategory.CONNECTION_LOST:
                category = ErrorCategory.CONNECTION_REFUSED
            raise AdapterError(
                f"PostgreSQL connection failed: {e}",
                category=category,
                driver_code=e.sqlstate,
            ) from e

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> psycopg.AsyncConnection:
        if self._conn is None:
            raise AdapterError(
                "Not connected. Call connect() first.",
                category=ErrorCategory.CONNECTION_LOST,
            )
        return self._conn

    async def execute(self, statements: Sequence[str]) -> NativeResult:
        conn = self._ensure_conn()
        native = NativeResult(description=None)
        try:
            async with conn.cursor() as cur:
                for sql in statements:
                    # Prepared execution goes through the extended protocol,
                    # where the server rejects more than one statement.
                    await cur.execute(sql, prepare=True)
                    if cur.description:
                        rows = await cur.fetchall()
                        native = NativeResult(
                            description=[
                                (desc.name, desc.type_display) for desc in cur.description
                            ],
                            rows=[tuple(r) for r in rows],
                            rowcount=len(rows),
                        )
                    else:
                        native = NativeResult(description=None, rowcount=cur.rowcount)
        except psycopg.Error as e:
            raise AdapterError(
                f"PostgreSQL execution failed: {e}",
                category=categorize(e.sqlstate),
                driver_code=e.sqlstate,
            ) from e
        return native

    def db_type(self) -> DatabaseType:
        return DatabaseType.POSTGRES

    def dialect(self) -> str:
        return "postgres"
