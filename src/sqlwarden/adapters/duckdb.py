"""DuckDB adapter — local/in-memory, great for testing and local analytics."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence

import duckdb as _duckdb

from sqlwarden.adapters._base import (
    AdapterError,
    ConnectionConfig,
    DatabaseType,
    NativeResult,
)
from sqlwarden.diagnostics import ErrorCategory
from sqlwarden.policy._types import MUTATION_KINDS
from sqlwarden.policy.classify import classify
from sqlwarden.policy.lexer import DUCKDB

# Most specific first: several of these share base classes.
_ERROR_CATEGORIES: tuple[tuple[type[Exception], ErrorCategory], ...] = (
    (_duckdb.CatalogException, ErrorCategory.NOT_FOUND),
    (_duckdb.ParserException, ErrorCategory.SYNTAX),
    (_duckdb.ConstraintException, ErrorCategory.CONSTRAINT_VIOLATION),
    (_duckdb.PermissionException, ErrorCategory.ACCESS_DENIED),
    (_duckdb.ConnectionException, ErrorCategory.CONNECTION_LOST),
)


def _categorize(exc: Exception) -> ErrorCategory:
    for exc_type, category in _ERROR_CATEGORIES:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.DATABASE_OTHER


class DuckDBAdapter:
    """DuckDB adapter — in-process, no server needed."""

    def __init__(self) -> None:
        self._conn: _duckdb.DuckDBPyConnection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        path = config.params.get("path", ":memory:")
        try:
            self._conn = _duckdb.connect(path, config={"custom_user_agent": "sqlwarden"})
        except Exception as e:
            raise AdapterError(
                f"DuckDB connection failed: {e}",
                category=ErrorCategory.CONNECTION_REFUSED,
            ) from e

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> _duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise AdapterError(
                "Not connected. Call connect() first.",
                category=ErrorCategory.CONNECTION_LOST,
            )
        return self._conn

    @staticmethod
    def _check_single(cursor: _duckdb.DuckDBPyConnection, statements: Sequence[str]) -> None:
        """Refuse any unit that DuckDB's own parser reads as several statements."""
        for sql in statements:
            count = len(cursor.extract_statements(sql))
            if count != 1:
                raise AdapterError(
                    f"DuckDB parses this unit as {count} statements; send exactly one "
                    "statement per unit",
                    category=ErrorCategory.SYNTAX,
                )

    def _run(self, cursor: _duckdb.DuckDBPyConnection, statements: Sequence[str]) -> NativeResult:
        # The worker owns the cursor: closing it from the event loop would
        # block until a running statement finished.
        try:
            self._check_single(cursor, statements)
            return self._run_checked(cursor, statements)
        finally:
            cursor.close()

    def _run_checked(
        self, cursor: _duckdb.DuckDBPyConnection, statements: Sequence[str]
    ) -> NativeResult:
        native = NativeResult(description=None)
        for sql in statements:
            result = cursor.execute(sql)
            description = result.description
            rows = result.fetchall() if description else []
            # DuckDB reports DML outcomes as a one-column "Count" result set.
            if (
                description
                and len(description) == 1
                and description[0][0] == "Count"
                and classify(sql, dialect=DUCKDB) in MUTATION_KINDS
            ):
                count = rows[0][0] if rows else 0
                native = NativeResult(description=None, rowcount=int(count))
            elif description:
                native = NativeResult(
                    description=[(d[0], str(d[1])) for d in description],
                    rows=rows,
                    rowcount=len(rows),
                )
            else:
                native = NativeResult(description=None, rowcount=0)
        return native

    async def execute(self, statements: Sequence[str]) -> NativeResult:
        conn = self._ensure_conn()
        # A cursor is a separate connection to the same database, safe to use
        # from the worker thread.
        cursor = conn.cursor()
        try:
            return await asyncio.to_thread(self._run, cursor, statements)
        except asyncio.CancelledError:
            # Deadline passed: stop the statement so the worker thread returns.
            # The cursor is already closed if the statement just finished.
            with contextlib.suppress(_duckdb.Error):
                cursor.interrupt()
            raise
        except _duckdb.Error as e:
            raise AdapterError(
                f"DuckDB execution failed: {e}",
                category=_categorize(e),
                driver_code=type(e).__name__,
            ) from e

    def db_type(self) -> DatabaseType:
        return DatabaseType.DUCKDB

    def dialect(self) -> str:
        return "duckdb"
