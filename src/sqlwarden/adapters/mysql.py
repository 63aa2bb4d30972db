"""MySQL adapter: pooled mysql-connector connections driven from daemon threads."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Sequence

import mysql.connector
from mysql.connector import errorcode
from mysql.connector.constants import ClientFlag, FieldType
from mysql.connector.pooling import MySQLConnectionPool

from sqlwarden.adapters._base import (
    AdapterError,
    ConnectionConfig,
    DatabaseType,
    NativeResult,
)
from sqlwarden.diagnostics import ErrorCategory

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 10
DEFAULT_CONNECT_TIMEOUT = 10
KILL_TIMEOUT_S = 5

_ERRNO_CATEGORIES: dict[int, ErrorCategory] = {
    errorcode.ER_NO_SUCH_TABLE: ErrorCategory.NOT_FOUND,
    errorcode.ER_BAD_DB_ERROR: ErrorCategory.NOT_FOUND,
    errorcode.ER_ACCESS_DENIED_ERROR: ErrorCategory.ACCESS_DENIED,
    errorcode.ER_TABLEACCESS_DENIED_ERROR: ErrorCategory.ACCESS_DENIED,
    errorcode.ER_DBACCESS_DENIED_ERROR: ErrorCategory.ACCESS_DENIED,
    errorcode.ER_PARSE_ERROR: ErrorCategory.SYNTAX,
    errorcode.ER_SYNTAX_ERROR: ErrorCategory.SYNTAX,
    errorcode.ER_DUP_ENTRY: ErrorCategory.CONSTRAINT_VIOLATION,
    errorcode.ER_NO_REFERENCED_ROW: ErrorCategory.CONSTRAINT_VIOLATION,
    errorcode.ER_NO_REFERENCED_ROW_2: ErrorCategory.CONSTRAINT_VIOLATION,
    errorcode.ER_ROW_IS_REFERENCED: ErrorCategory.CONSTRAINT_VIOLATION,
    errorcode.ER_ROW_IS_REFERENCED_2: ErrorCategory.CONSTRAINT_VIOLATION,
    errorcode.ER_LOCK_WAIT_TIMEOUT: ErrorCategory.LOCK_TIMEOUT,
    errorcode.ER_LOCK_DEADLOCK: ErrorCategory.DEADLOCK,
    errorcode.ER_CON_COUNT_ERROR: ErrorCategory.TOO_MANY_CONNECTIONS,
    errorcode.CR_CONN_HOST_ERROR: ErrorCategory.CONNECTION_REFUSED,
    errorcode.CR_CONNECTION_ERROR: ErrorCategory.CONNECTION_REFUSED,
    errorcode.CR_SERVER_GONE_ERROR: ErrorCategory.CONNECTION_LOST,
    errorcode.CR_SERVER_LOST: ErrorCategory.CONNECTION_LOST,
}


def categorize(exc: mysql.connector.Error) -> ErrorCategory:
    """Map a connector error to a category by its MySQL error number."""
    if isinstance(exc, mysql.connector.errors.PoolError):
        return ErrorCategory.TOO_MANY_CONNECTIONS
    return _ERRNO_CATEGORIES.get(exc.errno, ErrorCategory.DATABASE_OTHER)


def _error_message(exc: mysql.connector.Error) -> str:
    # msg is the server's text without the errno/sqlstate prefix.
    return exc.msg or str(exc)


def _pool_kwargs(params: dict[str, str]) -> dict[str, object]:
    kwargs: dict[str, object] = {
        "host": params.get("host", "localhost"),
        "port": int(params.get("port", "3306")),
        "user": params.get("user", "root"),
        "password": params.get("password", ""),
        "connection_timeout": int(params.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
        "autocommit": True,
        # One statement per round trip: the server rejects "a; b".
        "client_flags": [-ClientFlag.MULTI_STATEMENTS],
    }
    if params.get("database"):
        kwargs["database"] = params["database"]
    return kwargs


def _settle(future: asyncio.Future, result: object, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


async def _run_detached(func: Callable[..., object], *args: object) -> object:
    """Run a blocking driver call on a daemon thread.

    asyncio.run joins the default executor on exit, and a MySQL read cannot
    be interrupted from the client side, so a call left behind by a timeout
    must not live in that executor.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def target() -> None:
        result: object = None
        error: BaseException | None = None
        try:
            result = func(*args)
        except Exception as e:
            error = e
        # The loop is gone once the caller has given up and exited.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_settle, future, result, error)

    threading.Thread(target=target, name="sqlwarden-mysql", daemon=True).start()
    return await future


class MySQLAdapter:
    """MySQL adapter using mysql-connector-python's connection pool.

    When the caller's deadline passes, the running statement is stopped with
    ``KILL QUERY`` from a separate connection; the worker then hands its
    connection back to the pool.
    """

    def __init__(self) -> None:
        self._pool: MySQLConnectionPool | None = None
        self._connect_kwargs: dict[str, object] = {}

    async def connect(self, config: ConnectionConfig) -> None:
        pool_size = int(config.params.get("pool_size", DEFAULT_POOL_SIZE))
        self._connect_kwargs = _pool_kwargs(config.params)
        try:
            self._pool = await asyncio.to_thread(
                MySQLConnectionPool,
                pool_name=f"sqlwarden-{config.name}",
                pool_size=pool_size,
                **self._connect_kwargs,
            )
        except mysql.connector.Error as e:
            raise AdapterError(
                f"MySQL connection failed: {_error_message(e)}",
                category=categorize(e),
                driver_code=str(e.errno) if e.errno else None,
            ) from e

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        # Closes the idle connections; one still held by a worker is closed
        # by the driver when it comes back.
        await asyncio.to_thread(pool._remove_connections)

    def _ensure_pool(self) -> MySQLConnectionPool:
        if self._pool is None:
            raise AdapterError(
                "Not connected. Call connect() first.",
                category=ErrorCategory.CONNECTION_LOST,
            )
        return self._pool

    def _run(
        self,
        pool: MySQLConnectionPool,
        statements: Sequence[str],
        session: dict[str, int],
    ) -> NativeResult:
        conn = pool.get_connection()
        session["connection_id"] = conn.connection_id
        try:
            cursor = conn.cursor()
            try:
                native = NativeResult(description=None)
                for sql in statements:
                    cursor.execute(sql)
                    if cursor.description:
                        rows = cursor.fetchall()
                        native = NativeResult(
                            description=[
                                (d[0], FieldType.get_info(d[1]) or str(d[1]))
                                for d in cursor.description
                            ],
                            rows=[tuple(r) for r in rows],
                            rowcount=len(rows),
                        )
                    else:
                        native = NativeResult(
                            description=None,
                            rowcount=cursor.rowcount,
                            lastrowid=cursor.lastrowid,
                        )
                return native
            finally:
                cursor.close()
        finally:
            # Returns the connection to the pool.
            conn.close()

    def _kill_query(self, connection_id: int) -> None:
        conn = mysql.connector.connect(**self._connect_kwargs)
        try:
            cursor = conn.cursor()
            cursor.execute(f"KILL QUERY {int(connection_id)}")
            cursor.close()
        finally:
            conn.close()

    async def _cancel_on_server(self, connection_id: int) -> None:
        try:
            await asyncio.wait_for(
                _run_detached(self._kill_query, connection_id), KILL_TIMEOUT_S
            )
        except (mysql.connector.Error, TimeoutError) as e:
            logger.warning(
                "Could not stop query on MySQL connection %d: %s", connection_id, e
            )

    async def execute(self, statements: Sequence[str]) -> NativeResult:
        pool = self._ensure_pool()
        session: dict[str, int] = {}
        try:
            return await _run_detached(self._run, pool, statements, session)
        except asyncio.CancelledError:
            if "connection_id" in session:
                await self._cancel_on_server(session["connection_id"])
            raise
        except mysql.connector.Error as e:
            raise AdapterError(
                f"MySQL execution failed: {_error_message(e)}",
                category=categorize(e),
                driver_code=str(e.errno) if e.errno else None,
            ) from e

    def db_type(self) -> DatabaseType:
        return DatabaseType.MYSQL

    def dialect(self) -> str:
        return "mysql"
