"""Execute authorized statements under a deadline and unify the result shape."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from sqlwarden.adapters._base import DatabaseAdapter, NativeResult, QueryTimeout
from sqlwarden.results import AcknowledgementResult, Column, ExecutionResult, TabularResult

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT_MS = 30_000


def unify(native: NativeResult, *, execution_time_ms: float) -> ExecutionResult:
    """Decide, once, whether a native result is tabular or an acknowledgement."""
    if native.description is not None:
        return TabularResult(
            columns=[Column(name=name, type_name=type_name) for name, type_name in native.description],
            rows=[tuple(row) for row in native.rows],
            execution_time_ms=execution_time_ms,
        )
    return AcknowledgementResult(
        affected_rows=max(native.rowcount, 0),
        insert_id=native.lastrowid or None,
        changed_rows=native.changed_rows,
        execution_time_ms=execution_time_ms,
    )


class Executor:
    """Single-attempt execution through an adapter, bounded by a timeout.

    On expiry the adapter call is cancelled. Each adapter reacts by stopping
    the statement on the server: DuckDB interrupts the cursor, PostgreSQL
    sends a cancel request and MySQL issues KILL QUERY.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        query_timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS,
    ) -> None:
        self._adapter = adapter
        self._timeout_ms = query_timeout_ms

    async def execute(self, statements: Sequence[str]) -> ExecutionResult:
        t0 = time.perf_counter()
        try:
            native = await asyncio.wait_for(
                self._adapter.execute(statements),
                timeout=self._timeout_ms / 1000,
            )
        except TimeoutError as e:
            elapsed = (time.perf_counter() - t0) * 1000
            logger.warning(
                "Query cancelled after %.0fms (timeout %dms)", elapsed, self._timeout_ms
            )
            raise QueryTimeout(self._timeout_ms) from e
        elapsed_ms = (time.perf_counter() - t0) * 1000

        result = unify(native, execution_time_ms=elapsed_ms)
        logger.info(
            "Executed %d statement(s) in %.1fms (%s, %d rows)",
            len(statements),
            elapsed_ms,
            result.kind,
            result.row_count,
        )
        return result
