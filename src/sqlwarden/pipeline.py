"""Request pipeline: validate, authorize, execute, render, bound, audit.

``QueryPipeline.run`` is the single entry point callers use. It never raises
for business failures; every outcome comes back as text plus a coarse
``Outcome`` the CLI turns into an exit code.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlwarden.adapters._base import DatabaseAdapter
from sqlwarden.config import WardenConfig
from sqlwarden.diagnostics import Diagnostic, ErrorCategory, codes
from sqlwarden.diagnostics.render import render_diagnostic
from sqlwarden.diagnostics.translate import rejection_diagnostic, translate_error
from sqlwarden.executor import Executor
from sqlwarden.policy import (
    ModePolicy,
    PolicyResult,
    QueryValidationError,
    preview_statement,
    run_policy,
    validate_query,
)
from sqlwarden.querylog import AuditEntry, log_request
from sqlwarden.render import render_result
from sqlwarden.results import ExecutionResult
from sqlwarden.truncate import truncate

logger = logging.getLogger(__name__)

RESPONSE_FORMATS = ("markdown", "json")


class Outcome(enum.Enum):
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class QueryResponse:
    text: str
    outcome: Outcome
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED


class QueryPipeline:
    """Authorize and run caller SQL against one connected adapter."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        config: WardenConfig | None = None,
        *,
        db_name: str | None = None,
        secrets: Iterable[str] = (),
    ) -> None:
        self._adapter = adapter
        self._config = config or WardenConfig()
        self._db_name = db_name
        self._secrets = tuple(secrets)
        self._executor = Executor(adapter, query_timeout_ms=self._config.query_timeout_ms)
        if self._config.mode is ModePolicy.WRITE_ENABLED:
            logger.warning(
                "Write mode enabled: INSERT, UPDATE, DELETE, REPLACE and "
                "transaction control will be executed"
            )

    @property
    def config(self) -> WardenConfig:
        return self._config

    async def run(self, query: object, response_format: str = "markdown") -> QueryResponse:
        policy: PolicyResult | None = None
        try:
            if response_format not in RESPONSE_FORMATS:
                requested, response_format = response_format, "markdown"
                raise QueryValidationError(
                    f"response_format must be one of {', '.join(RESPONSE_FORMATS)}, "
                    f"got {requested!r}",
                    codes.INVALID_REQUEST,
                )

            sql = validate_query(query, max_length=self._config.max_query_length)
            policy = run_policy(
                sql,
                mode=self._config.mode,
                dialect=self._adapter.dialect(),
            )
            if policy.blocked:
                diag = rejection_diagnostic(policy.verdict)
                return self._failure(diag, Outcome.REJECTED, response_format, policy)

            result = await self._executor.execute(policy.statements)
            for statement, verdict in zip(policy.statements, policy.verdicts, strict=True):
                logger.info(
                    "Query EXECUTED [%s] (%s): %s",
                    self._config.mode.value,
                    verdict.operation_kind.value,
                    preview_statement(statement),
                )
        except Exception as e:
            diag = translate_error(
                e,
                query_timeout_ms=self._config.query_timeout_ms,
                secrets=self._secrets,
            )
            if diag.category is ErrorCategory.UNKNOWN:
                logger.exception("Unexpected error while running query")
            else:
                logger.warning("Query failed [%s]: %s", diag.code, diag.message)
            return self._failure(diag, Outcome.FAILED, response_format, policy)

        return self._success(result, response_format, policy)

    def _success(
        self,
        result: ExecutionResult,
        response_format: str,
        policy: PolicyResult,
    ) -> QueryResponse:
        budget = self._config.character_budget
        text = render_result(result, response_format=response_format)
        if len(text) > budget:
            result.truncated = True
            if response_format == "json":
                # The metadata block must say the payload was cut.
                text = render_result(result, response_format=response_format)
        bounded = truncate(text, budget)
        if bounded.truncated:
            result.truncated = True
            logger.info("Response truncated from %d to %d characters", bounded.original_length, budget)

        self._audit(
            policy,
            outcome=Outcome.SUCCEEDED,
            row_count=result.row_count,
            duration_ms=result.execution_time_ms,
            truncated=result.truncated,
        )
        return QueryResponse(text=bounded.text, outcome=Outcome.SUCCEEDED, truncated=bounded.truncated)

    def _failure(
        self,
        diag: Diagnostic,
        outcome: Outcome,
        response_format: str,
        policy: PolicyResult | None,
    ) -> QueryResponse:
        bounded = truncate(
            render_diagnostic(diag, response_format=response_format),
            self._config.character_budget,
        )
        self._audit(policy, outcome=outcome, code=str(diag.code))
        return QueryResponse(text=bounded.text, outcome=outcome, truncated=bounded.truncated)

    def _audit(
        self,
        policy: PolicyResult | None,
        *,
        outcome: Outcome,
        code: str | None = None,
        row_count: int | None = None,
        duration_ms: float | None = None,
        truncated: bool = False,
    ) -> None:
        if not self._config.audit_log:
            return
        entry = AuditEntry(
            db=self._db_name,
            mode=self._config.mode.value,
            operation_kind=policy.operation_kind.value if policy else None,
            statements=policy.statements if policy else [],
            outcome=outcome.value,
            tables=policy.tables if policy else [],
            blocked=policy.blocked if policy else False,
            code=code,
            row_count=row_count,
            duration_ms=duration_ms,
            truncated=truncated,
        )
        try:
            log_request(entry)
        except OSError:
            # Audit failures never change the response.
            logger.warning("Could not write audit entry", exc_info=True)
