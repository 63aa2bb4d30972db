"""The `query` command: authorize, execute and render one SQL request."""

from __future__ import annotations

import asyncio

import click

from sqlwarden.adapters._base import AdapterError, ConnectionConfig
from sqlwarden.adapters._engines import get_adapter
from sqlwarden.cli._shared import configure_logging, read_sql
from sqlwarden.config import WardenConfig
from sqlwarden.connections import InvalidConnection, resolve
from sqlwarden.diagnostics.render import render_diagnostic
from sqlwarden.diagnostics.translate import translate_error
from sqlwarden.pipeline import QueryPipeline, QueryResponse
from sqlwarden.querylog import cleanup_old_logs


async def _run_query(
    sql: str,
    connection: ConnectionConfig,
    config: WardenConfig,
    *,
    response_format: str,
) -> QueryResponse:
    adapter = get_adapter(connection.db_type)()
    await adapter.connect(connection)
    try:
        pipeline = QueryPipeline(
            adapter,
            config,
            db_name=connection.name,
            secrets=connection.secret_values(),
        )
        return await pipeline.run(sql, response_format)
    finally:
        await adapter.close()


@click.command()
@click.argument("sql", required=False, default=None)
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin instead of argument.")
@click.option("--db", required=True, envvar="SQLWARDEN_DB", help="Connection name or type:key=val.")
@click.option(
    "--format",
    "response_format",
    type=click.Choice(["markdown", "json"]),
    default="markdown",
    help="Output format.",
)
@click.option(
    "--allow-write",
    is_flag=True,
    envvar="SQLWARDEN_ALLOW_WRITE",
    help="Enable INSERT/UPDATE/DELETE/REPLACE and transaction control.",
)
@click.option(
    "--query-timeout",
    type=int,
    default=None,
    envvar="SQLWARDEN_QUERY_TIMEOUT",
    help="Query timeout in milliseconds (default: 30000).",
)
@click.option(
    "--character-limit",
    type=int,
    default=None,
    envvar="SQLWARDEN_CHARACTER_LIMIT",
    help="Maximum output size in characters (default: 25000).",
)
@click.option(
    "--max-query-length",
    type=int,
    default=None,
    envvar="SQLWARDEN_MAX_QUERY_LENGTH",
    help="Maximum accepted query length (default: 10000).",
)
@click.option("--no-audit", is_flag=True, help="Do not write an audit log entry.")
@click.option("-v", "--verbose", is_flag=True, help="Log authorization decisions to stderr.")
def query(
    sql: str | None,
    from_stdin: bool,
    db: str,
    response_format: str,
    allow_write: bool,
    query_timeout: int | None,
    character_limit: int | None,
    max_query_length: int | None,
    no_audit: bool,
    verbose: bool,
) -> None:
    """Run SQL through the authorization pipeline and print the result.

    Reads always run. Writes run only with --allow-write. DROP, TRUNCATE and
    administrative commands never run.
    """
    configure_logging(verbose)
    sql = read_sql(sql, from_stdin)

    try:
        config = WardenConfig.from_options(
            allow_write=allow_write,
            query_timeout_ms=query_timeout,
            character_budget=character_limit,
            max_query_length=max_query_length,
            audit_log=not no_audit,
        )
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1) from e

    try:
        connection = resolve(db)
    except InvalidConnection as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1) from e

    if config.audit_log:
        cleanup_old_logs()

    try:
        response = asyncio.run(
            _run_query(sql, connection, config, response_format=response_format)
        )
    except AdapterError as e:
        # Connecting failed or the driver is missing; nothing was executed.
        diag = translate_error(
            e,
            query_timeout_ms=config.query_timeout_ms,
            secrets=connection.secret_values(),
        )
        click.echo(render_diagnostic(diag, response_format=response_format))
        raise SystemExit(1) from e

    click.echo(response.text)
    if not response.ok:
        raise SystemExit(1)
