"""The `validate` command: run SQL through the policy engine without executing."""

from __future__ import annotations

import click

from sqlwarden.cli._output import format_policy
from sqlwarden.policy import ModePolicy, QueryValidationError, run_policy, validate_query
from sqlwarden.policy.lexer import DIALECTS


@click.command()
@click.argument("sql")
@click.option(
    "--dialect",
    type=click.Choice(list(DIALECTS)),
    default=None,
    help="Target engine; decides quoting and comment rules (default: mysql).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format.",
)
@click.option("--allow-write", is_flag=True, help="Evaluate under WRITE mode.")
def validate(
    sql: str,
    dialect: str | None,
    output_format: str,
    allow_write: bool,
) -> None:
    """Validate SQL through the policy engine without executing."""
    try:
        validate_query(sql)
        result = run_policy(
            sql,
            mode=ModePolicy.from_flag(allow_write),
            dialect=dialect,
        )
    except QueryValidationError as e:
        click.echo(f"error [{e.code}]: {e}", err=True)
        raise SystemExit(1) from e

    click.echo(format_policy(result, output_format=output_format))
    if result.blocked:
        raise SystemExit(1)
