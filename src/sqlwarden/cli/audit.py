"""The `audit` command group: maintain the per-project audit log."""

from __future__ import annotations

import click

from sqlwarden.querylog import DEFAULT_RETENTION_DAYS, cleanup_old_logs


@click.group()
def audit() -> None:
    """Inspect and maintain the audit log (~/.sqlwarden/audit)."""


@audit.command("prune")
@click.option(
    "--retention-days",
    type=click.IntRange(min=0),
    default=DEFAULT_RETENTION_DAYS,
    show_default=True,
    help="Delete audit files older than this many days.",
)
def audit_prune(retention_days: int) -> None:
    """Delete audit files for the current project older than the retention window."""
    deleted = cleanup_old_logs(retention_days=retention_days)
    click.echo(f"Deleted {deleted} audit file(s).")
