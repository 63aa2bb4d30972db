"""CLI entry point."""

from __future__ import annotations

import click

from sqlwarden.cli.audit import audit
from sqlwarden.cli.connect import connect
from sqlwarden.cli.query import query
from sqlwarden.cli.validate import validate


@click.group()
@click.version_option(package_name="sqlwarden")
def main() -> None:
    """sqlwarden: mode-based SQL authorization for agents and scripts."""


main.add_command(connect)
main.add_command(validate)
main.add_command(query)
main.add_command(audit)
