"""Helpers shared by the CLI commands."""

from __future__ import annotations

import logging
import sys

import click

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """Send sqlwarden logs to stderr: INFO and up with --verbose, else WARNING and up."""
    logger = logging.getLogger("sqlwarden")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.INFO if verbose else logging.WARNING)


def read_sql(sql: str | None, from_stdin: bool) -> str:
    """The SQL text, from the argument or from piped stdin but never both."""
    if from_stdin == (sql is not None):
        raise click.UsageError("Give SQL either as an argument or with --from-stdin.")
    if sql is not None:
        return sql
    stdin = click.get_text_stream("stdin")
    if stdin.isatty():
        raise click.UsageError("--from-stdin needs piped input.")
    return stdin.read()
