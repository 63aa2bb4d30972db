"""Best-effort table extraction for audit entries, using sqlglot.

Never used for authorization: statements sqlglot cannot parse simply
contribute no tables.
"""

from __future__ import annotations

from collections.abc import Iterable

import sqlglot
from sqlglot import exp


def _qualified_name(table: exp.Table) -> str:
    if table.db:
        return f"{table.db}.{table.name}"
    return table.name


def tables_in_statement(statement: str, *, dialect: str | None = None) -> set[str]:
    """Physical tables referenced by one statement; CTE names are excluded."""
    try:
        tree = sqlglot.parse_one(statement, dialect=dialect)
    except sqlglot.errors.SqlglotError:
        return set()
    if tree is None:
        return set()

    cte_names = {cte.alias_or_name for cte in tree.find_all(exp.CTE)}
    return {
        _qualified_name(table)
        for table in tree.find_all(exp.Table)
        if table.name and table.name not in cte_names
    }


def extract_tables(statements: Iterable[str], *, dialect: str | None = None) -> list[str]:
    """Sorted, de-duplicated table names across a batch of statements."""
    found: set[str] = set()
    for statement in statements:
        found |= tables_in_statement(statement, dialect=dialect)
    return sorted(found)
