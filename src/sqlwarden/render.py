"""Render execution results as JSON (machines) or Markdown (agents, terminals)."""

from __future__ import annotations

import datetime as dt
import decimal
import json
import uuid

from sqlwarden.results import AcknowledgementResult, ExecutionResult, TabularResult

NULL_MARKER = "*NULL*"


def _json_default(value: object) -> object:
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(value)


def _elapsed(ms: float) -> str:
    return f"{ms:.0f}ms"


def to_dict(result: ExecutionResult) -> dict:
    """Structured form of a result.

    Metadata comes first so a truncated payload still shows its flags.
    """
    metadata: dict[str, object] = {
        "row_count": result.row_count,
        "execution_time_ms": round(result.execution_time_ms, 2),
        "truncated": result.truncated,
    }
    if isinstance(result, TabularResult):
        return {
            "metadata": metadata,
            "columns": [{"name": c.name, "type": c.type_name} for c in result.columns],
            "rows": [list(row) for row in result.rows],
        }

    metadata["affected_rows"] = result.affected_rows
    if result.insert_id is not None:
        metadata["insert_id"] = result.insert_id
    if result.changed_rows is not None:
        metadata["changed_rows"] = result.changed_rows
    return {"metadata": metadata, "columns": [], "rows": []}


def render_json(result: ExecutionResult) -> str:
    return json.dumps(to_dict(result), indent=2, default=_json_default)


def format_cell(value: object) -> str:
    """Stringify one scalar for a Markdown table cell."""
    if value is None:
        return NULL_MARKER
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (dt.date, dt.time)):
        text = value.isoformat()
    elif isinstance(value, (bytes, bytearray, memoryview)):
        text = "0x" + bytes(value).hex()
    elif isinstance(value, (dict, list, tuple)):
        text = json.dumps(value, default=_json_default)
    else:
        text = str(value)
    # Keep one tuple on one table row.
    text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    return text.replace("|", "\\|")


def _markdown_table(result: TabularResult) -> str:
    lines = [
        "| " + " | ".join(format_cell(c.name) for c in result.columns) + " |",
        "| " + " | ".join("---" for _ in result.columns) + " |",
    ]
    for row in result.rows:
        lines.append("| " + " | ".join(format_cell(v) for v in row) + " |")
    return "\n".join(lines)


def _markdown_acknowledgement(result: AcknowledgementResult) -> str:
    lines = ["**Operation completed successfully**", ""]
    lines.append(f"- Rows affected: {result.affected_rows}")
    if result.insert_id is not None and result.insert_id > 0:
        lines.append(f"- Insert ID: {result.insert_id}")
    if result.changed_rows is not None:
        lines.append(f"- Rows changed: {result.changed_rows}")
    lines.append(f"- Execution time: {_elapsed(result.execution_time_ms)}")
    return "\n".join(lines) + "\n"


def render_markdown(result: ExecutionResult) -> str:
    if isinstance(result, AcknowledgementResult):
        return _markdown_acknowledgement(result)
    if not result.rows:
        return (
            "**No rows returned**\n\n"
            f"Query completed in {_elapsed(result.execution_time_ms)}\n"
        )
    return (
        _markdown_table(result)
        + "\n\n"
        + f"**Query completed:** {result.row_count} row(s) returned in "
        + f"{_elapsed(result.execution_time_ms)}\n"
    )


def render_result(result: ExecutionResult, *, response_format: str = "markdown") -> str:
    if response_format == "json":
        return render_json(result)
    return render_markdown(result)
