"""Policy report rendering for the `validate` command."""

from __future__ import annotations

import json

from sqlwarden.diagnostics.render import render_json, render_markdown
from sqlwarden.diagnostics.translate import rejection_diagnostic
from sqlwarden.policy import PolicyResult


def policy_to_dict(result: PolicyResult) -> dict:
    data: dict[str, object] = {
        "decision": "deny" if result.blocked else "allow",
        "operation_kind": result.operation_kind.value,
        "statements": [
            {
                "sql": statement,
                "operation_kind": verdict.operation_kind.value,
                "allowed": verdict.allowed,
            }
            for statement, verdict in zip(result.statements, result.verdicts, strict=False)
        ],
        "tables": result.tables,
    }
    if result.blocked:
        data.update(render_json(rejection_diagnostic(result.verdict)))
    return data


def format_policy(result: PolicyResult, *, output_format: str = "text") -> str:
    if output_format == "json":
        return json.dumps(policy_to_dict(result), indent=2)

    lines: list[str] = []
    for statement, verdict in zip(result.statements, result.verdicts, strict=False):
        status = "allow" if verdict.allowed else "deny"
        lines.append(f"{status}: {verdict.operation_kind.label}: {statement}")
    skipped = len(result.statements) - len(result.verdicts)
    if skipped:
        lines.append(f"({skipped} later statement(s) not evaluated)")
    if result.tables:
        lines.append(f"tables: {', '.join(result.tables)}")
    if result.blocked:
        lines.append("")
        lines.append(render_markdown(rejection_diagnostic(result.verdict)).rstrip())
    return "\n".join(lines)
