"""Render diagnostics as Markdown (agents, terminals) or JSON."""

from __future__ import annotations

import json

from sqlwarden.diagnostics.types import Diagnostic


def render_json(diag: Diagnostic) -> dict:
    """Render a Diagnostic as a JSON-serializable dict."""
    return {
        "error": {
            "code": str(diag.code),
            "category": diag.category.value,
            "level": diag.level.name.lower(),
            "message": diag.message,
            "notes": diag.notes,
            "suggestions": diag.suggestions,
        }
    }


def render_markdown(diag: Diagnostic) -> str:
    """Render a Diagnostic as a short Markdown error report."""
    lines = [f"**Error [{diag.code}]: {diag.message}**", ""]
    for note in diag.notes:
        lines.append(note)
        lines.append("")
    if diag.suggestions:
        lines.append("**Suggestions:**")
        lines.extend(f"- {s}" for s in diag.suggestions)
        lines.append("")
    return "\n".join(lines)


def render_diagnostic(diag: Diagnostic, *, response_format: str = "markdown") -> str:
    if response_format == "json":
        return json.dumps(render_json(diag), indent=2)
    return render_markdown(diag)
