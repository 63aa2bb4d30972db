"""Audit log — one JSONL entry per request, daily files per project, with retention cleanup."""

from __future__ import annotations

import contextlib
import json
import os
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

DEFAULT_RETENTION_DAYS = 30
STATEMENT_PREVIEW_LENGTH = 200
_LOG_ROOT = Path.home() / ".sqlwarden" / "audit"


@dataclass
class AuditEntry:
    db: str | None
    mode: str
    operation_kind: str | None
    statements: list[str]
    outcome: str
    tables: list[str] = field(default_factory=list)
    blocked: bool = False
    code: str | None = None
    row_count: int | None = None
    duration_ms: float | None = None
    truncated: bool = False


def _preview(statement: str) -> str:
    if len(statement) <= STATEMENT_PREVIEW_LENGTH:
        return statement
    return statement[:STATEMENT_PREVIEW_LENGTH] + "..."


def _project_slug() -> str:
    """Encode cwd into a directory-safe slug."""
    cwd = os.getcwd()
    return cwd.replace("/", "-").replace("\\", "-").replace(":", "").lstrip("-")


def _log_dir() -> Path:
    """Return the audit directory for the current project."""
    return _LOG_ROOT / _project_slug()


def _today_file() -> Path:
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    return _log_dir() / f"{today}.jsonl"


def log_request(entry: AuditEntry) -> Path:
    """Append one entry to today's JSONL file.

    The line goes out in a single write on an O_APPEND descriptor, so
    concurrent writers never interleave within an entry.
    """
    record = {"ts": datetime.now(UTC).isoformat(), **asdict(entry)}
    record["statements"] = [_preview(s) for s in entry.statements]
    line = (json.dumps(record, default=str) + "\n").encode()

    log_file = _today_file()
    log_file.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    fd = os.open(log_file, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
    try:
        os.write(fd, line)
    finally:
        os.close(fd)
    return log_file


def read_entries(day: str | None = None) -> list[dict]:
    """Entries from one day's file (default today), oldest first."""
    log_file = _log_dir() / f"{day}.jsonl" if day else _today_file()
    if not log_file.exists():
        return []
    return [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]


def cleanup_old_logs(*, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
    """Delete audit files older than retention_days. Returns count of deleted files."""
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0

    log_dir = _log_dir()
    if not log_dir.exists():
        return 0

    for log_file in log_dir.glob("*.jsonl"):
        # Filenames are YYYY-MM-DD.jsonl; anything else is left alone.
        try:
            file_date = datetime.strptime(log_file.stem, "%Y-%m-%d").replace(tzinfo=UTC)
        except ValueError:
            continue
        if file_date < cutoff:
            log_file.unlink()
            deleted += 1

    # Only succeeds when the directory is empty.
    with contextlib.suppress(OSError):
        log_dir.rmdir()

    return deleted
