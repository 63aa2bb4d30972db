"""Unified execution result: a tagged union of tabular and acknowledgement outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class Column:
    name: str
    type_name: str


@dataclass
class TabularResult:
    """Rows and columns returned by a statement that produces a result set."""

    columns: list[Column]
    rows: list[tuple]
    execution_time_ms: float
    truncated: bool = False
    row_count: int = field(init=False)
    kind: Literal["tabular"] = field(default="tabular", init=False)

    def __post_init__(self) -> None:
        self.row_count = len(self.rows)


@dataclass
class AcknowledgementResult:
    """Outcome of a statement that changes data or state and returns no rows."""

    affected_rows: int
    execution_time_ms: float
    insert_id: int | None = None
    changed_rows: int | None = None
    truncated: bool = False
    row_count: int = field(init=False)
    kind: Literal["acknowledgement"] = field(default="acknowledgement", init=False)

    def __post_init__(self) -> None:
        self.row_count = self.affected_rows


ExecutionResult = TabularResult | AcknowledgementResult
