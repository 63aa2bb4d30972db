"""Runtime configuration — one immutable value built at startup."""

from __future__ import annotations

from dataclasses import dataclass

from sqlwarden.executor import DEFAULT_QUERY_TIMEOUT_MS
from sqlwarden.policy import MAX_QUERY_LENGTH
from sqlwarden.policy._types import ModePolicy
from sqlwarden.truncate import DEFAULT_CHARACTER_BUDGET

MIN_QUERY_TIMEOUT_MS = 1_000
MAX_QUERY_TIMEOUT_MS = 600_000
MIN_CHARACTER_BUDGET = 1_000
MAX_QUERY_LENGTH_LIMIT = 1_000_000


@dataclass(frozen=True)
class WardenConfig:
    """Knobs consumed by the pipeline. Invalid values raise ValueError."""

    mode: ModePolicy = ModePolicy.READ_ONLY
    query_timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS
    character_budget: int = DEFAULT_CHARACTER_BUDGET
    max_query_length: int = MAX_QUERY_LENGTH
    audit_log: bool = True

    def __post_init__(self) -> None:
        if not MIN_QUERY_TIMEOUT_MS <= self.query_timeout_ms <= MAX_QUERY_TIMEOUT_MS:
            raise ValueError(
                f"query_timeout_ms must be between {MIN_QUERY_TIMEOUT_MS} and "
                f"{MAX_QUERY_TIMEOUT_MS}, got {self.query_timeout_ms}"
            )
        if self.character_budget < MIN_CHARACTER_BUDGET:
            raise ValueError(
                f"character_budget must be at least {MIN_CHARACTER_BUDGET}, "
                f"got {self.character_budget}"
            )
        if not 1 <= self.max_query_length <= MAX_QUERY_LENGTH_LIMIT:
            raise ValueError(
                f"max_query_length must be between 1 and {MAX_QUERY_LENGTH_LIMIT}, "
                f"got {self.max_query_length}"
            )

    @classmethod
    def from_options(
        cls,
        *,
        allow_write: bool = False,
        query_timeout_ms: int | None = None,
        character_budget: int | None = None,
        max_query_length: int | None = None,
        audit_log: bool = True,
    ) -> WardenConfig:
        """Build from optional CLI/env values; None keeps the default."""
        kwargs: dict[str, object] = {
            "mode": ModePolicy.from_flag(allow_write),
            "audit_log": audit_log,
        }
        if query_timeout_ms is not None:
            kwargs["query_timeout_ms"] = query_timeout_ms
        if character_budget is not None:
            kwargs["character_budget"] = character_budget
        if max_query_length is not None:
            kwargs["max_query_length"] = max_query_length
        return cls(**kwargs)
