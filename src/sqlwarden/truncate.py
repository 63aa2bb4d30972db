"""Bound rendered output to a character budget."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHARACTER_BUDGET = 25_000


@dataclass(frozen=True)
class Truncation:
    text: str
    truncated: bool
    original_length: int


def truncation_notice(original_length: int) -> str:
    return (
        "\n\n---\n**Response Truncated**\n\n"
        f"Original length was {original_length} characters.\n\n"
        "**Suggestions to reduce response size:**\n"
        "- Add a LIMIT clause to restrict the number of rows (e.g., LIMIT 100)\n"
        "- Use WHERE clauses to filter data more specifically\n"
        "- Select only necessary columns instead of using SELECT *\n"
        "- Consider breaking your query into smaller, more focused queries\n"
    )


def truncate(text: str, budget: int = DEFAULT_CHARACTER_BUDGET) -> Truncation:
    """Fit text into budget characters, notice included.

    The result is never longer than budget. If the notice alone does not fit,
    it is clipped and no content survives.
    """
    original_length = len(text)
    if original_length <= budget:
        return Truncation(text=text, truncated=False, original_length=original_length)

    notice = truncation_notice(original_length)
    content = text[: max(0, budget - len(notice))]
    return Truncation(
        text=(content + notice)[:budget],
        truncated=True,
        original_length=original_length,
    )
