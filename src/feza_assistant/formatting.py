"""
Deterministic Formatting
========================

Plain-text rendering of query rows, used when narration by the model fails.
"""

from typing import Any

NO_RESULTS_MESSAGE = "I couldn't find any data for that. Could you try asking something else?"


def humanize_field(name: str) -> str:
    """``client_name`` -> ``Client Name``."""
    words = name.replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or name


def format_amount(value: Any) -> str:
    """Thousands separators for numbers; two decimals for non-integers."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        if value.is_integer():
            return f"{int(value):,}"
        return f"{value:,.2f}"
    return str(value)


def format_value(value: Any) -> str:
    if value is None:
        return "N/A"
    return format_amount(value)


def format_rows(rows: list[dict[str, Any]], limit: int = 10) -> str:
    """
    Render rows as labeled key/value lines.

    Pure string formatting; cannot fail for any row content.

    Args:
        rows: Query rows in store order
        limit: Maximum rows to enumerate before summarizing the rest

    Returns:
        Human-readable text
    """
    if not rows:
        return NO_RESULTS_MESSAGE

    if len(rows) == 1 and len(rows[0]) == 1:
        (name, value), = rows[0].items()
        return f"{humanize_field(str(name))}: {format_value(value)}"

    noun = "result" if len(rows) == 1 else "results"
    lines = [f"Here's what I found ({len(rows)} {noun}):"]
    for index, row in enumerate(rows[:limit], start=1):
        fields = ", ".join(
            f"{humanize_field(str(name))}: {format_value(value)}" for name, value in row.items()
        )
        lines.append(f"{index}. {fields}")
    remaining = len(rows) - limit
    if remaining > 0:
        lines.append(f"...and {remaining} more.")
    return "\n".join(lines)
