"""Dollar parsing and formatting utilities."""

import re

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_dollars(value: str | int | float | None) -> float:
    """Parse a dollar amount from an Open Data string. e.g. '$1,250.00' -> 1250.0

    Empty or unparsable values parse as 0.0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NON_NUMERIC.sub("", value)
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_dollars(amount: int | float) -> str:
    """Format amount in dollars with comma separators. e.g. 1250.5 -> '$1,250.50'"""
    if amount == int(amount):
        return f"${int(amount):,}"
    return f"${amount:,.2f}"
