"""Shared utilities used across the scheduling engine."""

from datetime import date, datetime, time


def clamp01(value: float) -> float:
    """Clamp a value into the closed unit interval.

    Examples:
        >>> clamp01(1.4)
        1.0
        >>> clamp01(-0.2)
        0.0
    """
    return max(0.0, min(1.0, value))


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date.

    Examples:
        >>> parse_date(" 2025-03-18 ")
        datetime.date(2025, 3, 18)
    """
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_clock(value: str) -> time:
    """Parse an HH:MM string into a time.

    Examples:
        >>> parse_clock("09:30")
        datetime.time(9, 30)
    """
    return datetime.strptime(value.strip(), "%H:%M").time()


def minute_of_day(moment: datetime) -> int:
    """Minutes elapsed since midnight for a datetime or time."""
    return moment.hour * 60 + moment.minute
