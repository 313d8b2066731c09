"""
Interval model: half-open time ranges and the overlap predicates every
other scheduling component relies on.

Intervals are ``[start, end)``, so back-to-back appointments that share an
endpoint tile the calendar without overlapping.
"""

from datetime import datetime, timedelta
from typing import Iterable

from dental_scheduler.errors import InvalidIntervalError, InvalidRequestError
from dental_scheduler.schemas.scheduling_schema import TimeInterval


def validate_interval(interval: TimeInterval) -> TimeInterval:
    """Re-check ordering for intervals built without validation (``model_construct``)."""
    if interval.start >= interval.end:
        raise InvalidIntervalError(
            f"Interval start {interval.start.isoformat()} must be before end {interval.end.isoformat()}"
        )
    return interval


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True iff the two half-open intervals share at least one instant."""
    validate_interval(a)
    validate_interval(b)
    return a.start < b.end and b.start < a.end


def contains(window: TimeInterval, candidate: TimeInterval) -> bool:
    """True iff ``candidate`` lies entirely inside ``window``."""
    validate_interval(window)
    validate_interval(candidate)
    return candidate.start >= window.start and candidate.end <= window.end


def make_interval(start: datetime, minutes: int) -> TimeInterval:
    """Build an interval of ``minutes`` length starting at ``start``."""
    return TimeInterval(start=start, end=start + timedelta(minutes=minutes))


def duration_minutes(interval: TimeInterval) -> int:
    return int((interval.end - interval.start).total_seconds() // 60)


def is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.utcoffset() is not None


def check_same_awareness(reference: datetime, moments: Iterable[datetime], what: str) -> None:
    """Reject a mix of naive and timezone-aware datetimes.

    Comparing the two kinds raises ``TypeError`` deep inside a search, so
    entry points check their inputs up front.

    Raises:
        InvalidRequestError: If any of ``moments`` differs from ``reference``.
    """
    aware = is_aware(reference)
    for moment in moments:
        if is_aware(moment) != aware:
            raise InvalidRequestError(
                f"Cannot mix naive and timezone-aware datetimes: {what} "
                f"({reference.isoformat()} vs {moment.isoformat()})"
            )
