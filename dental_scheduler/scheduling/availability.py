"""
Availability calculator.

Scans a provider's working window in fixed granularity steps and emits
every candidate slot that fits inside the window without touching an
active booking. The fixed step means a free gap whose start does not line
up with the grid can be missed; ``find_free_gaps`` reports exact gaps for
callers that need them.

Usage:
    request = SlotRequest(provider_id="dr-lee", date=day, duration_minutes=60)
    slots = compute_availability(request, bookings, window)
    first = slots.first()
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Iterator, Optional

from dental_scheduler.config import PracticeConfig, settings
from dental_scheduler.errors import InvalidRequestError
from dental_scheduler.scheduling.intervals import (
    check_same_awareness,
    contains,
    duration_minutes,
    make_interval,
    overlaps,
    validate_interval,
)
from dental_scheduler.schemas.scheduling_schema import (
    AvailableSlot,
    Booking,
    DayAvailability,
    SlotRequest,
    TimeInterval,
    WorkingWindow,
)

logger = logging.getLogger(__name__)


def _blocking_bookings(
    bookings: Iterable[Booking],
    provider_id: str,
    bounds: TimeInterval,
) -> tuple[Booking, ...]:
    """Active bookings for one provider, ordered by start."""
    active = [b for b in bookings if b.is_active and b.provider_id == provider_id]
    check_same_awareness(
        bounds.start, (b.interval.start for b in active), "working window vs bookings"
    )
    return tuple(sorted(active, key=lambda b: b.interval.start))


class SlotSequence:
    """Lazy, finite sequence of available slots.

    Each iteration rescans the window from the start, so the sequence can
    be consumed any number of times and always yields the same slots in
    the same earliest-first order.
    """

    def __init__(
        self,
        request: SlotRequest,
        window: WorkingWindow,
        blocking: tuple[Booking, ...],
    ) -> None:
        self.request = request
        self.window = window
        self._blocking = blocking

    def __iter__(self) -> Iterator[AvailableSlot]:
        step = timedelta(minutes=self.request.granularity_minutes)
        bounds = self.window.interval
        current = bounds.start

        while current + timedelta(minutes=self.request.duration_minutes) <= bounds.end:
            candidate = make_interval(current, self.request.duration_minutes)
            if contains(bounds, candidate) and not self._is_blocked(candidate):
                yield AvailableSlot(interval=candidate, provider_id=self.request.provider_id)
            current += step

    def _is_blocked(self, candidate: TimeInterval) -> bool:
        for booking in self._blocking:
            # Sorted by start: nothing further along can overlap.
            if booking.interval.start >= candidate.end:
                return False
            if overlaps(candidate, booking.interval):
                return True
        return False

    def first(self) -> Optional[AvailableSlot]:
        """Earliest available slot, or None when the day is full."""
        return next(iter(self), None)

    def __repr__(self) -> str:
        return (
            f"SlotSequence(provider={self.request.provider_id!r}, "
            f"date={self.request.date.isoformat()}, "
            f"duration={self.request.duration_minutes}m, "
            f"step={self.request.granularity_minutes}m)"
        )


def compute_availability(
    request: SlotRequest,
    bookings: Iterable[Booking],
    window: WorkingWindow,
) -> SlotSequence:
    """Return every free slot for ``request`` inside ``window``.

    Cancelled bookings and bookings belonging to other providers are
    ignored.

    Raises:
        InvalidRequestError: If the window belongs to a different provider or date,
            or mixes naive and timezone-aware datetimes with the bookings.
        InvalidIntervalError: If the window interval is malformed.
    """
    if window.provider_id != request.provider_id:
        raise InvalidRequestError(
            f"Working window is for provider {window.provider_id!r}, "
            f"request is for {request.provider_id!r}"
        )
    if window.date != request.date:
        raise InvalidRequestError(
            f"Working window is for {window.date.isoformat()}, "
            f"request is for {request.date.isoformat()}"
        )
    validate_interval(window.interval)

    blocking = _blocking_bookings(bookings, request.provider_id, window.interval)
    logger.debug(
        "Availability search for %s on %s: %d active booking(s)",
        request.provider_id, request.date.isoformat(), len(blocking),
    )
    return SlotSequence(request, window, blocking)


def find_free_gaps(window: WorkingWindow, bookings: Iterable[Booking]) -> list[TimeInterval]:
    """Exact free intervals between active bookings, clipped to the window."""
    bounds = validate_interval(window.interval)
    blocking = _blocking_bookings(bookings, window.provider_id, bounds)
    gaps: list[TimeInterval] = []
    cursor = bounds.start

    for booking in blocking:
        if booking.interval.start >= bounds.end:
            break
        if booking.interval.end <= cursor:
            continue
        if booking.interval.start > cursor:
            gaps.append(TimeInterval(start=cursor, end=booking.interval.start))
        cursor = max(cursor, booking.interval.end)

    if cursor < bounds.end:
        gaps.append(TimeInterval(start=cursor, end=bounds.end))
    return gaps


def summarize_day(
    request: SlotRequest,
    bookings: Iterable[Booking],
    window: WorkingWindow,
) -> DayAvailability:
    """Free capacity snapshot for one provider on one date."""
    bookings = list(bookings)
    slots = list(compute_availability(request, bookings, window))
    gaps = find_free_gaps(window, bookings)

    window_minutes = duration_minutes(window.interval)
    booked_minutes = window_minutes - sum(duration_minutes(g) for g in gaps)

    return DayAvailability(
        provider_id=request.provider_id,
        date=request.date,
        available_slot_count=len(slots),
        next_available=slots[0].interval if slots else None,
        free_gaps=gaps,
        booked_minutes=booked_minutes,
        utilization=round(booked_minutes / window_minutes, 3) if window_minutes else 0.0,
    )


def default_window(
    provider_id: str,
    day: date,
    practice: Optional[PracticeConfig] = None,
    tz: Optional[tzinfo] = None,
) -> WorkingWindow:
    """Working window built from the configured practice hours."""
    practice = practice or settings.practice
    return WorkingWindow(
        provider_id=provider_id,
        date=day,
        interval=TimeInterval(
            start=datetime.combine(day, practice.day_start, tzinfo=tz),
            end=datetime.combine(day, practice.day_end, tzinfo=tz),
        ),
    )
