"""
Conflict detector: the single check for "is this slot safe to book".

Creation and rescheduling both go through ``find_conflicts``. Because the
engine only sees a snapshot, callers must run it again against the
authoritative store right before commit; ``ensure_bookable`` turns a
conflict found at that point into a retryable ``SlotUnavailableError``.
"""

import logging
from typing import Iterable, Optional

from dental_scheduler.errors import SlotUnavailableError
from dental_scheduler.scheduling.intervals import (
    check_same_awareness,
    overlaps,
    validate_interval,
)
from dental_scheduler.schemas.scheduling_schema import Booking, TimeInterval

logger = logging.getLogger(__name__)


def find_conflicts(
    proposed: TimeInterval,
    existing: Iterable[Booking],
    exclude_id: Optional[str] = None,
) -> list[Booking]:
    """Active bookings overlapping ``proposed``, in start order.

    ``exclude_id`` skips the booking being moved during a reschedule-in-place.
    """
    validate_interval(proposed)
    existing = list(existing)
    check_same_awareness(
        proposed.start, (b.interval.start for b in existing), "proposed interval vs bookings"
    )
    conflicts = [
        booking
        for booking in existing
        if booking.is_active
        and booking.id != exclude_id
        and overlaps(proposed, booking.interval)
    ]
    return sorted(conflicts, key=lambda b: b.interval.start)


def detect_conflicts(
    proposed: TimeInterval,
    provider_id: str,
    bookings: Iterable[Booking],
    exclude_id: Optional[str] = None,
) -> list[Booking]:
    """Conflicts for ``proposed`` on one provider's calendar."""
    conflicts = find_conflicts(
        proposed,
        (b for b in bookings if b.provider_id == provider_id),
        exclude_id=exclude_id,
    )
    if conflicts:
        logger.info(
            "Conflict for %s at %s: %s",
            provider_id,
            proposed.start.isoformat(),
            ", ".join(b.id for b in conflicts),
        )
    return conflicts


def ensure_bookable(
    proposed: TimeInterval,
    provider_id: str,
    bookings: Iterable[Booking],
    exclude_id: Optional[str] = None,
) -> None:
    """Commit-time guard.

    Raises:
        SlotUnavailableError: If the slot was taken since it was offered.
    """
    conflicts = detect_conflicts(proposed, provider_id, bookings, exclude_id=exclude_id)
    if conflicts:
        raise SlotUnavailableError(
            f"Slot {proposed.start.isoformat()} - {proposed.end.isoformat()} "
            f"for provider {provider_id} is no longer available.",
            conflicts=conflicts,
        )
