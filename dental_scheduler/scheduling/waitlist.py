"""
Waitlist helpers.

The engine never stores the waitlist. These functions build entries for
the caller to persist and, when a booking is cancelled, pick which waiting
patients to offer the freed slot to.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from dental_scheduler.config import RiskConfig, settings
from dental_scheduler.scheduling.risk import classify_risk
from dental_scheduler.schemas.patient_schema import WaitlistEntry
from dental_scheduler.schemas.scheduling_schema import (
    AvailableSlot,
    RiskLevel,
    SchedulingContext,
    Urgency,
)

logger = logging.getLogger(__name__)

URGENCY_PRIORITY: dict[Urgency, int] = {
    Urgency.ROUTINE: 1,
    Urgency.URGENT: 2,
    Urgency.EMERGENCY: 3,
}


def waitlist_priority(
    urgency: Urgency,
    risk_score: float,
    config: Optional[RiskConfig] = None,
) -> int:
    """Higher is served first. Reliable (low-risk) patients get one extra point."""
    priority = URGENCY_PRIORITY[urgency]
    if classify_risk(risk_score, config or settings.risk) == RiskLevel.LOW:
        priority += 1
    return priority


def build_waitlist_entry(
    context: SchedulingContext,
    patient_id: str,
    risk_score: float,
    now: Optional[datetime] = None,
    config: Optional[RiskConfig] = None,
) -> WaitlistEntry:
    """Waitlist entry for a request whose search came back empty.

    The first preferred date and time become the entry's preference.
    """
    entry = WaitlistEntry(
        patient_id=patient_id,
        appointment_type=context.appointment_type,
        preferred_date=context.preferred_dates[0],
        preferred_time=context.preferred_times[0] if context.preferred_times else None,
        provider_id=context.provider_id,
        urgency=context.urgency,
        priority=waitlist_priority(context.urgency, risk_score, config),
        created_at=now or datetime.now(timezone.utc),
    )
    logger.info(
        "Waitlist entry for patient %s on %s (priority %d)",
        patient_id, entry.preferred_date.isoformat(), entry.priority,
    )
    return entry


def match_waitlist(entries: Iterable[WaitlistEntry], slot: AvailableSlot) -> list[WaitlistEntry]:
    """Entries that could take ``slot``, best candidate first.

    An entry matches when it wants the slot's date and either names the
    slot's provider or has no provider preference. Ties on priority go to
    whoever joined the waitlist first.
    """
    slot_date = slot.interval.start.date()
    matches = [
        e
        for e in entries
        if e.preferred_date == slot_date
        and (e.provider_id is None or e.provider_id == slot.provider_id)
    ]
    return sorted(matches, key=lambda e: (-e.priority, e.created_at))
