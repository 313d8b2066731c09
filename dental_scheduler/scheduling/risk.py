"""
No-show risk estimator.

A weighted linear heuristic over a patient's appointment outcomes:

    risk = clamp01((no_shows * 1.0 + cancellations * 0.5 - completed * 0.1) / total)

plus a flat boost when any no-show happened recently. Weights come from
``RiskConfig`` so the policy can be replaced without touching callers.
``summarize_history`` reports the raw outcome rates behind the score.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from dental_scheduler.config import RiskConfig, settings
from dental_scheduler.scheduling.intervals import check_same_awareness
from dental_scheduler.schemas.patient_schema import AppointmentHistoryRecord, HistoryPatterns
from dental_scheduler.schemas.scheduling_schema import BookingStatus, RiskLevel
from dental_scheduler.utils import clamp01

logger = logging.getLogger(__name__)

# Pattern summaries look at this many of the most recent appointments.
HISTORY_PATTERN_LIMIT = 10


def _is_recent(record: AppointmentHistoryRecord, now: Optional[datetime], days: int) -> bool:
    reference = now if now is not None else datetime.now(record.start_time.tzinfo)
    return reference - record.start_time <= timedelta(days=days)


def estimate_no_show_risk(
    history: Sequence[AppointmentHistoryRecord],
    now: Optional[datetime] = None,
    config: Optional[RiskConfig] = None,
) -> float:
    """Risk score in [0, 1] for a patient's appointment history.

    Args:
        history: Past appointments for one patient. Empty for a new patient.
        now: Reference instant for the recency window. Defaults to the
            current time in each record's timezone.
        config: Weight overrides. Defaults to ``settings.risk``.

    Raises:
        InvalidRequestError: If ``now`` and the history mix naive and
            timezone-aware datetimes.
    """
    config = config or settings.risk

    if not history:
        return config.new_patient_risk
    if now is not None:
        check_same_awareness(now, (r.start_time for r in history), "now vs appointment history")

    no_shows = [r for r in history if r.status == BookingStatus.NO_SHOW]
    cancellations = sum(1 for r in history if r.status == BookingStatus.CANCELLED)
    completed = sum(1 for r in history if r.status == BookingStatus.COMPLETED)
    total = len(history)

    weighted = (
        len(no_shows) * config.no_show_weight
        + cancellations * config.cancellation_weight
        - completed * config.completed_credit
    )
    risk = clamp01(weighted / total)

    if any(_is_recent(r, now, config.recency_days) for r in no_shows):
        risk = clamp01(risk + config.recency_boost)

    logger.debug(
        "No-show risk %.3f from %d record(s): %d no-show, %d cancelled, %d completed",
        risk, total, len(no_shows), cancellations, completed,
    )
    return risk


def classify_risk(score: float, config: Optional[RiskConfig] = None) -> RiskLevel:
    """Bucket a risk score into low / medium / high."""
    config = config or settings.risk
    if score >= config.high_threshold:
        return RiskLevel.HIGH
    if score >= config.medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def summarize_history(
    history: Sequence[AppointmentHistoryRecord],
    limit: Optional[int] = HISTORY_PATTERN_LIMIT,
) -> HistoryPatterns:
    """Outcome rates over the ``limit`` most recent appointments.

    ``limit=None`` summarizes the whole history.
    """
    if history:
        check_same_awareness(
            history[0].start_time, (r.start_time for r in history), "appointment history"
        )
    records = sorted(history, key=lambda r: r.start_time, reverse=True)
    if limit is not None:
        records = records[:limit]

    total = len(records)
    if not total:
        return HistoryPatterns()

    completed = sum(1 for r in records if r.status == BookingStatus.COMPLETED)
    no_shows = sum(1 for r in records if r.status == BookingStatus.NO_SHOW)
    cancellations = sum(1 for r in records if r.status == BookingStatus.CANCELLED)
    return HistoryPatterns(
        total_appointments=total,
        completed=completed,
        no_shows=no_shows,
        cancellations=cancellations,
        completion_rate=completed / total,
        no_show_rate=no_shows / total,
        cancellation_rate=cancellations / total,
    )
