"""
Schedule optimizer: ranks candidate slots for a patient's request.

Pipeline for one request:
1. Estimate no-show risk from the patient's history.
2. Search availability on each preferred date, in caller order.
3. Score every candidate slot:
       base  = 1.0 - time_of_day_penalty - later_date_penalty   (clamped)
       score = base * (1 - risk)
   Emergency requests put reference-day and next-day slots in a tier of
   their own, ahead of everything else.
4. Return the best slot plus a few non-overlapping alternatives, or a
   zero-confidence waitlist result when nothing is free.

Usage:
    optimizer = ScheduleOptimizer()
    result = optimizer.optimize(context, bookings_by_date, history=history)
    if result.waitlist_recommended:
        ...  # offer waitlist enrollment
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Iterable, Mapping, Optional, Sequence

from dental_scheduler.config import AppConfig, settings
from dental_scheduler.errors import InvalidRequestError
from dental_scheduler.scheduling.appointment_types import get_default_duration, get_display_name
from dental_scheduler.scheduling.availability import compute_availability, default_window
from dental_scheduler.scheduling.intervals import check_same_awareness, overlaps
from dental_scheduler.scheduling.risk import classify_risk, estimate_no_show_risk
from dental_scheduler.schemas.patient_schema import AppointmentHistoryRecord
from dental_scheduler.schemas.scheduling_schema import (
    DAY_PERIODS,
    AvailableSlot,
    Booking,
    RiskLevel,
    ScheduleOptimizationResult,
    SchedulingContext,
    SlotRequest,
    Urgency,
    WorkingWindow,
)
from dental_scheduler.utils import clamp01, minute_of_day, parse_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimePreference:
    """A preferred start-time range in minutes of day, ``[start, end)``."""

    label: str
    start_minute: int
    end_minute: int

    def distance(self, minute: int) -> int:
        """Minutes between ``minute`` and this range; 0 when inside it."""
        if minute < self.start_minute:
            return self.start_minute - minute
        if minute >= self.end_minute:
            return minute - self.end_minute + 1
        return 0


def parse_time_preference(value: str) -> TimePreference:
    """Turn "morning" / "afternoon" / "evening" or "HH:MM" into a range."""
    normalized = value.strip().lower()
    if normalized in DAY_PERIODS:
        start, end = DAY_PERIODS[normalized]
        return TimePreference(normalized, minute_of_day(start), minute_of_day(end))
    try:
        clock = parse_clock(normalized)
    except ValueError:
        raise InvalidRequestError(f"Unrecognized preferred time: {value!r}") from None
    minute = minute_of_day(clock)
    return TimePreference(normalized, minute, minute + 1)


@dataclass
class ScoredSlot:
    """A candidate slot with its ranking inputs."""

    slot: AvailableSlot
    score: float
    tier: int
    day_offset: int
    time_penalty: float

    def sort_key(self) -> tuple:
        return (self.tier, -self.score, self.slot.interval.start, self.slot.provider_id)


class ScheduleOptimizer:
    """Suggests and ranks appointment times for a scheduling context."""

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self._config = config or settings

    def optimize(
        self,
        context: SchedulingContext,
        bookings_by_date: Mapping[date, Sequence[Booking]],
        history: Optional[Sequence[AppointmentHistoryRecord]] = None,
        windows: Optional[Iterable[WorkingWindow]] = None,
        now: Optional[datetime] = None,
    ) -> ScheduleOptimizationResult:
        """Rank free slots across the context's preferred dates.

        Args:
            context: The patient's request.
            bookings_by_date: Existing bookings keyed by calendar date.
            history: Patient appointment history for risk scoring.
            windows: Working windows for the preferred dates. When omitted,
                the configured practice hours are used for
                ``context.provider_id``.
            now: Reference instant for risk recency.

        Raises:
            InvalidRequestError: If no windows are given and the context
                names no provider, or if naive and timezone-aware datetimes
                are mixed across windows, bookings, history and
                ``earliest_start``.
        """
        risk = estimate_no_show_risk(history or [], now=now, config=self._config.risk)
        level = classify_risk(risk, self._config.risk)

        duration = context.duration_minutes or get_default_duration(context.appointment_type)
        granularity = (
            context.granularity_minutes
            or self._config.practice.default_granularity_minutes
        )
        preferred_dates = list(dict.fromkeys(context.preferred_dates))
        windows_by_date = self._resolve_windows(context, preferred_dates, bookings_by_date, windows)
        _check_timezones(context, windows_by_date)
        preferences = [parse_time_preference(v) for v in context.preferred_times]
        reference = context.reference_date or min(preferred_dates)

        logger.info(
            "Optimizing %s (%s, %d min) over %d date(s), risk %.2f",
            context.appointment_type, context.urgency.value, duration,
            len(preferred_dates), risk,
        )

        candidates: list[ScoredSlot] = []
        for day in preferred_dates:
            day_windows = windows_by_date.get(day, [])
            if not day_windows:
                logger.info("No working window on %s, skipping", day.isoformat())
                continue
            day_bookings = bookings_by_date.get(day, [])
            for window in day_windows:
                request = SlotRequest(
                    provider_id=window.provider_id,
                    date=day,
                    duration_minutes=duration,
                    granularity_minutes=granularity,
                )
                for slot in compute_availability(request, day_bookings, window):
                    if context.earliest_start and slot.interval.start < context.earliest_start:
                        continue
                    candidates.append(
                        self._score(slot, day, context.urgency, reference, preferences, risk)
                    )

        if not candidates:
            has_windows = any(windows_by_date.get(d) for d in preferred_dates)
            return self._waitlist_result(context, preferred_dates, risk, level, has_windows)

        ranked = sorted(candidates, key=ScoredSlot.sort_key)
        best = ranked[0]
        alternatives = self._pick_alternatives(best, ranked[1:])

        logger.info(
            "Suggested %s with %s (score %.3f, %d alternative(s))",
            best.slot.interval.start.isoformat(), best.slot.provider_id,
            best.score, len(alternatives),
        )
        return ScheduleOptimizationResult(
            suggested_interval=best.slot.interval,
            suggested_provider_id=best.slot.provider_id,
            alternative_intervals=[c.slot.interval for c in alternatives],
            alternative_slots=[c.slot for c in alternatives],
            risk_score=risk,
            risk_level=level,
            optimization_score=best.score,
            reasoning=self._explain(
                context, best, ranked, duration, preferences, reference, risk, level
            ),
        )

    def _resolve_windows(
        self,
        context: SchedulingContext,
        preferred_dates: list[date],
        bookings_by_date: Mapping[date, Sequence[Booking]],
        windows: Optional[Iterable[WorkingWindow]],
    ) -> dict[date, list[WorkingWindow]]:
        if windows is None:
            if context.provider_id is None:
                raise InvalidRequestError(
                    "provider_id is required when no working windows are supplied"
                )
            tz = _infer_tz(context, bookings_by_date)
            return {
                day: [default_window(context.provider_id, day, self._config.practice, tz)]
                for day in preferred_dates
            }

        resolved: dict[date, list[WorkingWindow]] = {}
        for window in windows:
            if context.provider_id and window.provider_id != context.provider_id:
                continue
            resolved.setdefault(window.date, []).append(window)
        return resolved

    def _score(
        self,
        slot: AvailableSlot,
        day: date,
        urgency: Urgency,
        reference: date,
        preferences: list[TimePreference],
        risk: float,
    ) -> ScoredSlot:
        opt = self._config.optimizer

        time_penalty = 0.0
        if preferences:
            minute = minute_of_day(slot.interval.start)
            distance = min(p.distance(minute) for p in preferences)
            time_penalty = min(opt.max_time_penalty, distance / 60 * opt.time_penalty_per_hour)

        day_offset = max(0, (day - reference).days)
        per_day = opt.routine_day_penalty if urgency == Urgency.ROUTINE else opt.urgent_day_penalty
        date_penalty = min(opt.max_date_penalty, day_offset * per_day)

        tier = 0
        if urgency == Urgency.EMERGENCY and day_offset > opt.emergency_horizon_days:
            tier = 1

        score = clamp01(1.0 - time_penalty - date_penalty) * (1.0 - risk)
        return ScoredSlot(
            slot=slot,
            score=clamp01(score),
            tier=tier,
            day_offset=day_offset,
            time_penalty=time_penalty,
        )

    def _pick_alternatives(self, best: ScoredSlot, rest: list[ScoredSlot]) -> list[ScoredSlot]:
        """Next-best slots that overlap neither the suggestion nor each other."""
        chosen: list[ScoredSlot] = []
        taken = [best.slot.interval]
        for candidate in rest:
            if len(chosen) >= self._config.optimizer.max_alternatives:
                break
            if any(overlaps(candidate.slot.interval, t) for t in taken):
                continue
            chosen.append(candidate)
            taken.append(candidate.slot.interval)
        return chosen

    def _explain(
        self,
        context: SchedulingContext,
        best: ScoredSlot,
        ranked: list[ScoredSlot],
        duration: int,
        preferences: list[TimePreference],
        reference: date,
        risk: float,
        level: RiskLevel,
    ) -> str:
        start = best.slot.interval.start
        parts = [
            f"Suggested {start:%Y-%m-%d %H:%M} with provider {best.slot.provider_id} "
            f"for {get_display_name(context.appointment_type)} ({duration} min), "
            f"best of {len(ranked)} open slot(s)."
        ]
        if context.urgency == Urgency.EMERGENCY:
            horizon = self._config.optimizer.emergency_horizon_days
            if best.tier == 0:
                parts.append(
                    f"Emergency: slots within {horizon} day(s) of "
                    f"{reference.isoformat()} prioritized."
                )
            else:
                parts.append(
                    f"Emergency: nothing free within {horizon} day(s) of "
                    f"{reference.isoformat()}; earliest option offered."
                )
        elif context.urgency == Urgency.URGENT:
            parts.append("Urgent: earlier dates weighted heavily.")
        if preferences:
            if best.time_penalty == 0:
                parts.append("Matches the preferred time of day.")
            else:
                wanted = ", ".join(p.label for p in preferences)
                parts.append(f"Closest available to the preferred time ({wanted}).")
        parts.append(f"No-show risk {risk:.2f} ({level.value}).")
        if level == RiskLevel.HIGH:
            parts.append("Consider a confirmation call before the visit.")
        return " ".join(parts)

    def _waitlist_result(
        self,
        context: SchedulingContext,
        preferred_dates: list[date],
        risk: float,
        level: RiskLevel,
        has_windows: bool,
    ) -> ScheduleOptimizationResult:
        dates = ", ".join(d.isoformat() for d in preferred_dates)
        if has_windows:
            reason = f"No availability for {get_display_name(context.appointment_type)} on {dates}."
        else:
            reason = f"No availability: no working hours configured for {dates}."
        logger.info("%s Recommending waitlist.", reason)
        return ScheduleOptimizationResult(
            risk_score=risk,
            risk_level=level,
            optimization_score=0.0,
            reasoning=f"{reason} Offer waitlist enrollment or widen the search.",
            waitlist_recommended=True,
        )


def _check_timezones(
    context: SchedulingContext,
    windows_by_date: Mapping[date, Sequence[WorkingWindow]],
) -> None:
    """Windows and ``earliest_start`` must agree on naive vs aware."""
    starts = [w.interval.start for day_windows in windows_by_date.values() for w in day_windows]
    if not starts:
        return
    check_same_awareness(starts[0], starts, "working windows")
    if context.earliest_start is not None:
        check_same_awareness(
            starts[0], [context.earliest_start], "earliest_start vs working windows"
        )


def _infer_tz(
    context: SchedulingContext,
    bookings_by_date: Mapping[date, Sequence[Booking]],
) -> Optional[tzinfo]:
    """Timezone for default windows, taken from the caller's own datetimes."""
    if context.earliest_start is not None:
        return context.earliest_start.tzinfo
    for bookings in bookings_by_date.values():
        for booking in bookings:
            return booking.interval.start.tzinfo
    return None


def optimize_schedule(
    context: SchedulingContext,
    bookings_by_date: Mapping[date, Sequence[Booking]],
    history: Optional[Sequence[AppointmentHistoryRecord]] = None,
    windows: Optional[Iterable[WorkingWindow]] = None,
    now: Optional[datetime] = None,
) -> ScheduleOptimizationResult:
    """Module-level shortcut using the global settings."""
    return ScheduleOptimizer().optimize(
        context, bookings_by_date, history=history, windows=windows, now=now
    )
