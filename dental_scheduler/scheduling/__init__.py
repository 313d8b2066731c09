from dental_scheduler.scheduling.availability import (
    SlotSequence,
    compute_availability,
    default_window,
    find_free_gaps,
    summarize_day,
)
from dental_scheduler.scheduling.conflicts import detect_conflicts, ensure_bookable, find_conflicts
from dental_scheduler.scheduling.intervals import contains, overlaps
from dental_scheduler.scheduling.optimizer import ScheduleOptimizer, optimize_schedule
from dental_scheduler.scheduling.risk import classify_risk, estimate_no_show_risk, summarize_history
from dental_scheduler.scheduling.waitlist import build_waitlist_entry, match_waitlist

__all__ = [
    "overlaps",
    "contains",
    "SlotSequence",
    "compute_availability",
    "default_window",
    "find_free_gaps",
    "summarize_day",
    "find_conflicts",
    "detect_conflicts",
    "ensure_bookable",
    "estimate_no_show_risk",
    "classify_risk",
    "summarize_history",
    "ScheduleOptimizer",
    "optimize_schedule",
    "build_waitlist_entry",
    "match_waitlist",
]
