"""Scheduling engine for a multi-tenant dental practice backend.

Route handlers fetch bookings and history, call into this package, and
persist whatever it recommends. The engine itself holds no state.
"""

from dental_scheduler.errors import (
    InvalidIntervalError,
    InvalidRequestError,
    SchedulingError,
    SlotUnavailableError,
)
from dental_scheduler.scheduling import (
    compute_availability,
    detect_conflicts,
    estimate_no_show_risk,
    optimize_schedule,
)

__all__ = [
    "compute_availability",
    "detect_conflicts",
    "estimate_no_show_risk",
    "optimize_schedule",
    "SchedulingError",
    "InvalidIntervalError",
    "InvalidRequestError",
    "SlotUnavailableError",
]
