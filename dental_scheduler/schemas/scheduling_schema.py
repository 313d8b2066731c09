"""Booking, availability and recommendation data models."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dental_scheduler.errors import InvalidIntervalError, InvalidRequestError

# Named time-of-day periods accepted in preferred_times, as [start, end) clock ranges.
DAY_PERIODS: dict[str, tuple[time, time]] = {
    "morning": (time(8, 0), time(12, 0)),
    "afternoon": (time(12, 0), time(17, 0)),
    "evening": (time(17, 0), time(20, 0)),
}


class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Urgency(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimeInterval(BaseModel):
    """Half-open time range ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "TimeInterval":
        if (self.start.utcoffset() is None) != (self.end.utcoffset() is None):
            raise InvalidIntervalError(
                f"Interval mixes naive and timezone-aware endpoints: "
                f"{self.start.isoformat()} - {self.end.isoformat()}"
            )
        if self.start >= self.end:
            raise InvalidIntervalError(
                f"Interval start {self.start.isoformat()} must be before end {self.end.isoformat()}"
            )
        return self


class Booking(BaseModel):
    """An existing appointment on a provider's calendar."""

    model_config = ConfigDict(frozen=True)

    id: str
    provider_id: str
    interval: TimeInterval
    status: BookingStatus = BookingStatus.SCHEDULED
    patient_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Cancelled bookings never block a slot."""
        return self.status != BookingStatus.CANCELLED


class WorkingWindow(BaseModel):
    """Bounds within which a provider's slots may be offered on a date."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    date: date
    interval: TimeInterval


class SlotRequest(BaseModel):
    """Input to a single provider/date availability search."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    date: date
    duration_minutes: int
    granularity_minutes: int = 15

    @model_validator(mode="after")
    def _check_positive(self) -> "SlotRequest":
        if self.duration_minutes <= 0:
            raise InvalidRequestError(
                f"duration_minutes must be positive, got {self.duration_minutes}"
            )
        if self.granularity_minutes <= 0:
            raise InvalidRequestError(
                f"granularity_minutes must be positive, got {self.granularity_minutes}"
            )
        return self


class AvailableSlot(BaseModel):
    """A bookable slot produced by an availability search."""

    model_config = ConfigDict(frozen=True)

    interval: TimeInterval
    provider_id: str


class DayAvailability(BaseModel):
    """Snapshot of one provider's free capacity on one date."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    date: date
    available_slot_count: int
    next_available: Optional[TimeInterval] = None
    free_gaps: list[TimeInterval] = Field(default_factory=list)
    booked_minutes: int = 0
    utilization: float = 0.0


class SchedulingContext(BaseModel):
    """A patient's request for an appointment recommendation."""

    model_config = ConfigDict(frozen=True)

    appointment_type: str
    preferred_dates: list[date]
    urgency: Urgency = Urgency.ROUTINE
    provider_id: Optional[str] = None
    preferred_times: list[str] = Field(default_factory=list)
    duration_minutes: Optional[int] = None
    granularity_minutes: Optional[int] = None
    patient_id: Optional[str] = None
    earliest_start: Optional[datetime] = None
    reference_date: Optional[date] = None

    @model_validator(mode="after")
    def _check_request(self) -> "SchedulingContext":
        if not self.preferred_dates:
            raise InvalidRequestError("preferred_dates must contain at least one date")
        if self.duration_minutes is not None and self.duration_minutes <= 0:
            raise InvalidRequestError(
                f"duration_minutes must be positive, got {self.duration_minutes}"
            )
        if self.granularity_minutes is not None and self.granularity_minutes <= 0:
            raise InvalidRequestError(
                f"granularity_minutes must be positive, got {self.granularity_minutes}"
            )
        for value in self.preferred_times:
            if value.strip().lower() in DAY_PERIODS:
                continue
            try:
                datetime.strptime(value.strip(), "%H:%M")
            except ValueError:
                raise InvalidRequestError(
                    f"preferred time {value!r} is neither a period "
                    f"({', '.join(DAY_PERIODS)}) nor HH:MM"
                ) from None
        return self


class ScheduleOptimizationResult(BaseModel):
    """Ranked recommendation for a scheduling request.

    ``suggested_interval`` is None and ``waitlist_recommended`` is True
    when the search found nothing.

    ``alternative_slots`` carries each alternative with its provider, which
    may differ from ``suggested_provider_id`` when several providers were
    searched. ``alternative_intervals`` lists the same times without the
    provider.
    """

    model_config = ConfigDict(frozen=True)

    suggested_interval: Optional[TimeInterval] = None
    suggested_provider_id: Optional[str] = None
    alternative_intervals: list[TimeInterval] = Field(default_factory=list)
    alternative_slots: list[AvailableSlot] = Field(default_factory=list)
    risk_score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    optimization_score: float = Field(ge=0.0, le=1.0)
    reasoning: str
    waitlist_recommended: bool = False
