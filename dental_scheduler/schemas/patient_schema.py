"""Patient history, risk and waitlist data models."""

from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dental_scheduler.schemas.scheduling_schema import BookingStatus, RiskLevel, Urgency

__all__ = ["AppointmentHistoryRecord", "HistoryPatterns", "WaitlistEntry", "RiskLevel"]


class AppointmentHistoryRecord(BaseModel):
    """Minimal projection of a past booking used for risk scoring."""

    model_config = ConfigDict(frozen=True)

    status: BookingStatus
    start_time: datetime


class WaitlistEntry(BaseModel):
    """A patient waiting for an earlier or newly freed slot."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    appointment_type: str
    preferred_date: date
    preferred_time: Optional[str] = None
    provider_id: Optional[str] = None
    urgency: Urgency = Urgency.ROUTINE
    priority: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HistoryPatterns(BaseModel):
    """Outcome counts and rates over a patient's recent appointments.

    Every rate is 0.0 when there is no history.
    """

    model_config = ConfigDict(frozen=True)

    total_appointments: int = 0
    completed: int = 0
    no_shows: int = 0
    cancellations: int = 0
    completion_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    no_show_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    cancellation_rate: float = Field(default=0.0, ge=0.0, le=1.0)
