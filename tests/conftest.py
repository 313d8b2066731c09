"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

import pytest

from dental_scheduler.config import AppConfig
from dental_scheduler.scheduling.optimizer import ScheduleOptimizer
from dental_scheduler.schemas.patient_schema import AppointmentHistoryRecord
from dental_scheduler.schemas.scheduling_schema import (
    Booking,
    BookingStatus,
    SlotRequest,
    TimeInterval,
    WorkingWindow,
)

DAY = date(2025, 3, 18)
PROVIDER = "dr-lee"
NOW = datetime(2025, 3, 18, 7, 0)
UTC = timezone.utc


def at(clock: str, day: date = DAY, tz: Optional[tzinfo] = None) -> datetime:
    """Datetime on ``day`` at an HH:MM clock time, naive unless ``tz`` is given."""
    hour, minute = (int(p) for p in clock.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)


def span(start: str, end: str, day: date = DAY, tz: Optional[tzinfo] = None) -> TimeInterval:
    return TimeInterval(start=at(start, day, tz), end=at(end, day, tz))


def make_booking(
    booking_id: str,
    start: str,
    end: str,
    status: BookingStatus = BookingStatus.SCHEDULED,
    provider_id: str = PROVIDER,
    day: date = DAY,
    patient_id: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> Booking:
    return Booking(
        id=booking_id,
        provider_id=provider_id,
        interval=span(start, end, day, tz),
        status=status,
        patient_id=patient_id,
    )


def make_window(
    start: str = "08:00",
    end: str = "17:00",
    provider_id: str = PROVIDER,
    day: date = DAY,
    tz: Optional[tzinfo] = None,
) -> WorkingWindow:
    return WorkingWindow(provider_id=provider_id, date=day, interval=span(start, end, day, tz))


def make_request(
    duration: int = 60,
    granularity: int = 15,
    provider_id: str = PROVIDER,
    day: date = DAY,
) -> SlotRequest:
    return SlotRequest(
        provider_id=provider_id,
        date=day,
        duration_minutes=duration,
        granularity_minutes=granularity,
    )


def make_history(
    *statuses: BookingStatus,
    days_ago: int = 200,
    now: datetime = NOW,
) -> list[AppointmentHistoryRecord]:
    """History records, one per status, all ``days_ago`` before ``now``."""
    return [
        AppointmentHistoryRecord(status=s, start_time=now - timedelta(days=days_ago))
        for s in statuses
    ]


@pytest.fixture
def window():
    return make_window()


@pytest.fixture
def request_60():
    return make_request(duration=60, granularity=15)


@pytest.fixture
def optimizer():
    return ScheduleOptimizer(AppConfig())
