"""Tests for conflict detection and the commit-time guard."""

import pytest

from dental_scheduler.errors import (
    InvalidIntervalError,
    InvalidRequestError,
    SchedulingError,
    SlotUnavailableError,
)
from dental_scheduler.scheduling.conflicts import detect_conflicts, ensure_bookable, find_conflicts
from dental_scheduler.schemas.scheduling_schema import BookingStatus, TimeInterval
from tests.conftest import PROVIDER, UTC, at, make_booking, span


@pytest.fixture
def bookings():
    return [
        make_booking("b1", "09:00", "10:00"),
        make_booking("b2", "10:00", "11:00"),
        make_booking("b3", "13:00", "14:00", status=BookingStatus.CANCELLED),
        make_booking("b4", "09:30", "10:30", provider_id="dr-patel"),
    ]


class TestFindConflicts:
    def test_no_conflict(self, bookings):
        assert find_conflicts(span("11:00", "12:00"), bookings) == []

    def test_single_conflict(self, bookings):
        result = find_conflicts(span("08:30", "09:30"), bookings[:2])
        assert [b.id for b in result] == ["b1"]

    def test_conflicts_returned_in_start_order(self, bookings):
        result = find_conflicts(span("09:45", "10:15"), list(reversed(bookings[:2])))
        assert [b.id for b in result] == ["b1", "b2"]

    def test_cancelled_booking_never_conflicts(self, bookings):
        assert find_conflicts(span("13:00", "14:00"), bookings) == []

    def test_touching_endpoint_is_not_a_conflict(self, bookings):
        assert find_conflicts(span("11:00", "11:30"), bookings) == []

    def test_malformed_proposal(self, bookings):
        bad = TimeInterval.model_construct(start=at("10:00"), end=at("10:00"))
        with pytest.raises(InvalidIntervalError):
            find_conflicts(bad, bookings)


class TestDetectConflicts:
    def test_scoped_to_provider(self, bookings):
        result = detect_conflicts(span("09:30", "10:30"), PROVIDER, bookings)
        assert [b.id for b in result] == ["b1", "b2"]

    def test_other_provider_calendar(self, bookings):
        result = detect_conflicts(span("09:30", "10:30"), "dr-patel", bookings)
        assert [b.id for b in result] == ["b4"]

    def test_exclude_id_for_reschedule_in_place(self, bookings):
        result = detect_conflicts(span("09:15", "09:45"), PROVIDER, bookings, exclude_id="b1")
        assert result == []

    def test_exclude_id_keeps_other_conflicts(self, bookings):
        result = detect_conflicts(span("09:30", "10:30"), PROVIDER, bookings, exclude_id="b1")
        assert [b.id for b in result] == ["b2"]

    def test_unknown_provider_has_no_conflicts(self, bookings):
        assert detect_conflicts(span("09:00", "17:00"), "dr-nobody", bookings) == []


class TestEnsureBookable:
    def test_free_slot_passes(self, bookings):
        ensure_bookable(span("11:00", "12:00"), PROVIDER, bookings)

    def test_taken_slot_raises_retryable_error(self, bookings):
        with pytest.raises(SlotUnavailableError, match="no longer available") as excinfo:
            ensure_bookable(span("09:00", "09:30"), PROVIDER, bookings)
        assert excinfo.value.retryable is True
        assert [b.id for b in excinfo.value.conflicts] == ["b1"]

    def test_reschedule_onto_own_slot(self, bookings):
        ensure_bookable(span("09:00", "10:00"), PROVIDER, bookings, exclude_id="b1")


class TestTimezones:
    def test_aware_proposal_against_naive_bookings(self, bookings):
        with pytest.raises(InvalidRequestError, match="naive and timezone-aware"):
            detect_conflicts(span("10:00", "11:00", tz=UTC), PROVIDER, bookings)

    def test_mismatch_is_a_scheduling_error(self, bookings):
        with pytest.raises(SchedulingError):
            ensure_bookable(span("10:00", "11:00", tz=UTC), PROVIDER, bookings)

    def test_all_aware_inputs(self):
        existing = [make_booking("b1", "10:00", "11:00", tz=UTC)]
        result = detect_conflicts(span("10:30", "11:30", tz=UTC), PROVIDER, existing)
        assert [b.id for b in result] == ["b1"]
