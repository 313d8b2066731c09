"""Tests for the no-show risk estimator."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from dental_scheduler.config import RiskConfig
from dental_scheduler.errors import InvalidRequestError
from dental_scheduler.scheduling.risk import (
    classify_risk,
    estimate_no_show_risk,
    summarize_history,
)
from dental_scheduler.schemas.patient_schema import AppointmentHistoryRecord
from dental_scheduler.schemas.scheduling_schema import BookingStatus, RiskLevel
from tests.conftest import NOW, UTC, make_history

NO_SHOW = BookingStatus.NO_SHOW
CANCELLED = BookingStatus.CANCELLED
COMPLETED = BookingStatus.COMPLETED


class TestBaseFormula:
    def test_new_patient_default(self):
        assert estimate_no_show_risk([], now=NOW) == pytest.approx(0.1)

    def test_configurable_new_patient_default(self):
        config = replace(RiskConfig(), new_patient_risk=0.25)
        assert estimate_no_show_risk([], now=NOW, config=config) == 0.25

    def test_weighted_history_without_recent_no_show(self):
        history = make_history(NO_SHOW, NO_SHOW, COMPLETED, COMPLETED)
        assert estimate_no_show_risk(history, now=NOW) == pytest.approx(0.45)

    def test_recent_no_show_adds_boost(self):
        history = make_history(NO_SHOW, NO_SHOW, COMPLETED, COMPLETED, days_ago=10)
        assert estimate_no_show_risk(history, now=NOW) == pytest.approx(0.65)

    def test_cancellations_count_half(self):
        history = make_history(CANCELLED, CANCELLED, COMPLETED, COMPLETED)
        # (0 + 1.0 - 0.2) / 4
        assert estimate_no_show_risk(history, now=NOW) == pytest.approx(0.2)

    def test_reliable_patient_clamped_to_zero(self):
        history = make_history(COMPLETED, COMPLETED, COMPLETED)
        assert estimate_no_show_risk(history, now=NOW) == 0.0

    def test_clamped_to_one(self):
        history = make_history(NO_SHOW, NO_SHOW, NO_SHOW, days_ago=5)
        assert estimate_no_show_risk(history, now=NOW) == 1.0

    def test_recent_cancellation_gets_no_boost(self):
        history = make_history(CANCELLED, COMPLETED, days_ago=5)
        # (0.5 - 0.1) / 2
        assert estimate_no_show_risk(history, now=NOW) == pytest.approx(0.2)

    def test_recency_window_boundary(self):
        inside = make_history(NO_SHOW, COMPLETED, COMPLETED, COMPLETED, days_ago=90)
        outside = make_history(NO_SHOW, COMPLETED, COMPLETED, COMPLETED, days_ago=91)
        assert estimate_no_show_risk(inside, now=NOW) == pytest.approx(
            estimate_no_show_risk(outside, now=NOW) + 0.2
        )

    def test_deterministic(self):
        history = make_history(NO_SHOW, CANCELLED, COMPLETED, days_ago=30)
        assert estimate_no_show_risk(history, now=NOW) == estimate_no_show_risk(history, now=NOW)


class TestMonotonicity:
    def test_more_no_shows_never_lowers_risk(self):
        previous = -1.0
        for no_shows in range(0, 8):
            history = make_history(*([NO_SHOW] * no_shows), CANCELLED, COMPLETED, COMPLETED, COMPLETED)
            score = estimate_no_show_risk(history, now=NOW)
            assert score >= previous
            previous = score

    def test_more_recent_no_shows_never_lowers_risk(self):
        base = make_history(COMPLETED, COMPLETED, days_ago=300)
        previous = estimate_no_show_risk(base, now=NOW)
        for _ in range(5):
            base = base + make_history(NO_SHOW, days_ago=20)
            score = estimate_no_show_risk(base, now=NOW)
            assert score >= previous
            previous = score


class TestReferenceTime:
    def test_defaults_to_current_time_for_naive_records(self):
        history = [
            AppointmentHistoryRecord(status=NO_SHOW, start_time=datetime.now() - timedelta(days=3)),
            AppointmentHistoryRecord(status=COMPLETED, start_time=datetime.now() - timedelta(days=400)),
        ]
        # (1 - 0.1) / 2 + 0.2
        assert estimate_no_show_risk(history) == pytest.approx(0.65)

    def test_defaults_to_current_time_for_aware_records(self):
        recent = datetime.now(timezone.utc) - timedelta(days=3)
        history = [AppointmentHistoryRecord(status=NO_SHOW, start_time=recent)]
        assert estimate_no_show_risk(history) == 1.0

    def test_aware_now_with_naive_history(self):
        history = make_history(NO_SHOW, COMPLETED)
        with pytest.raises(InvalidRequestError, match="naive and timezone-aware"):
            estimate_no_show_risk(history, now=NOW.replace(tzinfo=UTC))

    def test_aware_now_with_aware_history(self):
        aware_now = NOW.replace(tzinfo=UTC)
        history = make_history(NO_SHOW, COMPLETED, days_ago=10, now=aware_now)
        assert estimate_no_show_risk(history, now=aware_now) == pytest.approx(0.65)


class TestClassifyRisk:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.0, RiskLevel.LOW),
            (0.29, RiskLevel.LOW),
            (0.3, RiskLevel.MEDIUM),
            (0.59, RiskLevel.MEDIUM),
            (0.6, RiskLevel.HIGH),
            (1.0, RiskLevel.HIGH),
        ],
    )
    def test_default_thresholds(self, score, expected):
        assert classify_risk(score, RiskConfig()) == expected

    def test_custom_thresholds(self):
        config = replace(RiskConfig(), medium_threshold=0.1, high_threshold=0.2)
        assert classify_risk(0.15, config) == RiskLevel.MEDIUM


class TestSummarizeHistory:
    def test_no_history_has_zero_rates(self):
        patterns = summarize_history([])
        assert patterns.total_appointments == 0
        assert patterns.completion_rate == 0.0
        assert patterns.no_show_rate == 0.0
        assert patterns.cancellation_rate == 0.0

    def test_rates(self):
        patterns = summarize_history(make_history(NO_SHOW, NO_SHOW, CANCELLED, COMPLETED))
        assert patterns.total_appointments == 4
        assert (patterns.no_shows, patterns.cancellations, patterns.completed) == (2, 1, 1)
        assert patterns.no_show_rate == pytest.approx(0.5)
        assert patterns.cancellation_rate == pytest.approx(0.25)
        assert patterns.completion_rate == pytest.approx(0.25)

    def test_open_bookings_count_toward_total_only(self):
        patterns = summarize_history(make_history(BookingStatus.SCHEDULED, COMPLETED))
        assert patterns.total_appointments == 2
        assert patterns.completion_rate == pytest.approx(0.5)

    def test_only_most_recent_ten_by_default(self):
        history = make_history(NO_SHOW, NO_SHOW, days_ago=300) + make_history(
            *([COMPLETED] * 10), days_ago=10
        )
        patterns = summarize_history(history)
        assert patterns.total_appointments == 10
        assert patterns.no_shows == 0
        assert patterns.completion_rate == 1.0

    def test_unlimited(self):
        history = make_history(NO_SHOW, NO_SHOW, days_ago=300) + make_history(
            *([COMPLETED] * 10), days_ago=10
        )
        patterns = summarize_history(history, limit=None)
        assert patterns.total_appointments == 12
        assert patterns.no_shows == 2

    def test_mixed_timezones_rejected(self):
        history = make_history(COMPLETED) + make_history(COMPLETED, now=NOW.replace(tzinfo=UTC))
        with pytest.raises(InvalidRequestError):
            summarize_history(history)
