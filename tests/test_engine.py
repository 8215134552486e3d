"""
Unit Tests for the Warranty Period Engine

Tests the classification, progress and chaining of the four warranty periods.
"""

import pytest
from datetime import date, datetime, timedelta

from warranty_tracker.data_models import (
    PERIOD_DEFINITIONS,
    PeriodDefinition,
    PeriodState,
    WarrantyBasis,
)
from warranty_tracker.engine import compute_all, compute_period, summarize


def _schedule(start, now):
    return compute_all(WarrantyBasis.create(start, now))


class TestScenarios:
    """Reference scenarios with the fixed 180/14/180/180 day configuration."""

    def test_inspection_day(self):
        """Everything anchored on the start date is active with zero progress."""
        schedule = _schedule(date(2024, 1, 1), date(2024, 1, 1))

        assert schedule.manufacturing.state == PeriodState.ACTIVE
        assert schedule.manufacturing.progress_percent == 0
        assert schedule.manufacturing.end_date == datetime(2024, 6, 29)
        assert schedule.manufacturing.remaining_days == 180
        assert schedule.replacement.state == PeriodState.ACTIVE
        assert schedule.replacement.end_date == datetime(2024, 1, 15)
        assert schedule.maintenance2.state == PeriodState.NOT_STARTED

    def test_replacement_expired_after_two_weeks(self):
        schedule = _schedule(date(2024, 1, 1), date(2024, 1, 20))

        assert schedule.replacement.state == PeriodState.EXPIRED
        assert schedule.replacement.progress_percent == 100
        assert schedule.replacement.remaining_days == 0
        assert schedule.manufacturing.state == PeriodState.ACTIVE
        assert schedule.manufacturing.progress_percent == pytest.approx(19 / 180 * 100)
        assert round(schedule.manufacturing.progress_percent, 1) == 10.6

    def test_second_maintenance_cycle(self):
        schedule = _schedule(date(2024, 1, 1), date(2024, 7, 15))

        assert schedule.maintenance1.start_date == datetime(2024, 1, 1)
        assert schedule.maintenance1.end_date == datetime(2024, 6, 29)
        assert schedule.maintenance1.state == PeriodState.EXPIRED
        assert schedule.maintenance2.start_date == datetime(2024, 6, 29)
        assert schedule.maintenance2.end_date == datetime(2024, 12, 26)
        assert schedule.maintenance2.state == PeriodState.ACTIVE
        assert schedule.maintenance2.progress_percent == pytest.approx(16 / 180 * 100)
        assert schedule.maintenance2.remaining_days == 164

    def test_future_dated_report(self):
        """A report processed in advance leaves every period not started."""
        schedule = _schedule(date(2025, 6, 1), date(2024, 1, 1))

        for period in schedule.periods():
            assert period.state == PeriodState.NOT_STARTED
            assert period.progress_percent == 0
            assert period.remaining_days == 0
        expected = (date(2025, 6, 1) - date(2024, 1, 1)).days
        assert schedule.manufacturing.days_until_start == expected
        assert schedule.maintenance2.days_until_start == expected + 180

    def test_one_year_later(self):
        schedule = _schedule(date(2024, 1, 1), date(2025, 1, 1))

        for period in schedule.periods():
            assert period.state == PeriodState.EXPIRED
            assert period.progress_percent == 100


class TestBoundaries:
    """Tests for the inclusive start and exclusive end of a window."""

    def test_end_instant_is_expired(self):
        schedule = _schedule(date(2024, 1, 1), date(2024, 1, 15))

        assert schedule.replacement.state == PeriodState.EXPIRED
        assert schedule.replacement.progress_percent == 100

    def test_one_second_before_end_is_active(self):
        schedule = _schedule(datetime(2024, 1, 1), datetime(2024, 1, 14, 23, 59, 59))

        assert schedule.replacement.state == PeriodState.ACTIVE
        assert schedule.replacement.remaining_days == 1
        assert schedule.replacement.progress_percent == pytest.approx(13 / 14 * 100)

    def test_one_second_before_start_is_not_started(self):
        status = compute_period("x", datetime(2024, 1, 1), 10, datetime(2023, 12, 31, 23, 59, 59))

        assert status.state == PeriodState.NOT_STARTED
        assert status.days_until_start == 1

    def test_partial_days_round_remaining_up(self):
        status = compute_period("x", datetime(2024, 1, 1), 10, datetime(2024, 1, 3, 12, 0))

        assert status.progress_percent == pytest.approx(20.0)
        assert status.remaining_days == 8

    def test_compute_period_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            compute_period("x", datetime(2024, 1, 1), 0, datetime(2024, 1, 1))


class TestInvariants:
    """Properties that must hold for every evaluation instant."""

    START = date(2024, 1, 1)

    def _instants(self):
        base = datetime(2023, 12, 1)
        return [base + timedelta(days=d, hours=h) for d in range(0, 420, 3) for h in (0, 13)]

    def test_chaining_independent_of_now(self):
        for now in self._instants():
            schedule = _schedule(self.START, now)
            assert schedule.maintenance2.start_date == schedule.maintenance1.end_date

    def test_monotonic_progress_and_state(self):
        order = {PeriodState.NOT_STARTED: 0, PeriodState.ACTIVE: 1, PeriodState.EXPIRED: 2}
        previous = None
        for now in self._instants():
            schedule = _schedule(self.START, now)
            if previous is not None:
                for before, after in zip(previous.periods(), schedule.periods()):
                    assert after.progress_percent >= before.progress_percent
                    assert order[after.state] >= order[before.state]
            previous = schedule

    def test_state_agrees_with_progress(self):
        for now in self._instants():
            for period in _schedule(self.START, now).periods():
                assert (period.state == PeriodState.EXPIRED) == (period.progress_percent == 100)
                assert 0 <= period.progress_percent <= 100
                assert period.remaining_days >= 0
                assert period.end_date - period.start_date == timedelta(days=period.duration_days)
                if period.state == PeriodState.NOT_STARTED:
                    assert period.progress_percent == 0

    def test_deterministic_and_idempotent(self):
        basis = WarrantyBasis.create(self.START, date(2024, 3, 10))
        first = compute_all(basis)
        second = compute_all(basis)

        assert first == second
        assert basis == WarrantyBasis.create(self.START, date(2024, 3, 10))
        assert [d.duration_days for d in PERIOD_DEFINITIONS] == [180, 14, 180, 180]

    def test_timezone_aware_inputs(self):
        from datetime import timezone

        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        now = datetime(2024, 1, 20, tzinfo=timezone.utc)
        schedule = compute_all(WarrantyBasis.create(start, now))

        assert schedule.replacement.state == PeriodState.EXPIRED


class TestConfiguration:
    """Tests that a corrupted configuration fails fast."""

    def test_forward_anchor_rejected(self):
        definitions = (
            PeriodDefinition("manufacturing", 180),
            PeriodDefinition("replacement", 14),
            PeriodDefinition("maintenance2", 180, anchor="maintenance1"),
            PeriodDefinition("maintenance1", 180),
        )
        with pytest.raises(ValueError, match="not defined before"):
            compute_all(WarrantyBasis.create(date(2024, 1, 1), date(2024, 1, 1)), definitions)

    def test_missing_period_rejected(self):
        with pytest.raises(ValueError, match="missing"):
            compute_all(WarrantyBasis.create(date(2024, 1, 1), date(2024, 1, 1)), PERIOD_DEFINITIONS[:3])

    def test_duplicate_period_rejected(self):
        definitions = PERIOD_DEFINITIONS + (PeriodDefinition("replacement", 7),)
        with pytest.raises(ValueError, match="more than once"):
            compute_all(WarrantyBasis.create(date(2024, 1, 1), date(2024, 1, 1)), definitions)

    def test_custom_durations(self):
        definitions = (
            PeriodDefinition("manufacturing", 30),
            PeriodDefinition("replacement", 7),
            PeriodDefinition("maintenance1", 10),
            PeriodDefinition("maintenance2", 10, anchor="maintenance1"),
        )
        schedule = compute_all(WarrantyBasis.create(date(2024, 1, 1), date(2024, 1, 15)), definitions)

        assert schedule.maintenance1.state == PeriodState.EXPIRED
        assert schedule.maintenance2.state == PeriodState.ACTIVE
        assert schedule.maintenance2.progress_percent == pytest.approx(40.0)

    def test_rejects_non_basis(self):
        with pytest.raises(TypeError):
            compute_all({"start_date": date(2024, 1, 1), "now": date(2024, 1, 1)})


class TestSummary:
    """Tests for the aggregate summary."""

    def test_summary_mid_warranty(self):
        summary = summarize(_schedule(date(2024, 1, 1), date(2024, 1, 20)))

        assert summary["active_periods"] == 2
        assert summary["expired_periods"] == 1
        assert summary["not_started_periods"] == 1
        assert summary["next_expiring"] == "manufacturing"
        assert summary["next_expiring_days"] == 161
        assert summary["coverage_end_date"] == "2024-12-26"
        assert summary["fully_expired"] is False

    def test_summary_fully_expired(self):
        summary = summarize(_schedule(date(2024, 1, 1), date(2025, 1, 1)))

        assert summary["active_periods"] == 0
        assert summary["next_expiring"] is None
        assert summary["fully_expired"] is True
