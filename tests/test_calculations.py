#!/usr/bin/env python3
"""Tests for expiry and due-date calculation helpers."""
import pytest
from datetime import date
from models import RecordValidationError, Status, check_status, classify_expiry, days_until, next_due_date
from models.calculations import as_date, calc_usage_percent

TODAY = date(2025, 1, 15)


class TestClassifyExpiry:
    """Worked examples against a reference day of 2025-01-15."""

    @pytest.mark.parametrize(
        "expiry, status, days",
        [
            ("2025-01-15", Status.EXPIRED, 0),
            ("2025-02-10", Status.DUE_SOON, 26),
            ("2025-06-01", Status.VALID, 137),
            ("2024-12-01", Status.EXPIRED, -45),
        ],
    )
    def test_examples(self, expiry, status, days):
        check = classify_expiry(expiry, TODAY)
        assert check.status == status
        assert check.days == days

    def test_accepts_date_objects(self):
        check = classify_expiry(date(2025, 2, 10), TODAY)
        assert check.status == Status.DUE_SOON

    def test_same_inputs_same_output(self):
        assert classify_expiry("2025-02-10", TODAY) == classify_expiry("2025-02-10", TODAY)

    def test_window_edge_is_due_soon(self):
        """30 days out is still inside the warning window."""
        assert classify_expiry("2025-02-14", TODAY).status == Status.DUE_SOON
        assert classify_expiry("2025-02-15", TODAY).status == Status.VALID

    def test_custom_warning_window(self):
        check = classify_expiry("2025-03-15", TODAY, warning_days=90)
        assert check.status == Status.DUE_SOON
        assert check.is_due

    def test_valid_is_not_due(self):
        assert not classify_expiry("2026-01-01", TODAY).is_due


class TestCheckStatus:
    """Tests for the day-count rule."""

    def test_zero_and_negative_are_expired(self):
        assert check_status(0) == Status.EXPIRED
        assert check_status(-1) == Status.EXPIRED

    def test_inside_window(self):
        assert check_status(1) == Status.DUE_SOON
        assert check_status(30) == Status.DUE_SOON

    def test_outside_window(self):
        assert check_status(31) == Status.VALID


class TestDaysUntil:
    """Tests for days_until helper."""

    def test_future(self):
        assert days_until("2025-01-20", TODAY) == 5

    def test_past(self):
        assert days_until("2025-01-10", TODAY) == -5

    def test_timestamp_string_uses_date_part(self):
        assert days_until("2025-01-20T23:59:00+00:00", "2025-01-15") == 5


class TestAsDate:
    """Tests for as_date helper."""

    def test_passthrough(self):
        assert as_date(TODAY) is TODAY

    def test_parses_iso(self):
        assert as_date("2025-01-15") == TODAY

    @pytest.mark.parametrize("value", ["15/01/2025", "", "2025-13-45"])
    def test_invalid_raises(self, value):
        with pytest.raises(RecordValidationError, match="Invalid date"):
            as_date(value)

    def test_invalid_is_a_value_error(self):
        with pytest.raises(ValueError):
            as_date("soon")


class TestNextDueDate:
    """Tests for next_due_date helper."""

    def test_whole_months(self):
        assert next_due_date("2025-01-15", 6) == date(2025, 7, 15)

    def test_month_end_clamps(self):
        assert next_due_date("2025-01-31", 1) == date(2025, 2, 28)

    def test_fractional_months(self):
        """0.5 month = 15 days."""
        assert next_due_date("2025-01-15", 1.5) == date(2025, 3, 2)

    def test_no_interval(self):
        assert next_due_date("2025-01-15", None) is None


class TestCalcUsagePercent:
    """Tests for calc_usage_percent."""

    def test_percentage(self):
        assert calc_usage_percent(25, 100) == 25.0

    def test_zero_available(self):
        assert calc_usage_percent(10, 0) == 0.0
