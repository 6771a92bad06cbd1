"""Unit tests for payroll entry models."""

import pytest
from pydantic import ValidationError

from core.validation import ExpenseItem, PayrollEntry, build_hours_entry


class TestBuildHoursEntry:

    def test_derives_minutes_and_income(self):
        entry = build_hours_entry(1, "09:00", "18:00", "12:00", "13:00", hourly_wage=1000)
        assert entry.entry_type == "HOURS"
        assert entry.work_minutes == 480
        assert entry.break_minutes == 60
        assert entry.late_night_minutes == 0
        assert entry.income == 8000

    def test_late_night_premium(self):
        entry = build_hours_entry(1, "22:00", "29:00", hourly_wage=1000)
        assert entry.work_minutes == 420
        assert entry.late_night_minutes == 420
        assert entry.income == 8750

    def test_raw_break_minutes_matches_window(self):
        window = build_hours_entry(1, "09:00", "18:00", "12:00", "13:00")
        raw = build_hours_entry(1, "09:00", "18:00", break_minutes=60)
        assert window.work_minutes == raw.work_minutes

    def test_raw_break_minutes_clamped_at_zero(self):
        entry = build_hours_entry(1, "09:00", "10:00", break_minutes=90)
        assert entry.work_minutes == 0

    def test_no_wage_leaves_income_empty(self):
        entry = build_hours_entry(1, "09:00", "18:00", hourly_wage=None)
        assert entry.income is None

    def test_transport_fee_and_note_carried(self):
        entry = build_hours_entry(1, "09:00", "18:00", transport_fee=420, note="auto")
        assert entry.transport_fee == 420
        assert entry.note == "auto"

    def test_negative_window_rejected(self):
        """clock_out before clock_in would give negative minutes."""
        with pytest.raises(ValidationError):
            build_hours_entry(1, "18:00", "09:00")


class TestPayrollEntry:

    def test_income_entry(self):
        entry = PayrollEntry(shift_id=1, entry_type="INCOME", income=5000)
        assert entry.income == 5000
        assert entry.expenses == []

    def test_income_entry_requires_income(self):
        with pytest.raises(ValidationError):
            PayrollEntry(shift_id=1, entry_type="INCOME")

    def test_hours_entry_requires_clock_times(self):
        with pytest.raises(ValidationError):
            PayrollEntry(shift_id=1, entry_type="HOURS", clock_in="09:00")

    def test_bad_time_format_rejected(self):
        with pytest.raises(ValidationError):
            PayrollEntry(shift_id=1, entry_type="HOURS", clock_in="9am", clock_out="18:00")

    def test_half_break_window_rejected(self):
        with pytest.raises(ValidationError):
            PayrollEntry(
                shift_id=1, entry_type="HOURS", clock_in="09:00", clock_out="18:00",
                break_start="12:00",
            )

    def test_unknown_entry_type_rejected(self):
        with pytest.raises(ValidationError):
            PayrollEntry(shift_id=1, entry_type="SALARY", income=1)


class TestExpenseItem:

    def test_positive_amount(self):
        assert ExpenseItem(name="Parking", amount=300).amount == 300

    def test_zero_amount_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseItem(name="Parking", amount=0)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ExpenseItem(name="", amount=100)
