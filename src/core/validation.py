"""
Payroll entry models and derived-field computation.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from core.payroll import income_with_late_night, late_night_minutes, time_to_minutes, work_minutes

TIME_PATTERN = r"^\d{1,2}:\d{2}$"

EntryType = Literal["HOURS", "INCOME"]


class ExpenseItem(BaseModel):
    """One expense line attached to a payroll entry."""

    name: str = Field(min_length=1)
    amount: int = Field(gt=0)


class PayrollEntry(BaseModel):
    """
    Realized pay record for one shift.

    HOURS entries carry clock times and derived minutes; INCOME entries
    carry the income directly.
    """

    shift_id: int
    entry_type: EntryType
    clock_in: str | None = Field(default=None, pattern=TIME_PATTERN)
    clock_out: str | None = Field(default=None, pattern=TIME_PATTERN)
    break_start: str | None = Field(default=None, pattern=TIME_PATTERN)
    break_end: str | None = Field(default=None, pattern=TIME_PATTERN)
    break_minutes: int | None = Field(default=None, ge=0)
    work_minutes: int | None = Field(default=None, ge=0)
    late_night_minutes: int | None = Field(default=None, ge=0)
    income: int | None = Field(default=None, ge=0)
    transport_fee: int | None = Field(default=None, ge=0)
    note: str | None = None
    expenses: list[ExpenseItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_entry_type_fields(self) -> "PayrollEntry":
        if self.entry_type == "HOURS":
            if not self.clock_in or not self.clock_out:
                raise ValueError("HOURS entry requires clock_in and clock_out")
            if bool(self.break_start) != bool(self.break_end):
                raise ValueError("break_start and break_end must be given together")
        elif self.income is None:
            raise ValueError("INCOME entry requires income")
        return self


def build_hours_entry(
    shift_id: int,
    clock_in: str,
    clock_out: str,
    break_start: str | None = None,
    break_end: str | None = None,
    break_minutes: int | None = None,
    hourly_wage: int | None = None,
    transport_fee: int | None = None,
    note: str | None = None,
    expenses: list[ExpenseItem] | None = None,
) -> PayrollEntry:
    """
    Build a validated HOURS entry, deriving work/late-night minutes and income.

    A raw break_minutes count takes precedence over a break window and the
    resulting work minutes are floored at zero. Income is only derived when
    the employer has an hourly wage.

    Raises:
        pydantic.ValidationError: If the inputs cannot form a valid entry
    """
    if break_minutes is not None:
        worked = max(0, time_to_minutes(clock_out) - time_to_minutes(clock_in) - break_minutes)
    else:
        worked = work_minutes(clock_in, clock_out, break_start, break_end)
        if break_start and break_end:
            break_minutes = time_to_minutes(break_end) - time_to_minutes(break_start)

    late = late_night_minutes(clock_in, clock_out, break_start, break_end, break_minutes)

    income = None
    if hourly_wage:
        income = income_with_late_night(worked, late, hourly_wage)

    return PayrollEntry(
        shift_id=shift_id,
        entry_type="HOURS",
        clock_in=clock_in,
        clock_out=clock_out,
        break_start=break_start,
        break_end=break_end,
        break_minutes=break_minutes,
        work_minutes=worked,
        late_night_minutes=late,
        income=income,
        transport_fee=transport_fee,
        note=note,
        expenses=expenses or [],
    )
