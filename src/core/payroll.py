"""
Time and payroll arithmetic.

Clock times are "H:MM" / "HH:MM" strings. A clock-out of 24:00 or later
denotes the following day ("25:30" is 1:30 the next morning), so a shift
never needs wraparound arithmetic.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from core.config import LATE_NIGHT_PREMIUM_RATE, LOCAL_UTC_OFFSET_HOURS

LOCAL_TZ = timezone(timedelta(hours=LOCAL_UTC_OFFSET_HOURS))

# Late-night band on a 29-hour axis: [0:00, 5:00) and [22:00, 29:00)
LATE_NIGHT_EARLY_END = 5 * 60
LATE_NIGHT_START = 22 * 60
LATE_NIGHT_NEXT_END = 29 * 60


def time_to_minutes(time: str) -> int:
    """
    Convert "H:MM" to minutes since 0:00.

    Raises:
        ValueError: If the string is not in H:MM form
    """
    hours, minutes = time.split(":")
    return int(hours) * 60 + int(minutes)


def work_minutes(
    clock_in: str,
    clock_out: str,
    break_start: str | None = None,
    break_end: str | None = None,
) -> int:
    """Worked minutes: (clock_out - clock_in) minus the break window, unclamped."""
    total = time_to_minutes(clock_out) - time_to_minutes(clock_in)
    break_total = 0
    if break_start and break_end:
        break_total = time_to_minutes(break_end) - time_to_minutes(break_start)
    return total - break_total


def _overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> int:
    return max(0, min(a_end, b_end) - max(a_start, b_start))


def _late_night_overlap(start: int, end: int) -> int:
    return _overlap(start, end, 0, LATE_NIGHT_EARLY_END) + _overlap(
        start, end, LATE_NIGHT_START, LATE_NIGHT_NEXT_END
    )


def late_night_minutes(
    clock_in: str,
    clock_out: str,
    break_start: str | None = None,
    break_end: str | None = None,
    break_minutes: int | None = None,
) -> int:
    """
    Worked minutes falling inside the late-night band (22:00 to 5:00).

    A break window that overlaps the band is subtracted. A bare
    break_minutes count has no position in the day, so it is accepted
    but cannot reduce the late-night total.
    """
    late = _late_night_overlap(time_to_minutes(clock_in), time_to_minutes(clock_out))

    if break_start and break_end:
        late -= _late_night_overlap(time_to_minutes(break_start), time_to_minutes(break_end))

    return max(0, late)


def income_with_late_night(work_mins: int, late_night_mins: int, hourly_wage: int) -> int:
    """
    Income in whole currency units, late-night minutes earning a 25% premium.

    Rounds half up.
    """
    base_pay = Decimal(work_mins) * hourly_wage / 60
    premium = Decimal(late_night_mins) * hourly_wage * Decimal(str(LATE_NIGHT_PREMIUM_RATE)) / 60
    return int((base_pay + premium).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# TIMESTAMPS
# =============================================================================


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp ("Z" suffix allowed) into an aware UTC datetime."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc_iso(dt: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SS.mmmZ, the canonical stored form."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def canonical_timestamp(value: str) -> str:
    """Normalise any ISO-8601 timestamp string to the canonical stored form."""
    return to_utc_iso(parse_timestamp(value))


def to_local(dt: datetime) -> datetime:
    """Shift an aware datetime to local (UTC+9) wall-clock time."""
    return dt.astimezone(LOCAL_TZ)


def local_date_key(start_time: str) -> str:
    """Local calendar date (YYYY-MM-DD) of a stored UTC timestamp."""
    return to_local(parse_timestamp(start_time)).strftime("%Y-%m-%d")


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)


def payroll_year_bounds(year: int) -> tuple[date, date]:
    """
    Payroll year for a calendar year: prior December 1 up to December 1.

    Example: 2025 -> (2024-12-01, 2025-12-01)
    """
    return date(year - 1, 12, 1), date(year, 12, 1)


def sync_window(year: int) -> tuple[str, str]:
    """
    Deletion window for a sync of the given year, as canonical UTC strings.

    Covers [prior-year Dec 1, next-year Jan 1) in local time, which is
    exactly the span of events fetched for the run.
    """
    start = datetime(year - 1, 12, 1, tzinfo=LOCAL_TZ)
    end = datetime(year + 1, 1, 1, tzinfo=LOCAL_TZ)
    return to_utc_iso(start), to_utc_iso(end)
