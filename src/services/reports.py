"""
Human-readable formatting for sync summaries and payroll figures.
"""

from services.sync import SyncResult


def format_currency(amount: int) -> str:
    """Format yen with thousands separators (e.g., 1050 -> '¥1,050')."""
    return f"¥{amount:,}"


def format_minutes_to_hours(minutes: int) -> str:
    """Format minutes as 'Xh Ym' (e.g., 90 -> '1h 30m', 60 -> '1h', 45 -> '45m')."""
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    if hours == 0:
        return f"{mins}m"
    return f"{hours}h {mins}m"


def format_sync_summary(result: SyncResult) -> str:
    """One-line summary of a sync result."""
    if not result.success:
        return f"failed: {result.error}"
    return (
        f"{result.created} created, {result.updated} updated, "
        f"{result.deleted} deleted, {result.auto_filled} auto-filled"
    )


def format_attendance_line(date_key: str, clock_in: str, clock_out: str, work_mins: int) -> str:
    """Format one scraped attendance day (e.g., '2024-03-15  9:00-18:00  (9h)')."""
    return f"{date_key}  {clock_in}-{clock_out}  ({format_minutes_to_hours(work_mins)})"
