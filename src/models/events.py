"""
Data models for calendar events and scraped attendance.

TypedDicts mirror the JSON shapes exchanged with the calendar source and
produced by the attendance scraper.
"""

from typing import TypedDict


class CalendarEvent(TypedDict):
    """Tagged calendar event as returned by the calendar source."""
    id: str
    title: str
    jobName: str | None
    startTime: str  # ISO-8601
    endTime: str  # ISO-8601
    description: str
    isAllDay: bool


class CalendarEventsResponse(TypedDict):
    """Calendar source response for one year."""
    events: list[CalendarEvent]
    count: int


class AttendanceRecord(TypedDict):
    """One day scraped from the attendance portal. Times are "H:MM"."""
    date: str  # YYYY-MM-DD
    clock_in: str | None
    clock_out: str | None
    break_start: str | None
    break_end: str | None
