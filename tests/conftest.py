"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core import config  # noqa: E402
from core.database import create_schema, get_connection  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real credentials, endpoints and the real ledger."""
    monkeypatch.setattr(config, "CALENDAR_API_URL", "")
    monkeypatch.setattr(config, "FREEE_EMAIL", "")
    monkeypatch.setattr(config, "FREEE_PASSWORD", "")
    monkeypatch.setattr(config, "FREEE_EMPLOYEE_ID", "")
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "ledger.db")


@pytest.fixture
def ledger():
    """In-memory ledger with the full schema."""
    conn = get_connection(":memory:")
    create_schema(conn)
    yield conn
    conn.close()


def make_event(
    event_id: str = "evt1",
    start: str = "2024-03-15T01:00:00.000Z",
    end: str = "2024-03-15T09:00:00.000Z",
    job_name: str | None = "モシモス",
) -> dict:
    """Calendar event in the calendar source's JSON shape."""
    title = f"[バイト]{job_name}" if job_name else "[バイト]"
    return {
        "id": event_id,
        "title": title,
        "jobName": job_name,
        "startTime": start,
        "endTime": end,
        "description": "",
        "isAllDay": False,
    }


class FakeCalendar:
    """Stand-in for the calendar source; events keyed by fetch year."""

    def __init__(self, events_by_year: dict[int, list[dict]] | None = None):
        self.events_by_year = events_by_year or {}
        self.requested_years: list[int] = []
        self.fail_with: Exception | None = None

    async def fetch(self, year: int) -> dict:
        self.requested_years.append(year)
        if self.fail_with is not None:
            raise self.fail_with
        events = [dict(e) for e in self.events_by_year.get(year, [])]
        return {"events": events, "count": len(events)}


class FakeScraper:
    """Stand-in for the attendance portal; records keyed by (year, month)."""

    def __init__(self, records_by_month: dict[tuple[int, int], list[dict]] | None = None):
        self.records_by_month = records_by_month or {}
        self.failing_months: set[tuple[int, int]] = set()
        self.calls: list[tuple[int, int]] = []

    async def scrape(self, year: int, month: int) -> list[dict]:
        self.calls.append((year, month))
        if (year, month) in self.failing_months:
            raise RuntimeError(f"page for {year}-{month} did not load")
        return list(self.records_by_month.get((year, month), []))


def make_record(
    date: str, clock_in: str | None = "10:00", clock_out: str | None = "18:00"
) -> dict:
    return {
        "date": date,
        "clock_in": clock_in,
        "clock_out": clock_out,
        "break_start": None,
        "break_end": None,
    }


@pytest.fixture
def fake_calendar():
    return FakeCalendar()


@pytest.fixture
def fake_scraper():
    return FakeScraper()
