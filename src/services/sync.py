"""
Calendar-to-ledger reconciliation and attendance auto-fill.

One sync run:
    1. fetch this year's and last year's tagged events (concurrently)
    2. dedupe by (event id, start time), keeping last year's December only
    3. upsert each attributable event as a shift
    4. delete ledger shifts in the sync window that are no longer upstream
    5. auto-fill payroll entries for the designated employer from scraped
       attendance (best effort)

A fetch failure aborts the run with success=False. Anything that goes
wrong in step 5 is logged and reported as zero auto-filled entries.
"""

import asyncio
import logging
import sqlite3
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass

from pydantic import ValidationError

from core import config, database
from core.config import AUTOFILL_EMPLOYER_NAME, AUTOFILL_NOTE
from core.payroll import (
    canonical_timestamp,
    local_date_key,
    local_now,
    parse_timestamp,
    payroll_year_bounds,
    sync_window,
    to_local,
)
from core.run_log import SyncRunLog, log_sync_run
from core.validation import build_hours_entry
from models.events import AttendanceRecord, CalendarEvent, CalendarEventsResponse
from services.attendance import AttendanceScraper, get_attendance_scraper
from services.calendar import fetch_calendar_events

logger = logging.getLogger(__name__)

EventFetcher = Callable[[int], Awaitable[CalendarEventsResponse]]


@dataclass
class SyncResult:
    """Aggregate outcome of one sync run."""

    success: bool
    created: int = 0
    updated: int = 0
    deleted: int = 0
    auto_filled: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def event_key(event_id: str, start_time: str) -> str:
    """Reconciliation key; recurring instances share an id but not a start."""
    return f"{event_id}_{start_time}"


def dedupe_events(
    this_year: list[CalendarEvent], last_year: list[CalendarEvent], year: int
) -> tuple[list[CalendarEvent], set[str]]:
    """
    Merge last year's December with this year's events, dropping repeats.

    Start/end times are canonicalised so keys compare equal to stored rows.

    Returns:
        Tuple of (unique events, set of keys for every upstream event)
    """
    payroll_start, _ = payroll_year_bounds(year)
    last_year_december = [
        e for e in last_year
        if to_local(parse_timestamp(e["startTime"])).date() >= payroll_start
    ]

    unique: list[CalendarEvent] = []
    keys: set[str] = set()
    for event in last_year_december + this_year:
        start = canonical_timestamp(event["startTime"])
        key = event_key(event["id"], start)
        if key in keys:
            continue
        keys.add(key)
        unique.append({**event, "startTime": start, "endTime": canonical_timestamp(event["endTime"])})

    return unique, keys


def upsert_shift(conn: sqlite3.Connection, event: CalendarEvent) -> str:
    """
    Insert or update the shift for one event, in one transaction.

    Returns:
        "created", "updated" (end time changed) or "skipped"
    """
    return database.upsert_shift(
        conn,
        calendar_event_id=event["id"],
        employer_name=event["jobName"],
        title=event["title"],
        start_time=event["startTime"],
        end_time=event["endTime"],
    )


def delete_removed_shifts(
    conn: sqlite3.Connection, calendar_keys: set[str], window_start: str, window_end: str
) -> int:
    """Delete shifts in [window_start, window_end) whose key is not upstream."""
    shifts = database.list_shifts_in_window(conn, window_start, window_end)
    to_delete = [
        s["id"] for s in shifts
        if event_key(s["calendar_event_id"], s["start_time"]) not in calendar_keys
    ]
    if not to_delete:
        return 0

    deleted = database.delete_shifts_cascade(conn, to_delete)
    logger.info("Deleted %d shifts removed from the calendar", deleted)
    return deleted


def reconcile_events(
    conn: sqlite3.Connection, events: list[CalendarEvent], calendar_keys: set[str], year: int
) -> tuple[int, int, int]:
    """
    Upsert attributable events, then delete stale shifts in the sync window.

    Blocking; callers on the event loop run it in a worker thread.

    Returns:
        Tuple of (created, updated, deleted)
    """
    created = 0
    updated = 0
    for event in events:
        if not event["jobName"]:
            continue
        result = upsert_shift(conn, event)
        if result == "created":
            created += 1
        elif result == "updated":
            updated += 1

    window_start, window_end = sync_window(year)
    deleted = delete_removed_shifts(conn, calendar_keys, window_start, window_end)
    return created, updated, deleted


def pending_autofill_shifts(
    conn: sqlite3.Connection, employer_name: str
) -> tuple[sqlite3.Row | None, list[sqlite3.Row]]:
    """The auto-fill employer and its PENDING shifts (oldest first)."""
    employer = database.get_employer_by_name(conn, employer_name)
    if employer is None:
        return None, []
    return employer, database.list_pending_shifts(conn, employer["id"])


def fill_from_attendance(
    conn: sqlite3.Connection,
    employer: sqlite3.Row,
    pending: list[sqlite3.Row],
    record_by_date: dict[str, AttendanceRecord],
) -> int:
    """Create a payroll entry for each pending shift whose local date has a record."""
    created = 0
    for shift in pending:
        date_key = local_date_key(shift["start_time"])
        record = record_by_date.get(date_key)
        if record is None:
            continue

        try:
            entry = build_hours_entry(
                shift_id=shift["id"],
                clock_in=record["clock_in"],
                clock_out=record["clock_out"],
                break_start=record["break_start"],
                break_end=record["break_end"],
                hourly_wage=employer["hourly_wage"],
                transport_fee=employer["default_transport_fee"],
                note=AUTOFILL_NOTE,
            )
        except ValidationError as e:
            logger.warning("Skipping %s: attendance does not form a valid entry (%s)", date_key, e)
            continue

        database.create_payroll_entry(conn, entry)
        logger.info("Auto-filled %s %s-%s", date_key, record["clock_in"], record["clock_out"])
        created += 1

    return created


async def sync_attendance(
    conn: sqlite3.Connection,
    scraper: AttendanceScraper,
    employer_name: str = AUTOFILL_EMPLOYER_NAME,
) -> int:
    """
    Fill payroll entries for the employer's pending shifts from scraped attendance.

    Each worked month is scraped independently; a failed month is logged and
    skipped. Returns the number of entries created.
    """
    employer, pending = await asyncio.to_thread(pending_autofill_shifts, conn, employer_name)
    if employer is None or not pending:
        return 0

    months: list[tuple[int, int]] = []
    for shift in pending:
        local_start = to_local(parse_timestamp(shift["start_time"]))
        ym = (local_start.year, local_start.month)
        if ym not in months:
            months.append(ym)

    records: list[AttendanceRecord] = []
    for year, month in months:
        try:
            records.extend(await scraper.scrape(year, month))
        except Exception as e:
            logger.error("Attendance scrape failed for %d-%02d: %s", year, month, e)

    record_by_date: dict[str, AttendanceRecord] = {}
    for record in records:
        if record["clock_in"] and record["clock_out"]:
            record_by_date[record["date"]] = record

    if not record_by_date:
        return 0

    return await asyncio.to_thread(fill_from_attendance, conn, employer, pending, record_by_date)


async def sync_calendar_events(
    conn: sqlite3.Connection,
    year: int | None = None,
    fetch_events: EventFetcher = fetch_calendar_events,
    scraper: AttendanceScraper | None = None,
) -> SyncResult:
    """
    Reconcile the ledger with the calendar, then auto-fill attendance.

    Ledger work runs in worker threads so the event loop stays free while
    a sync is in progress.

    Args:
        conn: Ledger connection (schema already created)
        year: Current calendar year; defaults to this year in local time
        fetch_events: Coroutine returning one year's events
        scraper: Attendance scraper; defaults to the configured freee
            scraper. Auto-fill is skipped when neither is available.
    """
    if year is None:
        year = local_now().year

    try:
        this_year, last_year = await asyncio.gather(fetch_events(year), fetch_events(year - 1))
        events, calendar_keys = dedupe_events(this_year["events"], last_year["events"], year)
        created, updated, deleted = await asyncio.to_thread(
            reconcile_events, conn, events, calendar_keys, year
        )
    except Exception as e:
        logger.error("Calendar sync failed: %s", e)
        return SyncResult(success=False, error=str(e) or type(e).__name__)

    auto_filled = 0
    try:
        if scraper is None:
            scraper = get_attendance_scraper()
        if scraper is not None:
            auto_filled = await sync_attendance(conn, scraper)
    except Exception as e:
        logger.error("Attendance auto-fill failed: %s", e)

    logger.info(
        "Sync complete: %d created, %d updated, %d deleted, %d auto-filled",
        created, updated, deleted, auto_filled,
    )
    return SyncResult(
        success=True, created=created, updated=updated, deleted=deleted, auto_filled=auto_filled
    )


def open_ledger(db_path) -> sqlite3.Connection:
    """Connect to the ledger and make sure the schema exists."""
    conn = database.get_connection(db_path)
    try:
        database.create_schema(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


async def run_sync(trigger: str = "manual", db_path=None) -> SyncResult:
    """Open the ledger (DB_PATH by default), run one sync, record it in sync_runs."""
    start = time.time()
    run_log = SyncRunLog(trigger=trigger)

    conn = await asyncio.to_thread(open_ledger, db_path or config.DB_PATH)
    try:
        result = await sync_calendar_events(conn)

        run_log.success = result.success
        run_log.created = result.created
        run_log.updated = result.updated
        run_log.deleted = result.deleted
        run_log.auto_filled = result.auto_filled
        run_log.error_message = result.error
        run_log.processing_time_ms = int((time.time() - start) * 1000)
        await asyncio.to_thread(log_sync_run, conn, run_log)
        return result
    finally:
        conn.close()
