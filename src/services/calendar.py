"""
Calendar event fetching from the calendar web app.

The web app exposes ``GET ?path=events&year=YYYY`` and returns every
event in that year whose title starts with the calendar tag.
"""

import asyncio
import logging
import re

import requests

from core.config import CALENDAR_TAG, CALENDAR_TIMEOUT_SECONDS, require_setting
from core import config
from models.events import CalendarEvent, CalendarEventsResponse

logger = logging.getLogger(__name__)


class UpstreamFetchError(Exception):
    """Calendar source unreachable or returned an error."""
    pass


def parse_job_name(title: str, tag: str = CALENDAR_TAG) -> str | None:
    """
    Extract the job name from a tagged title.

    Example: "[バイト]コンビニA" -> "コンビニA". Returns None if the title
    does not carry the tag or nothing follows it.
    """
    match = re.match(rf"^{re.escape(tag)}(.+)$", title)
    if not match:
        return None
    name = match.group(1).strip()
    return name or None


def parse_event(raw: dict) -> CalendarEvent:
    """Normalise one event from the calendar source."""
    title = raw.get("title") or ""
    job_name = raw.get("jobName")
    if job_name is None:
        job_name = parse_job_name(title)
    elif not job_name.strip():
        job_name = None
    else:
        job_name = job_name.strip()

    return {
        "id": str(raw["id"]),
        "title": title,
        "jobName": job_name,
        "startTime": raw["startTime"],
        "endTime": raw["endTime"],
        "description": raw.get("description") or "",
        "isAllDay": bool(raw.get("isAllDay", False)),
    }


def _get_events(url: str, year: int) -> dict:
    try:
        response = requests.get(
            url,
            params={"path": "events", "year": str(year)},
            headers={"Content-Type": "application/json"},
            timeout=CALENDAR_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise UpstreamFetchError(f"Calendar API request failed: {e}") from e

    if not response.ok:
        raise UpstreamFetchError(
            f"Calendar API error: {response.status_code} {response.reason}"
        )

    try:
        body = response.json()
    except ValueError as e:
        raise UpstreamFetchError("Calendar API returned invalid JSON") from e

    if "error" in body:
        raise UpstreamFetchError(f"Calendar API error: {body['error']}")
    return body


async def fetch_calendar_events(year: int) -> CalendarEventsResponse:
    """
    Fetch all tagged events for a year.

    Runs the HTTP call in a worker thread so several years can be fetched
    concurrently with asyncio.gather.

    Raises:
        ConfigurationError: If CALENDAR_API_URL is not set
        UpstreamFetchError: On network failure or non-2xx response
    """
    url = require_setting("CALENDAR_API_URL", config.CALENDAR_API_URL)

    body = await asyncio.to_thread(_get_events, url, year)
    events = [parse_event(raw) for raw in body.get("events", [])]
    logger.info("Fetched %d calendar events for %d", len(events), year)

    return {"events": events, "count": len(events)}
