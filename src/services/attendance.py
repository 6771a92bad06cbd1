"""
Attendance scraping from the freee HR portal.

The portal has no API for this, so the scraper logs in with a headless
browser, opens the month's work-record page and reads the rendered text.
Page-text parsing is kept separate in ``extract_attendance_records`` so it
can be tested against fixed text.
"""

import logging
import re
from typing import Protocol

from playwright.async_api import Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from core import config
from core.config import (
    DOM_READY_TIMEOUT_MS,
    FREEE_BASE_URL,
    FREEE_LOGIN_URL,
    NAVIGATION_TIMEOUT_MS,
    RENDER_SETTLE_MS,
    ConfigurationError,
)
from models.events import AttendanceRecord

logger = logging.getLogger(__name__)

DAY_PATTERN = re.compile(r"^(\d{1,2})$")
TIME_RANGE_PATTERN = re.compile(r"(\d{1,2}:\d{2})\s*[〜~～\-‐–—]\s*(\d{1,2}:\d{2})")

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class AuthError(Exception):
    """Portal login did not complete."""
    pass


class AttendanceScraper(Protocol):
    """Anything that can produce a worked month's attendance records."""

    async def scrape(self, year: int, month: int) -> list[AttendanceRecord]:
        ...


def pay_month(year: int, month: int) -> tuple[int, int]:
    """
    Pay month for a worked month (paid the following month).

    Example: (2024, 12) -> (2025, 1)
    """
    if month == 12:
        return year + 1, 1
    return year, month + 1


def attendance_url(year: int, month: int, employee_id: str) -> str:
    """Work-record page URL. The portal indexes pages by pay month."""
    pay_year, pay_mon = pay_month(year, month)
    return f"{FREEE_BASE_URL}/#work_records/{pay_year}/{pay_mon}/employees/{employee_id}"


def extract_attendance_records(text: str, year: int, month: int) -> list[AttendanceRecord]:
    """
    Parse rendered page text into attendance records.

    A line holding only a day number (1-31) opens a day; the next
    "HH:MM 〜 HH:MM" line closes it with clock-in/clock-out. A day with no
    time range before the next day number yields nothing.
    """
    records: list[AttendanceRecord] = []
    current_day: int | None = None

    for line in (raw.strip() for raw in text.split("\n")):
        day_match = DAY_PATTERN.match(line)
        if day_match:
            day = int(day_match.group(1))
            if 1 <= day <= 31:
                current_day = day
                continue

        if current_day is None:
            continue

        time_match = TIME_RANGE_PATTERN.search(line)
        if time_match:
            records.append(
                {
                    "date": f"{year}-{month:02d}-{current_day:02d}",
                    "clock_in": time_match.group(1),
                    "clock_out": time_match.group(2),
                    "break_start": None,
                    "break_end": None,
                }
            )
            current_day = None

    return records


class FreeeAttendanceScraper:
    """Headless-browser scraper for one freee account."""

    def __init__(self, email: str, password: str, employee_id: str):
        if not email or not password or not employee_id:
            raise ConfigurationError(
                "FREEE_EMAIL / FREEE_PASSWORD / FREEE_EMPLOYEE_ID are not configured"
            )
        self.email = email
        self.password = password
        self.employee_id = employee_id

    async def scrape(self, year: int, month: int) -> list[AttendanceRecord]:
        """
        Log in and scrape the worked month's attendance.

        The browser is closed before returning, whether or not scraping succeeded.

        Raises:
            AuthError: If login navigation does not complete
        """
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                page = await browser.new_page(viewport={"width": 1280, "height": 800})
                await self._login(page)

                url = attendance_url(year, month, self.employee_id)
                logger.info("Opening attendance page: %s", url)
                await page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)

                # SPA renders client-side after navigation settles
                await page.wait_for_timeout(RENDER_SETTLE_MS)

                body_text = await page.inner_text("body")
                records = extract_attendance_records(body_text, year, month)
                logger.info("Scraped %d attendance records for %d-%02d", len(records), year, month)
                return records
            finally:
                await browser.close()

    async def _login(self, page: Page) -> None:
        logger.info("Opening login page")
        try:
            await page.goto(FREEE_LOGIN_URL, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            await page.wait_for_function(
                "() => document.querySelectorAll('input').length >= 2",
                timeout=DOM_READY_TIMEOUT_MS,
            )

            await page.fill("#loginIdField", self.email)
            await page.fill("#passwordField", self.password)
            async with page.expect_navigation(
                wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS
            ):
                await page.keyboard.press("Enter")
        except PlaywrightError as e:
            raise AuthError(f"freee login did not complete: {e}") from e

        logger.info("Logged in: %s", page.url)


def get_attendance_scraper() -> FreeeAttendanceScraper | None:
    """Scraper built from configuration, or None when credentials are absent."""
    if not config.attendance_configured():
        return None
    return FreeeAttendanceScraper(
        config.FREEE_EMAIL, config.FREEE_PASSWORD, config.FREEE_EMPLOYEE_ID
    )
