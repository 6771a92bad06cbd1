#!/usr/bin/env python3
"""
Print the attendance records scraped from freee for one worked month.

Useful for checking credentials and the page-text parser without touching
the ledger.

Usage:
    uv run python src/scripts/scrape_attendance.py --month 2025-03
    uv run python src/scripts/scrape_attendance.py --month 2025-03 --wage 1200
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import ConfigurationError
from core.logging_config import configure_logging
from core.payroll import income_with_late_night, late_night_minutes, work_minutes
from services.attendance import attendance_url, get_attendance_scraper
from services.reports import format_attendance_line, format_currency


async def main(month_str: str, hourly_wage: int | None = None):
    """Main entry point."""
    configure_logging()
    worked = datetime.strptime(month_str, "%Y-%m")

    scraper = get_attendance_scraper()
    if scraper is None:
        raise ConfigurationError(
            "FREEE_EMAIL / FREEE_PASSWORD / FREEE_EMPLOYEE_ID are not configured"
        )

    print(f"Scraping {attendance_url(worked.year, worked.month, scraper.employee_id)}")
    records = await scraper.scrape(worked.year, worked.month)
    print(f"Found {len(records)} records\n")

    total_income = 0
    for record in records:
        if not record["clock_in"] or not record["clock_out"]:
            print(f"{record['date']}  (incomplete)")
            continue

        mins = work_minutes(record["clock_in"], record["clock_out"])
        print(format_attendance_line(record["date"], record["clock_in"], record["clock_out"], mins))
        if hourly_wage:
            late = late_night_minutes(record["clock_in"], record["clock_out"])
            total_income += income_with_late_night(mins, late, hourly_wage)

    if hourly_wage:
        print(f"\nEstimated income: {format_currency(total_income)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Scrape one month of freee attendance")
    parser.add_argument("--month", required=True, help="Worked month (YYYY-MM)")
    parser.add_argument("--wage", type=int, help="Hourly wage for an income estimate")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.month, args.wage))
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
