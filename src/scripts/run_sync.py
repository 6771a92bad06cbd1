#!/usr/bin/env python3
"""
Run one calendar sync against the shift ledger.

Fetches tagged calendar events, reconciles shifts, and auto-fills payroll
entries from freee attendance when credentials are configured. Suitable
for cron.

Usage:
    uv run python src/scripts/run_sync.py
    uv run python src/scripts/run_sync.py --verbose
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.logging_config import configure_logging
from services.reports import format_sync_summary
from services.sync import run_sync


async def main(verbose: bool = False) -> int:
    """Main entry point. Returns the process exit code."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    print(f"Syncing calendar into {DB_PATH}")

    result = await run_sync("manual")

    if not result.success:
        print(f"\nSync failed: {result.error}")
        return 1

    print(f"\nDone! {format_sync_summary(result)}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync calendar shifts into the ledger")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.verbose)))
