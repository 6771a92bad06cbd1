"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when a required setting is missing."""
    pass


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(
    os.environ.get("DATABASE_PATH", str(PROJECT_ROOT / "data" / "db" / "shift-ledger.db"))
)

# =============================================================================
# CALENDAR CONFIGURATION
# =============================================================================

CALENDAR_API_URL = os.environ.get("CALENDAR_API_URL", "")
CALENDAR_TAG = os.environ.get("CALENDAR_TAG", "[バイト]")  # e.g., "[バイト]コンビニA"
CALENDAR_TIMEOUT_SECONDS = int(os.environ.get("CALENDAR_TIMEOUT_SECONDS", "30"))

# =============================================================================
# ATTENDANCE PORTAL (freee)
# =============================================================================

FREEE_EMAIL = os.environ.get("FREEE_EMAIL", "")
FREEE_PASSWORD = os.environ.get("FREEE_PASSWORD", "")
FREEE_EMPLOYEE_ID = os.environ.get("FREEE_EMPLOYEE_ID", "")
FREEE_LOGIN_URL = "https://accounts.secure.freee.co.jp/login/hr"
FREEE_BASE_URL = "https://p.secure.freee.co.jp"

AUTOFILL_EMPLOYER_NAME = os.environ.get("AUTOFILL_EMPLOYER_NAME", "モシモス")
AUTOFILL_NOTE = "freee自動入力"

NAVIGATION_TIMEOUT_MS = 30_000
RENDER_SETTLE_MS = 5_000
DOM_READY_TIMEOUT_MS = 15_000

# =============================================================================
# PAYROLL RULES
# =============================================================================

LATE_NIGHT_PREMIUM_RATE = 0.25
LOCAL_UTC_OFFSET_HOURS = 9  # JST, no DST

# =============================================================================
# SCHEDULER
# =============================================================================

SYNC_HOUR = int(os.environ.get("SYNC_HOUR", "20"))
SYNC_MINUTE = int(os.environ.get("SYNC_MINUTE", "0"))
SYNC_ON_STARTUP = _env_flag("SYNC_ON_STARTUP", "true")
SYNC_SCHEDULER_ENABLED = _env_flag("SYNC_SCHEDULER_ENABLED", "true")

# =============================================================================
# API CONFIGURATION
# =============================================================================

SYNC_API_KEY = os.environ.get("SYNC_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = _env_flag("API_DEBUG", "false")
API_VERSION = "1.0.0"


def require_setting(name: str, value: str) -> str:
    """
    Return value, or raise ConfigurationError if it is empty.

    Raises:
        ConfigurationError: If the setting is not configured
    """
    if not value:
        raise ConfigurationError(f"{name} is not configured. Check your .env file.")
    return value


def attendance_configured() -> bool:
    """True when every attendance portal setting is present."""
    return bool(FREEE_EMAIL and FREEE_PASSWORD and FREEE_EMPLOYEE_ID)
