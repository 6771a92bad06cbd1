"""Health check endpoint."""

import sqlite3
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_scheduler
from api.models.responses import HealthResponse
from core import config
from core.config import API_VERSION
from core.database import get_connection
from services.scheduler import SyncScheduler

router = APIRouter()


def database_available() -> bool:
    """True if the ledger database answers a trivial query."""
    try:
        conn = get_connection(config.DB_PATH)
        try:
            conn.execute("SELECT 1 FROM shifts LIMIT 1")
        finally:
            conn.close()
        return True
    except (sqlite3.Error, OSError):
        return False


@router.get("/health", response_model=HealthResponse)
async def health_check(scheduler: SyncScheduler = Depends(get_scheduler)):
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if the ledger or calendar source is unusable.
    Missing attendance credentials only disable auto-fill.
    """
    db_ok = database_available()
    calendar_ok = bool(config.CALENDAR_API_URL)
    timestamp = datetime.now(timezone.utc).isoformat()

    response = HealthResponse(
        status="healthy" if db_ok and calendar_ok else "unhealthy",
        version=API_VERSION,
        database_available=db_ok,
        calendar_configured=calendar_ok,
        autofill_enabled=config.attendance_configured(),
        sync_in_progress=scheduler.is_running,
        timestamp=timestamp,
    )

    if db_ok and calendar_ok:
        return response

    response.error = "Ledger database unavailable" if not db_ok else "CALENDAR_API_URL not configured"
    return JSONResponse(status_code=503, content=response.model_dump())
