"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import health_router, sync_router
from core import config
from core.config import API_DEBUG, API_VERSION
from core.database import create_schema, get_connection
from core.logging_config import configure_logging
from services.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    configure_logging(logging.DEBUG if API_DEBUG else logging.INFO)

    # Startup: make sure the ledger exists, then start the daily sync
    conn = get_connection(config.DB_PATH)
    try:
        create_schema(conn)
    finally:
        conn.close()

    if not config.CALENDAR_API_URL:
        logger.warning("CALENDAR_API_URL is not set; sync runs will fail until it is configured")

    scheduler = SyncScheduler()
    app.state.scheduler = scheduler
    if config.SYNC_SCHEDULER_ENABLED:
        scheduler.start()

    yield

    # Shutdown: stop the timer
    await scheduler.stop()


app = FastAPI(
    title="Shift Ledger Sync API",
    description="Calendar-to-ledger shift sync with attendance-based payroll auto-fill",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)

# CORS middleware (for development)
if API_DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code=ErrorCodes.INTERNAL_ERROR,
            details=[],
        ).model_dump(),
    )


# Include routers
app.include_router(health_router)
app.include_router(sync_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
