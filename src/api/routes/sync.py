"""Sync trigger and run-log endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_scheduler, verify_api_key
from api.models.responses import ErrorCodes, ErrorResponse, SyncResponse, SyncRunResponse
from core import config
from core.database import get_connection
from core.run_log import recent_sync_runs
from services.scheduler import SyncScheduler

router = APIRouter(prefix="/v1")


@router.post("/sync", response_model=SyncResponse)
async def trigger_sync(
    scheduler: SyncScheduler = Depends(get_scheduler),
    _api_key: str = Depends(verify_api_key),
):
    """
    Run one calendar sync now.

    A calendar failure is reported in the body with success=false (HTTP 200);
    a run already in progress returns 409.
    """
    result = await scheduler.run_once("api")
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=ErrorResponse(
                error="A sync run is already in progress", code=ErrorCodes.SYNC_IN_PROGRESS
            ).model_dump(),
        )

    return SyncResponse(
        success=result.success,
        created=result.created,
        updated=result.updated,
        deleted=result.deleted,
        auto_filled=result.auto_filled if result.success else None,
        error=result.error,
    )


@router.get("/sync/runs", response_model=list[SyncRunResponse])
async def list_sync_runs(
    limit: int = Query(20, ge=1, le=200),
    _api_key: str = Depends(verify_api_key),
):
    """Most recent sync runs, newest first."""
    conn = get_connection(config.DB_PATH)
    try:
        runs = recent_sync_runs(conn, limit)
    finally:
        conn.close()

    return [SyncRunResponse(**vars(run)) for run in runs]
