"""Pydantic response models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    calendar_configured: bool
    autofill_enabled: bool
    sync_in_progress: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class SyncResponse(BaseModel):
    """Result of a sync trigger."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    created: int
    updated: int
    deleted: int
    auto_filled: int | None = Field(default=None, alias="autoFilled")
    error: str | None = None


class SyncRunResponse(BaseModel):
    """One entry of the sync run log."""

    run_id: str
    trigger: str
    started_at: str
    success: bool
    created: int
    updated: int
    deleted: int
    auto_filled: int
    error_message: str | None = None
    processing_time_ms: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    UNAUTHORIZED = "UNAUTHORIZED"
    SYNC_IN_PROGRESS = "SYNC_IN_PROGRESS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
