"""API Pydantic models."""

from .responses import ErrorCodes, ErrorResponse, HealthResponse, SyncResponse, SyncRunResponse

__all__ = ["HealthResponse", "SyncResponse", "SyncRunResponse", "ErrorResponse", "ErrorCodes"]
