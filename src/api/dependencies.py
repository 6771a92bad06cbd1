"""FastAPI dependencies for authentication and shared resources."""

import secrets

from fastapi import Header, HTTPException, Request, status

from api.models.responses import ErrorCodes, ErrorResponse
from core import config
from services.scheduler import SyncScheduler


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Check the X-API-Key header against SYNC_API_KEY.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the key does not match
    """
    expected = config.SYNC_API_KEY
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=ErrorResponse(
                error="API key not configured on server", code=ErrorCodes.INTERNAL_ERROR
            ).model_dump(),
        )

    if not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorResponse(
                error="Invalid or missing API key", code=ErrorCodes.UNAUTHORIZED
            ).model_dump(),
        )

    return x_api_key


def get_scheduler(request: Request) -> SyncScheduler:
    """The application's scheduler, created in the lifespan handler."""
    return request.app.state.scheduler
