"""
Health check endpoint.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status

from app.models import ComponentHealth, HealthResponse
from app.services.errors import StoreUnavailable
from app.services.remote import bounded

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["health"])

VERSION = "1.0.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Check Redis and database connectivity",
)
async def get_health(request: Request) -> HealthResponse:
    state = request.app.state

    redis_up = True
    try:
        await state.otp_store.ping()
    except StoreUnavailable as exc:
        logger.error("Redis health check failed: %s", exc)
        redis_up = False

    db_up = True
    try:
        await bounded(state.users.ping())
    except (StoreUnavailable, TimeoutError) as exc:
        logger.error("Database health check failed: %s", exc)
        db_up = False

    if not (redis_up and db_up):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="one or more dependencies are down",
        )

    return HealthResponse(
        status="healthy",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
        redis=ComponentHealth(status="up"),
        database=ComponentHealth(status="up"),
    )
