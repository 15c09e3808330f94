"""System endpoints for health checks."""

from datetime import datetime, timezone
from fastapi import APIRouter

from ..core.config import settings
from ..core.database import check_db_connection
from .. import schemas

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/health", response_model=schemas.HealthResponse, summary="Service health check")
async def health_check() -> schemas.HealthResponse:
    """Check the health of the API and its database connection."""
    return schemas.HealthResponse(
        status="OK",
        database="Connected" if check_db_connection() else "Disconnected",
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc),
    )
