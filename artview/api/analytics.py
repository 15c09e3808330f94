"""Engagement analytics endpoints for museum staff."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.analytics_service import AnalyticsService
from ..core.clock import Clock, get_clock
from ..core.database import get_db
from ..core.security import get_current_staff_user
from .. import schemas

router = APIRouter(prefix="/api/admin", tags=["Analytics"])


@router.get("/engagement-analytics", response_model=schemas.EngagementAnalyticsResponse)
async def get_engagement_analytics(
    timeframe: schemas.Timeframe = Query(schemas.Timeframe.LAST_7_DAYS, description="Analytics window"),
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db)
) -> schemas.EngagementAnalyticsResponse:
    """Summary, top artworks, daily series and session statistics for the window."""
    return AnalyticsService(db, clock).get_engagement_analytics(timeframe)


@router.get("/engagement/{artwork_id}", response_model=schemas.ArtworkEngagementResponse)
async def get_artwork_engagement(
    artwork_id: str,
    timeframe: schemas.Timeframe = Query(schemas.Timeframe.LAST_7_DAYS, description="Analytics window"),
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db)
) -> schemas.ArtworkEngagementResponse:
    """Engagement statistics and recent views of a single artwork."""
    return AnalyticsService(db, clock).get_artwork_engagement(artwork_id, timeframe)
