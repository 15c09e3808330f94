"""Engagement tracking endpoints used by the visitor pages."""

from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..core.clock import Clock, get_clock
from ..core.database import get_db
from ..core.engagement_service import EngagementService
from ..core.session_middleware import get_client_ip, get_session_id
from .. import schemas

router = APIRouter(prefix="/api/engagement", tags=["Engagement"])


@router.post("/start", response_model=schemas.EngagementStartResponse)
async def start_engagement(
    payload: schemas.EngagementStartRequest,
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db)
) -> schemas.EngagementStartResponse:
    """Open an engagement record for the artwork the visitor is looking at."""
    started = EngagementService(db, clock).start(
        artwork_id=payload.artwork_id,
        session_id=session_id,
        page_type=payload.page_type,
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request),
    )
    return schemas.EngagementStartResponse(
        engagement_id=started.engagement_id,
        session_id=started.session_id,
    )


@router.post("/end", response_model=schemas.EngagementEndResponse)
async def end_engagement(
    payload: schemas.EngagementEndRequest,
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db)
) -> schemas.EngagementEndResponse:
    """Close an engagement record; the duration is computed server-side."""
    ended = EngagementService(db, clock).end(payload.engagement_id)
    return schemas.EngagementEndResponse(duration=ended.duration, session_id=ended.session_id)
