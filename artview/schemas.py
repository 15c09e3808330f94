# schemas.py
# The shapes of data coming into and going out of the API. Everything on the
# wire is camelCase, matching what the visitor pages and the admin dashboard
# send and expect.

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Enums ---

class PageType(str, Enum):
    """Where the engagement happened."""
    SCANNER = "scanner"
    ARTWORK = "artwork"


class Timeframe(str, Enum):
    """Analytics window selector."""
    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    ALL = "all"

    @property
    def span(self) -> Optional[timedelta]:
        """Length of the window, or None when unbounded."""
        return {
            Timeframe.LAST_24_HOURS: timedelta(hours=24),
            Timeframe.LAST_7_DAYS: timedelta(days=7),
            Timeframe.LAST_30_DAYS: timedelta(days=30),
        }.get(self)

    def window_start(self, now: datetime) -> Optional[datetime]:
        span = self.span
        return now - span if span is not None else None


# --- Auth ---

class StaffIdentity(BaseModel):
    """Caller identity extracted from a verified bearer token."""
    username: str
    role: str = "staff"


# --- Engagement tracking ---

class EngagementStartRequest(CamelModel):
    """Body of POST /api/engagement/start."""
    artwork_id: Optional[str] = Field(None, description="Public artwork id from the QR code")
    page_type: Optional[PageType] = Field(None, description="Page the visitor is on (defaults to scanner)")


class EngagementStartResponse(CamelModel):
    success: bool = True
    engagement_id: str = Field(..., description="Id to pass to /engagement/end")
    session_id: Optional[str] = Field(None, description="Visitor session the engagement belongs to")


class EngagementEndRequest(CamelModel):
    """Body of POST /api/engagement/end."""
    engagement_id: Optional[str] = Field(None, description="Id returned by /engagement/start")


class EngagementEndResponse(CamelModel):
    success: bool = True
    duration: int = Field(..., ge=0, description="Server-computed duration in seconds")
    session_id: Optional[str] = Field(None, description="Visitor session the engagement belongs to")


# --- Analytics ---

class AnalyticsSummary(CamelModel):
    total_engagements: int = Field(..., description="Engagements started in the window")
    completed_engagements: int = Field(..., description="Engagements with a recorded duration")
    completion_rate: float = Field(..., description="Completed / total as a percentage")
    average_duration: int = Field(..., description="Mean of positive durations, in whole seconds")


class TopArtwork(CamelModel):
    artwork_id: str
    artwork_title: str
    artwork_artist: str
    total_views: int
    completed_views: int
    avg_duration: float
    total_time_spent: int


class EngagementDay(CamelModel):
    date: str = Field(..., description="Calendar day (UTC) formatted YYYY-MM-DD")
    views: int
    avg_duration: float


class SessionStats(CamelModel):
    total_sessions: int = 0
    avg_artworks_per_session: float = 0.0
    avg_time_per_session: float = 0.0


class EngagementAnalyticsResponse(CamelModel):
    timeframe: Timeframe
    summary: AnalyticsSummary
    top_artworks: List[TopArtwork]
    engagement_over_time: List[EngagementDay]
    session_stats: SessionStats


class ArtworkRef(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    artist: Optional[str] = None


class ArtworkEngagementStats(CamelModel):
    total_views: int = 0
    completed_views: int = 0
    avg_duration: float = 0.0
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    total_time_spent: int = 0


class RecentEngagement(CamelModel):
    start_time: datetime
    duration: Optional[int] = None
    session_id: str
    page_type: PageType


class ArtworkEngagementResponse(CamelModel):
    artwork: ArtworkRef
    engagement: ArtworkEngagementStats
    recent_engagements: List[RecentEngagement]


# --- Artwork catalogue ---

class ArtworkBase(CamelModel):
    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    description: str
    year: str
    medium: str
    dimensions: str
    image_url: str = Field(..., description="URL of the image held by the image store")


class ArtworkCreate(ArtworkBase):
    """Catalogue entry as submitted by staff once the image is stored."""
    qr_code_url: Optional[str] = Field(None, description="URL of a pre-rendered QR code image")


class ArtworkResponse(ArtworkBase):
    id: str
    qr_code_url: Optional[str] = None
    artwork_url: Optional[str] = Field(None, description="Visitor page the QR code points at")
    created_by: str
    created_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


# --- System ---

class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
    timestamp: datetime
