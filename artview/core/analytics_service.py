"""Analytics Service - windowed aggregation over engagement and session records."""

import logging
import math
from collections import defaultdict
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .clock import Clock, ensure_utc, utc_now
from .config import settings
from .exceptions import PersistenceError
from ..crud.artworks import artwork_crud
from ..crud.engagements import engagement_crud
from ..crud.sessions import visitor_session_crud
from .. import schemas

logger = logging.getLogger(__name__)

DAY_FORMAT = "%Y-%m-%d"


def _round(value, digits: int = 2) -> float:
    """Round an aggregate that may be None or a Decimal; empty sets report 0."""
    if value is None:
        return 0.0
    return round(float(value), digits)


class AnalyticsService:
    """
    Engagement analytics for the admin dashboard.

    Every figure is computed from the engagements whose start time falls in
    the selected window. Open engagements (no end yet) count as views but
    not as completed views, and contribute nothing to duration averages.
    Artworks without in-window engagements never appear in rankings.
    """

    def __init__(self, db: Session, clock: Clock = utc_now,
                 top_limit: Optional[int] = None, recent_limit: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.top_limit = top_limit or settings.TOP_ARTWORKS_LIMIT
        self.recent_limit = recent_limit or settings.RECENT_ENGAGEMENTS_LIMIT

    def get_engagement_analytics(self, timeframe: schemas.Timeframe) -> schemas.EngagementAnalyticsResponse:
        """Summary, top artworks, daily series and session stats for one window."""
        since = timeframe.window_start(self.clock())
        try:
            return schemas.EngagementAnalyticsResponse(
                timeframe=timeframe,
                summary=self.get_summary(since),
                top_artworks=self.get_top_artworks(since),
                engagement_over_time=self.get_engagement_over_time(since),
                session_stats=self.get_session_stats(since),
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Error fetching engagement analytics: {e}",
                                   "Error fetching engagement analytics") from e

    def get_summary(self, since) -> schemas.AnalyticsSummary:
        total = engagement_crud.count_engagements(self.db, since)
        completed = engagement_crud.count_completed(self.db, since)
        average = engagement_crud.average_positive_duration(self.db, since)

        return schemas.AnalyticsSummary(
            total_engagements=total,
            completed_engagements=completed,
            completion_rate=round(completed / total * 100, 2) if total > 0 else 0,
            average_duration=math.floor(average + 0.5) if average else 0,
        )

    def get_top_artworks(self, since) -> List[schemas.TopArtwork]:
        rows = engagement_crud.get_artwork_rankings(self.db, since, self.top_limit)
        return [
            schemas.TopArtwork(
                artwork_id=row.artwork_id,
                artwork_title=row.title,
                artwork_artist=row.artist,
                total_views=row.total_views,
                completed_views=row.completed_views,
                avg_duration=_round(row.avg_duration),
                total_time_spent=int(row.total_time_spent or 0),
            )
            for row in rows
        ]

    def get_engagement_over_time(self, since) -> List[schemas.EngagementDay]:
        """One bucket per UTC calendar day of start time, oldest first."""
        views = defaultdict(int)
        durations = defaultdict(list)
        for start_time, duration in engagement_crud.get_start_times_and_durations(self.db, since):
            day = ensure_utc(start_time).strftime(DAY_FORMAT)
            views[day] += 1
            if duration is not None:
                durations[day].append(duration)

        series = []
        for day in sorted(views):
            day_durations = durations[day]
            average = sum(day_durations) / len(day_durations) if day_durations else None
            series.append(schemas.EngagementDay(date=day, views=views[day], avg_duration=_round(average)))
        return series

    def get_session_stats(self, since) -> schemas.SessionStats:
        row = visitor_session_crud.get_session_stats(self.db, since)
        if not row.total_sessions:
            return schemas.SessionStats()
        return schemas.SessionStats(
            total_sessions=row.total_sessions,
            avg_artworks_per_session=_round(row.avg_artworks),
            avg_time_per_session=_round(row.avg_time),
        )

    def get_artwork_engagement(self, artwork_id: str,
                               timeframe: schemas.Timeframe) -> schemas.ArtworkEngagementResponse:
        """Detailed statistics and the most recent engagements of one artwork."""
        since = timeframe.window_start(self.clock())
        try:
            stats = engagement_crud.get_artwork_stats(self.db, artwork_id, since)
            recent = engagement_crud.get_recent_engagements(self.db, artwork_id, since, self.recent_limit)
            artwork = artwork_crud.get_artwork(self.db, artwork_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Error fetching artwork engagement: {e}",
                                   "Error fetching artwork engagement") from e

        if artwork is None:
            logger.info(f"Engagement detail requested for unknown artwork {artwork_id}")

        return schemas.ArtworkEngagementResponse(
            artwork=schemas.ArtworkRef(
                id=artwork.id if artwork else None,
                title=artwork.title if artwork else None,
                artist=artwork.artist if artwork else None,
            ),
            engagement=schemas.ArtworkEngagementStats(
                total_views=stats.total_views or 0,
                completed_views=stats.completed_views or 0,
                avg_duration=_round(stats.avg_duration),
                min_duration=stats.min_duration,
                max_duration=stats.max_duration,
                total_time_spent=int(stats.total_time_spent or 0),
            ),
            recent_engagements=[
                schemas.RecentEngagement(
                    start_time=ensure_utc(engagement.start_time),
                    duration=engagement.duration,
                    session_id=engagement.session_id,
                    page_type=engagement.page_type,
                )
                for engagement in recent
            ],
        )
