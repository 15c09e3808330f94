"""CRUD operations for engagement records."""

import uuid
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import func, desc
from sqlalchemy.orm import Session, Query

from ..models import Engagement, Artwork


def _since(query: Query, since: Optional[datetime]) -> Query:
    if since is not None:
        query = query.filter(Engagement.start_time >= since)
    return query


class EngagementCRUD:
    """CRUD operations for engagement records."""

    def create_engagement(self, db: Session, artwork_id: str, session_id: str, start_time: datetime,
                          page_type: str, user_agent: Optional[str] = None,
                          ip_address: Optional[str] = None) -> Engagement:
        """Insert an open engagement (no end_time yet)."""
        engagement = Engagement(
            artwork_id=artwork_id,
            session_id=session_id,
            start_time=start_time,
            page_type=page_type,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        db.add(engagement)
        db.commit()
        db.refresh(engagement)
        return engagement

    def get_engagement(self, db: Session, engagement_id: str) -> Optional[Engagement]:
        """Get an engagement by id; malformed ids simply do not resolve."""
        try:
            key = uuid.UUID(str(engagement_id))
        except ValueError:
            return None
        return db.get(Engagement, key)

    def close_engagement(self, db: Session, engagement: Engagement, end_time: datetime,
                         duration: int) -> Engagement:
        """Set end_time and duration together in one write."""
        engagement.end_time = end_time
        engagement.duration = duration
        db.commit()
        db.refresh(engagement)
        return engagement

    def delete_for_artwork(self, db: Session, artwork_id: str) -> int:
        """Delete every engagement of an artwork without committing."""
        return db.query(Engagement).filter(Engagement.artwork_id == artwork_id).delete(
            synchronize_session=False
        )

    # Window aggregates

    def count_engagements(self, db: Session, since: Optional[datetime]) -> int:
        return _since(db.query(func.count(Engagement.id)), since).scalar() or 0

    def count_completed(self, db: Session, since: Optional[datetime]) -> int:
        return _since(
            db.query(func.count(Engagement.id)).filter(Engagement.duration.isnot(None)), since
        ).scalar() or 0

    def average_positive_duration(self, db: Session, since: Optional[datetime]) -> Optional[float]:
        """Mean duration over completed engagements that lasted at least a second."""
        value = _since(
            db.query(func.avg(Engagement.duration)).filter(Engagement.duration > 0), since
        ).scalar()
        return float(value) if value is not None else None

    def get_artwork_rankings(self, db: Session, since: Optional[datetime], limit: int):
        """Per-artwork view statistics joined with catalogue metadata, most viewed first."""
        total_views = func.count(Engagement.id).label('total_views')
        query = db.query(
            Engagement.artwork_id.label('artwork_id'),
            Artwork.title.label('title'),
            Artwork.artist.label('artist'),
            total_views,
            func.count(Engagement.duration).label('completed_views'),
            func.avg(Engagement.duration).label('avg_duration'),
            func.sum(Engagement.duration).label('total_time_spent'),
        ).join(Artwork, Artwork.id == Engagement.artwork_id)
        query = _since(query, since)
        return query.group_by(
            Engagement.artwork_id, Artwork.title, Artwork.artist
        ).order_by(desc('total_views'), Engagement.artwork_id).limit(limit).all()

    def get_start_times_and_durations(self, db: Session,
                                      since: Optional[datetime]) -> List[Tuple[datetime, Optional[int]]]:
        """Raw (start_time, duration) pairs for calendar bucketing."""
        query = _since(db.query(Engagement.start_time, Engagement.duration), since)
        return [(row.start_time, row.duration) for row in query.all()]

    def get_artwork_stats(self, db: Session, artwork_id: str, since: Optional[datetime]):
        query = db.query(
            func.count(Engagement.id).label('total_views'),
            func.count(Engagement.duration).label('completed_views'),
            func.avg(Engagement.duration).label('avg_duration'),
            func.min(Engagement.duration).label('min_duration'),
            func.max(Engagement.duration).label('max_duration'),
            func.sum(Engagement.duration).label('total_time_spent'),
        ).filter(Engagement.artwork_id == artwork_id)
        return _since(query, since).one()

    def get_recent_engagements(self, db: Session, artwork_id: str, since: Optional[datetime],
                               limit: int) -> List[Engagement]:
        query = db.query(Engagement).filter(Engagement.artwork_id == artwork_id)
        return _since(query, since).order_by(desc(Engagement.start_time)).limit(limit).all()


# Create instance
engagement_crud = EngagementCRUD()
