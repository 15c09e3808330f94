"""CRUD operations for visitor sessions."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import VisitorSession

logger = logging.getLogger(__name__)


class VisitorSessionCRUD:
    """CRUD operations for visitor sessions."""

    def get_session(self, db: Session, session_id: str) -> Optional[VisitorSession]:
        """Get a visitor session by its session id."""
        return db.query(VisitorSession).filter(VisitorSession.session_id == session_id).first()

    def upsert_session(self, db: Session, session_id: str, user_agent: Optional[str],
                       ip_address: Optional[str], now: datetime) -> VisitorSession:
        """Create the session on first contact, otherwise refresh last_seen."""
        session = self.get_session(db, session_id)
        if session:
            session.last_seen = now
            db.commit()
            return session

        session = VisitorSession(
            session_id=session_id,
            user_agent=user_agent,
            ip_address=ip_address,
            first_seen=now,
            last_seen=now,
            total_artworks_viewed=0,
            total_time_spent=0,
        )
        db.add(session)
        try:
            db.commit()
        except IntegrityError:
            # Another request created the same session first
            db.rollback()
            logger.debug(f"Session {session_id} created concurrently, refreshing last_seen")
            db.query(VisitorSession).filter(VisitorSession.session_id == session_id).update(
                {VisitorSession.last_seen: now}, synchronize_session=False
            )
            db.commit()
            return self.get_session(db, session_id)
        db.refresh(session)
        return session

    def increment_artworks_viewed(self, db: Session, session_id: str, amount: int = 1) -> int:
        """Atomically add to total_artworks_viewed. Returns the number of rows touched."""
        updated = db.query(VisitorSession).filter(VisitorSession.session_id == session_id).update(
            {VisitorSession.total_artworks_viewed: VisitorSession.total_artworks_viewed + amount},
            synchronize_session=False,
        )
        db.commit()
        return updated

    def increment_time_spent(self, db: Session, session_id: str, seconds: int) -> int:
        """Atomically add to total_time_spent. Returns the number of rows touched."""
        updated = db.query(VisitorSession).filter(VisitorSession.session_id == session_id).update(
            {VisitorSession.total_time_spent: VisitorSession.total_time_spent + seconds},
            synchronize_session=False,
        )
        db.commit()
        return updated

    def get_session_stats(self, db: Session, since: Optional[datetime]):
        """Count and per-session averages for sessions last seen since `since`."""
        query = db.query(
            func.count(VisitorSession.id).label('total_sessions'),
            func.avg(VisitorSession.total_artworks_viewed).label('avg_artworks'),
            func.avg(VisitorSession.total_time_spent).label('avg_time'),
        )
        if since is not None:
            query = query.filter(VisitorSession.last_seen >= since)
        return query.one()


# Create instance
visitor_session_crud = VisitorSessionCRUD()
