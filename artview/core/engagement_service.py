"""Engagement Service - opens and closes timed artwork-viewing records."""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .clock import Clock, ensure_utc, utc_now
from .exceptions import NotFound, PersistenceError, ValidationError
from ..crud.artworks import artwork_crud
from ..crud.engagements import engagement_crud
from ..crud.sessions import visitor_session_crud
from ..schemas import PageType

logger = logging.getLogger(__name__)


@dataclass
class StartedEngagement:
    engagement_id: str
    session_id: Optional[str]


@dataclass
class EndedEngagement:
    duration: int
    session_id: str


class EngagementService:
    """
    Two-phase engagement recording.

    `start` opens a record when a visitor begins viewing an artwork and
    `end` closes it with a duration computed from the stored start time and
    the server's clock. `end` is best effort from the client's point of
    view and may never arrive; such rows stay open and are reported as
    incomplete by the analytics.

    Session counters are bumped with single-statement increments after the
    engagement row is written. A failed increment is logged and the call
    still succeeds, leaving the counter slightly behind.
    """

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def start(self, artwork_id: Optional[str], session_id: Optional[str],
              page_type: Optional[Union[PageType, str]] = None,
              user_agent: Optional[str] = None, ip_address: Optional[str] = None) -> StartedEngagement:
        if not artwork_id or not str(artwork_id).strip():
            raise ValidationError("Artwork ID is required")
        if not session_id:
            raise ValidationError("Session ID is required")
        page_type = self._coerce_page_type(page_type)

        try:
            artwork = artwork_crud.get_artwork(self.db, artwork_id)
            if not artwork:
                raise NotFound("Artwork not found")

            engagement = engagement_crud.create_engagement(
                self.db,
                artwork_id=artwork_id,
                session_id=session_id,
                start_time=self.clock(),
                page_type=page_type.value,
                user_agent=user_agent,
                ip_address=ip_address,
            )
            engagement_id = str(engagement.id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Error starting engagement tracking: {e}",
                                   "Error starting engagement tracking") from e

        self._bump_session_counter(visitor_session_crud.increment_artworks_viewed, session_id, 1)

        logger.info(f"Engagement {engagement_id} started for artwork {artwork_id} (session {session_id})")
        return StartedEngagement(engagement_id=engagement_id, session_id=session_id)

    def end(self, engagement_id: Optional[str]) -> EndedEngagement:
        if not engagement_id or not str(engagement_id).strip():
            raise ValidationError("Engagement ID is required")

        try:
            engagement = engagement_crud.get_engagement(self.db, engagement_id)
            if not engagement:
                raise NotFound("Engagement record not found")

            if engagement.end_time is not None:
                # Last write wins; clients are expected to end only once
                logger.warning(f"Engagement {engagement_id} ended more than once, overwriting duration")

            session_id = engagement.session_id
            end_time = self.clock()
            duration = compute_duration(engagement.start_time, end_time)
            engagement_crud.close_engagement(self.db, engagement, end_time, duration)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Error ending engagement tracking: {e}",
                                   "Error ending engagement tracking") from e

        self._bump_session_counter(visitor_session_crud.increment_time_spent, session_id, duration)

        logger.info(f"Engagement {engagement_id} ended after {duration}s")
        return EndedEngagement(duration=duration, session_id=session_id)

    def _bump_session_counter(self, increment, session_id: str, amount: int) -> None:
        """Apply a session counter increment; the engagement row is already committed."""
        try:
            increment(self.db, session_id, amount)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Session counter update failed for {session_id}: {e}", exc_info=True)

    @staticmethod
    def _coerce_page_type(page_type: Optional[Union[PageType, str]]) -> PageType:
        if page_type is None or page_type == "":
            return PageType.SCANNER
        try:
            return PageType(page_type)
        except ValueError:
            raise ValidationError(f"Invalid page type: {page_type}")


def compute_duration(start_time, end_time) -> int:
    """Whole seconds between two instants, floored and never negative."""
    elapsed = ensure_utc(end_time) - ensure_utc(start_time)
    return max(0, math.floor(elapsed.total_seconds()))
