# models.py
# Blueprints for the database tables: the artwork catalogue, visitor
# sessions and the engagement records that tie the two together.
# Engagements reference artworks and sessions by plain string ids, with no
# foreign keys, so analytics rows survive independently of the catalogue.

import uuid
from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.types import Uuid

from .core.database import Base


class Artwork(Base):
    """
    Blueprint for the 'artworks' table.
    Catalogue metadata; `id` is the public identifier encoded in QR codes.
    """
    __tablename__ = "artworks"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    artist = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    year = Column(String, nullable=False)
    medium = Column(String, nullable=False)
    dimensions = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    qr_code_url = Column(String)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class VisitorSession(Base):
    """
    Blueprint for the 'visitor_sessions' table.
    One row per visitor identity; the counters only move through atomic increments.
    """
    __tablename__ = "visitor_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, unique=True, index=True, nullable=False)
    user_agent = Column(String)
    ip_address = Column(String(45))

    first_seen = Column(DateTime(timezone=True), nullable=False)
    last_seen = Column(DateTime(timezone=True), nullable=False, index=True)

    total_artworks_viewed = Column(Integer, nullable=False, default=0)
    total_time_spent = Column(Integer, nullable=False, default=0)  # seconds


class Engagement(Base):
    """
    Blueprint for the 'engagements' table.
    One timed span of a visitor viewing one artwork.
    """
    __tablename__ = "engagements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    artwork_id = Column(String(36), nullable=False, index=True)
    session_id = Column(String, nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=True)  # seconds, set together with end_time

    user_agent = Column(String)
    ip_address = Column(String(45))
    page_type = Column(String(16), nullable=False, default="scanner")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_engagement_artwork_start', 'artwork_id', 'start_time'),
        Index('idx_engagement_session', 'session_id', 'start_time'),
    )
