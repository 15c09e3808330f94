"""CRUD operations module."""

from .artworks import artwork_crud
from .engagements import engagement_crud
from .sessions import visitor_session_crud

__all__ = [
    "artwork_crud",
    "engagement_crud",
    "visitor_session_crud",
]
