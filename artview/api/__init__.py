"""API routes module."""

from .analytics import router as analytics_router
from .artworks import router as artworks_router
from .engagement import router as engagement_router
from .system import router as system_router

__all__ = [
    "analytics_router",
    "artworks_router",
    "engagement_router",
    "system_router",
]
