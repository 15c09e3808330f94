"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import init_db, close_db
from .core.exceptions import register_exception_handlers
from .core.session_middleware import VisitorSessionMiddleware
from .api import (
    analytics_router,
    artworks_router,
    engagement_router,
    system_router,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    init_db()
    logger.info(f"🚀 {settings.APP_NAME} {settings.APP_VERSION} started, engagement tracking enabled")

    yield

    # Shutdown
    close_db()
    logger.info("🛑 Database connections closed")


app = FastAPI(
    title=settings.APP_NAME,
    description="API for ArtView - QR-driven artwork pages with visitor engagement analytics.",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Session resolution runs inside CORS so the echoed header is exposed to browsers
app.add_middleware(VisitorSessionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.SESSION_HEADER],
)

register_exception_handlers(app)

# Include API routers
app.include_router(engagement_router)
app.include_router(artworks_router)
app.include_router(analytics_router)
app.include_router(system_router)


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": "Welcome to the ArtView Museum API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/api/health"
    }
