"""Shared test fixtures."""

import os
import shutil
import tempfile

# Point the app at a throwaway file-backed database before anything imports
# the settings, so requests get pooled connections as they do in production
_DB_DIR = tempfile.mkdtemp(prefix="artview-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'artview.db')}"

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from artview import models
from artview.core.clock import get_clock
from artview.core.database import Base, SessionLocal, engine
from artview.core.security import create_access_token
from artview.crud.engagements import engagement_crud
from artview.main import app

T0 = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable wall clock shared by the server and the client tracker."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def database_file():
    yield
    engine.dispose()
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    fake = FakeClock()
    app.dependency_overrides[get_clock] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    token = create_access_token({"username": "curator", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_artwork(db):
    """Factory inserting catalogue entries."""
    counter = {"n": 0}

    def _make(title: Optional[str] = None, artist: str = "Unknown Artist", artwork_id: Optional[str] = None,
              qr_code_url: Optional[str] = None):
        counter["n"] += 1
        artwork = models.Artwork(
            id=artwork_id or f"artwork-{counter['n']}",
            title=title or f"Artwork {counter['n']}",
            artist=artist,
            description="Oil on canvas",
            year="1889",
            medium="Oil",
            dimensions="73.7 cm × 92.1 cm",
            image_url=f"https://images.example.org/{counter['n']}.png",
            qr_code_url=qr_code_url,
            created_by="curator",
        )
        db.add(artwork)
        db.commit()
        db.refresh(artwork)
        return artwork

    return _make


@pytest.fixture
def add_engagement(db):
    """Factory inserting engagements at a given start time, optionally closed."""

    def _add(artwork_id: str, start_time: datetime, duration: Optional[int] = None,
             session_id: str = "session-a", page_type: str = "artwork"):
        engagement = engagement_crud.create_engagement(
            db,
            artwork_id=artwork_id,
            session_id=session_id,
            start_time=start_time,
            page_type=page_type,
        )
        if duration is not None:
            engagement_crud.close_engagement(db, engagement, start_time + timedelta(seconds=duration), duration)
        return engagement

    return _add


@pytest.fixture
def add_visitor_session(db):
    def _add(session_id: str, last_seen: datetime, artworks: int = 0, time_spent: int = 0):
        session = models.VisitorSession(
            session_id=session_id,
            user_agent="pytest",
            ip_address="127.0.0.1",
            first_seen=last_seen,
            last_seen=last_seen,
            total_artworks_viewed=artworks,
            total_time_spent=time_spent,
        )
        db.add(session)
        db.commit()
        return session

    return _add
