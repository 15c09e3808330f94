"""Tests for the client-side engagement tracker."""

import re
import uuid

import httpx
import pytest

from artview import models
from artview.client import EngagementTracker, TrackerState, generate_client_session_id
from artview.client.tracker import SESSION_STORAGE_KEY
from artview.schemas import PageType

from .conftest import T0


@pytest.fixture
def tracker(client, clock):
    return EngagementTracker(client, session_id="visitor-1", clock=clock)


class TestSessionId:
    def test_format(self):
        session_id = generate_client_session_id(T0)
        assert re.fullmatch(rf"session_{int(T0.timestamp() * 1000)}_[0-9a-z]{{9}}", session_id)

    def test_generated_when_not_supplied(self, client, clock):
        tracker = EngagementTracker(client, clock=clock)
        assert tracker.session_id.startswith("session_")


class TestTrackerStateMachine:
    def test_start_moves_to_tracking(self, tracker, make_artwork):
        artwork = make_artwork()

        assert tracker.start(artwork.id) is True

        assert tracker.state is TrackerState.TRACKING
        assert tracker.engagement_id is not None
        assert tracker.current_duration() == 0

    def test_failed_start_stays_idle(self, tracker):
        assert tracker.start("no-such-artwork") is False

        assert tracker.state is TrackerState.IDLE
        assert tracker.engagement_id is None

    def test_visibility_events_while_idle_are_ignored(self, tracker):
        tracker.on_visibility_change(hidden=True)
        tracker.on_visibility_change(hidden=False)

        assert tracker.state is TrackerState.IDLE
        assert tracker.end() is None

    def test_display_freezes_while_paused(self, tracker, clock, make_artwork):
        tracker.start(make_artwork().id)

        clock.advance(65)
        assert tracker.display_text() == "Viewing time: 1m 5s"

        tracker.on_visibility_change(hidden=True)
        clock.advance(100)
        assert tracker.state is TrackerState.PAUSED
        assert tracker.current_duration() == 65

        # A second hidden event does not move the pause point
        tracker.on_visibility_change(hidden=True)
        tracker.on_visibility_change(hidden=False)
        assert tracker.state is TrackerState.TRACKING
        assert tracker.current_duration() == 65

    def test_scan_another_ends_the_view(self, tracker, clock, make_artwork):
        tracker.start(make_artwork().id)
        clock.advance(7)

        assert tracker.scan_another() == 7
        assert tracker.state is TrackerState.IDLE
        assert tracker.current_duration() == 0

    def test_starting_a_new_view_ends_the_previous_one(self, tracker, db, clock, make_artwork):
        first, second = make_artwork(), make_artwork()
        tracker.start(first.id)
        first_engagement = tracker.engagement_id
        clock.advance(9)

        tracker.start(second.id)

        db.expire_all()
        assert db.get(models.Engagement, uuid.UUID(first_engagement)).duration == 9
        assert tracker.state is TrackerState.TRACKING


class TestPauseVersusServerDuration:
    def test_display_excludes_background_time_but_server_does_not(self, tracker, db, clock, make_artwork):
        artwork = make_artwork()
        tracker.start(artwork.id, page_type=PageType.ARTWORK)
        engagement_id = tracker.engagement_id

        clock.advance(5)
        tracker.on_visibility_change(hidden=True)
        clock.advance(30)
        tracker.on_visibility_change(hidden=False)
        clock.advance(5)

        # The visitor sees 10 seconds of foreground viewing...
        assert tracker.current_duration() == 10
        assert tracker.display_text() == "Viewing time: 0m 10s"

        # ...while the server records the full wall-clock span
        assert tracker.on_page_teardown() == 40
        db.expire_all()
        engagement = db.get(models.Engagement, uuid.UUID(engagement_id))
        assert engagement.duration == 40
        session = db.query(models.VisitorSession).filter_by(session_id="visitor-1").one()
        assert session.total_time_spent == 40
        assert session.total_artworks_viewed == 1


class TestBestEffortEnd:
    def test_network_failure_on_end_is_swallowed(self, clock, caplog):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/start"):
                return httpx.Response(200, json={"success": True, "engagementId": "e-1", "sessionId": "s"})
            raise httpx.ConnectError("connection reset", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://museum.test")
        tracker = EngagementTracker(client, session_id="s", clock=clock)
        tracker.start("artwork-1")

        assert tracker.on_page_teardown() is None

        assert tracker.state is TrackerState.IDLE
        assert "Error ending engagement tracking" in caplog.text

    def test_session_header_sent_on_every_call(self, clock):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("X-Session-ID"))
            if request.url.path.endswith("/start"):
                return httpx.Response(200, json={"success": True, "engagementId": "e-1", "sessionId": "s"})
            return httpx.Response(200, json={"success": True, "duration": 3, "sessionId": "s"})

        client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://museum.test")
        tracker = EngagementTracker(client, session_id="visitor-x", clock=clock)
        tracker.start("artwork-1")
        tracker.end()

        assert seen == ["visitor-x", "visitor-x"]


class TestSessionContinuity:
    def test_page_controllers_share_the_stored_session(self, client, db, clock, make_artwork):
        store = {}
        scanner_page = EngagementTracker(client, clock=clock, session_store=store)
        artwork_page = EngagementTracker(client, clock=clock, session_store=store)

        assert store[SESSION_STORAGE_KEY] == scanner_page.session_id
        assert artwork_page.session_id == scanner_page.session_id

        scanner_page.start(make_artwork().id, page_type=PageType.SCANNER)
        scanner_page.on_page_teardown()
        artwork_page.start(make_artwork().id)
        artwork_page.on_page_teardown()

        db.expire_all()
        sessions = db.query(models.VisitorSession).all()
        assert [s.session_id for s in sessions] == [scanner_page.session_id]
        assert sessions[0].total_artworks_viewed == 2

    def test_explicit_session_id_is_stored(self, client, clock):
        store = {SESSION_STORAGE_KEY: "session_old"}

        tracker = EngagementTracker(client, session_id="visitor-new", clock=clock, session_store=store)

        assert tracker.session_id == "visitor-new"
        assert store[SESSION_STORAGE_KEY] == "visitor-new"

    def test_adopts_session_id_echoed_by_server(self, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"success": True, "engagementId": "e-1", "sessionId": "server-side"},
                headers={"X-Session-ID": "server-side"},
            )

        store = {}
        client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://museum.test")
        tracker = EngagementTracker(client, clock=clock, session_store=store)

        tracker.start("artwork-1")

        assert tracker.session_id == "server-side"
        assert store[SESSION_STORAGE_KEY] == "server-side"
