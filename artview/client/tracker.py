"""Client-side engagement tracker.

Mirrors what the visitor pages do in the browser: open an engagement when
an artwork is shown, keep a viewing timer that stops while the page is in
the background, and close the engagement when the visitor leaves. One
tracker instance belongs to one page controller.

The timer here only drives the on-screen "Viewing time" label. The
duration that ends up in the analytics is computed by the server from its
own start and end timestamps, so time spent in the background still counts
there.
"""

import logging
import math
import secrets
import string
from datetime import datetime
from enum import Enum
from typing import MutableMapping, Optional

import httpx

from ..core.clock import Clock, utc_now
from ..schemas import PageType

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-ID"
SESSION_STORAGE_KEY = "museum_session_id"
_BASE36 = string.digits + string.ascii_lowercase


class TrackerState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"


def generate_client_session_id(now: datetime) -> str:
    """`session_<epoch ms>_<9 random base36 chars>`, as stored by the visitor pages."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"session_{int(now.timestamp() * 1000)}_{suffix}"


class EngagementTracker:
    """Idle → Tracking ⇄ Paused → Idle state machine around the engagement API.

    Pass the same `session_store` (any mutable mapping, the equivalent of the
    browser's localStorage) to every page controller of a visit so they all
    report under one session id.
    """

    def __init__(self, client: httpx.Client, session_id: Optional[str] = None,
                 clock: Clock = utc_now, api_prefix: str = "/api",
                 session_store: Optional[MutableMapping[str, str]] = None):
        self.client = client
        self.clock = clock
        self.api_prefix = api_prefix.rstrip("/")
        self.session_store = session_store

        stored = session_store.get(SESSION_STORAGE_KEY) if session_store is not None else None
        self.session_id = session_id or stored or generate_client_session_id(clock())
        self._remember_session_id()

        self.state = TrackerState.IDLE
        self.engagement_id: Optional[str] = None
        self.start_time: Optional[datetime] = None
        self.pause_time: Optional[datetime] = None
        self.last_server_duration: Optional[int] = None

    @property
    def is_tracking(self) -> bool:
        return self.state is not TrackerState.IDLE

    def _headers(self) -> dict:
        return {SESSION_HEADER: self.session_id}

    def _remember_session_id(self) -> None:
        if self.session_store is not None:
            self.session_store[SESSION_STORAGE_KEY] = self.session_id

    def _adopt_session_header(self, response: httpx.Response) -> None:
        """Follow the session id the server resolved for this visitor."""
        echoed = response.headers.get(SESSION_HEADER)
        if echoed and echoed != self.session_id:
            logger.debug(f"Adopting server session id {echoed}")
            self.session_id = echoed
            self._remember_session_id()

    def start(self, artwork_id: str, page_type: PageType = PageType.ARTWORK) -> bool:
        """Open an engagement. Returns False (and stays idle) if the server did not accept it."""
        if self.is_tracking:
            self.end()

        try:
            response = self.client.post(
                f"{self.api_prefix}/engagement/start",
                json={"artworkId": artwork_id, "pageType": PageType(page_type).value},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Error starting engagement tracking: {e}")
            return False

        self._adopt_session_header(response)
        if response.status_code != httpx.codes.OK:
            logger.warning(f"Engagement start rejected ({response.status_code}) for artwork {artwork_id}")
            return False

        data = response.json()
        self.engagement_id = data["engagementId"]
        self.start_time = self.clock()
        self.pause_time = None
        self.state = TrackerState.TRACKING
        logger.debug(f"Engagement tracking started: {self.engagement_id}")
        return True

    def pause(self) -> None:
        """Page went to the background."""
        if self.state is TrackerState.TRACKING:
            self.pause_time = self.clock()
            self.state = TrackerState.PAUSED

    def resume(self) -> None:
        """Page is visible again; the paused interval is dropped from the displayed time."""
        if self.state is TrackerState.PAUSED:
            self.start_time += self.clock() - self.pause_time
            self.pause_time = None
            self.state = TrackerState.TRACKING

    def on_visibility_change(self, hidden: bool) -> None:
        if hidden:
            self.pause()
        else:
            self.resume()

    def end(self) -> Optional[int]:
        """
        Close the current engagement, best effort.

        Local state is cleared before the request goes out, so a lost or
        failed request never leaves the tracker stuck. Returns the duration
        the server recorded, or None if it could not be confirmed.
        """
        if not self.is_tracking or not self.engagement_id:
            return None

        engagement_id = self.engagement_id
        self._reset()

        try:
            response = self.client.post(
                f"{self.api_prefix}/engagement/end",
                json={"engagementId": engagement_id},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Error ending engagement tracking: {e}")
            return None

        self._adopt_session_header(response)
        if response.status_code != httpx.codes.OK:
            logger.warning(f"Engagement end rejected ({response.status_code}) for {engagement_id}")
            return None

        self.last_server_duration = response.json()["duration"]
        logger.debug(f"Engagement tracking ended. Duration: {self.last_server_duration} seconds")
        return self.last_server_duration

    # Page teardown (navigation, tab close) and "scan another" both just end the view
    on_page_teardown = end
    scan_another = end

    def current_duration(self) -> int:
        """Seconds of foreground viewing, as shown to the visitor."""
        if self.start_time is None:
            return 0
        reference = self.pause_time if self.state is TrackerState.PAUSED else self.clock()
        return max(0, math.floor((reference - self.start_time).total_seconds()))

    def display_text(self) -> str:
        minutes, seconds = divmod(self.current_duration(), 60)
        return f"Viewing time: {minutes}m {seconds}s"

    def _reset(self) -> None:
        self.state = TrackerState.IDLE
        self.engagement_id = None
        self.start_time = None
        self.pause_time = None
