"""Python client for the visitor-facing engagement API."""

from .tracker import EngagementTracker, TrackerState, generate_client_session_id

__all__ = ["EngagementTracker", "TrackerState", "generate_client_session_id"]
