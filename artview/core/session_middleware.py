"""Visitor session middleware: resolves, records and echoes a session id."""

import hashlib
import logging
from typing import Callable, List, Optional

from fastapi import Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from .clock import Clock, utc_now
from .config import settings
from .database import SessionLocal
from ..crud.sessions import visitor_session_crud

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request headers."""
    # Check for forwarded headers (common with proxies/load balancers)
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    # Fallback to direct connection
    return request.client.host if request.client else "unknown"


def generate_session_id(ip_address: str, user_agent: str, timestamp_ms: int) -> str:
    """Opaque 32-char token derived from the client fingerprint and the current time."""
    return hashlib.md5(f"{ip_address}{user_agent}{timestamp_ms}".encode()).hexdigest()


class VisitorSessionMiddleware(BaseHTTPMiddleware):
    """
    Gives every visitor-facing request a session id.

    A session id sent by the client in the session header is reused as is;
    otherwise one is generated. The matching session row is upserted and the
    id is echoed back in the same header. Storage failures never block the
    request: they are logged and the resolved id is used anyway.
    """

    def __init__(self, app, tracked_paths: Optional[List[str]] = None, header_name: Optional[str] = None,
                 session_factory: Callable[[], Session] = SessionLocal, clock: Clock = utc_now):
        super().__init__(app)
        self.tracked_paths = tracked_paths if tracked_paths is not None else settings.SESSION_TRACKED_PATHS
        self.header_name = header_name or settings.SESSION_HEADER
        self.session_factory = session_factory
        self.clock = clock

    def is_tracked(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.tracked_paths)

    async def dispatch(self, request: Request, call_next):
        if not self.is_tracked(request.url.path):
            return await call_next(request)

        now = self.clock()
        ip_address = get_client_ip(request)
        user_agent = request.headers.get("user-agent") or "unknown"
        session_id = request.headers.get(self.header_name) or generate_session_id(
            ip_address, user_agent, int(now.timestamp() * 1000)
        )

        try:
            await run_in_threadpool(self._record_session, session_id, user_agent, ip_address, now)
        except Exception as e:
            logger.error(f"Session middleware error for {session_id}: {e}", exc_info=True)

        request.state.session_id = session_id
        response = await call_next(request)
        response.headers[self.header_name] = session_id
        return response

    def _record_session(self, session_id: str, user_agent: str, ip_address: str, now) -> None:
        db = self.session_factory()
        try:
            visitor_session_crud.upsert_session(db, session_id, user_agent, ip_address, now)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def get_session_id(request: Request) -> Optional[str]:
    """Dependency returning the session id resolved by the middleware."""
    return getattr(request.state, "session_id", None)
