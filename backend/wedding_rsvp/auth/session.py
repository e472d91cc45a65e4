"""Admin session cookie handling."""

from datetime import datetime

from starlette.responses import Response

from wedding_rsvp.auth.jwt import session_duration
from wedding_rsvp.config import settings
from wedding_rsvp.schemas.auth import AdminSession, SessionInfo


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
    }


def set_admin_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age_seconds,
        **_cookie_options(),
    )


def clear_admin_session_cookie(response: Response) -> None:
    response.set_cookie(settings.session_cookie_name, "", max_age=0, **_cookie_options())


def get_session_info(session: AdminSession | None, now: datetime | None = None) -> SessionInfo:
    """Describe a session for the admin dashboard (``timeRemaining`` in millis)."""
    if session is None:
        return SessionInfo(is_authenticated=False)
    duration_ms = int(session_duration().total_seconds() * 1000)
    return SessionInfo(
        is_authenticated=True,
        login_time=session.login_time,
        time_remaining=session.time_remaining(now, duration_ms=duration_ms),
    )
