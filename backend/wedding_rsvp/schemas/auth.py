"""Pydantic v2 schemas for the admin session endpoints."""

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import Field

from wedding_rsvp.schemas.guest import CamelModel

SESSION_DURATION_MS = 24 * 60 * 60 * 1000


def now_ms(now: datetime | None = None) -> int:
    """Epoch milliseconds for ``now`` (defaults to the current UTC time)."""
    now = now or datetime.now(timezone.utc)
    return int(now.timestamp() * 1000)


@dataclass(frozen=True)
class AdminSession:
    """Decoded admin token payload. There are no roles: ``is_admin`` is always True."""

    is_admin: bool
    login_time: int  # epoch millis

    def time_remaining(self, now: datetime | None = None, duration_ms: int = SESSION_DURATION_MS) -> int:
        """Milliseconds until the session expires, never negative."""
        return max(0, self.login_time + duration_ms - now_ms(now))


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LoginRequest(CamelModel):
    """Schema for admin login with the shared access code."""

    access_code: str | None = Field(None, max_length=100)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SessionInfo(CamelModel):
    """Session state for the admin dashboard."""

    is_authenticated: bool
    login_time: int | None = None
    time_remaining: int | None = None


class LoginAttempt(CamelModel):
    """One admin login attempt, as kept by the login audit log."""

    timestamp: datetime
    success: bool
    ip: str | None = None
    user_agent: str | None = None
