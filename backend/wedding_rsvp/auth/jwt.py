"""JWT creation and verification for the admin session token."""

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from wedding_rsvp.config import settings
from wedding_rsvp.schemas.auth import AdminSession, now_ms

logger = logging.getLogger(__name__)


class InvalidAdminTokenError(Exception):
    """Bad signature, malformed token, or unexpected payload."""


class AdminTokenExpiredError(InvalidAdminTokenError):
    """The token was valid but its session is over."""


def session_duration() -> timedelta:
    return timedelta(hours=settings.session_max_age_hours)


def create_admin_token(now: datetime | None = None) -> str:
    """Create a signed admin session token.

    Args:
        now: Login time. Defaults to the current UTC time.

    Returns:
        Encoded JWT with ``isAdmin``, ``loginTime`` (epoch millis), ``iat``
        and ``exp`` claims.
    """
    now = now or datetime.now(timezone.utc)
    payload = {
        "isAdmin": True,
        "loginTime": now_ms(now),
        "iat": now,
        "exp": now + session_duration(),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_admin_token(token: str, now: datetime | None = None) -> AdminSession:
    """Decode and verify an admin session token.

    Raises:
        AdminTokenExpiredError: If ``exp`` has passed or no session time remains.
        InvalidAdminTokenError: If the signature, encoding, or payload is invalid.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AdminTokenExpiredError("Admin session expired") from None
    except JWTError as exc:
        raise InvalidAdminTokenError(str(exc)) from None

    is_admin = payload.get("isAdmin")
    login_time = payload.get("loginTime")
    if is_admin is not True or not isinstance(login_time, int) or isinstance(login_time, bool):
        raise InvalidAdminTokenError("Unexpected admin token payload")

    session = AdminSession(is_admin=True, login_time=login_time)
    duration_ms = int(session_duration().total_seconds() * 1000)
    if session.time_remaining(now, duration_ms=duration_ms) <= 0:
        raise AdminTokenExpiredError("Admin session expired")
    return session


def verify_token(token: str | None, now: datetime | None = None) -> AdminSession | None:
    """Return the session for a valid token, ``None`` for anything else."""
    if not token:
        return None
    try:
        return decode_admin_token(token, now)
    except InvalidAdminTokenError as exc:
        logger.warning("Token verification failed: %s", exc)
        return None
