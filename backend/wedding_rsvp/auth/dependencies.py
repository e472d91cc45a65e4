"""FastAPI dependencies for admin route protection."""

import logging

from fastapi import Request

from wedding_rsvp.auth.jwt import (
    AdminTokenExpiredError,
    InvalidAdminTokenError,
    decode_admin_token,
    verify_token,
)
from wedding_rsvp.config import settings
from wedding_rsvp.errors import UnauthorizedError
from wedding_rsvp.schemas.auth import AdminSession

logger = logging.getLogger(__name__)


async def require_admin(request: Request) -> AdminSession:
    """Validate the admin session cookie and return the session.

    Raises:
        UnauthorizedError: with ``reason`` ``missing``, ``invalid`` or ``expired``.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        logger.warning("Unauthorized access to %s: no session cookie", request.url.path)
        raise UnauthorizedError("missing")

    try:
        return decode_admin_token(token)
    except AdminTokenExpiredError:
        logger.warning("Unauthorized access to %s: session expired", request.url.path)
        raise UnauthorizedError("expired", "Сесията ви е изтекла. Моля, влезте отново.") from None
    except InvalidAdminTokenError:
        logger.warning("Unauthorized access to %s: invalid session token", request.url.path)
        raise UnauthorizedError("invalid") from None


async def get_optional_admin(request: Request) -> AdminSession | None:
    """Return the admin session if the cookie holds a valid token, else ``None``."""
    return verify_token(request.cookies.get(settings.session_cookie_name))
