"""Shared API dependencies, the single import point for all routers.

The guest store, rate limiter, and login audit log are created once in the
application lifespan and kept on ``app.state``; tests replace them through
``app.dependency_overrides``::

    from wedding_rsvp.api.deps import get_guest_store, require_admin
"""

from fastapi import Request

from wedding_rsvp.auth.dependencies import get_optional_admin, require_admin
from wedding_rsvp.services.login_audit import LoginAuditLog
from wedding_rsvp.services.rate_limiter import RateLimiter
from wedding_rsvp.storage.base import GuestStore

# Checked in order; the first header present wins.
_CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_guest_store(request: Request) -> GuestStore:
    return request.app.state.guest_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_login_audit(request: Request) -> LoginAuditLog:
    return request.app.state.login_audit


def get_client_ip(request: Request) -> str:
    """Client IP as reported by the proxy in front of the app, or ``"unknown"``.

    ``X-Forwarded-For`` may hold a chain; its first entry is the client.
    """
    for header in _CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value and value.split(",")[0].strip():
            return value.split(",")[0].strip()
    return "unknown"


__all__ = [
    "get_client_ip",
    "get_guest_store",
    "get_login_audit",
    "get_optional_admin",
    "get_rate_limiter",
    "require_admin",
]
