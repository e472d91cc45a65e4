"""Shared admin access code check."""

import secrets

from wedding_rsvp.config import settings


def verify_access_code(access_code: str | None, expected: str | None = None) -> bool:
    """Constant-time comparison against ``ADMIN_ACCESS_CODE``.

    There are no per-user credentials: everyone with the code is the admin.
    """
    if not access_code:
        return False
    expected = settings.admin_access_code if expected is None else expected
    return secrets.compare_digest(access_code.encode("utf-8"), expected.encode("utf-8"))
