"""In-memory log of admin login attempts.

One instance lives on ``app.state`` for the lifetime of the process and is
handed to routers through a dependency. Entries are lost on restart.
"""

import logging
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta

from wedding_rsvp.schemas.auth import LoginAttempt
from wedding_rsvp.services.rate_limiter import utcnow

logger = logging.getLogger(__name__)


class LoginAuditLog:
    """Keep the most recent ``max_entries`` login attempts, oldest dropped first."""

    def __init__(self, max_entries: int = 100, clock: Callable[[], datetime] = utcnow) -> None:
        self._attempts: deque[LoginAttempt] = deque(maxlen=max_entries)
        self._clock = clock

    def record(self, success: bool, ip: str | None = None, user_agent: str | None = None) -> LoginAttempt:
        attempt = LoginAttempt(timestamp=self._clock(), success=success, ip=ip, user_agent=user_agent)
        self._attempts.append(attempt)
        if success:
            logger.info("Admin login succeeded from %s", ip or "unknown")
        else:
            logger.warning("Admin login failed from %s", ip or "unknown")
        return attempt

    def attempts(self) -> list[LoginAttempt]:
        """All retained attempts, newest first."""
        return list(reversed(self._attempts))

    def failed_attempts(self, window: timedelta = timedelta(hours=24)) -> list[LoginAttempt]:
        cutoff = self._clock() - window
        return [a for a in self.attempts() if not a.success and a.timestamp > cutoff]

    def clear(self) -> None:
        self._attempts.clear()
