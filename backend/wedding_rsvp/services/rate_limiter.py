"""Per-IP sliding-window limiter for RSVP submissions.

Counters are stored through the active guest store, so they share its backend.
``check`` does not increment: the caller calls ``update`` after a successful
submission. Concurrent requests can therefore all pass ``check`` before any
``update`` lands (optimistic check, last write wins).
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from wedding_rsvp.schemas.rate_limit import RateLimitRecord
from wedding_rsvp.storage.base import GuestStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateLimiter:
    """Allow at most ``max_attempts`` submissions per IP within ``window_hours``."""

    def __init__(
        self,
        store: GuestStore,
        max_attempts: int = 3,
        window_hours: float = 1,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.window_hours = window_hours
        self._clock = clock

    def _window(self, window_hours: float | None = None) -> timedelta:
        return timedelta(hours=self.window_hours if window_hours is None else window_hours)

    def _window_expired(self, record: RateLimitRecord, now: datetime, window: timedelta) -> bool:
        return now - record.first_attempt > window

    async def check(
        self,
        ip_address: str,
        max_attempts: int | None = None,
        window_hours: float | None = None,
    ) -> bool:
        """Return True if another submission from ``ip_address`` is allowed."""
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        record = await self.store.get_rate_limit(ip_address)
        if record is None:
            return True

        if self._window_expired(record, self._clock(), self._window(window_hours)):
            return True

        allowed = record.count < max_attempts
        if not allowed:
            logger.warning("Rate limit exceeded for %s (%d attempts)", ip_address, record.count)
        return allowed

    async def update(self, ip_address: str) -> None:
        """Record one submission; starts a fresh window if the old one expired."""
        now = self._clock()
        record = await self.store.get_rate_limit(ip_address)

        if record is None or self._window_expired(record, now, self._window()):
            record = RateLimitRecord(count=1, first_attempt=now, last_attempt=now)
        else:
            record = record.model_copy(update={"count": record.count + 1, "last_attempt": now})

        await self.store.save_rate_limit(ip_address, record)

    async def retry_after(self, ip_address: str) -> int:
        """Seconds until the current window for ``ip_address`` closes (0 if none)."""
        record = await self.store.get_rate_limit(ip_address)
        if record is None:
            return 0
        remaining = record.first_attempt + self._window() - self._clock()
        return max(0, math.ceil(remaining.total_seconds()))
