"""Pydantic v2 schema for per-IP rate-limit counters."""

from datetime import datetime

from wedding_rsvp.schemas.guest import CamelModel


class RateLimitRecord(CamelModel):
    """Submission attempts from one IP within the current window."""

    count: int
    first_attempt: datetime
    last_attempt: datetime
