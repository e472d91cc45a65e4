"""Public RSVP submission endpoint."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from wedding_rsvp.api.deps import get_client_ip, get_guest_store, get_rate_limiter
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.services.rate_limiter import RateLimiter
from wedding_rsvp.services.rsvp import rsvp_success_message, submit_rsvp
from wedding_rsvp.storage.base import GuestStore

router = APIRouter(prefix="/api/rsvp", tags=["rsvp"])


@router.post("")
async def create_rsvp(
    request: Request,
    data: dict[str, Any] = Body(...),
    store: GuestStore = Depends(get_guest_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict:
    """Store one RSVP.

    Responds 400 with per-field ``errors`` on invalid input, 409 when the
    email already has an RSVP and 429 when the IP is over its limit.
    """
    record = await submit_rsvp(store, limiter, data, get_client_ip(request))
    return envelope(
        data={
            "id": record.id,
            "guestName": record.guest_name,
            "attending": record.attending,
            "submissionDate": record.submission_date,
        },
        message=rsvp_success_message(record),
    )
