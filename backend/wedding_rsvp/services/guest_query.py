"""Filtering, sorting, and pagination for the admin guest list."""

import math
from typing import Literal

from wedding_rsvp.schemas.guest import GuestListData, GuestRecord, GuestResponse, Pagination
from wedding_rsvp.storage.base import compute_guest_stats

SortField = Literal["guestName", "name", "email", "attending", "submissionDate"]
SortOrder = Literal["asc", "desc"]

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

_SORT_ATTRIBUTES = {
    "guestName": "guest_name",
    "name": "guest_name",
    "email": "email",
    "attending": "attending",
    "submissionDate": "submission_date",
}


def _sort_key(attribute: str):
    def key(guest: GuestRecord):
        value = getattr(guest, attribute)
        if isinstance(value, str):
            value = value.casefold()
        return (value, guest.submission_date)

    return key


def query_guests(
    guests: list[GuestRecord],
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    sort_by: SortField = "submissionDate",
    sort_order: SortOrder = "desc",
    filter_attending: bool | None = None,
    search: str | None = None,
) -> GuestListData:
    """Return one page of guests plus statistics over the full, unfiltered list.

    Steps run in order: attending filter, case-insensitive name/email search,
    sort (ties broken by submission date), then pagination.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)

    matching = guests
    if filter_attending is not None:
        matching = [guest for guest in matching if guest.attending == filter_attending]

    if search and search.strip():
        needle = search.strip().casefold()
        matching = [
            guest
            for guest in matching
            if needle in guest.guest_name.casefold() or needle in guest.email.casefold()
        ]

    attribute = _SORT_ATTRIBUTES.get(sort_by, "submission_date")
    ordered = sorted(matching, key=_sort_key(attribute), reverse=sort_order == "desc")

    total = len(ordered)
    start = (page - 1) * limit
    page_items = ordered[start : start + limit]

    return GuestListData(
        guests=[GuestResponse.model_validate(guest) for guest in page_items],
        stats=compute_guest_stats(guests),
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )
