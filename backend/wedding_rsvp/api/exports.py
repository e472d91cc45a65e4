"""Admin download endpoints for the guest list and mailing-platform email lists."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from wedding_rsvp.api.deps import get_guest_store, require_admin
from wedding_rsvp.services.export import (
    EmailFormat,
    EmailPlatform,
    emails_export_filename,
    export_emails_for_platform,
    export_guests_csv,
    guests_export_filename,
)
from wedding_rsvp.storage.base import GuestStore

router = APIRouter(prefix="/api/admin/export", tags=["admin-export"], dependencies=[Depends(require_admin)])


def _attachment(content: bytes | str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/guests", summary="Download the guest list as CSV")
async def export_guests(
    attending_only: bool = Query(False, alias="attendingOnly"),
    store: GuestStore = Depends(get_guest_store),
) -> Response:
    content = export_guests_csv(await store.get_all(), attending_only=attending_only)
    return _attachment(content, "text/csv; charset=utf-8", guests_export_filename())


@router.get("/emails", summary="Download an email list for a mailing platform")
async def export_emails(
    platform: EmailPlatform = Query("generic"),
    fmt: EmailFormat = Query("csv", alias="format"),
    include_names: bool = Query(True, alias="includeNames"),
    include_phones: bool = Query(False, alias="includePhones"),
    include_dietary: bool = Query(False, alias="includeDietary"),
    attending_only: bool = Query(False, alias="attendingOnly"),
    store: GuestStore = Depends(get_guest_store),
) -> Response:
    # Only the generic layout has a plain-text variant.
    if platform != "generic":
        fmt = "csv"
    content = export_emails_for_platform(
        await store.get_all(),
        platform=platform,
        include_names=include_names,
        include_phones=include_phones,
        include_dietary=include_dietary,
        fmt=fmt,
        attending_only=attending_only,
    )
    media_type = "text/csv" if fmt == "csv" else "text/plain"
    return _attachment(content, media_type, emails_export_filename(platform, attending_only, fmt))
