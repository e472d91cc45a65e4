"""Admin guests API router.

Every route requires the admin session cookie. There is a single guest list,
so there is no per-user scoping.
"""

from fastapi import APIRouter, Depends, Query

from wedding_rsvp.api.deps import get_guest_store, require_admin
from wedding_rsvp.errors import DuplicateEmailError, InvalidRequestError
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.schemas.guest import BulkActionRequest, GuestResponse, GuestUpdate
from wedding_rsvp.services.guest_query import DEFAULT_LIMIT, MAX_LIMIT, SortField, SortOrder, query_guests
from wedding_rsvp.storage.base import GuestStore

router = APIRouter(prefix="/api/admin/guests", tags=["admin-guests"], dependencies=[Depends(require_admin)])


def _plural(count: int) -> str:
    return "гост" if count == 1 else "гости"


@router.get("", summary="List guests with statistics")
async def list_guests(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    sort_by: SortField = Query("submissionDate", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    filter_attending: bool | None = Query(None, alias="filterAttending"),
    search: str | None = Query(None, max_length=100, description="Search by name or email (case-insensitive)"),
    store: GuestStore = Depends(get_guest_store),
) -> dict:
    """Return a page of guests plus statistics over the whole list."""
    result = query_guests(
        await store.get_all(),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        filter_attending=filter_attending,
        search=search,
    )
    return envelope(data=result.model_dump(mode="json", by_alias=True))


@router.post("/bulk", summary="Bulk delete or change attendance")
async def bulk_action(body: BulkActionRequest, store: GuestStore = Depends(get_guest_store)) -> dict:
    """Apply one action to several guests. Unknown ids are skipped; 404 if none exist."""
    if body.action == "delete":
        count = await store.bulk_delete(body.guest_ids)
        return envelope(data={"deletedCount": count}, message=f"Успешно изтрити {count} {_plural(count)}")

    if body.attending is None:
        raise InvalidRequestError("Невалиден статус на присъствие")

    count = await store.bulk_update_attending(body.guest_ids, body.attending)
    verb = "потвърдени" if body.attending else "отхвърлени"
    return envelope(data={"updatedCount": count}, message=f"Успешно {verb} {count} {_plural(count)}")


@router.get("/{guest_id}", summary="Get a guest by ID")
async def get_guest(guest_id: str, store: GuestStore = Depends(get_guest_store)) -> dict:
    guest = await store.get(guest_id)
    return envelope(data=GuestResponse.model_validate(guest).to_json_dict())


@router.patch("/{guest_id}", summary="Update a guest")
async def update_guest(
    guest_id: str,
    body: GuestUpdate,
    store: GuestStore = Depends(get_guest_store),
) -> dict:
    """Partially update a guest. Only explicitly provided fields are changed.

    If the email is being changed, it must not belong to another guest.
    """
    changes = body.changes()
    if not changes:
        raise InvalidRequestError("Няма подадени промени")

    current = await store.get(guest_id)
    if changes.get("email") and changes["email"] != current.email.lower():
        existing = await store.find_by_email(changes["email"])
        if existing is not None and existing.id != guest_id:
            raise DuplicateEmailError("Гост с този email адрес вече съществува")

    guest = await store.update(guest_id, changes)
    return envelope(data=GuestResponse.model_validate(guest).to_json_dict(), message="Гостът е обновен успешно")


@router.delete("/{guest_id}", summary="Delete a guest")
async def delete_guest(guest_id: str, store: GuestStore = Depends(get_guest_store)) -> dict:
    await store.delete(guest_id)
    return envelope(message="Гостът е изтрит успешно")
