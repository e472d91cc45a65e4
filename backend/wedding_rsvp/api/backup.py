"""Admin backup endpoints: download a JSON snapshot, validate one, preview a restore."""

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from wedding_rsvp.api.deps import get_guest_store, require_admin
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.services.backup import backup_filename, create_backup, simulate_restore, validate_backup_data
from wedding_rsvp.storage.base import GuestStore

router = APIRouter(prefix="/api/admin/backup", tags=["admin-backup"], dependencies=[Depends(require_admin)])


@router.get("", summary="Download a JSON backup of all guests")
async def download_backup(store: GuestStore = Depends(get_guest_store)) -> JSONResponse:
    backup = create_backup(await store.get_all())
    return JSONResponse(
        backup.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers={"Content-Disposition": f'attachment; filename="{backup_filename()}"'},
    )


@router.post("/validate", summary="Validate an uploaded backup")
async def validate_backup(data: Any = Body(...)) -> dict:
    result = validate_backup_data(data)
    return envelope(data=result.model_dump(mode="json", by_alias=True, exclude_none=True))


@router.post("/restore-preview", summary="Preview restoring a backup without writing")
async def restore_preview(data: Any = Body(...), store: GuestStore = Depends(get_guest_store)) -> dict:
    result = simulate_restore(data, await store.get_all())
    return envelope(data=result.model_dump(mode="json", by_alias=True))
