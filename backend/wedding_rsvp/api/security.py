"""Admin view of recent login attempts."""

from fastapi import APIRouter, Depends

from wedding_rsvp.api.deps import get_login_audit, require_admin
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.services.login_audit import LoginAuditLog

router = APIRouter(prefix="/api/admin/security", tags=["admin-security"], dependencies=[Depends(require_admin)])


@router.get("/login-attempts", summary="Recent admin login attempts")
async def login_attempts(audit: LoginAuditLog = Depends(get_login_audit)) -> dict:
    attempts = [attempt.model_dump(mode="json", by_alias=True) for attempt in audit.attempts()]
    return envelope(
        data={
            "attempts": attempts,
            "failedLast24Hours": len(audit.failed_attempts()),
        }
    )
