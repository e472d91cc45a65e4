"""Auth API router: admin login, logout, and session info."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from wedding_rsvp.api.deps import get_client_ip, get_login_audit, get_optional_admin
from wedding_rsvp.auth.access_code import verify_access_code
from wedding_rsvp.auth.jwt import create_admin_token
from wedding_rsvp.auth.session import clear_admin_session_cookie, get_session_info, set_admin_session_cookie
from wedding_rsvp.errors import InvalidAccessCodeError, InvalidRequestError
from wedding_rsvp.schemas.auth import AdminSession, LoginRequest, SessionInfo
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.services.login_audit import LoginAuditLog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _safe_redirect_target(target: str | None) -> str:
    """Only same-site paths are allowed; anything else falls back to ``/``."""
    if not target or target == "true":
        return "/"
    if target.startswith("/") and not target.startswith("//") and "\\" not in target:
        return target
    return "/"


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    audit: LoginAuditLog = Depends(get_login_audit),
) -> JSONResponse:
    """Exchange the shared access code for a 24-hour session cookie."""
    if not body.access_code:
        raise InvalidRequestError("Моля въведете код за достъп")

    ip = get_client_ip(request)
    user_agent = request.headers.get("user-agent")

    if not verify_access_code(body.access_code):
        audit.record(False, ip=ip, user_agent=user_agent)
        raise InvalidAccessCodeError()

    response = JSONResponse(envelope(message="Успешно влизане"))
    set_admin_session_cookie(response, create_admin_token())
    audit.record(True, ip=ip, user_agent=user_agent)
    return response


# ---------------------------------------------------------------------------
# GET|POST /logout
# ---------------------------------------------------------------------------


@router.get("/logout")
async def logout_redirect(redirect: str | None = None) -> RedirectResponse:
    """Clear the session cookie and redirect (to ``/`` by default)."""
    response = RedirectResponse(_safe_redirect_target(redirect), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    clear_admin_session_cookie(response)
    logger.info("Admin logged out")
    return response


@router.post("/logout", response_model=None)
async def logout(redirect: str | None = None) -> JSONResponse | RedirectResponse:
    """Clear the session cookie.

    With ``?redirect=true`` (or a local path) the response is a redirect,
    otherwise ``{"success": true}``. The token itself is not revoked.
    """
    if redirect:
        response = RedirectResponse(_safe_redirect_target(redirect), status_code=status.HTTP_303_SEE_OTHER)
    else:
        response = JSONResponse(envelope())
    clear_admin_session_cookie(response)
    logger.info("Admin logged out")
    return response


# ---------------------------------------------------------------------------
# GET /session
# ---------------------------------------------------------------------------


@router.get("/session")
async def session(admin: AdminSession | None = Depends(get_optional_admin)) -> dict:
    """Report whether the caller holds a valid admin session."""
    info: SessionInfo = get_session_info(admin)
    return info.to_json_dict()
