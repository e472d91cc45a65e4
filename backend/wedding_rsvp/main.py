"""Wedding RSVP FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlencode

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wedding_rsvp.api.auth import router as auth_router
from wedding_rsvp.api.backup import router as backup_router
from wedding_rsvp.api.deps import get_guest_store
from wedding_rsvp.api.exports import router as exports_router
from wedding_rsvp.api.guests import router as guests_router
from wedding_rsvp.api.rsvp import router as rsvp_router
from wedding_rsvp.api.security import router as security_router
from wedding_rsvp.auth.session import clear_admin_session_cookie
from wedding_rsvp.config import settings
from wedding_rsvp.errors import (
    GENERIC_ERROR_MESSAGE,
    InvalidRequestError,
    RateLimitedError,
    StorageError,
    UnauthorizedError,
    WeddingAppError,
)
from wedding_rsvp.schemas.common import envelope
from wedding_rsvp.services.login_audit import LoginAuditLog
from wedding_rsvp.services.rate_limiter import RateLimiter
from wedding_rsvp.storage import create_guest_store
from wedding_rsvp.storage.base import GuestStore

# Configure root logger so all wedding_rsvp.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the guest store, rate limiter, and login audit log; close the store on shutdown."""
    store = create_guest_store(settings)
    app.state.guest_store = store
    app.state.rate_limiter = RateLimiter(
        store,
        max_attempts=settings.rsvp_rate_limit_max_attempts,
        window_hours=settings.rsvp_rate_limit_window_hours,
    )
    app.state.login_audit = LoginAuditLog()
    logger.info("Using %s guest storage", store.backend_name)
    yield
    await store.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="RSVP collection and guest administration for a single wedding.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(rsvp_router)
app.include_router(guests_router)
app.include_router(exports_router)
app.include_router(backup_router)
app.include_router(security_router)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def _login_redirect(request: Request, exc: UnauthorizedError) -> RedirectResponse:
    """Send a browser to the admin login page, remembering where it was going."""
    params = {"redirect": request.url.path}
    if exc.reason == "expired":
        params["expired"] = "true"
    elif exc.reason == "invalid":
        params["error"] = "invalid_session"

    url = f"{settings.frontend_url}{settings.admin_login_path}?{urlencode(params)}"
    response = RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    if exc.reason != "missing":
        clear_admin_session_cookie(response)
    return response


@app.exception_handler(WeddingAppError)
async def wedding_app_error_handler(request: Request, exc: WeddingAppError):
    if isinstance(exc, UnauthorizedError) and _wants_html(request):
        return _login_redirect(request, exc)

    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.detail)

    headers = None
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    errors = exc.errors if isinstance(exc, InvalidRequestError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(success=False, error=exc.message, errors=errors),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        # Drop the "body" / "query" / "path" prefix from the location.
        field = ".".join(str(part) for part in error["loc"][1:]) or "body"
        errors.setdefault(field, error["msg"])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=envelope(success=False, error=InvalidRequestError.message, errors=errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Ресурсът не е намерен"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "Методът не е поддържан"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(success=False, error=message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(success=False, error=GENERIC_ERROR_MESSAGE),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health", tags=["health"])
async def health_check(store: GuestStore = Depends(get_guest_store)) -> JSONResponse:
    """Health check endpoint, including guest storage reachability."""
    storage = await store.health()
    healthy = storage["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": settings.app_name,
            "storage": {"backend": store.backend_name, **storage},
        },
    )


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("wedding_rsvp.main:app", host=settings.host, port=settings.port, reload=settings.debug)
