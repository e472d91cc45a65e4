"""Shared test configuration and fixtures.

Each test gets its own filesystem guest store under ``tmp_path``. The HTTP
client talks to the app through ``ASGITransport``, which does not run the
lifespan, so the store, rate limiter, and login audit log are injected with
``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wedding_rsvp.api.deps import get_guest_store, get_login_audit, get_rate_limiter
from wedding_rsvp.auth.jwt import create_admin_token
from wedding_rsvp.config import settings
from wedding_rsvp.main import app
from wedding_rsvp.schemas.guest import GuestCreate
from wedding_rsvp.services.login_audit import LoginAuditLog
from wedding_rsvp.services.rate_limiter import RateLimiter
from wedding_rsvp.storage.file_store import FileGuestStore


@pytest.fixture
def guest_store(tmp_path) -> FileGuestStore:
    return FileGuestStore(tmp_path / "data")


@pytest.fixture
def rate_limiter(guest_store: FileGuestStore) -> RateLimiter:
    return RateLimiter(guest_store, max_attempts=3, window_hours=1)


@pytest.fixture
def login_audit() -> LoginAuditLog:
    return LoginAuditLog()


@pytest.fixture
def make_guest() -> Callable[..., GuestCreate]:
    """Factory for valid guest records; keyword arguments override defaults."""

    def _make(**overrides) -> GuestCreate:
        data = {
            "guest_name": "Иван Петров",
            "email": "ivan@example.com",
            "phone": "0877311601",
            "attending": True,
            "menu_choice": "meat",
        }
        data.update(overrides)
        return GuestCreate(**data)

    return _make


@pytest_asyncio.fixture
async def client(
    guest_store: FileGuestStore,
    rate_limiter: RateLimiter,
    login_audit: LoginAuditLog,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the per-test store."""
    app.dependency_overrides[get_guest_store] = lambda: guest_store
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_login_audit] = lambda: login_audit

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    return create_admin_token()


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient, admin_token: str) -> AsyncClient:
    """The same client, carrying a valid admin session cookie."""
    client.cookies.set(settings.session_cookie_name, admin_token)
    return client
