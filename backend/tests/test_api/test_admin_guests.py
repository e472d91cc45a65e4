"""Tests for the /api/admin/guests endpoints."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
import pytest_asyncio
from httpx import AsyncClient

from wedding_rsvp.auth.jwt import create_admin_token
from wedding_rsvp.config import settings

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def seeded(guest_store, make_guest) -> dict:
    """Three guests keyed by a short label."""
    return {
        "ivan": await guest_store.add(make_guest()),
        "maria": await guest_store.add(
            make_guest(guest_name="Мария Иванова", email="maria@example.com", attending=False, menu_choice=None)
        ),
        "georgi": await guest_store.add(
            make_guest(guest_name="Георги Стоянов", email="georgi@example.com", children_count=2)
        ),
    }


class TestAdminAuthGuard:
    """Every admin route requires the session cookie."""

    async def test_api_request_gets_401(self, client: AsyncClient) -> None:
        response = await client.get("/api/admin/guests")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Неоторизиран достъп"}

    async def test_browser_redirected_to_login(self, client: AsyncClient) -> None:
        response = await client.get("/api/admin/guests", headers={"Accept": "text/html"})
        assert response.status_code == 307
        location = urlsplit(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}" == settings.frontend_url
        assert location.path == settings.admin_login_path
        assert parse_qs(location.query) == {"redirect": ["/api/admin/guests"]}

    async def test_expired_session_redirect_clears_cookie(self, client: AsyncClient) -> None:
        expired = create_admin_token(datetime.now(timezone.utc) - timedelta(hours=25))
        client.cookies.set(settings.session_cookie_name, expired)

        response = await client.get("/api/admin/guests", headers={"Accept": "text/html,application/xhtml+xml"})
        assert response.status_code == 307
        query = parse_qs(urlsplit(response.headers["location"]).query)
        assert query["expired"] == ["true"]
        assert "Max-Age=0" in response.headers["set-cookie"]

    async def test_invalid_session_redirect(self, client: AsyncClient) -> None:
        client.cookies.set(settings.session_cookie_name, "garbage")
        response = await client.get("/api/admin/guests", headers={"Accept": "text/html"})
        query = parse_qs(urlsplit(response.headers["location"]).query)
        assert query["error"] == ["invalid_session"]

    async def test_expired_session_api_message(self, client: AsyncClient) -> None:
        expired = create_admin_token(datetime.now(timezone.utc) - timedelta(hours=25))
        client.cookies.set(settings.session_cookie_name, expired)
        response = await client.get("/api/admin/guests")
        assert response.status_code == 401
        assert "изтекла" in response.json()["error"]


class TestListGuests:
    """GET /api/admin/guests."""

    async def test_list_with_stats_and_pagination(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.get("/api/admin/guests")
        assert response.status_code == 200
        data = response.json()["data"]

        assert len(data["guests"]) == 3
        assert data["stats"]["totalGuests"] == 3
        assert data["stats"]["attendingCount"] == 2
        assert data["stats"]["totalChildrenCount"] == 2
        assert data["pagination"] == {"page": 1, "limit": 50, "total": 3, "totalPages": 1}
        assert all("ipAddress" not in guest for guest in data["guests"])

    async def test_filter_sort_and_page(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.get(
            "/api/admin/guests",
            params={"filterAttending": "true", "sortBy": "email", "sortOrder": "asc", "limit": 1, "page": 2},
        )
        data = response.json()["data"]
        assert [guest["email"] for guest in data["guests"]] == ["ivan@example.com"]
        assert data["pagination"]["totalPages"] == 2

    async def test_search(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.get("/api/admin/guests", params={"search": "мария"})
        assert [guest["id"] for guest in response.json()["data"]["guests"]] == [seeded["maria"].id]

    async def test_invalid_query_parameters(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get("/api/admin/guests", params={"sortBy": "ipAddress", "limit": 500})
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert "sortBy" in errors
        assert "limit" in errors


class TestSingleGuest:
    """GET, PATCH, and DELETE /api/admin/guests/{id}."""

    async def test_get(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.get(f"/api/admin/guests/{seeded['ivan'].id}")
        assert response.status_code == 200
        assert response.json()["data"]["guestName"] == "Иван Петров"

    async def test_get_missing(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get("/api/admin/guests/guest_0_missing00")
        assert response.status_code == 404
        assert response.json()["error"] == "Гостът не е намерен"

    async def test_patch(self, admin_client: AsyncClient, guest_store, seeded) -> None:
        guest_id = seeded["ivan"].id
        response = await admin_client.patch(
            f"/api/admin/guests/{guest_id}",
            json={"attending": False, "allergies": "глутен"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["attending"] is False

        stored = await guest_store.get(guest_id)
        assert stored.allergies == "глутен"
        assert stored.email == seeded["ivan"].email
        assert stored.submission_date == seeded["ivan"].submission_date

    async def test_patch_email_taken(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.patch(
            f"/api/admin/guests/{seeded['ivan'].id}",
            json={"email": "MARIA@example.com"},
        )
        assert response.status_code == 409

    async def test_patch_own_email_case_change(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.patch(
            f"/api/admin/guests/{seeded['ivan'].id}",
            json={"email": "Ivan@example.com"},
        )
        assert response.status_code == 200

    async def test_patch_rejects_read_only_fields(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.patch(
            f"/api/admin/guests/{seeded['ivan'].id}",
            json={"id": "guest_other", "submissionDate": "2020-01-01T00:00:00.000Z"},
        )
        assert response.status_code == 400

    async def test_patch_missing(self, admin_client: AsyncClient) -> None:
        response = await admin_client.patch("/api/admin/guests/guest_0_missing00", json={"attending": True})
        assert response.status_code == 404

    async def test_delete(self, admin_client: AsyncClient, guest_store, seeded) -> None:
        guest_id = seeded["maria"].id
        response = await admin_client.delete(f"/api/admin/guests/{guest_id}")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert len(await guest_store.get_all()) == 2

        response = await admin_client.delete(f"/api/admin/guests/{guest_id}")
        assert response.status_code == 404


class TestBulkActions:
    """POST /api/admin/guests/bulk."""

    async def test_bulk_delete(self, admin_client: AsyncClient, guest_store, seeded) -> None:
        response = await admin_client.post(
            "/api/admin/guests/bulk",
            json={"action": "delete", "guestIds": [seeded["ivan"].id, "fake"]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == {"deletedCount": 1}
        assert body["message"] == "Успешно изтрити 1 гост"
        assert len(await guest_store.get_all()) == 2

    async def test_bulk_mark_attending(self, admin_client: AsyncClient, guest_store, seeded) -> None:
        response = await admin_client.post(
            "/api/admin/guests/bulk",
            json={"action": "markAttending", "guestIds": [seeded["ivan"].id, seeded["georgi"].id], "attending": False},
        )
        assert response.json()["data"] == {"updatedCount": 2}
        assert (await guest_store.get_stats()).attending_count == 0

    @pytest.mark.parametrize(
        "body",
        [
            {"action": "markAttending", "guestIds": ["fake"], "attending": True},
            {"action": "delete", "guestIds": ["fake", "missing"]},
        ],
    )
    async def test_bulk_with_no_known_ids_fails(
        self, admin_client: AsyncClient, guest_store, seeded, body: dict
    ) -> None:
        response = await admin_client.post("/api/admin/guests/bulk", json=body)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Няма намерени гости"}
        assert len(await guest_store.get_all()) == 3

    async def test_mark_attending_requires_status(self, admin_client: AsyncClient, seeded) -> None:
        response = await admin_client.post(
            "/api/admin/guests/bulk",
            json={"action": "markAttending", "guestIds": [seeded["ivan"].id]},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Невалиден статус на присъствие"

    @pytest.mark.parametrize(
        "body",
        [
            {"action": "archive", "guestIds": ["x"]},
            {"action": "delete", "guestIds": []},
            {"action": "delete"},
        ],
    )
    async def test_invalid_bulk_request(self, admin_client: AsyncClient, body: dict) -> None:
        response = await admin_client.post("/api/admin/guests/bulk", json=body)
        assert response.status_code == 400
