"""Pydantic v2 schemas for guest records, statistics, and admin guest endpoints.

Guest data is exchanged and persisted with camelCase keys (``guestName``,
``submissionDate``); Python code uses the snake_case attribute names.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

DietaryPreference = Literal["standard", "vegetarian"]
MenuChoice = Literal["meat", "vegetarian"]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class GuestCreate(CamelModel):
    """A guest record before the store assigns ``id`` and ``submissionDate``."""

    guest_name: str
    email: str
    phone: str | None = None
    attending: bool
    plus_one_attending: bool = False
    plus_one_name: str | None = None
    children_count: int = Field(0, ge=0)
    dietary_preference: DietaryPreference | None = None
    menu_choice: MenuChoice | None = None
    plus_one_menu_choice: MenuChoice | None = None
    allergies: str | None = None
    ip_address: str | None = None


class GuestRecord(GuestCreate):
    """One RSVP submission as persisted by the guest store."""

    id: str
    submission_date: str  # ISO-8601 UTC, e.g. 2025-01-01T00:00:00.000Z


class GuestUpdate(CamelModel):
    """Schema for partially updating a guest. All fields optional.

    ``id``, ``submissionDate`` and ``ipAddress`` are not editable.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    guest_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    attending: bool | None = None
    plus_one_attending: bool | None = None
    plus_one_name: str | None = Field(None, max_length=100)
    children_count: int | None = Field(None, ge=0, le=10)
    dietary_preference: DietaryPreference | None = None
    menu_choice: MenuChoice | None = None
    plus_one_menu_choice: MenuChoice | None = None
    allergies: str | None = Field(None, max_length=500)

    def changes(self) -> dict:
        """Return only the explicitly provided fields, keyed by attribute name."""
        data = self.model_dump(exclude_unset=True)
        if data.get("email"):
            data["email"] = data["email"].lower()
        return data


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class GuestResponse(CamelModel):
    """Guest information returned by the admin API (no IP address)."""

    id: str
    guest_name: str
    email: str
    phone: str | None = None
    attending: bool
    plus_one_attending: bool = False
    plus_one_name: str | None = None
    children_count: int = 0
    dietary_preference: str | None = None
    menu_choice: str | None = None
    plus_one_menu_choice: str | None = None
    allergies: str | None = None
    submission_date: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class GuestStats(CamelModel):
    """Aggregate counts for the admin dashboard."""

    total_guests: int = 0
    attending_count: int = 0
    not_attending_count: int = 0
    plus_ones_count: int = 0
    total_children_count: int = 0
    dietary_preferences: dict[str, int] = Field(default_factory=dict)
    allergies: dict[str, int] = Field(default_factory=dict)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class GuestListData(CamelModel):
    """Paginated guest list plus statistics over the whole list."""

    guests: list[GuestResponse]
    stats: GuestStats
    pagination: Pagination


# ---------------------------------------------------------------------------
# Bulk actions
# ---------------------------------------------------------------------------


class BulkActionRequest(CamelModel):
    """Body of ``POST /api/admin/guests/bulk``."""

    action: Literal["delete", "markAttending"]
    guest_ids: list[str] = Field(..., min_length=1)
    attending: bool | None = None
