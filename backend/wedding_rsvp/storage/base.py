"""Guest store contract shared by the file, Redis, and managed KV backends.

Every backend keeps the whole guest list as one JSON document. Backends only
implement loading/saving that document and the rate-limit records; the CRUD
rules, id generation, and statistics live here once.

Every write is a read-modify-write of the entire list with no locking, so two
concurrent writers can lose an update (last write wins).
"""

import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import ValidationError

from wedding_rsvp.errors import GuestNotFoundError, InvalidRequestError, StorageError
from wedding_rsvp.schemas.guest import GuestCreate, GuestRecord, GuestStats, GuestUpdate
from wedding_rsvp.schemas.rate_limit import RateLimitRecord

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase

_IMMUTABLE_FIELDS = {"id", "submission_date"}

NO_GUESTS_MATCHED_MESSAGE = "Няма намерени гости"

# Cleared when a guest is bulk-marked as not attending.
_ATTENDING_ONLY_DEFAULTS = {
    "plus_one_attending": False,
    "plus_one_name": None,
    "children_count": 0,
    "dietary_preference": None,
    "menu_choice": None,
    "plus_one_menu_choice": None,
    "allergies": None,
}


def generate_guest_id() -> str:
    """``guest_<epoch millis>_<9 random base36 chars>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"guest_{millis}_{suffix}"


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compute_guest_stats(guests: Iterable[GuestRecord]) -> GuestStats:
    """Aggregate counts over a guest list.

    Allergies are counted by their raw trimmed, lowercased text, so "nuts" and
    "peanuts" are separate entries.
    """
    stats = GuestStats()
    for guest in guests:
        stats.total_guests += 1
        if guest.attending:
            stats.attending_count += 1
        else:
            stats.not_attending_count += 1
        if guest.plus_one_attending:
            stats.plus_ones_count += 1
        stats.total_children_count += guest.children_count or 0

        if guest.dietary_preference and guest.dietary_preference.strip():
            pref = guest.dietary_preference.strip()
            stats.dietary_preferences[pref] = stats.dietary_preferences.get(pref, 0) + 1

        if guest.allergies and guest.allergies.strip():
            allergy = guest.allergies.strip().lower()
            stats.allergies[allergy] = stats.allergies.get(allergy, 0) + 1

    return stats


class GuestStore(ABC):
    """CRUD, bulk operations, and statistics over the single guest list."""

    backend_name: str = "abstract"

    # -- backend primitives -------------------------------------------------

    @abstractmethod
    async def _load_guests(self) -> list[dict]:
        """Return the persisted guest list (camelCase dicts); empty if uninitialized."""

    @abstractmethod
    async def _save_guests(self, guests: list[dict]) -> None:
        """Persist the full guest list, replacing what was stored."""

    @abstractmethod
    async def get_rate_limit(self, ip_address: str) -> RateLimitRecord | None:
        """Return the rate-limit record for an IP, if any."""

    @abstractmethod
    async def save_rate_limit(self, ip_address: str, record: RateLimitRecord) -> None:
        """Create or replace the rate-limit record for an IP."""

    async def _index_email(self, email: str, guest_id: str) -> None:
        """Point the email index at ``guest_id``. No-op for backends without an index."""

    async def _unindex_email(self, email: str) -> None:
        """Drop an email index entry. No-op for backends without an index."""

    async def ping(self) -> None:
        """Raise ``StorageError`` if the backend is unreachable."""
        await self._load_guests()

    async def close(self) -> None:
        """Release connections held by the backend."""

    # -- contract -----------------------------------------------------------

    async def get_all(self) -> list[GuestRecord]:
        raw_guests = await self._load_guests()
        try:
            return [GuestRecord.model_validate(raw) for raw in raw_guests]
        except ValidationError as exc:
            logger.exception("Stored guest data in %s backend is malformed", self.backend_name)
            raise StorageError("Stored guest data is malformed") from exc

    async def _save_all(self, guests: list[GuestRecord]) -> None:
        await self._save_guests([guest.to_json_dict() for guest in guests])

    async def get(self, guest_id: str) -> GuestRecord:
        for guest in await self.get_all():
            if guest.id == guest_id:
                return guest
        raise GuestNotFoundError()

    async def add(self, guest: GuestCreate) -> GuestRecord:
        """Assign ``id`` and ``submissionDate``, append, and persist.

        There is no rollback: if persisting fails the generated id is simply
        discarded and the error propagates.
        """
        guests = await self.get_all()
        record = GuestRecord(
            **guest.model_dump(exclude={"id", "submission_date"}),
            id=generate_guest_id(),
            submission_date=iso_timestamp(),
        )
        guests.append(record)
        await self._save_all(guests)
        await self._index_email(record.email, record.id)

        logger.info("New guest added: %s (%s)", record.guest_name, record.id)
        return record

    async def find_by_email(self, email: str) -> GuestRecord | None:
        """Case-insensitive lookup by scanning the full list."""
        needle = email.lower()
        for guest in await self.get_all():
            if guest.email.lower() == needle:
                return guest
        return None

    async def update(self, guest_id: str, changes: GuestUpdate | dict) -> GuestRecord:
        """Merge the given fields into an existing record.

        ``id`` and ``submissionDate`` are never changed. When the email
        changes, the old index entry is removed and the new one written as
        two separate operations.
        """
        if isinstance(changes, GuestUpdate):
            changes = changes.changes()
        changes = {key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS}

        guests = await self.get_all()
        index = self._position(guests, guest_id)
        current = guests[index]
        try:
            updated = GuestRecord.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error["loc"])
            raise InvalidRequestError(f"Невалидни стойности за: {fields}") from exc

        guests[index] = updated
        await self._save_all(guests)

        if updated.email.lower() != current.email.lower():
            await self._unindex_email(current.email)
            await self._index_email(updated.email, guest_id)

        logger.info("Guest updated: %s (%s)", updated.guest_name, guest_id)
        return updated

    async def delete(self, guest_id: str) -> None:
        guests = await self.get_all()
        deleted = guests.pop(self._position(guests, guest_id))
        await self._save_all(guests)
        await self._unindex_email(deleted.email)

        logger.info("Guest deleted: %s (%s)", deleted.guest_name, guest_id)

    async def bulk_update_attending(self, guest_ids: list[str], attending: bool) -> int:
        """Set ``attending`` on every listed guest that exists.

        Unknown ids are skipped. Marking a guest as not attending also clears
        the plus-one, children, menu, and dietary fields. Returns the number of
        guests changed. Raises ``GuestNotFoundError`` when no id matched.
        """
        wanted = set(guest_ids)
        guests = await self.get_all()
        updated_count = 0
        for position, guest in enumerate(guests):
            if guest.id not in wanted:
                continue
            changes = {"attending": attending}
            if not attending:
                changes.update(_ATTENDING_ONLY_DEFAULTS)
            guests[position] = guest.model_copy(update=changes)
            updated_count += 1

        if updated_count == 0:
            raise GuestNotFoundError(NO_GUESTS_MATCHED_MESSAGE)

        await self._save_all(guests)
        logger.info("Bulk updated %d guests attending status to: %s", updated_count, attending)
        return updated_count

    async def bulk_delete(self, guest_ids: list[str]) -> int:
        """Delete every listed guest that exists; unknown ids are skipped.

        Returns the count. Raises ``GuestNotFoundError`` when no id matched.
        """
        wanted = set(guest_ids)
        guests = await self.get_all()
        to_delete = [guest for guest in guests if guest.id in wanted]
        if not to_delete:
            raise GuestNotFoundError(NO_GUESTS_MATCHED_MESSAGE)

        await self._save_all([guest for guest in guests if guest.id not in wanted])
        for guest in to_delete:
            await self._unindex_email(guest.email)

        logger.info("Bulk deleted %d guests", len(to_delete))
        return len(to_delete)

    async def get_stats(self) -> GuestStats:
        return compute_guest_stats(await self.get_all())

    async def health(self) -> dict[str, str]:
        """Report backend health without raising."""
        try:
            await self.ping()
            count = len(await self.get_all())
        except StorageError:
            return {"status": "unhealthy", "message": f"{self.backend_name} storage is unavailable"}
        return {
            "status": "healthy",
            "message": f"{self.backend_name} storage operational. {count} guests stored.",
        }

    @staticmethod
    def _position(guests: list[GuestRecord], guest_id: str) -> int:
        for position, guest in enumerate(guests):
            if guest.id == guest_id:
                return position
        raise GuestNotFoundError()
