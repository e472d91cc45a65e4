"""Shared implementation for key-value backends (Redis and the managed KV store).

Key layout:

- ``wedding:guests``: the guest list as one JSON array
- ``wedding:guest:email:<lowercased email>``: guest id, for O(1) duplicate checks
- ``wedding:ratelimit:<ip>``: rate-limit record, expiring after ``rate_limit_ttl_seconds``

The email index is maintained with separate writes after the list is saved,
so it can go stale; a stale or missing entry makes ``find_by_email`` report
"not found".
"""

import json
import logging
from abc import abstractmethod

from pydantic import ValidationError

from wedding_rsvp.errors import StorageError
from wedding_rsvp.schemas.guest import GuestRecord
from wedding_rsvp.schemas.rate_limit import RateLimitRecord
from wedding_rsvp.storage.base import GuestStore

logger = logging.getLogger(__name__)

GUESTS_KEY = "wedding:guests"
RATE_LIMIT_PREFIX = "wedding:ratelimit:"
GUEST_EMAIL_PREFIX = "wedding:guest:email:"


def email_key(email: str) -> str:
    return f"{GUEST_EMAIL_PREFIX}{email.lower()}"


def rate_limit_key(ip_address: str) -> str:
    return f"{RATE_LIMIT_PREFIX}{ip_address}"


class KeyValueGuestStore(GuestStore):
    """Guest store over string get/set/delete primitives."""

    def __init__(self, rate_limit_ttl_seconds: int = 60 * 60) -> None:
        self.rate_limit_ttl_seconds = rate_limit_ttl_seconds

    @abstractmethod
    async def _get(self, key: str) -> str | None: ...

    @abstractmethod
    async def _set(self, key: str, value: str, ex: int | None = None) -> None: ...

    @abstractmethod
    async def _delete(self, key: str) -> None: ...

    def _decode(self, key: str, raw: str):
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.exception("Value at %s in %s backend is not valid JSON", key, self.backend_name)
            raise StorageError(f"Value at {key} is not valid JSON") from exc

    async def _load_guests(self) -> list[dict]:
        raw = await self._get(GUESTS_KEY)
        if not raw:
            return []
        guests = self._decode(GUESTS_KEY, raw)
        if not isinstance(guests, list):
            raise StorageError(f"Value at {GUESTS_KEY} is not a JSON array")
        return guests

    async def _save_guests(self, guests: list[dict]) -> None:
        await self._set(GUESTS_KEY, json.dumps(guests, ensure_ascii=False))

    async def _index_email(self, email: str, guest_id: str) -> None:
        await self._set(email_key(email), guest_id)

    async def _unindex_email(self, email: str) -> None:
        await self._delete(email_key(email))

    async def find_by_email(self, email: str) -> GuestRecord | None:
        """Look the email up in the index, then fetch the record by id."""
        guest_id = await self._get(email_key(email))
        if not guest_id:
            return None
        for guest in await self.get_all():
            if guest.id == guest_id:
                return guest
        logger.warning("Stale email index entry for guest %s", guest_id)
        return None

    async def get_rate_limit(self, ip_address: str) -> RateLimitRecord | None:
        key = rate_limit_key(ip_address)
        raw = await self._get(key)
        if not raw:
            return None
        try:
            return RateLimitRecord.model_validate(self._decode(key, raw))
        except ValidationError as exc:
            raise StorageError(f"Value at {key} is not a rate-limit record") from exc

    async def save_rate_limit(self, ip_address: str, record: RateLimitRecord) -> None:
        await self._set(
            rate_limit_key(ip_address),
            json.dumps(record.to_json_dict()),
            ex=self.rate_limit_ttl_seconds,
        )
