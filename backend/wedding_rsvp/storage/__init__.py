"""Guest storage backends.

The backend is chosen by ``STORAGE_BACKEND`` (``file``, ``redis`` or ``kv``);
all of them implement the same ``GuestStore`` contract.
"""

from wedding_rsvp.config import Settings
from wedding_rsvp.storage.base import GuestStore, compute_guest_stats
from wedding_rsvp.storage.file_store import FileGuestStore
from wedding_rsvp.storage.kv_store import KVGuestStore
from wedding_rsvp.storage.redis_store import RedisGuestStore


def create_guest_store(settings: Settings) -> GuestStore:
    """Build the guest store selected by configuration."""
    if settings.storage_backend == "redis":
        return RedisGuestStore.from_url(
            settings.redis_url,
            rate_limit_ttl_seconds=settings.rate_limit_ttl_seconds,
        )
    if settings.storage_backend == "kv":
        return KVGuestStore(
            settings.kv_rest_api_url,
            settings.kv_rest_api_token,
            rate_limit_ttl_seconds=settings.rate_limit_ttl_seconds,
        )
    return FileGuestStore(settings.data_dir)


__all__ = [
    "FileGuestStore",
    "GuestStore",
    "KVGuestStore",
    "RedisGuestStore",
    "compute_guest_stats",
    "create_guest_store",
]
