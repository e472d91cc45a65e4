"""Redis guest store (redis.asyncio)."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from redis.asyncio import Redis
from redis.exceptions import RedisError

from wedding_rsvp.errors import StorageError
from wedding_rsvp.storage.keyvalue import KeyValueGuestStore

logger = logging.getLogger(__name__)


@contextmanager
def _redis_errors(command: str, key: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        logger.exception("Redis %s %s failed", command, key)
        raise StorageError(f"Redis {command} {key} failed: {exc}") from exc


class RedisGuestStore(KeyValueGuestStore):
    backend_name = "redis"

    def __init__(self, client: Redis, rate_limit_ttl_seconds: int = 60 * 60) -> None:
        super().__init__(rate_limit_ttl_seconds=rate_limit_ttl_seconds)
        self._client = client

    @classmethod
    def from_url(cls, url: str, rate_limit_ttl_seconds: int = 60 * 60) -> "RedisGuestStore":
        """Create a store with a pooled client; the connection is opened lazily."""
        client = Redis.from_url(url, decode_responses=True)
        return cls(client, rate_limit_ttl_seconds=rate_limit_ttl_seconds)

    async def _get(self, key: str) -> str | None:
        with _redis_errors("GET", key):
            return await self._client.get(key)

    async def _set(self, key: str, value: str, ex: int | None = None) -> None:
        with _redis_errors("SET", key):
            await self._client.set(key, value, ex=ex)

    async def _delete(self, key: str) -> None:
        with _redis_errors("DEL", key):
            await self._client.delete(key)

    async def ping(self) -> None:
        with _redis_errors("PING", "-"):
            await self._client.ping()

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis client disconnected")
